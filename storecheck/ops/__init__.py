from .config import OperationConfig
from .descriptor import OperationDescriptor, StoreDescriptor, validate_operation_configs
from .kinds import Classification, OperationKind, classify

__all__ = [
    "Classification",
    "OperationConfig",
    "OperationDescriptor",
    "OperationKind",
    "StoreDescriptor",
    "classify",
    "validate_operation_configs",
]
