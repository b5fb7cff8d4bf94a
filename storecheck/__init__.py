from .builder import Scenario, ScenarioBuilder, ScenarioGroup
from .config import GeneratorConfig
from .errors import (
    ConfigurationError,
    ContractViolation,
    DuplicateKeyError,
    InvocationError,
    NotFoundError,
    NullFieldError,
    OversizedFieldError,
    ReferenceLoopError,
    StorecheckError,
    StoreError,
    StoreNotRegisteredError,
)
from .ops import OperationConfig, OperationKind, classify
from .records import RecordBuilder
from .registry import GeneratorRegistry
from .shape import RecordShape, column, computed

__all__ = [
    "ConfigurationError",
    "ContractViolation",
    "DuplicateKeyError",
    "GeneratorConfig",
    "GeneratorRegistry",
    "InvocationError",
    "NotFoundError",
    "NullFieldError",
    "OperationConfig",
    "OperationKind",
    "OversizedFieldError",
    "RecordBuilder",
    "RecordShape",
    "ReferenceLoopError",
    "Scenario",
    "ScenarioBuilder",
    "ScenarioGroup",
    "StoreError",
    "StoreNotRegisteredError",
    "StorecheckError",
    "classify",
    "column",
    "computed",
]
