from __future__ import annotations

from ..ops import OperationKind
from .base import OperationTestGenerator
from .clear import ClearGenerator
from .count import CountGenerator
from .create import CreateGenerator
from .create_or_update import CreateOrUpdateGenerator
from .delete import DeleteGenerator
from .erase import EraseGenerator
from .exists import ExistsGenerator
from .exists_ignoring_deleted import ExistsIgnoringDeletedGenerator
from .listing import ListGenerator
from .purge import PurgeGenerator
from .purge_all import PurgeAllGenerator
from .read import ReadGenerator, ReadOrNullGenerator
from .restore import RestoreGenerator
from .update import UpdateGenerator

GENERATORS: dict[OperationKind, type[OperationTestGenerator]] = {
    OperationKind.EXISTS: ExistsGenerator,
    OperationKind.EXISTS_IGNORING_DELETED: ExistsIgnoringDeletedGenerator,
    OperationKind.COUNT: CountGenerator,
    OperationKind.LIST: ListGenerator,
    OperationKind.READ_OR_NULL: ReadOrNullGenerator,
    OperationKind.READ: ReadGenerator,
    OperationKind.CREATE: CreateGenerator,
    OperationKind.UPDATE: UpdateGenerator,
    OperationKind.CREATE_OR_UPDATE: CreateOrUpdateGenerator,
    OperationKind.DELETE: DeleteGenerator,
    OperationKind.RESTORE: RestoreGenerator,
    OperationKind.PURGE: PurgeGenerator,
    OperationKind.PURGE_ALL: PurgeAllGenerator,
    OperationKind.ERASE: EraseGenerator,
    OperationKind.CLEAR: ClearGenerator,
}

__all__ = [
    "GENERATORS",
    "OperationTestGenerator",
    "ClearGenerator",
    "CountGenerator",
    "CreateGenerator",
    "CreateOrUpdateGenerator",
    "DeleteGenerator",
    "EraseGenerator",
    "ExistsGenerator",
    "ExistsIgnoringDeletedGenerator",
    "ListGenerator",
    "PurgeGenerator",
    "PurgeAllGenerator",
    "ReadGenerator",
    "ReadOrNullGenerator",
    "RestoreGenerator",
    "UpdateGenerator",
]
