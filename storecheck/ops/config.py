from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from ..errors import ConfigurationError
from ..shape import RecordShape


@dataclass(frozen=True)
class OperationConfig:
    """
    Declarative metadata for one store operation.

    modified:    the operation mutates exactly these fields
    unmodified:  the operation mutates every field except these
    identifier:  field that locates the record, overriding the one in the name
    skip:        leave the operation out of generation

    Usage:
        class CountryStore(SqlStore):
            storecheck_operations = {
                "update": OperationConfig(unmodified=("id", "code", "create_time", "delete_time")),
                "update_name": OperationConfig(modified=("name", "modify_time")),
                "rebuild_index": OperationConfig(skip=True),
            }
    """

    modified: Optional[tuple[str, ...]] = None
    unmodified: Optional[tuple[str, ...]] = None
    identifier: Optional[str] = None
    skip: bool = False

    def __post_init__(self) -> None:
        if self.modified is not None and self.unmodified is not None:
            raise ConfigurationError("modified and unmodified are mutually exclusive")
        if self.modified is not None:
            object.__setattr__(self, "modified", tuple(self.modified))
        if self.unmodified is not None:
            object.__setattr__(self, "unmodified", tuple(self.unmodified))

    def field_names(self) -> Iterable[str]:
        yield from self.modified or ()
        yield from self.unmodified or ()
        if self.identifier is not None:
            yield self.identifier

    def validate(self, shape: RecordShape, operation: str) -> None:
        """Raise ConfigurationError if the config names fields the record does not have."""
        for name in self.field_names():
            if name not in shape:
                raise ConfigurationError(
                    f"Operation {operation!r} refers to unknown field {shape.name}.{name}"
                )
