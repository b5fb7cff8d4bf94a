from __future__ import annotations

from typing import Any

# Values reported by DuplicateKeyError are truncated to the width of a MySQL
# error message field.
MAX_ERROR_VALUE_LENGTH = 64


def cap_value(value: Any) -> Any:
    """Truncate a string value to MAX_ERROR_VALUE_LENGTH characters."""
    if isinstance(value, str) and len(value) > MAX_ERROR_VALUE_LENGTH:
        return value[:MAX_ERROR_VALUE_LENGTH]
    return value


class StorecheckError(Exception):
    """Base exception for storecheck errors."""


class ConfigurationError(StorecheckError):
    """A store or record type cannot be described for test generation."""


class StoreNotRegisteredError(ConfigurationError):
    """No store is registered for the requested record type."""


class ReferenceLoopError(StorecheckError):
    """Preparing a record requires a record of a type already being prepared."""


class ContractViolation(StorecheckError, AssertionError):
    """A store broke the data-lifecycle contract during a scenario."""


class StoreError(Exception):
    """Base exception for failures reported by a store under test."""


class NullFieldError(StoreError):
    """A non-nullable field was given a null value."""

    def __init__(self, field: str) -> None:
        super().__init__(f"Field {field!r} must not be null")
        self.field = field


class OversizedFieldError(StoreError):
    """A text field exceeds its declared maximum size."""

    def __init__(self, field: str) -> None:
        super().__init__(f"Field {field!r} is too long")
        self.field = field


class DuplicateKeyError(StoreError):
    """A write collides with an existing record on a unique field."""

    def __init__(self, field: str, value: Any) -> None:
        value = cap_value(value)
        super().__init__(f"Duplicate value {value!r} for unique field {field!r}")
        self.field = field
        self.value = value


class NotFoundError(StoreError):
    """No live (or, depending on the operation, no deleted) record matches the key."""

    def __init__(self, entity: str, field: str, value: Any) -> None:
        super().__init__(f"No {entity} found with {field} = {value!r}")
        self.entity = entity
        self.field = field
        self.value = value


class InvocationError(StoreError):
    """
    Envelope raised by stores that wrap their failures (e.g. an RPC client).

    The store's own error is carried as ``__cause__`` and is surfaced by
    OperationDescriptor.invoke().
    """
