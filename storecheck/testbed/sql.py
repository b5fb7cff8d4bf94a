from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from sqlalchemy.exc import IntegrityError

from ..errors import DuplicateKeyError, NullFieldError, StoreError

# MySQL server error codes
ER_DUP_ENTRY = 1062
ER_BAD_NULL_ERROR = 1048

_NULL_COLUMN_PATTERNS = (
    re.compile(r"Column '(?P<column>\w+)' cannot be null"),
    re.compile(r"NOT NULL constraint failed: (?:\w+\.)?(?P<column>\w+)"),
    re.compile(r'null value in column "(?P<column>\w+)"'),
)

_DUPLICATE_COLUMN_PATTERNS = (
    re.compile(r"for key '(?:\w+\.)?(?:uk_\w+?_)?(?P<column>\w+)'"),
    re.compile(r"UNIQUE constraint failed: (?:\w+\.\w+, )*(?:\w+\.)?(?P<column>\w+)"),
    re.compile(r"Key \((?:\w+, )*(?P<column>\w+)\)="),
)


def _error_code_and_message(exc: IntegrityError) -> tuple[Any, str]:
    error_msg = str(exc.orig) if getattr(exc, "orig", None) is not None else str(exc)
    args = getattr(exc.orig, "args", None) or [None]
    return args[0], error_msg


def is_duplicate_key_error(exc: IntegrityError) -> bool:
    error_code, error_msg = _error_code_and_message(exc)
    return (
        error_code == ER_DUP_ENTRY
        or "Duplicate entry" in error_msg
        or "duplicate key" in error_msg.lower()
        or "UNIQUE constraint failed" in error_msg
    )


def is_null_field_error(exc: IntegrityError) -> bool:
    error_code, error_msg = _error_code_and_message(exc)
    return (
        error_code == ER_BAD_NULL_ERROR
        or "cannot be null" in error_msg
        or "NOT NULL constraint failed" in error_msg
        or "violates not-null constraint" in error_msg
    )


def _column_of(error_msg: str, patterns) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(error_msg)
        if match is not None:
            return match.group("column")
    return None


def translate_integrity_error(
    exc: IntegrityError,
    params: Mapping[str, Any],
    duplicate_values: Optional[Mapping[str, str]] = None,
) -> Optional[StoreError]:
    """
    Map a database constraint violation to the store error taxonomy.

    Args:
        exc: The IntegrityError raised by the driver
        params: Bound parameters of the failed statement, by column
        duplicate_values: Reported value per unique column when it is not
            the bare column value (composite keys)

    Returns:
        The StoreError to raise, or None when the violation is of another kind
        (e.g. a foreign key) and the original error should propagate.
    """
    _, error_msg = _error_code_and_message(exc)
    if is_null_field_error(exc):
        column = _column_of(error_msg, _NULL_COLUMN_PATTERNS)
        if column is not None:
            return NullFieldError(column)
    if is_duplicate_key_error(exc):
        column = _column_of(error_msg, _DUPLICATE_COLUMN_PATTERNS)
        if column is not None:
            value = (duplicate_values or {}).get(column, params.get(column))
            return DuplicateKeyError(column, "" if value is None else str(value))
    return None
