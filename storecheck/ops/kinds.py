from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..shape import to_snake_case

_NAME = r"[A-Z][A-Za-z]*"
_TARGET_KEY = rf"(?:(?P<target>{_NAME}?)??(?:By(?P<key>{_NAME}))?)?"
_KEY = rf"(?:By(?P<key>{_NAME}))?"


class OperationKind(str, Enum):
    """
    Semantic role of a store operation. Declaration order is classification order.
    """

    EXISTS = "exists"
    EXISTS_IGNORING_DELETED = "exists_ignoring_deleted"
    COUNT = "count"
    LIST = "list"
    READ_OR_NULL = "read_or_null"
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    CREATE_OR_UPDATE = "create_or_update"
    DELETE = "delete"
    RESTORE = "restore"
    PURGE = "purge"
    PURGE_ALL = "purge_all"
    ERASE = "erase"
    CLEAR = "clear"

    @property
    def pattern(self) -> re.Pattern[str]:
        return _PATTERNS[self]

    @property
    def order(self) -> int:
        return _ORDER[self]

    @property
    def allows_null_return(self) -> bool:
        return self is OperationKind.READ_OR_NULL

    @property
    def takes_target(self) -> bool:
        return self in _TARGET_KINDS

    @property
    def takes_identifier(self) -> bool:
        return self in _TARGET_KINDS or self in _KEY_KINDS

    @property
    def configurable(self) -> bool:
        """Whether explicit modified/unmodified field lists apply to this kind."""
        return self in (OperationKind.CREATE, OperationKind.UPDATE, OperationKind.CREATE_OR_UPDATE)

    @property
    def default_modified(self) -> frozenset[str]:
        if self in (OperationKind.DELETE, OperationKind.RESTORE):
            return frozenset({"delete_time"})
        return frozenset()


_PATTERNS: dict[OperationKind, re.Pattern[str]] = {
    OperationKind.EXISTS: re.compile(rf"exist(?!NonDeleted)(?:By)?(?P<key>{_NAME})?"),
    OperationKind.EXISTS_IGNORING_DELETED: re.compile(rf"existNonDeleted(?:By)?(?P<key>{_NAME})?"),
    OperationKind.COUNT: re.compile(r"count"),
    OperationKind.LIST: re.compile(r"list"),
    OperationKind.READ_OR_NULL: re.compile(rf"get{_TARGET_KEY}OrNull"),
    OperationKind.READ: re.compile(rf"get{_TARGET_KEY}"),
    OperationKind.CREATE: re.compile(r"add"),
    OperationKind.UPDATE: re.compile(rf"update{_TARGET_KEY}"),
    OperationKind.CREATE_OR_UPDATE: re.compile(rf"addOrUpdate{_TARGET_KEY}"),
    OperationKind.DELETE: re.compile(rf"delete{_KEY}"),
    OperationKind.RESTORE: re.compile(rf"restore{_KEY}"),
    OperationKind.PURGE: re.compile(rf"purge{_KEY}"),
    OperationKind.PURGE_ALL: re.compile(r"purgeAll"),
    OperationKind.ERASE: re.compile(rf"erase{_KEY}"),
    OperationKind.CLEAR: re.compile(r"clear"),
}

_ORDER = {kind: index for index, kind in enumerate(OperationKind)}

_TARGET_KINDS = frozenset(
    {
        OperationKind.READ_OR_NULL,
        OperationKind.READ,
        OperationKind.UPDATE,
        OperationKind.CREATE_OR_UPDATE,
    }
)

_KEY_KINDS = frozenset(
    {
        OperationKind.EXISTS,
        OperationKind.EXISTS_IGNORING_DELETED,
        OperationKind.DELETE,
        OperationKind.RESTORE,
        OperationKind.PURGE,
        OperationKind.ERASE,
    }
)


@dataclass(frozen=True)
class Classification:
    kind: OperationKind
    target: Optional[str] = None  # snake_case field name
    key: Optional[str] = None  # snake_case field name


def to_camel_case(name: str) -> str:
    """exist_non_deleted_by_code -> existNonDeletedByCode; camelCase input is kept."""
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def classify(name: str) -> Optional[Classification]:
    """
    Classify a store method name.

    The name is normalized to lowerCamel and matched against each kind's
    pattern in declaration order; the first full match wins. Captured field
    names come back in snake_case. Returns None if no pattern matches.
    """
    camel = to_camel_case(name)
    for kind in OperationKind:
        match = kind.pattern.fullmatch(camel)
        if match is None:
            continue
        groups = match.groupdict()
        target = groups.get("target")
        key = groups.get("key")
        return Classification(
            kind=kind,
            target=to_snake_case(target) if target else None,
            key=to_snake_case(key) if key else None,
        )
    return None
