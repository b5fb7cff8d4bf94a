from __future__ import annotations

import collections.abc
import dataclasses
import re
import typing
from dataclasses import MISSING, dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Optional, Union

from .errors import ConfigurationError

FIELD_OPTIONS_KEY = "storecheck"
COMPUTED_MARKER = "__storecheck_computed__"
SHAPE_ATTRIBUTE = "__storecheck_shape__"

SCALAR_TYPES = (str, int, float, bool, bytes, Decimal, datetime, date, time)

# Value types that can never hold null, so null-field scenarios skip them.
PRIMITIVE_TYPES = (int, float, bool)


class ShapeKind(str, Enum):
    PRIMITIVE = "primitive"
    ARRAY = "array"
    ORDERED = "ordered"
    UNORDERED = "unordered"
    MAP = "map"
    REFERENCE = "reference"
    COMPOSITE = "composite"


@dataclass(frozen=True)
class FieldOptions:
    nullable: bool = True
    readonly: bool = False
    unique: bool = False
    respect_to: tuple[str, ...] = ()
    max_size: Optional[int] = None
    identifier: bool = False
    reference: Optional[type] = None
    reference_key: str = "id"


def column(
    *,
    default: Any = MISSING,
    default_factory: Any = MISSING,
    nullable: bool = True,
    readonly: bool = False,
    unique: bool = False,
    respect_to: tuple[str, ...] | list[str] = (),
    max_size: Optional[int] = None,
    identifier: bool = False,
    references: Optional[type] = None,
    key: str = "id",
    compare: bool = True,
) -> Any:
    """
    Declare a record field together with the metadata scenarios are generated from.

    Identifier fields are always read-only: stores assign them on create.

    Usage:
        @dataclass
        class Category:
            id: Optional[int] = column(default=None, identifier=True)
            entity: Optional[str] = column(default=None, nullable=False, max_size=64)
            name: Optional[str] = column(
                default=None, nullable=False, unique=True, respect_to=("entity",)
            )
    """
    if max_size is not None and max_size <= 0:
        raise ValueError("max_size must be > 0")
    options = FieldOptions(
        nullable=nullable,
        readonly=readonly or identifier,
        unique=unique,
        respect_to=tuple(respect_to),
        max_size=max_size,
        identifier=identifier,
        reference=references,
        reference_key=key,
    )
    return dataclasses.field(
        default=default,
        default_factory=default_factory,
        compare=compare,
        metadata={FIELD_OPTIONS_KEY: options},
    )


def computed(func: Callable[[Any], Any]) -> property:
    """Mark a read-only property as a computed field of its record type."""
    setattr(func, COMPUTED_MARKER, True)
    return property(func)


def to_snake_case(name: str) -> str:
    name = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name).lower()


@dataclass(frozen=True)
class FieldInfo:
    name: str
    type: Any
    kind: ShapeKind
    element_type: Any = None
    nullable: bool = True
    readonly: bool = False
    computed: bool = False
    unique: bool = False
    respect_to: tuple[str, ...] = ()
    max_size: Optional[int] = None
    identifier: bool = False
    reference: Optional[type] = None
    reference_key: str = "id"

    @property
    def column(self) -> str:
        return self.name

    @property
    def primitive(self) -> bool:
        return self.type in PRIMITIVE_TYPES

    @property
    def is_reference(self) -> bool:
        return self.reference is not None

    @property
    def is_text(self) -> bool:
        return self.type is str

    def get(self, record: Any) -> Any:
        return getattr(record, self.name)

    def set(self, record: Any, value: Any) -> None:
        if self.computed:
            raise AttributeError(f"Computed field {self.name!r} cannot be assigned")
        setattr(record, self.name, value)


def _unwrap_optional(tp: Any) -> Any:
    if typing.get_origin(tp) is Union:
        args = [a for a in typing.get_args(tp) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return tp


def classify_type(tp: Any, is_reference: bool = False) -> tuple[ShapeKind, Any]:
    """
    Map a (non-Optional) annotation to its ShapeKind and element type.

    The element type is the item type of sequences and sets and the value type
    of mappings; None otherwise.
    """
    origin = typing.get_origin(tp) or tp
    args = typing.get_args(tp)
    if origin is tuple:
        return ShapeKind.ARRAY, (args[0] if args else Any)
    if origin in (set, frozenset, collections.abc.Set, collections.abc.MutableSet):
        return ShapeKind.UNORDERED, (args[0] if args else Any)
    if origin in (dict, collections.abc.Mapping, collections.abc.MutableMapping):
        return ShapeKind.MAP, (args[1] if len(args) == 2 else Any)
    if origin in (list, collections.abc.Sequence, collections.abc.MutableSequence):
        return ShapeKind.ORDERED, (args[0] if args else Any)
    if is_reference:
        return ShapeKind.REFERENCE, None
    if isinstance(tp, type) and dataclasses.is_dataclass(tp):
        return ShapeKind.COMPOSITE, None
    return ShapeKind.PRIMITIVE, None


class RecordShape:
    """
    Read-only metadata of a dataclass record type.

    Fields are listed in declaration order, followed by computed properties.
    Each record type carries its own shape once built; use RecordShape.of().
    """

    def __init__(self, record_type: type) -> None:
        if not (isinstance(record_type, type) and dataclasses.is_dataclass(record_type)):
            raise ConfigurationError(f"{record_type!r} is not a dataclass record type")
        self.type = record_type
        self.name = record_type.__name__
        self.table = to_snake_case(self.name)

        hints = typing.get_type_hints(record_type)
        fields: list[FieldInfo] = []
        for f in dataclasses.fields(record_type):
            options: FieldOptions = f.metadata.get(FIELD_OPTIONS_KEY, FieldOptions())
            tp = _unwrap_optional(hints[f.name])
            kind, element_type = classify_type(tp, options.reference is not None)
            fields.append(
                FieldInfo(
                    name=f.name,
                    type=tp,
                    kind=kind,
                    element_type=element_type,
                    nullable=options.nullable,
                    readonly=options.readonly,
                    unique=options.unique,
                    respect_to=options.respect_to,
                    max_size=options.max_size,
                    identifier=options.identifier,
                    reference=options.reference,
                    reference_key=options.reference_key,
                )
            )
        for attr, member in vars(record_type).items():
            if isinstance(member, property) and getattr(member.fget, COMPUTED_MARKER, False):
                tp = _unwrap_optional(typing.get_type_hints(member.fget).get("return", Any))
                kind, element_type = classify_type(tp)
                fields.append(
                    FieldInfo(
                        name=attr,
                        type=tp,
                        kind=kind,
                        element_type=element_type,
                        readonly=True,
                        computed=True,
                    )
                )

        self.fields: tuple[FieldInfo, ...] = tuple(fields)
        self._by_name = {f.name: f for f in self.fields}

        for f in self.fields:
            for name in f.respect_to:
                if name not in self._by_name:
                    raise ConfigurationError(
                        f"{self.name}.{f.name} is unique with respect to unknown field {name!r}"
                    )

        flagged = [f for f in self.fields if f.identifier]
        if len(flagged) > 1:
            raise ConfigurationError(f"{self.name} declares more than one identifier field")
        self.identifier: Optional[FieldInfo] = flagged[0] if flagged else self._by_name.get("id")

    @classmethod
    def of(cls, record_type: type) -> "RecordShape":
        # vars(), not getattr(): a subclass must not reuse its parent's shape
        shape = vars(record_type).get(SHAPE_ATTRIBUTE) if isinstance(record_type, type) else None
        if shape is None:
            shape = cls(record_type)
            setattr(record_type, SHAPE_ATTRIBUTE, shape)
        return shape

    def __repr__(self) -> str:
        return f"RecordShape({self.name})"

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def __getitem__(self, name: str) -> FieldInfo:
        return self._by_name[name]

    @property
    def non_computed_fields(self) -> tuple[FieldInfo, ...]:
        return tuple(f for f in self.fields if not f.computed)

    def get(self, record: Any, name: str) -> Any:
        return self._by_name[name].get(record)

    def set(self, record: Any, name: str, value: Any) -> None:
        self._by_name[name].set(record, value)

    def id_of(self, record: Any) -> Any:
        if self.identifier is None:
            raise ConfigurationError(f"{self.name} has no identifier field")
        return self.identifier.get(record)

    def key_fields(self, field: FieldInfo) -> tuple[FieldInfo, ...]:
        """The respect-to fields of ``field`` followed by ``field`` itself."""
        return tuple(self._by_name[name] for name in field.respect_to) + (field,)

    def new(self) -> Any:
        return self.type()


def normalize(value: Any) -> Any:
    """
    Normalize a value before comparison.

    A ``normalize()`` hook on the value is called first (in place). Strings are
    stripped and empty strings, containers and mappings become None.
    """
    if value is None:
        return None
    if not isinstance(value, SCALAR_TYPES):
        hook = getattr(value, "normalize", None)
        if callable(hook):
            hook()
    if isinstance(value, str):
        value = value.strip()
        return value or None
    if isinstance(value, (list, tuple, set, frozenset, dict)) and not value:
        return None
    return value


def has_identifier(tp: Any) -> bool:
    return (
        isinstance(tp, type)
        and dataclasses.is_dataclass(tp)
        and RecordShape.of(tp).identifier is not None
    )


def to_string_representation(value: Any) -> str:
    """
    Render a field value the way stores report it inside a composite unique key.

    Records with an identifier render as their identifier; other records join
    their non-computed fields with "-".
    """
    if value is None:
        return ""
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, SCALAR_TYPES):
        return str(value)
    if dataclasses.is_dataclass(value):
        shape = RecordShape.of(type(value))
        if shape.identifier is not None:
            id_ = shape.id_of(value)
            return "" if id_ is None else str(id_)
        return "-".join(to_string_representation(f.get(value)) for f in shape.non_computed_fields)
    return str(value)
