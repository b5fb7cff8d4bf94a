from __future__ import annotations

import dataclasses
from typing import Any

from ..ops import OperationDescriptor
from ..shape import FieldInfo, RecordShape, to_string_representation


def key_value(f: FieldInfo, record: Any) -> Any:
    """The value of ``f`` as passed to a keyed operation; references pass their key."""
    value = f.get(record)
    if f.is_reference and value is not None and dataclasses.is_dataclass(value):
        return getattr(value, f.reference_key)
    return value


def key_params(shape: RecordShape, identifier: FieldInfo, record: Any) -> list[Any]:
    """
    Positional arguments identifying ``record`` by ``identifier``.

    A field unique with respect to other fields is addressed by those fields
    first, then by its own value: ``get_by_name(entity, name)``.
    """
    return [key_value(f, record) for f in shape.key_fields(identifier)]


def set_update_keys(shape: RecordShape, identifier: FieldInfo, source: Any, target: Any) -> None:
    """Copy the fields an update keyed by ``identifier`` locates the record with."""
    if not identifier.unique:
        identifier.set(target, identifier.get(source))
        return
    for f in shape.key_fields(identifier):
        f.set(target, f.get(source))


def set_unique_values(shape: RecordShape, unique_field: FieldInfo, existing: Any, record: Any) -> str:
    """
    Make ``record`` collide with ``existing`` on ``unique_field``.

    Returns the duplicated value the way stores report it: the key fields'
    string representations joined with "-".
    """
    parts = []
    for f in shape.key_fields(unique_field):
        value = f.get(existing)
        f.set(record, value)
        parts.append(to_string_representation(value))
    return "-".join(parts)


def set_unmodified_respect_to(
    shape: RecordShape,
    operation: OperationDescriptor,
    unique_field: FieldInfo,
    source: Any,
    target: Any,
) -> None:
    """Copy the respect-to fields of ``unique_field`` that ``operation`` leaves untouched."""
    for name in unique_field.respect_to:
        f = shape[name]
        if not f.computed and operation.is_unmodified(f):
            f.set(target, f.get(source))


def copy_all(shape: RecordShape, source: Any, target: Any) -> None:
    for f in shape.non_computed_fields:
        if not f.readonly:
            f.set(target, f.get(source))
