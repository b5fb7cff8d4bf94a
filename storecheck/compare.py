from __future__ import annotations

import dataclasses
from collections import Counter
from typing import Any, Callable

from .asserts import assert_equal, assert_is_none, fail
from .shape import RecordShape, ShapeKind, has_identifier


def shape_kind_of(value: Any, is_reference: bool = False) -> ShapeKind:
    """Infer the ShapeKind of a runtime value (used for collection elements)."""
    if isinstance(value, tuple):
        return ShapeKind.ARRAY
    if isinstance(value, list):
        return ShapeKind.ORDERED
    if isinstance(value, (set, frozenset)):
        return ShapeKind.UNORDERED
    if isinstance(value, dict):
        return ShapeKind.MAP
    if is_reference:
        return ShapeKind.REFERENCE
    if dataclasses.is_dataclass(value):
        return ShapeKind.COMPOSITE
    return ShapeKind.PRIMITIVE


def assert_value_equals(
    kind: ShapeKind,
    is_reference: bool,
    expected: Any,
    actual: Any,
    message: str,
) -> None:
    """
    Structural equality of two field values.

    Precedence: null handling, then dispatch on ``kind``. Sequences compare by
    position, sets as multisets, mappings per key, and references with an
    identifier by identifier only. Everything else uses ``==``.
    """
    if expected is None:
        assert_is_none(actual, message)
    elif actual is None:
        fail(f"{message}: expected {expected!r}, got None")
    else:
        _COMPARATORS[kind](is_reference, expected, actual, message)


def assert_absolute_equals(expected: Any, actual: Any, message: str) -> None:
    """Plain equality with no reference shortcut; arrays compare element-wise."""
    if isinstance(expected, (tuple, list)) and isinstance(actual, (tuple, list)):
        assert_equal(list(expected), list(actual), message)
    else:
        assert_equal(expected, actual, message)


def _element_equals(is_reference: bool, expected: Any, actual: Any, message: str) -> None:
    if expected is None:
        assert_is_none(actual, message)
    elif actual is None:
        fail(f"{message}: expected {expected!r}, got None")
    else:
        assert_value_equals(shape_kind_of(expected, is_reference), is_reference, expected, actual, message)


def _primitive_equals(is_reference: bool, expected: Any, actual: Any, message: str) -> None:
    assert_equal(expected, actual, message)


def _sequence_equals(is_reference: bool, expected: Any, actual: Any, message: str) -> None:
    assert_equal(len(expected), len(actual), f"{message} (length)")
    for index, (e, a) in enumerate(zip(expected, actual)):
        _element_equals(is_reference, e, a, f"{message} [{index}]")


def _unordered_equals(is_reference: bool, expected: Any, actual: Any, message: str) -> None:
    def key(element: Any) -> Any:
        if is_reference and has_identifier(type(element)):
            return RecordShape.of(type(element)).id_of(element)
        return element

    assert_equal(len(expected), len(actual), f"{message} (size)")
    assert_equal(Counter(map(key, expected)), Counter(map(key, actual)), message)


def _map_equals(is_reference: bool, expected: Any, actual: Any, message: str) -> None:
    assert_equal(len(expected), len(actual), f"{message} (size)")
    for key, e in expected.items():
        if key not in actual:
            fail(f"{message}: missing key {key!r}")
        _element_equals(is_reference, e, actual[key], f"{message} [{key!r}]")


def _reference_equals(is_reference: bool, expected: Any, actual: Any, message: str) -> None:
    if has_identifier(type(expected)):
        shape = RecordShape.of(type(expected))
        assert_equal(shape.id_of(expected), shape.id_of(actual), f"{message} (identifier)")
    else:
        assert_absolute_equals(expected, actual, message)


def _composite_equals(is_reference: bool, expected: Any, actual: Any, message: str) -> None:
    assert_absolute_equals(expected, actual, message)


_COMPARATORS: dict[ShapeKind, Callable[[bool, Any, Any, str], None]] = {
    ShapeKind.PRIMITIVE: _primitive_equals,
    ShapeKind.ARRAY: _sequence_equals,
    ShapeKind.ORDERED: _sequence_equals,
    ShapeKind.UNORDERED: _unordered_equals,
    ShapeKind.MAP: _map_equals,
    ShapeKind.REFERENCE: _reference_equals,
    ShapeKind.COMPOSITE: _composite_equals,
}


def check_record_equals(shape: RecordShape, expected: Any, actual: Any, message: str) -> None:
    """Compare two records; on ``==`` mismatch report the first differing field."""
    if expected is None:
        assert_is_none(actual, message)
        return
    if actual is None:
        fail(f"{message}: got None")
    if expected == actual:
        return
    for f in shape.non_computed_fields:
        assert_value_equals(
            f.kind,
            f.is_reference,
            f.get(expected),
            f.get(actual),
            f"{message} ({shape.name}.{f.name})",
        )
