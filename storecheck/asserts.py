from __future__ import annotations

from typing import Any, Callable, NoReturn, Type, TypeVar

from .errors import ContractViolation

E = TypeVar("E", bound=BaseException)


def fail(message: str) -> NoReturn:
    raise ContractViolation(message)


def assert_true(condition: Any, message: str) -> None:
    if not condition:
        fail(message)


def assert_equal(expected: Any, actual: Any, message: str) -> None:
    if expected != actual:
        fail(f"{message}: expected {expected!r}, got {actual!r}")


def assert_is_none(actual: Any, message: str) -> None:
    if actual is not None:
        fail(f"{message}: expected None, got {actual!r}")


def assert_not_none(actual: Any, message: str) -> None:
    if actual is None:
        fail(message)


def assert_instance(actual: Any, expected_type: type, message: str) -> None:
    if not isinstance(actual, expected_type):
        fail(f"{message}: expected {expected_type.__name__}, got {type(actual).__name__}")


def assert_raises(error_type: Type[E], func: Callable[[], Any], message: str) -> E:
    """
    Call ``func`` and return the ``error_type`` it raises.

    Any other exception propagates; returning normally is a contract violation.
    """
    try:
        func()
    except error_type as exc:
        return exc
    fail(message)
