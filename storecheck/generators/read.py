from __future__ import annotations

import logging
from enum import Enum
from functools import partial
from typing import Any

from ..asserts import assert_equal, assert_is_none, assert_not_none, assert_true
from ..builder import ScenarioBuilder
from ..compare import check_record_equals
from ..errors import NotFoundError
from ..ops import OperationKind
from ..shape import SCALAR_TYPES, ShapeKind
from .base import OperationTestGenerator

logger = logging.getLogger(__name__)

# Results of these types are values; reading twice cannot hand out a shared object.
_IMMUTABLE_TYPES = (*SCALAR_TYPES, tuple, frozenset, Enum)


class ReadGenerator(OperationTestGenerator):
    """Scenarios for ``get[_<target>][_by_<key>](*keys)``."""

    kind = OperationKind.READ
    requires = ("add",)

    @property
    def target_name(self) -> str:
        target = self.operation.target
        return self.model_name if target is None else target.name

    def _returns_mutable(self) -> bool:
        target = self.operation.target
        if target is None:
            return True
        if target.kind is ShapeKind.ARRAY:
            return False
        if target.kind is not ShapeKind.PRIMITIVE:
            return True
        return isinstance(target.type, type) and not issubclass(target.type, _IMMUTABLE_TYPES)

    def build(self, builder: ScenarioBuilder) -> None:
        key = self.identifier.name
        builder.add(f"Existing {key}", self._get_existing)
        if self._returns_mutable():
            builder.add(f"Get by existing {key} twice", self._get_existing_twice)
        builder.add(f"Non-existing {key}", self._get_non_existing)

    def _check_result(self, record: Any, actual: Any) -> None:
        message = (
            f"Calling {self.method_name} with an existing {self.identifier.name} "
            f"must return the stored {self.target_name}"
        )
        target = self.operation.target
        if target is None:
            assert_not_none(actual, f"The returned value of {self.method_name} must not be None")
            check_record_equals(self.shape, record, actual, message)
        else:
            assert_equal(target.get(record), actual, message)

    def _get_existing(self) -> None:
        for i in range(self.loops):
            logger.info(
                "Test %s: Get the %s with an existing %s: %d of %d",
                self.method_name,
                self.target_name,
                self.identifier.name,
                i + 1,
                self.loops,
            )
            record = self.prepare()
            self.store.add(record)
            self._check_result(record, self.invoke_keyed(record))

    def _get_existing_twice(self) -> None:
        for i in range(self.loops):
            logger.info(
                "Test %s: Get the %s with an existing %s twice: %d of %d",
                self.method_name,
                self.target_name,
                self.identifier.name,
                i + 1,
                self.loops,
            )
            record = self.prepare()
            self.store.add(record)
            first = self.invoke_keyed(record)
            self._check_result(record, first)
            second = self.invoke_keyed(record)
            assert_equal(first, second, f"Reading the same {self.target_name} twice must return equal objects")
            if first is not None:
                assert_true(
                    first is not second,
                    f"Reading the same {self.target_name} twice must not return the same object",
                )

    def _get_non_existing(self) -> None:
        logger.info(
            "Test %s: Get the %s with a non-existing %s", self.method_name, self.target_name, self.identifier.name
        )
        record = self.prepare_non_existing()
        if self.operation.allow_null_return:
            assert_is_none(
                self.invoke_keyed(record),
                f"Calling {self.method_name} with a non-existing {self.identifier.name} must return None",
            )
            return
        e = self.expect(
            NotFoundError,
            partial(self.invoke_keyed, record, quiet=True),
            f"Calling {self.method_name} with a non-existing {self.identifier.name} must raise NotFoundError",
        )
        self.check_not_found(e, self.identifier, self.identifier.get(record))


class ReadOrNullGenerator(ReadGenerator):
    """Scenarios for ``get[_<target>][_by_<key>]_or_null(*keys)``."""

    kind = OperationKind.READ_OR_NULL
