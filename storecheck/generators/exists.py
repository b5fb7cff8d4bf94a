from __future__ import annotations

import logging
from typing import Any

from ..asserts import assert_instance, assert_not_none, assert_true
from ..builder import ScenarioBuilder
from ..ops import OperationKind
from .base import OperationTestGenerator

logger = logging.getLogger(__name__)


class ExistsGenerator(OperationTestGenerator):
    """Scenarios for ``exist[_by_<key>](*keys)``; soft-deleted records still exist."""

    kind = OperationKind.EXISTS
    requires = ("add",)

    def build(self, builder: ScenarioBuilder) -> None:
        key = self.identifier.name
        builder.add(f"Existing {key}", self._exist_existing)
        if self.store.has_delete:
            builder.add(f"Existing deleted {key}", self._exist_deleted_still_exists)
        builder.add(f"Non-existing {key}", self._exist_non_existing)

    def check_existence(self, record: Any, expected: bool, message: str) -> None:
        actual = self.invoke_keyed(record)
        assert_not_none(actual, f"The returned value of {self.method_name} must not be None")
        assert_instance(actual, bool, f"The returned value of {self.method_name} must be a bool")
        assert_true(actual is expected, message)

    def _exist_existing(self) -> None:
        logger.info("Test %s: Check an existing %s", self.method_name, self.identifier.name)
        record = self.prepare()
        self.store.add(record)
        self.check_existence(
            record, True, f"Calling {self.method_name} with an existing {self.identifier.name} must return True"
        )

    def _exist_deleted_still_exists(self) -> None:
        logger.info("Test %s: Check an existing deleted %s", self.method_name, self.identifier.name)
        record = self.prepare()
        self.store.add(record)
        self.store.delete(self.shape.id_of(record))
        self.check_existence(
            record,
            True,
            f"Calling {self.method_name} with an existing deleted {self.identifier.name} must return True",
        )

    def _exist_non_existing(self) -> None:
        logger.info("Test %s: Check a non-existing %s", self.method_name, self.identifier.name)
        record = self.prepare_non_existing()
        self.check_existence(
            record, False, f"Calling {self.method_name} with a non-existing {self.identifier.name} must return False"
        )
