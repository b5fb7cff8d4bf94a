from __future__ import annotations

import logging
from typing import Any

from ..asserts import assert_equal, assert_instance, assert_is_none, assert_not_none
from ..builder import ScenarioBuilder
from ..ops import OperationKind
from .base import OperationTestGenerator

logger = logging.getLogger(__name__)


class PurgeAllGenerator(OperationTestGenerator):
    """
    Scenarios for ``purge_all()``.

    Adds ``loops`` records, soft-deletes a random subset of them and checks that
    exactly the deleted ones disappear and that their number is returned.
    """

    kind = OperationKind.PURGE_ALL
    requires = ("add", "exist", "get", "clear")

    def build(self, builder: ScenarioBuilder) -> None:
        builder.add(f"Purge all deleted {self.model_name}", self._purge_all)

    def _purge_all(self) -> None:
        logger.info("Test %s: Add %d %s and delete some of them", self.method_name, self.loops, self.model_name)
        self.store.clear()
        added: list[tuple[Any, bool]] = []
        for _ in range(self.loops):
            record = self.prepare()
            self.store.add(record)
            id_ = self.shape.id_of(record)
            self.check_exists(id_, True, f"An added {self.model_name} must exist")
            deleted = self.store.has_delete and self.random.random() < 0.5
            if deleted:
                self.store.delete(id_)
            added.append((id_, deleted))

        count = self.invoke()
        assert_not_none(count, f"The returned value of {self.method_name} must not be None")
        assert_instance(count, int, f"The returned value of {self.method_name} must be a count")

        expected = 0
        for id_, deleted in added:
            if deleted:
                logger.info("Test %s: Check the purged %s %r", self.method_name, self.model_name, id_)
                self.check_exists(id_, False, f"A deleted {self.model_name} must not exist after {self.method_name}")
                expected += 1
            else:
                logger.info("Test %s: Check the kept %s %r", self.method_name, self.model_name, id_)
                self.check_exists(id_, True, f"A non-deleted {self.model_name} must still exist")
                actual = self.store.get(id_)
                assert_not_none(actual, f"Getting a non-deleted {self.model_name} must not return None")
                assert_is_none(
                    self.delete_time_of(actual),
                    f"The delete time of a non-deleted {self.model_name} must be None",
                )
        assert_equal(expected, count, f"{self.method_name} must return the number of purged {self.model_name}")
