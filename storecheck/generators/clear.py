from __future__ import annotations

import logging

from ..asserts import assert_equal, assert_instance, assert_not_none
from ..builder import ScenarioBuilder
from ..ops import OperationKind
from .base import OperationTestGenerator

logger = logging.getLogger(__name__)


class ClearGenerator(OperationTestGenerator):
    """Scenarios for ``clear()``, which hard-deletes every record and returns how many."""

    kind = OperationKind.CLEAR
    requires = ("add", "exist", "count")

    def build(self, builder: ScenarioBuilder) -> None:
        builder.add(f"Clear all {self.model_name}", self._clear_all)

    def _clear_all(self) -> None:
        table_size = self.config.table_size
        for i in range(self.loops):
            n = self.random.randrange(table_size)
            logger.info("Test %s: Clear %d %s: %d of %d", self.method_name, n, self.model_name, i + 1, self.loops)
            # preparing a record may add records of the same type through its references
            records = [self.prepare() for _ in range(n)]
            existing = self.store.count()

            ids = []
            for record in records:
                self.store.add(record)
                id_ = self.shape.id_of(record)
                ids.append(id_)
                self.check_exists(id_, True, f"An added {self.model_name} must exist")
                if self.store.has_delete and self.random.random() < 0.5:
                    self.store.delete(id_)

            count = self.invoke()
            assert_not_none(count, f"The returned value of {self.method_name} must not be None")
            assert_instance(count, int, f"The returned value of {self.method_name} must be a count")
            assert_equal(
                n + existing,
                count,
                f"{self.method_name} must return the number of removed {self.model_name}",
            )
            for id_ in ids:
                self.check_exists(id_, False, f"A cleared {self.model_name} must not exist")
