from __future__ import annotations

import logging

from ..asserts import assert_equal, assert_instance
from ..builder import ScenarioBuilder
from ..ops import OperationKind
from .base import OperationTestGenerator

logger = logging.getLogger(__name__)


class CountGenerator(OperationTestGenerator):
    """Scenarios for ``count()``; soft-deleted records are counted too."""

    kind = OperationKind.COUNT
    requires = ("add", "clear")

    def build(self, builder: ScenarioBuilder) -> None:
        builder.add(f"Count all {self.model_name}", self._count_all)
        builder.add(f"Count cleared {self.model_name}", self._count_cleared)

    def _count(self) -> int:
        count = self.invoke()
        assert_instance(count, int, f"The returned value of {self.method_name} must be a count")
        return count

    def _count_all(self) -> None:
        for i in range(self.loops):
            n = self.random.randrange(self.config.table_size)
            logger.info("Test %s: Count after adding %d %s: %d of %d", self.method_name, n, self.model_name, i + 1, self.loops)
            records = [self.prepare() for _ in range(n)]
            existing = self._count()
            for record in records:
                self.store.add(record)
                if self.store.has_delete and self.random.random() < 0.5:
                    self.store.delete(self.shape.id_of(record))
            assert_equal(
                existing + n,
                self._count(),
                f"{self.method_name} must count every added {self.model_name}, deleted or not",
            )

    def _count_cleared(self) -> None:
        logger.info("Test %s: Count after clearing %s", self.method_name, self.model_name)
        self.store.add(self.prepare())
        self.store.clear()
        assert_equal(0, self._count(), f"{self.method_name} must return 0 after clearing {self.model_name}")
