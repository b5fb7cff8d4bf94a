from __future__ import annotations

import logging

from ..builder import ScenarioBuilder
from ..ops import OperationKind
from .exists import ExistsGenerator

logger = logging.getLogger(__name__)


class ExistsIgnoringDeletedGenerator(ExistsGenerator):
    """Scenarios for ``exist_non_deleted[_by_<key>](*keys)``; soft-deleted records do not count."""

    kind = OperationKind.EXISTS_IGNORING_DELETED
    requires = ("add", "delete")

    def build(self, builder: ScenarioBuilder) -> None:
        key = self.identifier.name
        builder.add(f"Existing non-deleted {key}", self._exist_existing)
        builder.add(f"Existing deleted {key}", self._exist_deleted)
        builder.add(f"Non-existing {key}", self._exist_non_existing)

    def _exist_deleted(self) -> None:
        logger.info("Test %s: Check an existing deleted %s", self.method_name, self.identifier.name)
        record = self.prepare()
        self.store.add(record)
        self.store.delete(self.shape.id_of(record))
        self.check_existence(
            record,
            False,
            f"Calling {self.method_name} with an existing deleted {self.identifier.name} must return False",
        )
