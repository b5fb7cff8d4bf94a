from __future__ import annotations

import logging
from functools import partial

from ..asserts import assert_is_none, assert_not_none
from ..builder import ScenarioBuilder
from ..compare import check_record_equals
from ..errors import NotFoundError
from ..ops import OperationKind
from .base import OperationTestGenerator

logger = logging.getLogger(__name__)


class PurgeGenerator(OperationTestGenerator):
    """Scenarios for ``purge[_by_<key>](*keys)``, the hard delete of a soft-deleted record."""

    kind = OperationKind.PURGE
    requires = ("add", "exist", "get", "delete")

    def build(self, builder: ScenarioBuilder) -> None:
        builder.add(f"Existing {self.model_name}", self._purge_deleted)
        builder.add(f"Non-existing {self.model_name}", self._purge_non_existing)
        builder.add(f"Non-deleted {self.model_name}", self._purge_non_deleted)

    def _purge_deleted(self) -> None:
        for i in range(self.loops):
            logger.info("Test %s: Purge a deleted %s: %d of %d", self.method_name, self.model_name, i + 1, self.loops)
            record = self.prepare()
            self.store.add(record)
            id_ = self.shape.id_of(record)
            self.check_exists(id_, True, f"A just added {self.model_name} must exist")
            self.store.delete(id_)
            self.check_exists(id_, True, f"A deleted {self.model_name} must still exist")
            actual = self.store.get(id_)
            delete_time = self.delete_time_of(actual)
            assert_not_none(delete_time, f"The delete time of a deleted {self.model_name} must not be None")
            self.shape.set(record, "delete_time", delete_time)
            check_record_equals(
                self.shape, record, actual, f"Getting a deleted {self.model_name} must return the same record"
            )

            assert_is_none(self.invoke_keyed(record), f"{self.method_name} must not return a value")
            self.check_exists(id_, False, f"A purged {self.model_name} must not exist")
            self.check_removed(id_)

    def _purge_non_existing(self) -> None:
        logger.info("Test %s: Purge a non-existing %s", self.method_name, self.model_name)
        record = self.prepare_non_existing()
        e = self.expect(
            NotFoundError,
            partial(self.invoke_keyed, record, quiet=True),
            f"Purging a non-existing {self.model_name} must raise NotFoundError",
        )
        self.check_not_found(e, self.identifier, self.identifier.get(record))

    def _purge_non_deleted(self) -> None:
        logger.info("Test %s: Purge a non-deleted %s", self.method_name, self.model_name)
        record = self.prepare()
        self.store.add(record)
        e = self.expect(
            NotFoundError,
            partial(self.invoke_keyed, record, quiet=True),
            f"Purging a non-deleted {self.model_name} must raise NotFoundError",
        )
        self.check_not_found(e, self.identifier, self.identifier.get(record))
