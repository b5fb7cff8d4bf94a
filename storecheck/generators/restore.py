from __future__ import annotations

import logging
from functools import partial
from typing import Any

from ..asserts import assert_is_none, assert_not_none
from ..builder import ScenarioBuilder
from ..errors import NotFoundError
from ..ops import OperationKind
from .base import OperationTestGenerator

logger = logging.getLogger(__name__)


class RestoreGenerator(OperationTestGenerator):
    """Scenarios for ``restore[_by_<key>](*keys)``; only deleted records can be restored."""

    kind = OperationKind.RESTORE
    requires = ("add", "exist", "get", "delete")

    def build(self, builder: ScenarioBuilder) -> None:
        builder.add(f"Existing {self.model_name}", self._restore_deleted)
        builder.add(f"Non-existing {self.model_name}", self._restore_non_existing)
        builder.add(f"Non-deleted {self.model_name}", self._restore_non_deleted)

    def _delete(self, record: Any) -> Any:
        id_ = self.shape.id_of(record)
        self.check_exists(id_, True, f"A just added {self.model_name} must exist")
        self.store.delete(id_)
        self.check_exists(id_, True, f"A deleted {self.model_name} must still exist")
        actual = self.store.get(id_)
        assert_not_none(actual, f"Getting a deleted {self.model_name} must not return None")
        delete_time = self.delete_time_of(actual)
        assert_not_none(delete_time, f"The delete time of a deleted {self.model_name} must not be None")
        self.check_unmodified(self.store.canonical_operation("delete"), record, actual)
        return id_

    def _restore_deleted(self) -> None:
        for i in range(self.loops):
            logger.info("Test %s: Restore a deleted %s: %d of %d", self.method_name, self.model_name, i + 1, self.loops)
            record = self.prepare()
            self.store.add(record)
            id_ = self._delete(record)
            assert_is_none(self.invoke_keyed(record), f"{self.method_name} must not return a value")
            self.check_exists(id_, True, f"A restored {self.model_name} must exist")
            actual = self.store.get(id_)
            assert_not_none(actual, f"Getting a restored {self.model_name} must not return None")
            assert_is_none(self.delete_time_of(actual), f"The delete time of a restored {self.model_name} must be None")
            self.check_unmodified(self.operation, record, actual)

    def _restore_non_existing(self) -> None:
        logger.info("Test %s: Restore a non-existing %s", self.method_name, self.model_name)
        record = self.prepare_non_existing()
        e = self.expect(
            NotFoundError,
            partial(self.invoke_keyed, record, quiet=True),
            f"Restoring a non-existing {self.model_name} must raise NotFoundError",
        )
        self.check_not_found(e, self.identifier, self.identifier.get(record))

    def _restore_non_deleted(self) -> None:
        logger.info("Test %s: Restore a non-deleted %s", self.method_name, self.model_name)
        record = self.prepare()
        self.store.add(record)
        e = self.expect(
            NotFoundError,
            partial(self.invoke_keyed, record, quiet=True),
            f"Restoring a non-deleted {self.model_name} must raise NotFoundError",
        )
        self.check_not_found(e, self.identifier, self.identifier.get(record))
