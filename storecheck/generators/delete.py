from __future__ import annotations

import logging
from functools import partial

from ..asserts import assert_equal, assert_not_none
from ..builder import ScenarioBuilder
from ..errors import NotFoundError
from ..ops import OperationKind
from .base import OperationTestGenerator

logger = logging.getLogger(__name__)


class DeleteGenerator(OperationTestGenerator):
    """
    Scenarios for the soft delete ``delete[_by_<key>](*keys)``.

    A deleted record keeps existing and stays readable with its delete time
    set; deleting it a second time is a NotFoundError.
    """

    kind = OperationKind.DELETE
    requires = ("add", "exist", "get")

    def build(self, builder: ScenarioBuilder) -> None:
        builder.add(f"Existing {self.model_name}", self._delete_existing)
        builder.add(f"Non-existing {self.model_name}", self._delete_non_existing)
        builder.add(f"Deleted {self.model_name}", self._delete_deleted)

    def _delete_existing(self) -> None:
        for i in range(self.loops):
            logger.info("Test %s: Delete an existing %s: %d of %d", self.method_name, self.model_name, i + 1, self.loops)
            record = self.prepare()
            self.store.add(record)
            id_ = self.shape.id_of(record)
            self.check_exists(id_, True, f"A just added {self.model_name} must exist")
            delete_time = self.invoke_keyed(record)
            self.check_timestamp(delete_time, "delete time")
            self.check_exists(id_, True, f"A deleted {self.model_name} must still exist")
            actual = self.store.get(id_)
            assert_not_none(actual, f"Getting a deleted {self.model_name} must not return None")
            if "delete_time" in self.shape:
                assert_equal(
                    delete_time,
                    self.delete_time_of(actual),
                    f"{self.method_name} must return the delete time of the deleted {self.model_name}",
                )
            self.check_unmodified(self.operation, record, actual)

    def _delete_non_existing(self) -> None:
        logger.info("Test %s: Delete a non-existing %s", self.method_name, self.model_name)
        record = self.prepare_non_existing()
        e = self.expect(
            NotFoundError,
            partial(self.invoke_keyed, record, quiet=True),
            f"Deleting a non-existing {self.model_name} must raise NotFoundError",
        )
        self.check_not_found(e, self.identifier, self.identifier.get(record))

    def _delete_deleted(self) -> None:
        logger.info("Test %s: Delete a deleted %s", self.method_name, self.model_name)
        record = self.prepare()
        self.store.add(record)
        self.invoke_keyed(record)
        e = self.expect(
            NotFoundError,
            partial(self.invoke_keyed, record, quiet=True),
            f"Deleting a deleted {self.model_name} must raise NotFoundError",
        )
        self.check_not_found(e, self.identifier, self.identifier.get(record))
