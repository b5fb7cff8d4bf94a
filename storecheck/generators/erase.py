from __future__ import annotations

import logging
from functools import partial

from ..asserts import assert_is_none
from ..builder import ScenarioBuilder
from ..errors import NotFoundError
from ..ops import OperationKind
from .base import OperationTestGenerator

logger = logging.getLogger(__name__)


class EraseGenerator(OperationTestGenerator):
    """Scenarios for ``erase[_by_<key>](*keys)``, the hard delete of any record."""

    kind = OperationKind.ERASE
    requires = ("add", "exist", "get")

    def build(self, builder: ScenarioBuilder) -> None:
        builder.add(f"Existing {self.model_name}", self._erase_existing)
        builder.add(f"Non-existing {self.model_name}", self._erase_non_existing)

    def _erase_existing(self) -> None:
        for i in range(self.loops):
            record = self.prepare()
            self.store.add(record)
            id_ = self.shape.id_of(record)
            self.check_exists(id_, True, f"A just added {self.model_name} must exist")
            deleted = self.store.has_delete and self.random.random() < 0.5
            if deleted:
                self.store.delete(id_)
            logger.info(
                "Test %s: Erase an existing %s%s: %d of %d",
                self.method_name,
                "deleted " if deleted else "",
                self.model_name,
                i + 1,
                self.loops,
            )
            assert_is_none(self.invoke_keyed(record), f"{self.method_name} must not return a value")
            self.check_exists(id_, False, f"An erased {self.model_name} must not exist")
            self.check_removed(id_)

    def _erase_non_existing(self) -> None:
        logger.info("Test %s: Erase a non-existing %s", self.method_name, self.model_name)
        record = self.prepare_non_existing()
        e = self.expect(
            NotFoundError,
            partial(self.invoke_keyed, record, quiet=True),
            f"Erasing a non-existing {self.model_name} must raise NotFoundError",
        )
        self.check_not_found(e, self.identifier, self.identifier.get(record))
