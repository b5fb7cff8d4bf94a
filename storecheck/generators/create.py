from __future__ import annotations

import logging
from functools import partial

from ..builder import ScenarioBuilder
from ..errors import DuplicateKeyError, NullFieldError, OversizedFieldError
from ..ops import OperationKind
from ..shape import FieldInfo
from .base import OperationTestGenerator
from .utils import set_unique_values

logger = logging.getLogger(__name__)


class CreateGenerator(OperationTestGenerator):
    """Scenarios for ``add(record)``."""

    kind = OperationKind.CREATE
    requires = ("add", "get")

    def build(self, builder: ScenarioBuilder) -> None:
        builder.add(f"Normal {self.model_name}", self._add_normal_records)
        unmodified = self.operation.unmodified
        for f in self.null_candidates(unmodified):
            builder.add(f"{self.model_name} with a null {f.name}", partial(self._add_with_null, f))
        for f in self.oversize_candidates(unmodified):
            builder.add(f"{self.model_name} with a very long {f.name}", partial(self._add_with_long, f))
        for f in self.unique_candidates(unmodified):
            builder.add(f"{self.model_name} with a duplicated {f.name}", partial(self._add_with_duplicate, f))

    def _add_normal_records(self) -> None:
        for i in range(self.loops):
            logger.info("Test %s: Add a normal %s: %d of %d", self.method_name, self.model_name, i + 1, self.loops)
            record = self.prepare()
            result = self.invoke(record)
            self.check_created(record, result)

    def _add_with_null(self, f: FieldInfo) -> None:
        logger.info("Test %s: Add a %s with a null %s", self.method_name, self.model_name, f.name)
        record = self.prepare()
        f.set(record, None)
        e = self.expect(
            NullFieldError,
            partial(self.invoke, record, quiet=True),
            f"Adding a {self.model_name} with a null {f.name} must raise NullFieldError",
        )
        self.check_null_field(e, f)

    def _add_with_long(self, f: FieldInfo) -> None:
        logger.info("Test %s: Add a %s with a very long %s", self.method_name, self.model_name, f.name)
        record = self.prepare()
        f.set(record, self.long_text(f))
        e = self.expect(
            OversizedFieldError,
            partial(self.invoke, record, quiet=True),
            f"Adding a {self.model_name} with a very long {f.name} must raise OversizedFieldError",
        )
        self.check_oversized(e, f)

    def _add_with_duplicate(self, f: FieldInfo) -> None:
        logger.info("Test %s: Add a %s with a duplicated %s", self.method_name, self.model_name, f.name)
        existing = self.prepare()
        self.store.add(existing)
        record = self.prepare()
        value = set_unique_values(self.shape, f, existing, record)
        e = self.expect(
            DuplicateKeyError,
            partial(self.invoke, record, quiet=True),
            f"Adding a {self.model_name} with a duplicated {f.name} must raise DuplicateKeyError",
        )
        self.check_duplicate_key(e, f, value)
