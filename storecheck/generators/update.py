from __future__ import annotations

import logging
from functools import partial
from typing import Any, Optional

from ..builder import ScenarioBuilder
from ..errors import DuplicateKeyError, NotFoundError, NullFieldError, OversizedFieldError
from ..ops import OperationKind
from ..shape import FieldInfo
from .base import OperationTestGenerator
from .utils import copy_all, set_unique_values, set_unmodified_respect_to, set_update_keys

logger = logging.getLogger(__name__)


class UpdateGenerator(OperationTestGenerator):
    """
    Scenarios for ``update(record)``, ``update_by_<key>(record)`` and the
    single-field forms ``update_<target>[_by_<key>](*keys, value)``.

    Modified fields must match the request afterwards; every other writable
    field must be left exactly as it was.
    """

    kind = OperationKind.UPDATE
    requires = ("add", "get")

    def build(self, builder: ScenarioBuilder) -> None:
        builder.add(f"Normal {self.model_name}", self._update_normal)
        builder.add(f"Non-existing {self.model_name}", self._update_non_existing)
        if self.store.has_delete:
            builder.add(f"Deleted {self.model_name}", self._update_deleted)

        modified = self.operation.modified
        keys = [f.name for f in self.shape.key_fields(self.identifier)]
        for f in self.null_candidates(modified, excluded=keys):
            builder.add(f"{self.model_name} with a null {f.name}", partial(self._update_with_null, f))
        for f in self.oversize_candidates(modified, excluded=keys):
            builder.add(f"{self.model_name} with a very long {f.name}", partial(self._update_with_long, f))
        for f in self.unique_candidates(modified, excluded=keys):
            builder.add(f"{self.model_name} with a duplicated {f.name}", partial(self._update_with_duplicate, f))

    def do_update(self, old: Optional[Any], new: Any, quiet: bool = False) -> Any:
        target = self.operation.target
        if target is None:
            return self.invoke(new, quiet=quiet)
        value = target.get(new)
        result = self.invoke_keyed(new, value, quiet=quiet)
        if old is not None:
            # the expected state is the old record with only the target replaced
            copy_all(self.shape, old, new)
            target.set(new, value)
        if "modify_time" in self.shape:
            self.shape.set(new, "modify_time", result)
        return result

    def _update_normal(self) -> None:
        for i in range(self.loops):
            logger.info(
                "Test %s: Update a normal %s by %s: %d of %d",
                self.method_name,
                self.model_name,
                self.identifier.name,
                i + 1,
                self.loops,
            )
            old = self.add_normal()
            new = self.prepare()
            set_update_keys(self.shape, self.identifier, old, new)
            result = self.do_update(old, new)
            self.check_modify_time(new, result)
            updated = self.store.get(self.shape.id_of(old))
            self.check_modified(self.operation, new, updated)
            self.check_unmodified(self.operation, old, updated)

    def _update_non_existing(self) -> None:
        logger.info("Test %s: Update a non-existing %s", self.method_name, self.model_name)
        record = self.prepare_non_existing()
        e = self.expect(
            NotFoundError,
            partial(self.do_update, None, record, quiet=True),
            f"Updating a non-existing {self.model_name} must raise NotFoundError",
        )
        self.check_not_found(e, self.identifier, self.identifier.get(record))

    def _update_deleted(self) -> None:
        logger.info("Test %s: Update a deleted %s", self.method_name, self.model_name)
        old = self.add_normal()
        self.store.delete(self.shape.id_of(old))
        new = self.prepare()
        set_update_keys(self.shape, self.identifier, old, new)
        e = self.expect(
            NotFoundError,
            partial(self.do_update, None, new, quiet=True),
            f"Updating a deleted {self.model_name} must raise NotFoundError",
        )
        self.check_not_found(e, self.identifier, self.identifier.get(old))

    def _update_with_null(self, f: FieldInfo) -> None:
        logger.info("Test %s: Update a %s with a null %s", self.method_name, self.model_name, f.name)
        old = self.add_normal()
        new = self.prepare()
        set_update_keys(self.shape, self.identifier, old, new)
        f.set(new, None)
        e = self.expect(
            NullFieldError,
            partial(self.do_update, None, new, quiet=True),
            f"Updating a {self.model_name} with a null {f.name} must raise NullFieldError",
        )
        self.check_null_field(e, f)

    def _update_with_long(self, f: FieldInfo) -> None:
        logger.info("Test %s: Update a %s with a very long %s", self.method_name, self.model_name, f.name)
        old = self.add_normal()
        new = self.prepare()
        set_update_keys(self.shape, self.identifier, old, new)
        f.set(new, self.long_text(f))
        e = self.expect(
            OversizedFieldError,
            partial(self.do_update, None, new, quiet=True),
            f"Updating a {self.model_name} with a very long {f.name} must raise OversizedFieldError",
        )
        self.check_oversized(e, f)

    def _update_with_duplicate(self, f: FieldInfo) -> None:
        existing = self.prepare()
        self.store.add(existing)
        logger.debug("Test %s: Added %r as the existing %s", self.method_name, existing, self.model_name)
        old = self.prepare()
        set_unmodified_respect_to(self.shape, self.operation, f, existing, old)
        self.store.add(old)
        logger.debug("Test %s: Added %r as the old %s", self.method_name, old, self.model_name)
        new = self.prepare()
        set_update_keys(self.shape, self.identifier, old, new)
        value = set_unique_values(self.shape, f, existing, new)
        logger.info("Test %s: Update a %s with a duplicated %s", self.method_name, self.model_name, f.name)
        e = self.expect(
            DuplicateKeyError,
            partial(self.do_update, None, new, quiet=True),
            f"Updating a {self.model_name} with a duplicated {f.name} must raise DuplicateKeyError",
        )
        self.check_duplicate_key(e, f, value)
