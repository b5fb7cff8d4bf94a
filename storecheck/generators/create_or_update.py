from __future__ import annotations

import logging
from functools import partial
from typing import Any

from ..builder import ScenarioBuilder
from ..errors import ConfigurationError, DuplicateKeyError, NotFoundError, NullFieldError, OversizedFieldError
from ..ops import OperationKind
from ..shape import FieldInfo
from .base import OperationTestGenerator
from .utils import set_unique_values, set_unmodified_respect_to, set_update_keys

logger = logging.getLogger(__name__)


class CreateOrUpdateGenerator(OperationTestGenerator):
    """
    Scenarios for ``add_or_update[_by_<key>](record)``.

    A record with an unknown key must behave like ``add``; a record with a known
    key must behave like the matching ``update[_by_<key>]``. Both canonical
    counterparts are required, since their field sets drive the scenarios.
    """

    kind = OperationKind.CREATE_OR_UPDATE
    requires = ("add", "get")

    def __init__(self, registry, record_type, operation) -> None:
        super().__init__(registry, record_type, operation)
        self.add_operation = self.store.add_operation
        update_operation = self.store.update_for(self.identifier)
        if update_operation is None:
            suffix = "" if self.identifier is self.shape.identifier else f"_by_{self.identifier.name}"
            raise ConfigurationError(f"No update{suffix} operation found on {self.store.store_name}")
        self.update_operation = update_operation

    def build(self, builder: ScenarioBuilder) -> None:
        ident = self.identifier.name
        add_unmodified = self.add_operation.unmodified
        builder.add(f"Non-existing normal {self.model_name}", self._add_normal_records)
        for f in self.null_candidates(add_unmodified, excluded=(ident,)):
            builder.add(f"Non-existing {self.model_name} with a null {f.name}", partial(self._add_with_null, f))
        for f in self.oversize_candidates(add_unmodified):
            builder.add(f"Non-existing {self.model_name} with a very long {f.name}", partial(self._add_with_long, f))
        for f in self.unique_candidates(add_unmodified, excluded=(ident,)):
            builder.add(
                f"Non-existing {self.model_name} with a duplicated {f.name}",
                partial(self._add_with_duplicate, f),
            )

        builder.add(f"Existing normal {self.model_name}", self._update_normal)
        if self.store.has_delete:
            builder.add(f"Deleted {self.model_name}", self._update_deleted)
        modified = self.update_operation.modified
        keys = [f.name for f in self.shape.key_fields(self.identifier)]
        for f in self.null_candidates(modified, excluded=keys):
            builder.add(f"Existing {self.model_name} with a null {f.name}", partial(self._update_with_null, f))
        for f in self.oversize_candidates(modified, excluded=(ident,)):
            builder.add(f"Existing {self.model_name} with a very long {f.name}", partial(self._update_with_long, f))
        for f in self.unique_candidates(modified):
            builder.add(
                f"Existing {self.model_name} with a duplicated {f.name}",
                partial(self._update_with_duplicate, f),
            )

    def _add_new(self) -> Any:
        record = self.prepare()
        result = self.invoke(record)
        self.check_created(record, result)
        return record

    def _add_normal_records(self) -> None:
        for i in range(self.loops):
            logger.info(
                "Test %s: Add or update a normal %s by a non-existing %s: %d of %d",
                self.method_name,
                self.model_name,
                self.identifier.name,
                i + 1,
                self.loops,
            )
            self._add_new()

    def _add_with_null(self, f: FieldInfo) -> None:
        logger.info("Test %s: Add or update a %s with a null %s", self.method_name, self.model_name, f.name)
        record = self.prepare()
        f.set(record, None)
        e = self.expect(
            NullFieldError,
            partial(self.invoke, record, quiet=True),
            f"Adding or updating a {self.model_name} with a null {f.name} by a non-existing "
            f"{self.identifier.name} must raise NullFieldError",
        )
        self.check_null_field(e, f)

    def _add_with_long(self, f: FieldInfo) -> None:
        logger.info("Test %s: Add or update a %s with a very long %s", self.method_name, self.model_name, f.name)
        record = self.prepare()
        f.set(record, self.long_text(f))
        e = self.expect(
            OversizedFieldError,
            partial(self.invoke, record, quiet=True),
            f"Adding or updating a {self.model_name} with a very long {f.name} by a non-existing "
            f"{self.identifier.name} must raise OversizedFieldError",
        )
        self.check_oversized(e, f)

    def _add_with_duplicate(self, f: FieldInfo) -> None:
        existing = self.prepare()
        self.invoke(existing)
        logger.info("Test %s: Add or update a %s with a duplicated %s", self.method_name, self.model_name, f.name)
        record = self.prepare()
        value = set_unique_values(self.shape, f, existing, record)
        e = self.expect(
            DuplicateKeyError,
            partial(self.invoke, record, quiet=True),
            f"Adding or updating a {self.model_name} with a duplicated {f.name} by a non-existing "
            f"{self.identifier.name} must raise DuplicateKeyError",
        )
        self.check_duplicate_key(e, f, value)

    def _update_normal(self) -> None:
        for i in range(self.loops):
            logger.info(
                "Test %s: Add or update a normal %s by an existing %s: %d of %d",
                self.method_name,
                self.model_name,
                self.identifier.name,
                i + 1,
                self.loops,
            )
            old = self._add_new()
            new = self.prepare()
            set_update_keys(self.shape, self.identifier, old, new)
            result = self.invoke(new)
            self.check_modify_time(new, result)
            updated = self.store.get(self.shape.id_of(old))
            self.check_modified(self.update_operation, new, updated)
            self.check_unmodified(self.update_operation, old, updated)

    def _update_deleted(self) -> None:
        logger.info("Test %s: Add or update a deleted %s", self.method_name, self.model_name)
        old = self.prepare()
        self.store.add(old)
        self.store.delete(self.shape.id_of(old))
        new = self.prepare()
        set_update_keys(self.shape, self.identifier, old, new)
        e = self.expect(
            NotFoundError,
            partial(self.invoke, new, quiet=True),
            f"Adding or updating a deleted {self.model_name} must raise NotFoundError",
        )
        self.check_not_found(e, self.identifier, self.identifier.get(old))

    def _update_with_null(self, f: FieldInfo) -> None:
        logger.info("Test %s: Add or update an existing %s with a null %s", self.method_name, self.model_name, f.name)
        old = self._add_new()
        new = self.prepare()
        set_update_keys(self.shape, self.identifier, old, new)
        f.set(new, None)
        e = self.expect(
            NullFieldError,
            partial(self.invoke, new, quiet=True),
            f"Adding or updating a {self.model_name} with a null {f.name} by an existing "
            f"{self.identifier.name} must raise NullFieldError",
        )
        self.check_null_field(e, f)

    def _update_with_long(self, f: FieldInfo) -> None:
        logger.info(
            "Test %s: Add or update an existing %s with a very long %s", self.method_name, self.model_name, f.name
        )
        old = self._add_new()
        new = self.prepare()
        set_update_keys(self.shape, self.identifier, old, new)
        f.set(new, self.long_text(f))
        e = self.expect(
            OversizedFieldError,
            partial(self.invoke, new, quiet=True),
            f"Adding or updating a {self.model_name} with a very long {f.name} by an existing "
            f"{self.identifier.name} must raise OversizedFieldError",
        )
        self.check_oversized(e, f)

    def _update_with_duplicate(self, f: FieldInfo) -> None:
        existing = self.prepare()
        self.store.add(existing)
        old = self.prepare()
        set_unmodified_respect_to(self.shape, self.update_operation, f, existing, old)
        self.store.add(old)
        new = self.prepare()
        set_update_keys(self.shape, self.identifier, old, new)
        value = set_unique_values(self.shape, f, existing, new)
        logger.info("Test %s: Add or update a %s with a duplicated %s", self.method_name, self.model_name, f.name)
        e = self.expect(
            DuplicateKeyError,
            partial(self.invoke, new, quiet=True),
            f"Adding or updating a {self.model_name} with a duplicated {f.name} by an existing "
            f"{self.identifier.name} must raise DuplicateKeyError",
        )
        self.check_duplicate_key(e, f, value)
