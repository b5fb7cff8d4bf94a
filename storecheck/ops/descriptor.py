from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from ..errors import ConfigurationError, InvocationError
from ..metrics import observe_skipped_operation
from ..shape import FieldInfo, RecordShape
from .config import OperationConfig
from .kinds import OperationKind, classify, to_camel_case

logger = logging.getLogger(__name__)

STORE_OPERATIONS_ATTR = "storecheck_operations"


@dataclass(frozen=True)
class OperationDescriptor:
    """
    Resolved metadata of one classified store operation.

    ``modified`` and ``unmodified`` are disjoint sets of field names; read-only
    fields are always unmodified and computed fields are in neither set.
    """

    store_name: str
    name: str
    kind: OperationKind
    target: Optional[FieldInfo]
    identifier: Optional[FieldInfo]
    modified: frozenset[str]
    unmodified: frozenset[str]
    uri: str
    call: Callable[..., Any] = field(repr=False, compare=False)

    @property
    def qualified_name(self) -> str:
        return f"{self.store_name}.{self.name}"

    @property
    def allow_null_return(self) -> bool:
        return self.kind.allows_null_return

    def is_modified(self, f: FieldInfo) -> bool:
        return f.name in self.modified

    def is_unmodified(self, f: FieldInfo) -> bool:
        return f.name in self.unmodified

    def invoke(self, *args: Any, log_errors: bool = False) -> Any:
        """
        Call the store operation.

        An InvocationError envelope is unwrapped so callers see the store's own
        error (its ``__cause__``). Any other exception propagates unchanged.
        """
        try:
            return self.call(*args)
        except Exception as exc:
            error = exc
            if isinstance(exc, InvocationError) and exc.__cause__ is not None:
                error = exc.__cause__
            if log_errors:
                logger.error("Invoking %s failed: %r", self.qualified_name, error)
            if error is exc:
                raise
            raise error from None

    @classmethod
    def create(
        cls,
        shape: RecordShape,
        store: Any,
        name: str,
        config: Optional[OperationConfig] = None,
    ) -> Optional["OperationDescriptor"]:
        """
        Classify ``store.<name>`` against ``shape``.

        Returns None when the operation cannot be tested automatically: the
        config skips it, its name matches no pattern, or the name captures a
        field the record does not have.
        """
        store_name = type(store).__name__
        if config is not None and config.skip:
            logger.debug("Skip the operation %s.%s.", store_name, name)
            observe_skipped_operation(store_name, "configured")
            return None
        parsed = classify(name)
        if parsed is None:
            logger.warning("The operation %s.%s cannot be automatically tested.", store_name, name)
            observe_skipped_operation(store_name, "unmatched")
            return None

        kind = parsed.kind
        target = key = None
        for captured in (parsed.target, parsed.key):
            if captured is not None and captured not in shape:
                logger.warning(
                    "No field %r found for %s; the operation %s.%s cannot be automatically tested.",
                    captured,
                    shape.name,
                    store_name,
                    name,
                )
                observe_skipped_operation(store_name, "unknown_field")
                return None
        if parsed.target is not None:
            target = shape[parsed.target]
        if parsed.key is not None:
            key = shape[parsed.key]
        if config is not None and config.identifier is not None:
            key = shape[config.identifier]

        identifier = None
        if kind.takes_identifier:
            identifier = key if key is not None else shape.identifier
        if not kind.takes_target:
            target = None

        modified, unmodified = _mutation_sets(shape, kind, config)
        descriptor = cls(
            store_name=store_name,
            name=name,
            kind=kind,
            target=target,
            identifier=identifier,
            modified=modified,
            unmodified=unmodified,
            uri=f"store://{type(store).__module__}.{type(store).__qualname__}/{name}",
            call=getattr(store, name),
        )
        logger.info(
            "Successfully parsed %s: kind = %s, target = %s, identifier = %s, modified = %s",
            descriptor.qualified_name,
            kind.value,
            target.name if target else None,
            identifier.name if identifier else None,
            sorted(modified),
        )
        return descriptor


def _mutation_sets(
    shape: RecordShape,
    kind: OperationKind,
    config: Optional[OperationConfig],
) -> tuple[frozenset[str], frozenset[str]]:
    names = {f.name for f in shape.fields}
    if kind.configurable and config is not None and config.modified is not None:
        modified = set(config.modified)
        unmodified = names - modified
    elif kind.configurable and config is not None and config.unmodified is not None:
        unmodified = set(config.unmodified)
        modified = names - unmodified
    else:
        modified = set(kind.default_modified) & names
        unmodified = names - modified

    for f in shape.fields:
        if f.computed:
            # correctness of computed fields after a partial update is not verified
            modified.discard(f.name)
            unmodified.discard(f.name)
        elif f.readonly:
            unmodified.add(f.name)
            modified.discard(f.name)
    return frozenset(modified), frozenset(unmodified)


class StoreDescriptor:
    """
    All classified operations of one store, plus its canonical operations.

    Canonical operations are the unqualified create/read/update/delete/exist/
    erase/clear/count variants; generators use them as fixtures. Building a
    descriptor for a store without a canonical create, or without any
    classifiable operation, raises ConfigurationError.

    Usage:
        descriptor = StoreDescriptor(CountryStore(engine), RecordShape.of(Country))
        created_at = descriptor.add(country)
        assert descriptor.get(country.id) == country
    """

    def __init__(
        self,
        store: Any,
        shape: RecordShape,
        operations: Optional[Mapping[str, OperationConfig]] = None,
        log_errors: bool = True,
    ) -> None:
        self.store = store
        self.shape = shape
        self.store_name = type(store).__name__
        self.log_errors = log_errors
        configs = merged_operation_configs(store, operations)

        names_by_camel: dict[str, str] = {}
        self.operations: dict[str, OperationDescriptor] = {}
        for name, _ in inspect.getmembers(store, inspect.isroutine):
            if name.startswith("_"):
                continue
            camel = to_camel_case(name)
            if camel in names_by_camel:
                raise ConfigurationError(
                    f"Ambiguous operations {self.store_name}.{names_by_camel[camel]} and "
                    f"{self.store_name}.{name} both map to {camel!r}"
                )
            names_by_camel[camel] = name
            descriptor = OperationDescriptor.create(shape, store, name, configs.get(name))
            if descriptor is not None:
                self.operations[name] = descriptor

        if not self.operations:
            raise ConfigurationError(f"No testable operation found on {self.store_name}")

        self.canonical: dict[str, OperationDescriptor] = {}
        for op in self.operations.values():
            verb = _canonical_verb(op, shape)
            if verb is not None:
                self.canonical.setdefault(verb, op)
        if "add" not in self.canonical:
            raise ConfigurationError(f"No add operation found on {self.store_name}")

    def __repr__(self) -> str:
        return f"StoreDescriptor({self.store_name}, operations={sorted(self.operations)})"

    def sorted_operations(self) -> list[OperationDescriptor]:
        return sorted(self.operations.values(), key=lambda op: (op.kind.order, op.name))

    def operation(self, name: str) -> OperationDescriptor:
        try:
            return self.operations[name]
        except KeyError:
            raise ConfigurationError(f"{self.store_name}.{name} is not a testable operation") from None

    def canonical_operation(self, verb: str) -> OperationDescriptor:
        try:
            return self.canonical[verb]
        except KeyError:
            raise ConfigurationError(f"No {verb} operation found on {self.store_name}") from None

    @property
    def add_operation(self) -> OperationDescriptor:
        return self.canonical["add"]

    def update_for(self, identifier: Optional[FieldInfo]) -> Optional[OperationDescriptor]:
        """The UPDATE operation without a target keyed by ``identifier``."""
        for op in self.sorted_operations():
            if (
                op.kind is OperationKind.UPDATE
                and op.target is None
                and op.identifier is not None
                and identifier is not None
                and op.identifier.name == identifier.name
            ):
                return op
        return None

    @property
    def has_delete(self) -> bool:
        return "delete" in self.canonical

    @property
    def has_exist(self) -> bool:
        return "exist" in self.canonical

    def _invoke(self, verb: str, *args: Any) -> Any:
        return self.canonical_operation(verb).invoke(*args, log_errors=self.log_errors)

    def exist(self, id_: Any) -> bool:
        return self._invoke("exist", id_)

    def add(self, record: Any) -> Any:
        return self._invoke("add", record)

    def get(self, id_: Any) -> Any:
        return self._invoke("get", id_)

    def delete(self, id_: Any) -> Any:
        return self._invoke("delete", id_)

    def erase(self, id_: Any) -> None:
        self._invoke("erase", id_)

    def count(self) -> int:
        return self._invoke("count")

    def clear(self) -> int:
        return self._invoke("clear")


def merged_operation_configs(
    store: Any,
    operations: Optional[Mapping[str, OperationConfig]],
) -> dict[str, OperationConfig]:
    """Class-level ``storecheck_operations`` overridden by registration-time entries."""
    configs = dict(getattr(type(store), STORE_OPERATIONS_ATTR, None) or {})
    configs.update(operations or {})
    return configs


def _canonical_verb(op: OperationDescriptor, shape: RecordShape) -> Optional[str]:
    if op.kind is OperationKind.CREATE:
        return "add"
    if op.kind is OperationKind.CLEAR:
        return "clear"
    if op.kind is OperationKind.COUNT:
        return "count"
    if op.target is not None or op.identifier is None or op.identifier != shape.identifier:
        return None
    return _CANONICAL_VERBS.get(op.kind)


_CANONICAL_VERBS = {
    OperationKind.EXISTS: "exist",
    OperationKind.READ: "get",
    OperationKind.UPDATE: "update",
    OperationKind.DELETE: "delete",
    OperationKind.ERASE: "erase",
}


def validate_operation_configs(
    store: Any,
    shape: RecordShape,
    operations: Optional[Mapping[str, OperationConfig]] = None,
) -> None:
    """
    Check operation configs at registration time.

    Every configured name must be a public method of the store, every field a
    config names must exist on the record, and explicit mutated-field lists are
    only accepted for create/update operations.
    """
    store_name = type(store).__name__
    for name, config in merged_operation_configs(store, operations).items():
        if not isinstance(config, OperationConfig):
            raise ConfigurationError(f"Config for {store_name}.{name} must be an OperationConfig")
        if name.startswith("_") or not callable(getattr(store, name, None)):
            raise ConfigurationError(f"{store_name} has no operation named {name!r}")
        config.validate(shape, f"{store_name}.{name}")
        if config.skip or (config.modified is None and config.unmodified is None):
            continue
        parsed = classify(name)
        if parsed is None or not parsed.kind.configurable:
            raise ConfigurationError(
                f"Mutated fields can only be declared for add/update operations, not {store_name}.{name}"
            )
