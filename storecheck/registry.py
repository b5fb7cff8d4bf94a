from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .builder import Scenario, ScenarioGroup
from .config import GeneratorConfig
from .errors import ConfigurationError, StoreNotRegisteredError
from .generators import GENERATORS
from .ops import OperationConfig, StoreDescriptor, validate_operation_configs
from .records import RecordBuilder
from .shape import RecordShape

logger = logging.getLogger(__name__)


def type_key(record_type: type) -> str:
    return f"{record_type.__module__}.{record_type.__qualname__}"


@dataclass(frozen=True)
class _Binding:
    record_type: type
    store: Any
    operations: Optional[Mapping[str, OperationConfig]]


class GeneratorRegistry:
    """
    Binds record types to the stores under test and generates their scenarios.

    Registration validates the store's operation configs eagerly; the store
    descriptor (method classification) is built on first use and cached.
    Generating scenarios never calls the store.

    Usage:
        registry = GeneratorRegistry(GeneratorConfig(loops=2, seed=7))
        registry.register(Country, CountryStore(engine)).register(Province, ProvinceStore(engine))
        for group in registry.generate(Province):
            for scenario in group:
                scenario.run()
    """

    def __init__(self, config: Optional[GeneratorConfig] = None) -> None:
        self.config = config or GeneratorConfig()
        self._bindings: dict[str, _Binding] = {}
        self._descriptors: dict[str, StoreDescriptor] = {}
        self._record_builder: Optional[RecordBuilder] = None
        self.random = random.Random(self.config.seed)

    def register(
        self,
        record_type: type,
        store: Any,
        operations: Optional[Mapping[str, OperationConfig]] = None,
    ) -> "GeneratorRegistry":
        """
        Register ``store`` as the store of ``record_type``, replacing any previous one.

        Args:
            record_type: Dataclass record type with an identifier field
            store: Object exposing the store operations as public methods
            operations: Per-method OperationConfig, overriding the store class's
                ``storecheck_operations``

        Raises:
            ConfigurationError: If the record type has no identifier or an
                operation config is invalid
        """
        shape = RecordShape.of(record_type)
        if shape.identifier is None:
            raise ConfigurationError(f"{shape.name} has no identifier field and cannot be registered")
        validate_operation_configs(store, shape, operations)

        key = type_key(record_type)
        if key in self._bindings:
            logger.info("Replacing the store registered for %s", key)
        self._bindings[key] = _Binding(record_type, store, operations)
        self._descriptors.pop(key, None)
        logger.info("Registered %s for %s", type(store).__name__, key)
        return self

    def is_registered(self, record_type: type) -> bool:
        return type_key(record_type) in self._bindings

    def _binding(self, record_type: type) -> _Binding:
        try:
            return self._bindings[type_key(record_type)]
        except KeyError:
            raise StoreNotRegisteredError(f"No store registered for {type_key(record_type)}") from None

    def store(self, record_type: type) -> Any:
        return self._binding(record_type).store

    def shape(self, record_type: type) -> RecordShape:
        self._binding(record_type)
        return RecordShape.of(record_type)

    def descriptor(self, record_type: type) -> StoreDescriptor:
        binding = self._binding(record_type)
        key = type_key(record_type)
        descriptor = self._descriptors.get(key)
        if descriptor is None:
            descriptor = StoreDescriptor(
                binding.store,
                RecordShape.of(record_type),
                binding.operations,
                log_errors=self.config.log_errors,
            )
            self._descriptors[key] = descriptor
        return descriptor

    @property
    def record_builder(self) -> RecordBuilder:
        if self._record_builder is None:
            self._record_builder = RecordBuilder(self, seed=self.config.seed, locale=self.config.locale)
        return self._record_builder

    def clear(self, record_type: type) -> None:
        """
        Clear the store of ``record_type``, then the stores of the types it references.

        Referencing records go first so that referenced ones are never left
        dangling behind a foreign key.
        """
        pending = [record_type]
        seen: set[type] = set()
        while pending:
            current = pending.pop(0)
            if current in seen or not self.is_registered(current):
                continue
            seen.add(current)
            removed = self.descriptor(current).clear()
            logger.debug("Cleared %s records of %s", removed, current.__name__)
            pending.extend(f.reference for f in RecordShape.of(current).fields if f.is_reference)

    def generate(self, record_type: type, operation: Optional[str] = None) -> list[ScenarioGroup]:
        """
        Build the scenario groups of ``record_type``, one per classified operation.

        Groups are ordered by operation kind, then by method name. With
        ``operation`` only the group of that method is returned.
        """
        descriptor = self.descriptor(record_type)
        if operation is None:
            operations = descriptor.sorted_operations()
        else:
            operations = [descriptor.operation(operation)]
        groups = []
        for op in operations:
            generator = GENERATORS[op.kind](self, record_type, op)
            groups.append(generator.generate())
        logger.info(
            "Generated %d scenarios in %d groups for %s",
            sum(len(g) for g in groups),
            len(groups),
            descriptor.store_name,
        )
        return groups

    def scenarios(self, record_type: type) -> list[Scenario]:
        return [scenario for group in self.generate(record_type) for scenario in group]
