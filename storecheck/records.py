from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Collection, Mapping, Optional

from faker import Faker

from .errors import ReferenceLoopError
from .shape import FieldInfo, RecordShape, ShapeKind

if TYPE_CHECKING:
    from .registry import GeneratorRegistry

logger = logging.getLogger(__name__)

# Audit fields are stamped by the store; prepared records leave them empty.
AUDIT_FIELDS = frozenset({"create_time", "modify_time", "delete_time"})

DEFAULT_TEXT_SIZE = 64
MAX_COLLECTION_SIZE = 3

_TEXT_PROVIDERS: dict[str, Callable[[Faker], str]] = {
    "code": lambda fake: fake.bothify("??##").upper(),
    "name": lambda fake: fake.city(),
    "entity": lambda fake: fake.word(),
    "phone_area": lambda fake: fake.numerify("+%##"),
    "postalcode": lambda fake: fake.postcode(),
    "icon": lambda fake: fake.image_url(),
    "url": lambda fake: fake.url(),
    "email": lambda fake: fake.email(),
    "description": lambda fake: fake.sentence(),
}


class RecordBuilder:
    """
    Prepares syntactically valid records for generated scenarios.

    Every non-readonly, non-computed field gets a Faker value respecting its
    declared size; unique fields get values never handed out before. Reference
    fields are satisfied by preparing the referenced record and persisting it
    through the referenced type's registered store.

    Usage:
        builder = RecordBuilder(registry, seed=42)
        country = builder.prepare(Country)
        province = builder.prepare(Province)   # adds a Country first
        unnamed = builder.prepare(Country, excluded=("name",))
    """

    def __init__(
        self,
        registry: "GeneratorRegistry",
        faker: Optional[Faker] = None,
        seed: Optional[int] = None,
        locale: str = "en_US",
    ) -> None:
        self.registry = registry
        self.faker = faker or Faker(locale)
        if seed is not None:
            self.faker.seed_instance(seed)
        self._preparing: list[type] = []

    def prepare(
        self,
        record_type: type,
        pinned: Optional[Mapping[str, Any]] = None,
        excluded: Collection[str] = (),
    ) -> Any:
        """
        Build a new record of ``record_type``.

        Args:
            record_type: Dataclass record type
            pinned: Field values to use instead of generated ones
            excluded: Fields left at their defaults for the caller to set

        Raises:
            ReferenceLoopError: If satisfying references leads back to a type
                already being prepared
        """
        if record_type in self._preparing:
            chain = " -> ".join(t.__name__ for t in [*self._preparing, record_type])
            raise ReferenceLoopError(f"Reference dependency loop: {chain}")
        self._preparing.append(record_type)
        try:
            shape = RecordShape.of(record_type)
            record = shape.new()
            for f in shape.non_computed_fields:
                if pinned and f.name in pinned:
                    f.set(record, pinned[f.name])
                elif f.name in excluded or f.readonly or f.name in AUDIT_FIELDS:
                    continue
                else:
                    f.set(record, self.value_for(f))
            return record
        finally:
            self._preparing.pop()

    def prepare_field(self, record: Any, f: FieldInfo) -> Any:
        """Assign a fresh value to one field, read-only fields included; returns it."""
        value = self.value_for(f)
        f.set(record, value)
        return value

    def value_for(self, f: FieldInfo) -> Any:
        if f.is_reference:
            return self._reference_value(f)
        if f.kind in (ShapeKind.ORDERED, ShapeKind.ARRAY, ShapeKind.UNORDERED):
            items = [self._element(f.element_type) for _ in range(self._collection_size())]
            if f.kind is ShapeKind.ARRAY:
                return tuple(items)
            if f.kind is ShapeKind.UNORDERED:
                return set(items)
            return items
        if f.kind is ShapeKind.MAP:
            keys = [self.faker.unique.pystr(min_chars=4, max_chars=12) for _ in range(self._collection_size())]
            return {key: self._element(f.element_type) for key in keys}
        if f.kind is ShapeKind.COMPOSITE:
            return self.prepare(f.type)
        if f.type is str:
            return self._text(f)
        return self._scalar(f.type, unique=f.unique or f.identifier)

    def _collection_size(self) -> int:
        return self.faker.random_int(min=1, max=MAX_COLLECTION_SIZE)

    def _element(self, tp: Any) -> Any:
        if isinstance(tp, type) and dataclasses.is_dataclass(tp):
            return self.prepare(tp)
        if tp is str:
            return self.faker.pystr(min_chars=1, max_chars=16)
        return self._scalar(tp)

    def _text(self, f: FieldInfo) -> str:
        limit = f.max_size or DEFAULT_TEXT_SIZE
        provider = _TEXT_PROVIDERS.get(f.name)
        value = provider(self.faker) if provider else self.faker.pystr(min_chars=1, max_chars=20)
        if not f.unique:
            return value[:limit].strip() or self.faker.pystr(min_chars=1, max_chars=min(limit, 8))
        if limit < 16:
            return self.faker.unique.pystr(min_chars=limit, max_chars=limit)
        suffix = self.faker.unique.hexify(text="^" * 8)
        return f"{value[: limit - 9].strip()}-{suffix}"

    def _scalar(self, tp: Any, unique: bool = False) -> Any:
        if isinstance(tp, type) and issubclass(tp, Enum):
            return self.faker.random_element(list(tp))
        if tp is bool:
            return self.faker.pybool()
        if tp is int:
            if unique:
                return self.faker.unique.random_int(min=1_000_000, max=1_000_000_000)
            return self.faker.random_int(min=0, max=9999)
        if tp is float:
            return self.faker.pyfloat(left_digits=4, right_digits=2)
        if tp is Decimal:
            return self.faker.pydecimal(left_digits=6, right_digits=2)
        if tp is datetime:
            return self.faker.date_time()
        if tp is date:
            return self.faker.date_object()
        if tp is time:
            return self.faker.time_object()
        if tp is bytes:
            return self.faker.binary(length=16)
        return self.faker.pystr(min_chars=1, max_chars=20)

    def _reference_value(self, f: FieldInfo) -> Any:
        referenced_type = f.reference
        referenced = self.prepare(referenced_type)
        self.registry.descriptor(referenced_type).add(referenced)
        logger.debug("Prepared referenced %s for field %s", referenced_type.__name__, f.name)
        if f.type is referenced_type:
            return referenced
        if isinstance(f.type, type) and dataclasses.is_dataclass(f.type):
            names = [x.name for x in dataclasses.fields(f.type)]
            return f.type(**{name: getattr(referenced, name) for name in names if hasattr(referenced, name)})
        return getattr(referenced, f.reference_key)
