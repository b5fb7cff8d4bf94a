from __future__ import annotations

import dataclasses
import logging
from datetime import datetime
from typing import Any, ClassVar, Collection, Iterable, Mapping, Optional, Sequence

from sqlalchemy import Table, and_, delete, func, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from ..errors import DuplicateKeyError, NotFoundError, NullFieldError, OversizedFieldError, StoreError
from ..ops import OperationConfig
from ..shape import FieldInfo, RecordShape, to_string_representation
from . import schema
from .clock import AuditClock
from .models import Category, Country, Info, Province
from .session import DbSession
from .sql import translate_integrity_error

logger = logging.getLogger(__name__)

AUDIT_COLUMNS = ("create_time", "modify_time", "delete_time")

# record states a key lookup accepts
ANY = "any"
LIVE = "live"
DELETED = "deleted"


def _key_of(f: FieldInfo, value: Any) -> Any:
    if f.is_reference and value is not None and dataclasses.is_dataclass(value):
        return getattr(value, f.reference_key)
    return value


class SqlStore:
    """
    Reference implementation of the store contract on a SQLAlchemy Core table.

    Records are dataclasses described by RecordShape. Every public method is a
    store operation; helpers are underscored. Nullability, size and uniqueness
    are checked before writing, so violations surface as NullFieldError,
    OversizedFieldError and DuplicateKeyError with the offending field. The
    database constraints still apply; their IntegrityErrors are translated to
    the same errors.

    Soft-deleted records keep existing for get/exist/count until purged.

    Usage:
        engine = create_engine("sqlite://")
        create_schema(engine)
        store = CountryStore(engine)
        created_at = store.add(country)
        store.delete(country.id)
    """

    record_type: ClassVar[type]
    table: ClassVar[Table]

    def __init__(self, engine: Engine, clock: Optional[AuditClock] = None) -> None:
        self.engine = engine
        self.clock = clock or AuditClock(whole_seconds=engine.dialect.name == "mysql")
        self._shape = RecordShape.of(self.record_type)
        self._id = self._shape.identifier

    # ----------------------------------------------------------------------
    # store operations

    def add(self, record: Any) -> datetime:
        fields = self._writable_fields()
        values = self._field_values(record, fields)
        with DbSession(self.engine) as session:
            self._validate(session, values, [f.name for f in fields])
            now = self.clock.now()
            params = self._params(values)
            params.update(create_time=now, modify_time=None, delete_time=None)
            id_ = self._insert(session, params, values)
        self._id.set(record, id_)
        self._stamp(record, create_time=now, modify_time=None, delete_time=None)
        logger.debug("Added %s %r", self._shape.table, id_)
        return now

    def get(self, id_: Any) -> Any:
        return self._get(self._id, [id_])

    def exist(self, id_: Any) -> bool:
        return self._exist(self._id, [id_], ANY)

    def exist_non_deleted(self, id_: Any) -> bool:
        return self._exist(self._id, [id_], LIVE)

    def count(self) -> int:
        with DbSession(self.engine) as session:
            return int(session.execute_scalar(select(func.count()).select_from(self.table)))

    def list(self) -> list[Any]:
        with DbSession(self.engine) as session:
            rows = session.fetch_all(select(self.table).order_by(self.table.c.id))
            return [self._to_record(session, row) for row in rows]

    def update(self, record: Any) -> datetime:
        return self._update_record(record, self._id.name)

    def delete(self, id_: Any) -> datetime:
        return self._delete(self._id, [id_])

    def restore(self, id_: Any) -> None:
        self._restore(self._id, [id_])

    def purge(self, id_: Any) -> None:
        self._purge(self._id, [id_])

    def purge_all(self) -> int:
        with DbSession(self.engine) as session:
            return session.execute(delete(self.table).where(self.table.c.delete_time.is_not(None)))

    def erase(self, id_: Any) -> None:
        self._erase(self._id, [id_])

    def clear(self) -> int:
        with DbSession(self.engine) as session:
            return session.execute(delete(self.table))

    # ----------------------------------------------------------------------
    # keyed helpers

    def _key_field(self, name: str) -> FieldInfo:
        return self._shape[name]

    def _key_values(self, key: FieldInfo, record: Any) -> list[Any]:
        return [_key_of(f, f.get(record)) for f in self._shape.key_fields(key)]

    def _get(self, key: FieldInfo, key_values: Sequence[Any], nullable: bool = False) -> Any:
        with DbSession(self.engine) as session:
            row = self._find(session, key, key_values, ANY)
            if row is None:
                if nullable:
                    return None
                raise self._not_found(key, key_values)
            return self._to_record(session, row)

    def _exist(self, key: FieldInfo, key_values: Sequence[Any], state: str) -> bool:
        with DbSession(self.engine) as session:
            return self._find(session, key, key_values, state) is not None

    def _update_record(self, record: Any, key_name: str, excluded: Collection[str] = ()) -> datetime:
        key = self._key_field(key_name)
        key_names = {f.name for f in self._shape.key_fields(key)}
        fields = [f for f in self._writable_fields() if f.name not in excluded and f.name not in key_names]
        now = self._update(key, self._key_values(key, record), self._field_values(record, fields))
        self._stamp(record, modify_time=now)
        return now

    def _update(self, key: FieldInfo, key_values: Sequence[Any], changes: Mapping[str, Any]) -> datetime:
        with DbSession(self.engine) as session:
            row = self._locate(session, key, key_values, LIVE)
            merged = {**self._row_values(row), **changes}
            self._validate(session, merged, list(changes), exclude_id=row["id"])
            now = self.clock.now()
            params = self._params(changes)
            params["modify_time"] = now
            stmt = update(self.table).where(self.table.c.id == row["id"]).values(**params)
            self._write(session, stmt, params, merged)
        return now

    def _add_or_update(self, record: Any, key_name: str, excluded: Collection[str] = ()) -> datetime:
        key = self._key_field(key_name)
        key_values = self._key_values(key, record)
        with DbSession(self.engine) as session:
            row = self._find(session, key, key_values, ANY)
        if row is None:
            return self.add(record)
        if row["delete_time"] is not None:
            raise self._not_found(key, key_values)
        return self._update_record(record, key_name, excluded)

    def _delete(self, key: FieldInfo, key_values: Sequence[Any]) -> datetime:
        with DbSession(self.engine) as session:
            row = self._locate(session, key, key_values, LIVE)
            now = self.clock.now()
            session.execute(update(self.table).where(self.table.c.id == row["id"]).values(delete_time=now))
        return now

    def _restore(self, key: FieldInfo, key_values: Sequence[Any]) -> None:
        with DbSession(self.engine) as session:
            row = self._locate(session, key, key_values, DELETED)
            session.execute(update(self.table).where(self.table.c.id == row["id"]).values(delete_time=None))

    def _purge(self, key: FieldInfo, key_values: Sequence[Any]) -> None:
        with DbSession(self.engine) as session:
            row = self._locate(session, key, key_values, DELETED)
            session.execute(delete(self.table).where(self.table.c.id == row["id"]))

    def _erase(self, key: FieldInfo, key_values: Sequence[Any]) -> None:
        with DbSession(self.engine) as session:
            row = self._locate(session, key, key_values, ANY)
            session.execute(delete(self.table).where(self.table.c.id == row["id"]))

    # ----------------------------------------------------------------------
    # rows and records

    def _column(self, f: FieldInfo) -> str:
        if f.is_reference:
            return f"{f.name}_{f.reference_key}"
        return f.name

    def _writable_fields(self) -> list[FieldInfo]:
        return [
            f
            for f in self._shape.non_computed_fields
            if not f.readonly and f.name not in AUDIT_COLUMNS
        ]

    def _field_values(self, record: Any, fields: Iterable[FieldInfo]) -> dict[str, Any]:
        return {f.name: _key_of(f, f.get(record)) for f in fields}

    def _params(self, values: Mapping[str, Any]) -> dict[str, Any]:
        return {self._column(self._shape[name]): value for name, value in values.items()}

    def _row_values(self, row: Mapping[str, Any]) -> dict[str, Any]:
        return {
            f.name: row[self._column(f)]
            for f in self._shape.non_computed_fields
            if f.name not in AUDIT_COLUMNS and not f.readonly
        }

    def _stamp(self, record: Any, **times: Optional[datetime]) -> None:
        for name, value in times.items():
            if name in self._shape:
                self._shape.set(record, name, value)

    def _to_record(self, session: DbSession, row: Mapping[str, Any]) -> Any:
        record = self._shape.new()
        for f in self._shape.non_computed_fields:
            value = row[self._column(f)]
            if f.is_reference:
                value = self._load_reference(session, f, value)
            f.set(record, value)
        return record

    def _load_reference(self, session: DbSession, f: FieldInfo, key: Any) -> Any:
        if key is None or not dataclasses.is_dataclass(f.type):
            return key
        (foreign_key,) = self.table.c[self._column(f)].foreign_keys
        referenced = foreign_key.column.table
        row = session.fetch_one(select(referenced).where(foreign_key.column == key))
        if row is None:
            return None
        names = [x.name for x in dataclasses.fields(f.type)]
        return f.type(**{name: row[name] for name in names if name in row})

    def _where(self, key: FieldInfo, key_values: Sequence[Any], state: str):
        clauses = [
            self.table.c[self._column(f)] == value
            for f, value in zip(self._shape.key_fields(key), key_values)
        ]
        if state == LIVE:
            clauses.append(self.table.c.delete_time.is_(None))
        elif state == DELETED:
            clauses.append(self.table.c.delete_time.is_not(None))
        return and_(*clauses)

    def _find(
        self,
        session: DbSession,
        key: FieldInfo,
        key_values: Sequence[Any],
        state: str,
    ) -> Optional[dict[str, Any]]:
        return session.fetch_one(select(self.table).where(self._where(key, key_values, state)))

    def _locate(self, session: DbSession, key: FieldInfo, key_values: Sequence[Any], state: str) -> dict[str, Any]:
        row = self._find(session, key, key_values, state)
        if row is None:
            raise self._not_found(key, key_values)
        return row

    def _not_found(self, key: FieldInfo, key_values: Sequence[Any]) -> NotFoundError:
        return NotFoundError(self._shape.table, key.column, key_values[-1])

    # ----------------------------------------------------------------------
    # validation and writes

    def _validate(
        self,
        session: DbSession,
        values: Mapping[str, Any],
        names: Collection[str],
        exclude_id: Any = None,
    ) -> None:
        """Check the written fields ``names`` of the full field ``values``."""
        fields = [self._shape[name] for name in names]
        for f in fields:
            value = values.get(f.name)
            if value is None:
                if not f.nullable:
                    raise NullFieldError(self._column(f))
            elif f.is_text and f.max_size is not None and len(value) > f.max_size:
                raise OversizedFieldError(self._column(f))
        for f in fields:
            if f.unique:
                self._check_unique(session, values, f, exclude_id)

    def _check_unique(self, session: DbSession, values: Mapping[str, Any], f: FieldInfo, exclude_id: Any) -> None:
        keys = self._shape.key_fields(f)
        key_values = [values.get(k.name) for k in keys]
        if any(v is None for v in key_values):
            return
        stmt = select(self.table.c.id).where(self._where(f, key_values, ANY))
        if exclude_id is not None:
            stmt = stmt.where(self.table.c.id != exclude_id)
        if session.fetch_one(stmt.limit(1)) is not None:
            raise DuplicateKeyError(f.column, self._duplicate_value(f, values))

    def _duplicate_value(self, f: FieldInfo, values: Mapping[str, Any]) -> str:
        return "-".join(to_string_representation(values.get(k.name)) for k in self._shape.key_fields(f))

    def _duplicate_values(self, values: Mapping[str, Any]) -> dict[str, str]:
        return {
            self._column(f): self._duplicate_value(f, values)
            for f in self._shape.non_computed_fields
            if f.unique
        }

    def _insert(self, session: DbSession, params: Mapping[str, Any], values: Mapping[str, Any]) -> Any:
        try:
            return session.insert(insert(self.table).values(**params))
        except IntegrityError as exc:
            error = self._translate(exc, params, values)
            if error is None:
                raise
            raise error from exc

    def _write(self, session: DbSession, stmt: Any, params: Mapping[str, Any], values: Mapping[str, Any]) -> int:
        try:
            return session.execute(stmt)
        except IntegrityError as exc:
            error = self._translate(exc, params, values)
            if error is None:
                raise
            raise error from exc

    def _translate(
        self, exc: IntegrityError, params: Mapping[str, Any], values: Mapping[str, Any]
    ) -> Optional[StoreError]:
        error = translate_integrity_error(exc, params, self._duplicate_values(values))
        if error is not None:
            logger.info("Constraint violation on %s translated to %r", self._shape.table, error)
        return error


class CountryStore(SqlStore):
    """Country store with the lookup and update variants keyed by code and name."""

    record_type = Country
    table = schema.country

    storecheck_operations = {
        "update": OperationConfig(unmodified=("id", "code", "create_time", "delete_time")),
        "update_by_code": OperationConfig(unmodified=("id", "code", "create_time", "delete_time")),
        "update_by_name": OperationConfig(unmodified=("id", "name", "create_time", "delete_time")),
        "update_name": OperationConfig(modified=("name", "modify_time")),
        "update_name_by_code": OperationConfig(modified=("name", "modify_time")),
        "add_or_update_by_code": OperationConfig(unmodified=("id", "code", "create_time", "delete_time")),
        "add_or_update_by_name": OperationConfig(unmodified=("id", "name", "create_time", "delete_time")),
    }

    def get_by_code(self, code: str) -> Country:
        return self._get(self._key_field("code"), [code])

    def get_by_name(self, name: str) -> Country:
        return self._get(self._key_field("name"), [name])

    def get_by_code_or_null(self, code: str) -> Optional[Country]:
        return self._get(self._key_field("code"), [code], nullable=True)

    def get_info(self, id_: int) -> Info:
        return self.get(id_).info

    def get_info_by_code(self, code: str) -> Info:
        return self.get_by_code(code).info

    def exist_by_code(self, code: str) -> bool:
        return self._exist(self._key_field("code"), [code], ANY)

    def exist_name(self, name: str) -> bool:
        return self._exist(self._key_field("name"), [name], ANY)

    def exist_non_deleted_by_code(self, code: str) -> bool:
        return self._exist(self._key_field("code"), [code], LIVE)

    def update(self, record: Country) -> datetime:
        return self._update_record(record, "id", excluded=("code",))

    def update_by_code(self, record: Country) -> datetime:
        return self._update_record(record, "code")

    def update_by_name(self, record: Country) -> datetime:
        return self._update_record(record, "name")

    def update_name(self, id_: int, name: Optional[str]) -> datetime:
        return self._update(self._id, [id_], {"name": name})

    def update_name_by_code(self, code: str, name: Optional[str]) -> datetime:
        return self._update(self._key_field("code"), [code], {"name": name})

    def add_or_update_by_code(self, record: Country) -> datetime:
        return self._add_or_update(record, "code")

    def add_or_update_by_name(self, record: Country) -> datetime:
        return self._add_or_update(record, "name")

    def delete_by_code(self, code: str) -> datetime:
        return self._delete(self._key_field("code"), [code])

    def delete_by_name(self, name: str) -> datetime:
        return self._delete(self._key_field("name"), [name])

    def restore_by_code(self, code: str) -> None:
        self._restore(self._key_field("code"), [code])

    def restore_by_name(self, name: str) -> None:
        self._restore(self._key_field("name"), [name])

    def purge_by_code(self, code: str) -> None:
        self._purge(self._key_field("code"), [code])

    def purge_by_name(self, name: str) -> None:
        self._purge(self._key_field("name"), [name])

    def erase_by_code(self, code: str) -> None:
        self._erase(self._key_field("code"), [code])

    def erase_by_name(self, name: str) -> None:
        self._erase(self._key_field("name"), [name])


class CategoryStore(SqlStore):
    """Category store; a category name is addressed together with its entity."""

    record_type = Category
    table = schema.category

    storecheck_operations = {
        "update": OperationConfig(unmodified=("id", "create_time", "delete_time")),
    }

    def get_by_name(self, entity: str, name: str) -> Category:
        return self._get(self._key_field("name"), [entity, name])

    def exist_by_name(self, entity: str, name: str) -> bool:
        return self._exist(self._key_field("name"), [entity, name], ANY)

    def delete_by_name(self, entity: str, name: str) -> datetime:
        return self._delete(self._key_field("name"), [entity, name])


class ProvinceStore(SqlStore):
    """Province store; a province name is addressed together with its country id."""

    record_type = Province
    table = schema.province

    storecheck_operations = {
        "update": OperationConfig(unmodified=("id", "create_time", "delete_time")),
    }

    def get_by_name(self, country_id: int, name: str) -> Province:
        return self._get(self._key_field("name"), [country_id, name])

    def exist_non_deleted_by_name(self, country_id: int, name: str) -> bool:
        return self._exist(self._key_field("name"), [country_id, name], LIVE)
