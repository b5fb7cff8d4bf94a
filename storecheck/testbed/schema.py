from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    UniqueConstraint,
)
from sqlalchemy.engine import Engine

metadata = MetaData()

# BIGINT primary keys only auto-increment on SQLite when declared INTEGER.
_Id = BigInteger().with_variant(Integer(), "sqlite")


def _audit_columns() -> list[Column]:
    return [
        Column("create_time", DateTime, nullable=False),
        Column("modify_time", DateTime, nullable=True),
        Column("delete_time", DateTime, nullable=True),
    ]


country = Table(
    "country",
    metadata,
    Column("id", _Id, primary_key=True, autoincrement=True),
    Column("code", String(16), nullable=False, unique=True),
    Column("name", String(64), nullable=False, unique=True),
    Column("phone_area", String(16)),
    Column("postalcode", String(16)),
    Column("icon", String(512)),
    Column("url", String(512)),
    Column("description", String(1024)),
    Column("predefined", Boolean, nullable=False, default=False),
    *_audit_columns(),
)

category = Table(
    "category",
    metadata,
    Column("id", _Id, primary_key=True, autoincrement=True),
    Column("entity", String(64), nullable=False),
    Column("name", String(64), nullable=False),
    Column("description", String(1024)),
    *_audit_columns(),
    UniqueConstraint("entity", "name", name="uk_category_name"),
)

province = Table(
    "province",
    metadata,
    Column("id", _Id, primary_key=True, autoincrement=True),
    Column("country_id", _Id, ForeignKey("country.id"), nullable=False),
    Column("code", String(16)),
    Column("name", String(64), nullable=False),
    Column("postalcode", String(16)),
    *_audit_columns(),
    UniqueConstraint("country_id", "name", name="uk_province_name"),
)


def create_schema(engine: Engine) -> None:
    metadata.create_all(engine)


def drop_schema(engine: Engine) -> None:
    metadata.drop_all(engine)
