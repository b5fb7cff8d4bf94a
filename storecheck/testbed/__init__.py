from .clock import AuditClock
from .models import Category, Country, Info, Province
from .schema import create_schema, drop_schema
from .session import DbSession
from .stores import CategoryStore, CountryStore, ProvinceStore, SqlStore

__all__ = [
    "AuditClock",
    "Category",
    "CategoryStore",
    "Country",
    "CountryStore",
    "DbSession",
    "Info",
    "Province",
    "ProvinceStore",
    "SqlStore",
    "create_schema",
    "drop_schema",
]
