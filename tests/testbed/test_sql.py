from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from storecheck import DuplicateKeyError, NullFieldError
from storecheck.testbed.sql import is_duplicate_key_error, is_null_field_error, translate_integrity_error


class FakeDriverError(Exception):
    """Mimics a DBAPI error: args[0] is the server error code."""


def _integrity_error(*args) -> IntegrityError:
    return IntegrityError("INSERT ...", {}, FakeDriverError(*args))


MYSQL_DUPLICATE = _integrity_error(1062, "Duplicate entry 'US' for key 'country.code'")
MYSQL_COMPOSITE_DUPLICATE = _integrity_error(1062, "Duplicate entry '7-Ontario' for key 'province.uk_province_name'")
MYSQL_NULL = _integrity_error(1048, "Column 'country_id' cannot be null")
SQLITE_DUPLICATE = _integrity_error("UNIQUE constraint failed: category.entity, category.name")
SQLITE_NULL = _integrity_error("NOT NULL constraint failed: country.code")
POSTGRES_DUPLICATE = _integrity_error('duplicate key value violates unique constraint "country_name_key"\nDETAIL:  Key (name)=(Canada) already exists.')
POSTGRES_NULL = _integrity_error('null value in column "name" of relation "country" violates not-null constraint')
FOREIGN_KEY = _integrity_error(1452, "Cannot add or update a child row: a foreign key constraint fails")


@pytest.mark.parametrize(
    "exc, duplicate, null",
    [
        (MYSQL_DUPLICATE, True, False),
        (MYSQL_NULL, False, True),
        (SQLITE_DUPLICATE, True, False),
        (SQLITE_NULL, False, True),
        (POSTGRES_DUPLICATE, True, False),
        (POSTGRES_NULL, False, True),
        (FOREIGN_KEY, False, False),
    ],
)
def test_error_detection(exc: IntegrityError, duplicate: bool, null: bool) -> None:
    assert is_duplicate_key_error(exc) is duplicate
    assert is_null_field_error(exc) is null


class TestTranslateIntegrityError:
    """Tests for mapping driver constraint violations to store errors."""

    def test_mysql_duplicate(self) -> None:
        error = translate_integrity_error(MYSQL_DUPLICATE, {"code": "US"})
        assert isinstance(error, DuplicateKeyError)
        assert (error.field, error.value) == ("code", "US")

    def test_mysql_composite_duplicate_uses_the_reported_value(self) -> None:
        error = translate_integrity_error(
            MYSQL_COMPOSITE_DUPLICATE,
            {"country_id": 7, "name": "Ontario"},
            {"name": "7-Ontario"},
        )
        assert isinstance(error, DuplicateKeyError)
        assert (error.field, error.value) == ("name", "7-Ontario")

    def test_mysql_null(self) -> None:
        error = translate_integrity_error(MYSQL_NULL, {"country_id": None})
        assert isinstance(error, NullFieldError)
        assert error.field == "country_id"

    def test_sqlite_composite_duplicate_reports_the_last_column(self) -> None:
        error = translate_integrity_error(SQLITE_DUPLICATE, {"entity": "product", "name": "tools"})
        assert isinstance(error, DuplicateKeyError)
        assert (error.field, error.value) == ("name", "tools")

    def test_sqlite_null(self) -> None:
        error = translate_integrity_error(SQLITE_NULL, {"code": None})
        assert isinstance(error, NullFieldError)
        assert error.field == "code"

    def test_postgres(self) -> None:
        duplicate = translate_integrity_error(POSTGRES_DUPLICATE, {"name": "Canada"})
        assert (duplicate.field, duplicate.value) == ("name", "Canada")
        null = translate_integrity_error(POSTGRES_NULL, {"name": None})
        assert null.field == "name"

    def test_other_violations_are_not_translated(self) -> None:
        assert translate_integrity_error(FOREIGN_KEY, {"country_id": 404}) is None


def test_duplicate_values_are_capped() -> None:
    error = DuplicateKeyError("name", "x" * 100)
    assert error.value == "x" * 64
