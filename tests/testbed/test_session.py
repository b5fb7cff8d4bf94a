from __future__ import annotations

from datetime import datetime

import pytest
from sqlalchemy import insert, select

from storecheck.testbed import DbSession
from storecheck.testbed.schema import category

NOW = datetime(2024, 5, 21, 12, 0, 0)


def _insert_category(session: DbSession, entity: str, name: str) -> int:
    return session.execute(
        "INSERT INTO category (entity, name, create_time) VALUES (:entity, :name, :now)",
        {"entity": entity, "name": name, "now": NOW},
    )


def test_transaction_commits_on_success(clean_db) -> None:
    with DbSession(clean_db) as session:
        rc = _insert_category(session, "product", "tools")
        assert rc == 1

    with DbSession(clean_db) as session2:
        row = session2.fetch_one("SELECT entity, name FROM category WHERE name = :name", {"name": "tools"})
        assert row == {"entity": "product", "name": "tools"}


def test_transaction_rolls_back_on_exception(clean_db) -> None:
    with pytest.raises(RuntimeError):
        with DbSession(clean_db) as session:
            _insert_category(session, "product", "tools")
            raise RuntimeError("boom")

    with DbSession(clean_db) as session2:
        assert session2.fetch_one("SELECT id FROM category WHERE name = :name", {"name": "tools"}) is None


def test_connection_is_closed_after_exit(clean_db) -> None:
    conn = None
    with DbSession(clean_db) as session:
        conn = session._conn  # behavior we care about: connection closes after exit
        assert conn is not None
        _insert_category(session, "product", "tools")

    assert conn is not None
    assert conn.closed is True


def test_nested_usage_raises_runtime_error(clean_db) -> None:
    with DbSession(clean_db) as session:
        with pytest.raises(RuntimeError):
            with session:
                pass


def test_usage_outside_context_raises_runtime_error(clean_db) -> None:
    with pytest.raises(RuntimeError, match="not active"):
        DbSession(clean_db).fetch_all("SELECT id FROM category")


def test_core_statements_and_generated_keys(clean_db) -> None:
    with DbSession(clean_db) as session:
        first = session.insert(insert(category).values(entity="product", name="tools", create_time=NOW))
        second = session.insert(insert(category).values(entity="product", name="toys", create_time=NOW))
        assert second != first

        rows = session.fetch_all(select(category.c.id, category.c.name).order_by(category.c.id))
        assert rows == [{"id": first, "name": "tools"}, {"id": second, "name": "toys"}]
        assert session.execute_scalar("SELECT COUNT(*) FROM category") == 2


def test_execute_returns_rowcount_for_update(clean_db) -> None:
    with DbSession(clean_db) as session:
        _insert_category(session, "product", "tools")
        _insert_category(session, "product", "toys")
        rc = session.execute("UPDATE category SET description = :d WHERE entity = :e", {"d": "x", "e": "product"})
        assert rc == 2
