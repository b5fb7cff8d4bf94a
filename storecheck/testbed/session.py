from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import text
from sqlalchemy.engine import Connection, CursorResult, Engine, RootTransaction
from sqlalchemy.sql import Executable

Statement = str | Executable


class DbSession:
    """
    One connection and one transaction for the duration of a ``with`` block.

    The reference stores open a session per operation, so every store call is
    atomic: it commits when the block exits cleanly and rolls back when the
    block raises. Statements are either raw SQL strings with ``:name``
    parameters or SQLAlchemy Core constructs.

        with DbSession(engine) as session:
            session.execute("UPDATE country SET delete_time = :now WHERE id = :id", {...})
            row = session.fetch_one(select(country).where(country.c.id == 1))
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._conn: Connection | None = None
        self._tx: RootTransaction | None = None

    def __enter__(self) -> "DbSession":
        if self._conn is not None:
            raise RuntimeError("DbSession cannot be re-entered while it is active")
        conn = self.engine.connect()
        self._tx = conn.begin()
        self._conn = conn
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        conn, tx = self._conn, self._tx
        self._conn = self._tx = None
        try:
            if tx is not None and exc_type:
                tx.rollback()
            elif tx is not None:
                tx.commit()
        finally:
            if conn is not None:
                conn.close()
        return False

    def _result(self, sql: Statement, params: Mapping[str, Any] | None) -> CursorResult:
        if self._conn is None:
            raise RuntimeError("DbSession is not active; enter it with a `with` block first")
        stmt = text(sql) if isinstance(sql, str) else sql
        return self._conn.execute(stmt, dict(params or {}))

    def execute(self, sql: Statement, params: Mapping[str, Any] | None = None) -> int:
        """Run a write statement; returns the number of rows it matched."""
        rowcount = self._result(sql, params).rowcount
        if rowcount is None:
            raise RuntimeError("driver reported no rowcount for a write statement")
        return int(rowcount)

    def insert(self, sql: Statement, params: Mapping[str, Any] | None = None) -> Any:
        """Run an INSERT and return the generated primary key."""
        result = self._result(sql, params)
        if not isinstance(sql, str) and result.inserted_primary_key:
            return result.inserted_primary_key[0]
        return result.lastrowid

    def execute_scalar(self, sql: Statement, params: Mapping[str, Any] | None = None) -> Any:
        return self._result(sql, params).scalar_one_or_none()

    def fetch_one(self, sql: Statement, params: Mapping[str, Any] | None = None) -> dict[str, Any] | None:
        """At most one row as a dict. More than one row is an error."""
        row = self._result(sql, params).mappings().one_or_none()
        return None if row is None else dict(row)

    def fetch_all(self, sql: Statement, params: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        return [dict(row) for row in self._result(sql, params).mappings()]
