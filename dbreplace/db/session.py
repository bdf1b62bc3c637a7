from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import MetaData, Table, inspect, text
from sqlalchemy.engine import Connection, Engine, Inspector
from sqlalchemy.sql import TextClause


class DbSession:
    """
    Single-connection wrapper around a SQLAlchemy Engine.

    The connection runs in AUTOCOMMIT mode: every statement is its own unit
    of atomicity and nothing is held open between statements, so chunked
    reads never pin a long-lived transaction.

    Use as:
        with DbSession(engine) as session:
            session.execute(...)
            rows = session.fetch_all(...)
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._conn: Connection | None = None

    def __enter__(self) -> "DbSession":
        if self._conn is not None:
            raise RuntimeError("DbSession is already active; nested sessions are not allowed")
        self._conn = self.engine.connect().execution_options(isolation_level="AUTOCOMMIT")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._conn is not None:
                self._conn.close()
        finally:
            self._conn = None

        # propagate exceptions (if any)
        return False

    def _connection(self) -> Connection:
        if self._conn is None:
            raise RuntimeError("DbSession is not active; use within a context manager")
        return self._conn

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    def execute(
        self,
        sql: str | TextClause,
        params: Mapping[str, Any] | None = None,
    ) -> int:
        """
        Execute a non-SELECT statement and return affected row count.
        """
        conn = self._connection()
        stmt = text(sql) if isinstance(sql, str) else sql
        result = conn.execute(stmt, params or {})
        if result.rowcount is None:
            raise RuntimeError(
                "execute() received None rowcount for statement. "
                "This may indicate a DDL statement or unsupported operation type."
            )
        return int(result.rowcount)

    def execute_scalar(
        self,
        sql: str | TextClause,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        """
        Execute a statement expected to return a single scalar value.
        Intended for probes and counts.
        """
        conn = self._connection()
        stmt = text(sql) if isinstance(sql, str) else sql
        result = conn.execute(stmt, params or {})
        return result.scalar_one_or_none()

    def fetch_one(
        self,
        sql: str | TextClause,
        params: Mapping[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        """
        Execute a SELECT expected to return 0 or 1 row. Raises if more than one row.
        """
        conn = self._connection()
        stmt = text(sql) if isinstance(sql, str) else sql
        result = conn.execute(stmt, params or {})
        row = result.mappings().one_or_none()
        if row is None:
            return None
        return dict(row)

    def fetch_all(
        self,
        sql: str | TextClause,
        params: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Execute a SELECT expected to return multiple rows.
        """
        conn = self._connection()
        stmt = text(sql) if isinstance(sql, str) else sql
        result = conn.execute(stmt, params or {})
        return [dict(row) for row in result.mappings()]

    def inspector(self) -> Inspector:
        """Schema inspector bound to the session connection."""
        return inspect(self._connection())

    def reflect_table(self, name: str) -> Table:
        """Reflect ``name`` into a fresh `Table` (raises NoSuchTableError if absent)."""
        return Table(name, MetaData(), autoload_with=self._connection())
