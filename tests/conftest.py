from __future__ import annotations

import os
import re
import uuid
from collections.abc import Callable, Iterator
from typing import Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from dbreplace.db.session import DbSession


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """
    Database URL for tests.

    Set DBREPLACE_TEST_DB_URL (e.g. mysql+pymysql://user:pw@127.0.0.1:3306/test_db)
    to run against MySQL. Otherwise a throwaway SQLite file is used.
    """
    url = os.environ.get("DBREPLACE_TEST_DB_URL")
    if url:
        return url
    path = tmp_path_factory.mktemp("db") / "dbreplace.sqlite"
    return f"sqlite+pysqlite:///{path}"


@pytest.fixture(scope="session")
def engine(db_url: str) -> Iterator[Engine]:
    """
    Session-scoped SQLAlchemy engine for tests.

    We fail fast if the database is unreachable, so failures are actionable.
    """
    eng = create_engine(db_url, pool_pre_ping=True)
    try:
        with eng.connect() as conn:
            conn.exec_driver_sql("SELECT 1")
    except Exception as exc:  # pragma: no cover
        pytest.fail(
            "Test database is not reachable.\n"
            f"- DBREPLACE_TEST_DB_URL={db_url!r}\n"
            f"- Underlying error: {exc}",
            pytrace=False,
        )

    yield eng
    eng.dispose()


def _sanitize_table_name(name: str) -> str:
    name = re.sub(r"[^a-zA-Z0-9_]+", "_", name).strip("_").lower()
    if not name:
        name = "t"
    return name[:40]


@pytest.fixture
def table_factory(engine: Engine, request: pytest.FixtureRequest) -> Iterator[Callable[[str], str]]:
    """
    Factory fixture creating per-test tables, dropped after the test.

    Usage:
        table = table_factory("id INTEGER PRIMARY KEY, val TEXT")
    """
    created: list[str] = []
    suffix_sql = " ENGINE=InnoDB" if engine.dialect.name == "mysql" else ""

    def _create(schema_sql: str) -> str:
        base = _sanitize_table_name(f"t_{request.node.name}")
        table = f"{base}_{uuid.uuid4().hex[:10]}"

        with engine.begin() as conn:
            conn.exec_driver_sql(f"DROP TABLE IF EXISTS `{table}`")
            conn.exec_driver_sql(f"CREATE TABLE `{table}` ({schema_sql}){suffix_sql}")

        created.append(table)
        return table

    yield _create

    with engine.begin() as conn:
        for table in created:
            conn.exec_driver_sql(f"DROP TABLE IF EXISTS `{table}`")


@pytest.fixture
def options_table(table_factory: Callable[[str], str]) -> str:
    """
    A key/value table shaped like a CMS options table.
    """
    return table_factory(
        """
        option_id INTEGER NOT NULL,
        option_name VARCHAR(191) NOT NULL,
        option_value TEXT NULL,
        autoload VARCHAR(20) NOT NULL DEFAULT 'yes',
        PRIMARY KEY (option_id)
        """
    )


@pytest.fixture
def session(engine: Engine) -> Iterator[DbSession]:
    with DbSession(engine) as s:
        yield s


@pytest.fixture
def insert_rows(engine: Engine) -> Callable[[str, list[dict[str, Any]]], None]:
    def _insert(table: str, rows: list[dict[str, Any]]) -> None:
        with DbSession(engine) as s:
            for row in rows:
                cols = ", ".join(f"`{c}`" for c in row)
                placeholders = ", ".join(f":{c}" for c in row)
                s.execute(f"INSERT INTO `{table}` ({cols}) VALUES ({placeholders})", row)

    return _insert


@pytest.fixture
def fetch_column(engine: Engine) -> Callable[[str, str, str], dict[Any, Any]]:
    """Return ``{key: value}`` for one column of a table."""

    def _fetch(table: str, key: str, column: str) -> dict[Any, Any]:
        with DbSession(engine) as s:
            rows = s.fetch_all(f"SELECT `{key}`, `{column}` FROM `{table}` ORDER BY `{key}`")
        return {row[key]: row[column] for row in rows}

    return _fetch
