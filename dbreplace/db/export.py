from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, BinaryIO, Mapping

from sqlalchemy import Float, Integer, Numeric, String, Table, insert, literal, literal_column, null
from sqlalchemy.schema import CreateTable
from sqlalchemy.sql.elements import ColumnElement

from ..config import EXPORT_STDOUT
from ..errors import ExportError
from .helpers import quote_identifier
from .session import DbSession


def render_value(value: Any) -> ColumnElement:
    """
    SQL expression for one exported value, typed from the Python value.

    Bytes become hex literals (``X'...'``); dates, times and anything else
    without a numeric type are written as quoted strings.
    """
    if value is None:
        return null()
    if isinstance(value, (bytes, bytearray, memoryview)):
        return literal_column(f"X'{bytes(value).hex()}'")
    if isinstance(value, bool):
        return literal(int(value), Integer())
    if isinstance(value, int):
        return literal(value, Integer())
    if isinstance(value, float):
        return literal(value, Float())
    if isinstance(value, Decimal):
        return literal(value, Numeric())
    return literal(str(value), String())


@contextmanager
def open_export_sink(target: str) -> Iterator[BinaryIO]:
    """
    Open the export destination for binary writing.

    ``EXPORT_STDOUT`` selects standard output, which is flushed but never
    closed. Any other value is a file path, truncated on open.

    Raises:
        ExportError: If the file cannot be opened
    """
    if target == EXPORT_STDOUT:
        try:
            yield sys.stdout.buffer
        finally:
            sys.stdout.buffer.flush()
        return

    try:
        handle = open(target, "wb")
    except OSError as exc:
        raise ExportError(f'Unable to open "{target}" for writing: {exc}') from exc
    with handle:
        yield handle


class SqlExporter:
    """
    Writes a table's schema and rows as SQL statements to a byte sink.

    Per table the output is::

        DROP TABLE IF EXISTS `t`;
        CREATE TABLE ...;
        INSERT INTO ... VALUES (...);   (one per row)

    Literal values are rendered by SQLAlchemy for the session's dialect.
    """

    def __init__(self, session: DbSession, sink: BinaryIO) -> None:
        self.session = session
        self.sink = sink

    def write_statement(self, statement: str) -> None:
        try:
            self.sink.write(f"{statement};\n".encode("utf-8"))
        except (OSError, ValueError) as exc:
            # ValueError: write to a closed file
            raise ExportError(f"Failed to write export: {exc}") from exc

    def write_schema(self, table: str) -> Table:
        """
        Write the drop/create statements for ``table``.

        Returns:
            The reflected `Table`, to be passed to `write_row`
        """
        reflected = self.session.reflect_table(table)
        self.write_statement(f"\nDROP TABLE IF EXISTS {quote_identifier(table, 'table')}")
        self.write_statement(self._create_statement(table, reflected))
        return reflected

    def _create_statement(self, table: str, reflected: Table) -> str:
        if self.session.dialect_name == "mysql":
            row = self.session.fetch_one(f"SHOW CREATE TABLE {quote_identifier(table, 'table')}")
            if row is None:
                raise ExportError(f"SHOW CREATE TABLE returned nothing for {table!r}")
            # columns are ("Table", "Create Table")
            return list(row.values())[1]
        ddl = CreateTable(reflected).compile(dialect=self.session.engine.dialect)
        return str(ddl).strip()

    def write_row(self, table: Table, row: Mapping[str, Any]) -> None:
        # Values are rendered by their Python type; the reflected column types
        # cannot render e.g. zero dates that drivers hand back as strings.
        stmt = insert(table).values({col: render_value(value) for col, value in row.items()})
        compiled = stmt.compile(
            dialect=self.session.engine.dialect,
            compile_kwargs={"literal_binds": True},
        )
        self.write_statement(str(compiled))
