from __future__ import annotations

import io
from datetime import datetime
from decimal import Decimal

import pytest

from dbreplace.db.export import SqlExporter, open_export_sink, render_value
from dbreplace.db.session import DbSession
from dbreplace.errors import ExportError


def test_writes_schema_and_rows(session: DbSession, options_table: str) -> None:
    sink = io.BytesIO()
    exporter = SqlExporter(session, sink)

    table = exporter.write_schema(options_table)
    exporter.write_row(
        table,
        {"option_id": 1, "option_name": "home", "option_value": "it's here", "autoload": "yes"},
    )

    out = sink.getvalue().decode("utf-8")
    assert out.startswith(f"\nDROP TABLE IF EXISTS `{options_table}`;\n")
    assert "CREATE TABLE" in out
    assert "INSERT INTO" in out
    assert "'it''s here'" in out or "'it\\'s here'" in out
    assert out.endswith(");\n")


def test_null_values_are_rendered(session: DbSession, options_table: str) -> None:
    sink = io.BytesIO()
    exporter = SqlExporter(session, sink)

    table = exporter.write_schema(options_table)
    exporter.write_row(
        table, {"option_id": 2, "option_name": "x", "option_value": None, "autoload": "no"}
    )

    assert "NULL" in sink.getvalue().decode("utf-8")


def test_write_failure_raises_export_error(session: DbSession, options_table: str) -> None:
    sink = io.BytesIO()
    sink.close()

    with pytest.raises(ExportError):
        SqlExporter(session, sink).write_statement("SELECT 1")


def test_open_export_sink_writes_file(tmp_path) -> None:
    path = tmp_path / "dump.sql"

    with open_export_sink(str(path)) as sink:
        sink.write(b"SELECT 1;\n")

    assert path.read_bytes() == b"SELECT 1;\n"


def test_open_export_sink_unwritable_path(tmp_path) -> None:
    with pytest.raises(ExportError):
        with open_export_sink(str(tmp_path / "missing" / "dump.sql")):
            pass


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, "NULL"),
        (42, "42"),
        (True, "1"),
        (Decimal("9.50"), "9.50"),
        ("it's", "'it''s'"),
        (datetime(2020, 1, 2, 3, 4, 5), "'2020-01-02 03:04:05'"),
        ("0000-00-00 00:00:00", "'0000-00-00 00:00:00'"),
        (b"\x00\xff", "X'00ff'"),
        (b"", "X''"),
    ],
)
def test_render_value(session: DbSession, value, expected: str) -> None:
    rendered = render_value(value).compile(
        dialect=session.engine.dialect, compile_kwargs={"literal_binds": True}
    )
    assert str(rendered) == expected
