from __future__ import annotations

from dbreplace.config import ReplacementJob
from dbreplace.db.models import Strategy
from dbreplace.db.session import DbSession
from dbreplace.strategy import has_serialized_values, select_strategy


def test_plain_column_uses_native(session: DbSession, options_table: str, insert_rows) -> None:
    insert_rows(
        options_table,
        [{"option_id": 1, "option_name": "home", "option_value": "http://example.dev"}],
    )
    job = ReplacementJob(old="example.dev", new="example.com")

    assert select_strategy(session, job, options_table, "option_value") is Strategy.NATIVE


def test_serialized_column_uses_structural(session: DbSession, options_table: str, insert_rows) -> None:
    insert_rows(
        options_table,
        [
            {"option_id": 1, "option_name": "home", "option_value": "http://example.dev"},
            {"option_id": 2, "option_name": "widget", "option_value": 'a:1:{i:0;s:3:"foo";}'},
        ],
    )
    job = ReplacementJob(old="foo", new="bar")

    assert has_serialized_values(session, options_table, "option_value")
    assert select_strategy(session, job, options_table, "option_value") is Strategy.STRUCTURAL


def test_empty_array_does_not_trigger_probe(session: DbSession, options_table: str, insert_rows) -> None:
    insert_rows(options_table, [{"option_id": 1, "option_name": "x", "option_value": "a:0:{}"}])
    assert not has_serialized_values(session, options_table, "option_value")


def test_flags_force_structural(session: DbSession, options_table: str, tmp_path) -> None:
    jobs = [
        ReplacementJob(old="foo", new="bar", precise=True),
        ReplacementJob(old="fo+", new="bar", regex=True),
        ReplacementJob(old="foo", new="bar", export_to=str(tmp_path / "dump.sql")),
    ]
    for job in jobs:
        assert select_strategy(session, job, options_table, "option_value") is Strategy.STRUCTURAL


def test_excluded_column_is_skipped(session: DbSession, options_table: str) -> None:
    job = ReplacementJob(old="foo", new="bar", skip_columns=frozenset({"autoload"}), precise=True)

    assert select_strategy(session, job, options_table, "autoload") is None
    assert select_strategy(session, job, options_table, "user_pass") is None
