from __future__ import annotations

from collections.abc import Iterator
from typing import Any, Mapping, Optional, Sequence

from ..config import DEFAULT_CHUNK_SIZE
from .helpers import quote_identifier
from .session import DbSession


def iterate_rows(
    session: DbSession,
    table: str,
    columns: Sequence[str],
    order_by: Sequence[str] = (),
    where: Optional[str] = None,
    params: Optional[Mapping[str, Any]] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[dict[str, Any]]:
    """
    Lazily yield rows of ``table`` one bounded query at a time.

    With ``order_by`` (normally the primary key) rows are paged by key:
    each chunk starts strictly after the last key seen, so every row is
    yielded once and rows updated out of the ``where`` filter do not shift
    later chunks. Without ordering columns the table is paged with
    LIMIT/OFFSET, which is only safe when nothing is modified meanwhile.

    Each chunk is a separate statement; no transaction or cursor is held
    between chunks. The returned generator cannot be restarted.

    Args:
        session: Active DbSession instance
        table: Table name (must come from the introspected schema)
        columns: Columns to project; must include every ``order_by`` column
        order_by: Stable ordering key, usually the primary-key columns
        where: Optional SQL predicate using named bind parameters
        params: Values for the parameters referenced in ``where``
        chunk_size: Maximum rows fetched per query

    Yields:
        One dict per row, keyed by column name
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
    missing = [col for col in order_by if col not in columns]
    if missing:
        raise ValueError(f"order_by columns {missing} must be part of the projection")

    table_sql = quote_identifier(table, "table")
    select_sql = ", ".join(quote_identifier(col, "column") for col in columns)
    base_params = dict(params or {})

    if not order_by:
        yield from _iterate_by_offset(
            session, table_sql, select_sql, where, base_params, chunk_size
        )
        return

    order_sql = ", ".join(quote_identifier(col, "column") for col in order_by)
    if len(order_by) == 1:
        after_sql = f"{quote_identifier(order_by[0], 'column')} > :after_0"
    else:
        placeholders = ", ".join(f":after_{i}" for i in range(len(order_by)))
        after_sql = f"({order_sql}) > ({placeholders})"

    last_key: Optional[tuple] = None
    while True:
        predicates = []
        if where:
            predicates.append(f"({where})")
        query_params = dict(base_params)
        if last_key is not None:
            predicates.append(after_sql)
            for i, value in enumerate(last_key):
                query_params[f"after_{i}"] = value
        query_params["chunk_limit"] = chunk_size

        sql = f"SELECT {select_sql} FROM {table_sql}"
        if predicates:
            sql += " WHERE " + " AND ".join(predicates)
        sql += f" ORDER BY {order_sql} LIMIT :chunk_limit"

        rows = session.fetch_all(sql, query_params)
        yield from rows

        if len(rows) < chunk_size:
            return
        last_row = rows[-1]
        last_key = tuple(last_row[col] for col in order_by)


def _iterate_by_offset(
    session: DbSession,
    table_sql: str,
    select_sql: str,
    where: Optional[str],
    params: dict[str, Any],
    chunk_size: int,
) -> Iterator[dict[str, Any]]:
    sql = f"SELECT {select_sql} FROM {table_sql}"
    if where:
        sql += f" WHERE {where}"
    sql += " LIMIT :chunk_limit OFFSET :chunk_offset"

    offset = 0
    while True:
        rows = session.fetch_all(
            sql, {**params, "chunk_limit": chunk_size, "chunk_offset": offset}
        )
        yield from rows
        if len(rows) < chunk_size:
            return
        offset += chunk_size
