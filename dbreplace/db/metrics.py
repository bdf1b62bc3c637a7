from __future__ import annotations

from typing import Optional

from ..metrics.registry import (
    COLUMN_LATENCY_SECONDS,
    EXPORT_ROWS_TOTAL,
    REPLACEMENTS_TOTAL,
    TABLES_SKIPPED_TOTAL,
)


def observe_column(
    table: str,
    column: str,
    strategy: str,
    count: int,
    latency_s: Optional[float],
    dry_run: bool,
) -> None:
    REPLACEMENTS_TOTAL.labels(
        table=table,
        column=column,
        strategy=strategy,
        dry_run=str(dry_run).lower(),
    ).inc(count)
    if latency_s is not None:
        COLUMN_LATENCY_SECONDS.labels(strategy=strategy).observe(latency_s)


def observe_table_skipped(table: str) -> None:
    TABLES_SKIPPED_TOTAL.labels(table=table).inc()


def observe_export_rows(table: str, rows: int) -> None:
    EXPORT_ROWS_TOTAL.labels(table=table).inc(rows)
