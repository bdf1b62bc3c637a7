from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .db.models import ColumnReport, Strategy


@dataclass(frozen=True)
class Report:
    rows: Tuple[ColumnReport, ...] = ()
    total: int = 0
    # old and new were identical; nothing was attempted
    noop: bool = False

    @property
    def skipped_tables(self) -> Tuple[str, ...]:
        return tuple(r.table for r in self.rows if r.strategy is Strategy.SKIPPED)

    def as_rows(self) -> list[tuple[str, str, int, str]]:
        """(table, column, count, strategy) tuples for a presentation layer."""
        return [(r.table, r.column, r.count, r.strategy.value) for r in self.rows]


class ReportAggregator:
    """
    Accumulates per-column results for one run, in processing order.
    """

    def __init__(self) -> None:
        self._rows: list[ColumnReport] = []
        self._total = 0

    def add(self, table: str, column: str, count: int, strategy: Strategy) -> None:
        if strategy is Strategy.SKIPPED:
            raise ValueError("use skip_table() to record a skipped table")
        self._rows.append(ColumnReport(table, column, count, strategy))
        self._total += count

    def skip_table(self, table: str) -> None:
        self._rows.append(ColumnReport(table, "", 0, Strategy.SKIPPED))

    @property
    def rows(self) -> Tuple[ColumnReport, ...]:
        return tuple(self._rows)

    @property
    def total(self) -> int:
        return self._total

    def report(self) -> Report:
        return Report(rows=self.rows, total=self.total)
