from __future__ import annotations

import logging
import time
from collections.abc import Iterable

from .config import ReplacementJob
from .db.export import SqlExporter, open_export_sink
from .db.helpers import (
    contains_clause,
    contains_param,
    quote_identifier,
    replace_changes_clause,
    update_by_key,
)
from .db.introspect import ColumnIntrospector
from .db.iterator import iterate_rows
from .db.metrics import observe_column, observe_export_rows, observe_table_skipped
from .db.models import Strategy, TableSchema
from .db.session import DbSession
from .replace import Replacement, StructuralReplacer
from .report import Report, ReportAggregator
from .strategy import select_strategy

logger = logging.getLogger(__name__)


class ReplacementEngine:
    """
    Search-and-replace across a list of tables.

    Tables are processed strictly in the given order and columns in schema
    order. Primary-key columns and the job's skip columns are never touched,
    and tables without a primary key are reported as skipped. Per column the
    engine either runs one native ``REPLACE()`` statement or rewrites rows
    one at a time through `StructuralReplacer`, which keeps serialized values
    intact.

    With ``job.export_to`` set nothing is modified; every row of every table
    is written to the export sink as an INSERT statement with the
    replacement applied.

    Database errors are not caught: the first failure aborts the run.

    Usage:
        job = ReplacementJob(old="http://example.dev", new="http://example.com")
        with DbSession(engine) as session:
            report = ReplacementEngine(session, job).run(["wp_options", "wp_posts"])
        print(report.total)
    """

    def __init__(self, session: DbSession, job: ReplacementJob) -> None:
        self.session = session
        self.job = job
        self.introspector = ColumnIntrospector(session)
        self.replacer = StructuralReplacer(
            Replacement(job.old, job.new, regex=job.regex),
            recurse_objects=job.recurse_objects,
        )

    def run(self, tables: Iterable[str]) -> Report:
        job = self.job
        if job.is_noop:
            logger.warning(
                "Replacement value %r is identical to search value %r. Skipping operation.",
                job.new,
                job.old,
            )
            return Report(noop=True)

        aggregator = ReportAggregator()
        ordered = list(dict.fromkeys(tables))

        if job.exporting:
            with open_export_sink(job.export_to) as sink:
                exporter = SqlExporter(self.session, sink)
                for table in ordered:
                    self._export_table(exporter, table, aggregator)
        else:
            for table in ordered:
                self._replace_table(table, aggregator)

        report = aggregator.report()
        if job.dry_run:
            logger.info("%d replacements to be made (dry run)", report.total)
        elif job.exporting:
            logger.info("Made %d replacements and exported to %s", report.total, job.export_to)
        else:
            logger.info("Made %d replacements", report.total)
        return report

    def _skip_table(self, table: str, aggregator: ReportAggregator) -> None:
        # rows are addressed by primary key, so there is no safe way to update them
        logger.warning("Skipping %s: table has no primary key", table)
        aggregator.skip_table(table)
        observe_table_skipped(table)

    def _replace_table(self, table: str, aggregator: ReportAggregator) -> None:
        schema = self.introspector.describe(table)
        if not schema.has_primary_key:
            self._skip_table(table, aggregator)
            return

        for column in schema.textual_columns:
            if column in schema.primary_keys:
                continue
            strategy = select_strategy(self.session, self.job, table, column)
            if strategy is None:
                continue

            logger.info("Checking: %s.%s", table, column)
            start = time.monotonic()
            if strategy is Strategy.NATIVE:
                count = self._replace_native(table, column)
            else:
                count = self._replace_structural(schema, column)
            latency = time.monotonic() - start

            logger.info(
                "%d rows affected using %s replace (in %.3fs)",
                count,
                strategy.value,
                latency,
            )
            aggregator.add(table, column, count, strategy)
            observe_column(table, column, strategy.value, count, latency, self.job.dry_run)

    def _replace_native(self, table: str, column: str) -> int:
        table_sql = quote_identifier(table, "table")
        column_sql = quote_identifier(column, "column")
        params = {"old": self.job.old, "new": self.job.new}
        # Same predicate for both modes, so dry-run counts equal live counts.
        changes = replace_changes_clause(self.session.dialect_name, column)

        if self.job.dry_run:
            count = self.session.execute_scalar(
                f"SELECT COUNT(*) FROM {table_sql} WHERE {changes}",
                params,
            )
            return int(count or 0)

        return self.session.execute(
            f"UPDATE {table_sql} SET {column_sql} = REPLACE({column_sql}, :old, :new) "
            f"WHERE {changes}",
            params,
        )

    def _replace_structural(self, schema: TableSchema, column: str) -> int:
        job = self.job
        primary_keys = schema.primary_keys

        # A pattern can only be evaluated after decoding, so no pre-filter then.
        if job.regex:
            where, params = None, None
        else:
            where, params = contains_clause(column), {"like": contains_param(job.old)}

        rows = iterate_rows(
            self.session,
            schema.name,
            [*primary_keys, column],
            order_by=primary_keys,
            where=where,
            params=params,
            chunk_size=job.chunk_size,
        )

        count = 0
        for row in rows:
            value = row[column]
            new_value = self.replacer.run(value)
            if new_value == value:
                continue

            if job.dry_run:
                count += 1
            else:
                count += update_by_key(
                    self.session, schema.name, primary_keys, row, {column: new_value}
                )
        return count

    def _export_table(
        self,
        exporter: SqlExporter,
        table: str,
        aggregator: ReportAggregator,
    ) -> None:
        schema = self.introspector.describe(table)
        reflected = exporter.write_schema(table)

        if schema.has_primary_key:
            eligible = [
                col
                for col in schema.columns
                if col not in schema.primary_keys and col not in self.job.skip_columns
            ]
        else:
            # dumped verbatim so the export stays complete
            self._skip_table(table, aggregator)
            eligible = []

        logger.info("Checking: %s", table)
        start = time.monotonic()
        counts = dict.fromkeys(eligible, 0)
        exported = 0
        for row in iterate_rows(
            self.session,
            table,
            schema.columns,
            order_by=schema.primary_keys,
            chunk_size=self.job.chunk_size,
        ):
            for col in eligible:
                value = row[col]
                new_value = self.replacer.run(value)
                if new_value != value:
                    counts[col] += 1
                    row[col] = new_value
            exporter.write_row(reflected, row)
            exported += 1
        latency = time.monotonic() - start

        for col, count in counts.items():
            aggregator.add(table, col, count, Strategy.STRUCTURAL)
            observe_column(table, col, Strategy.STRUCTURAL.value, count, None, False)
        observe_export_rows(table, exported)

        changed_columns = sum(1 for count in counts.values() if count)
        logger.info(
            "%d columns and %d total rows affected using structural replace (in %.3fs)",
            changed_columns,
            sum(counts.values()),
            latency,
        )
