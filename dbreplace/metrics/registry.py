from prometheus_client import Counter, Histogram

REPLACEMENTS_TOTAL = Counter(
    "dbreplace_replacements_total",
    "Rows changed (or counted, in dry-run mode) per table and column",
    ["table", "column", "strategy", "dry_run"],
)

COLUMN_LATENCY_SECONDS = Histogram(
    "dbreplace_column_latency_seconds",
    "Time spent processing a single column",
    ["strategy"],
)

TABLES_SKIPPED_TOTAL = Counter(
    "dbreplace_tables_skipped_total",
    "Tables skipped because they have no primary key",
    ["table"],
)

EXPORT_ROWS_TOTAL = Counter(
    "dbreplace_export_rows_total",
    "Rows written to the SQL export sink",
    ["table"],
)
