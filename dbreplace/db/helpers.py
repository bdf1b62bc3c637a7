from __future__ import annotations

from typing import Any, Mapping, Sequence

from .session import DbSession

# Escape character for LIKE patterns. Backslash is avoided because MySQL and
# SQLite disagree on how it behaves inside string literals.
LIKE_ESCAPE = "!"


def quote_identifier(name: str, identifier_type: str = "identifier") -> str:
    """
    Validate a table/column name and return it backtick-quoted.

    ⚠️ SECURITY CONTRACT ⚠️
    Names passed here MUST come from the introspected schema (or have been
    checked against it). This function only rejects names that could break
    out of the quotes; it does not make untrusted input safe.

    Args:
        name: The identifier to quote
        identifier_type: Description of the identifier (for error messages)

    Returns:
        The identifier wrapped in backticks

    Raises:
        TypeError: If identifier is not a string
        ValueError: If identifier is empty, too long, or contains a backtick or NUL

    Example:
        >>> quote_identifier("wp_options", "table")
        '`wp_options`'
        >>> quote_identifier("a`b", "column")
        ValueError: Invalid column 'a`b': ...
    """
    if not isinstance(name, str):
        raise TypeError(f"{identifier_type} must be a string, got {type(name).__name__}")

    if not name:
        raise ValueError(f"{identifier_type} cannot be empty")

    if "`" in name or "\x00" in name:
        raise ValueError(
            f"Invalid {identifier_type} {name!r}: backticks and NUL characters are not allowed"
        )

    if len(name) > 64:
        raise ValueError(f"{identifier_type} {name!r} exceeds MySQL's 64-character limit")

    return f"`{name}`"


def esc_like(value: str) -> str:
    """Escape LIKE wildcards in ``value`` using `LIKE_ESCAPE`."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def contains_clause(column: str, param: str = "like") -> str:
    """SQL predicate matching rows whose ``column`` contains the bound ``param``."""
    return f"{quote_identifier(column, 'column')} LIKE :{param} ESCAPE '{LIKE_ESCAPE}'"


def contains_param(value: str) -> str:
    return f"%{esc_like(value)}%"


def replace_changes_clause(dialect_name: str, column: str) -> str:
    """
    SQL predicate matching rows that ``REPLACE(column, :old, :new)`` would change.

    `REPLACE()` is case-sensitive while LIKE and `_ci` collations are not, so
    the comparison is done on binary values where the dialect needs it.
    """
    column_sql = quote_identifier(column, "column")
    replaced = f"REPLACE({column_sql}, :old, :new)"
    if dialect_name == "mysql":
        return f"CAST({replaced} AS BINARY) <> CAST({column_sql} AS BINARY)"
    # SQLite compares text with the BINARY collation by default
    return f"{replaced} <> {column_sql}"


def update_by_key(
    session: DbSession,
    table: str,
    key_columns: Sequence[str],
    key_values: Mapping[str, Any],
    updates: Mapping[str, Any],
) -> int:
    """
    Update a single row addressed by its primary-key values.

    Args:
        session: Active DbSession instance
        table: Table name (must come from the introspected schema)
        key_columns: Primary-key columns, in key order
        key_values: Row identity (column -> value); must cover ``key_columns``
        updates: Dictionary of column -> new value

    Returns:
        Affected row count as reported by the driver
    """
    if not key_columns:
        raise ValueError(f"Refusing to update {table!r} without a primary key")

    params: dict[str, Any] = {}

    set_clauses = []
    for i, (col, val) in enumerate(updates.items()):
        param_name = f"set_{i}"
        set_clauses.append(f"{quote_identifier(col, 'column')} = :{param_name}")
        params[param_name] = val

    where_clauses = []
    for i, col in enumerate(key_columns):
        param_name = f"key_{i}"
        where_clauses.append(f"{quote_identifier(col, 'column')} = :{param_name}")
        params[param_name] = key_values[col]

    sql = (
        f"UPDATE {quote_identifier(table, 'table')} SET {', '.join(set_clauses)} "
        f"WHERE {' AND '.join(where_clauses)}"
    )
    return session.execute(sql, params)
