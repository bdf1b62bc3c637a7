from __future__ import annotations

import logging

from sqlalchemy.exc import CompileError, NoSuchTableError
from sqlalchemy.types import NullType, TypeEngine

from ..errors import SchemaError
from .models import TableSchema
from .session import DbSession

logger = logging.getLogger(__name__)

# Substrings of a declared column type that mark it as holding text
# (CHAR, VARCHAR, TEXT, TINYTEXT, MEDIUMTEXT, LONGTEXT, ...).
TEXT_TYPE_TOKENS = ("char", "text")


class ColumnIntrospector:
    """
    Per-table primary-key and textual-column discovery.

    Results are cached for the lifetime of the instance; create a new
    introspector when the set of tables may have changed.
    """

    def __init__(self, session: DbSession) -> None:
        self.session = session
        self._cache: dict[str, TableSchema] = {}

    def describe(self, table: str) -> TableSchema:
        """
        Return the column layout of ``table``.

        Raises:
            SchemaError: If the table does not exist
        """
        cached = self._cache.get(table)
        if cached is not None:
            return cached

        inspector = self.session.inspector()
        if not inspector.has_table(table):
            raise SchemaError(f"Table {table!r} does not exist")
        try:
            columns = inspector.get_columns(table)
            pk = inspector.get_pk_constraint(table)
        except NoSuchTableError as exc:
            raise SchemaError(f"Table {table!r} does not exist") from exc

        names = tuple(col["name"] for col in columns)
        textual = tuple(
            col["name"] for col in columns if self._is_text_type(col["type"])
        )
        schema = TableSchema(
            name=table,
            columns=names,
            primary_keys=tuple(pk.get("constrained_columns") or ()),
            textual_columns=textual,
        )
        logger.debug(
            "Introspected %s: primary keys=%s, textual columns=%s",
            table,
            schema.primary_keys,
            schema.textual_columns,
        )
        self._cache[table] = schema
        return schema

    def _is_text_type(self, type_: TypeEngine) -> bool:
        if isinstance(type_, NullType):
            return False
        try:
            declared = type_.compile(dialect=self.session.engine.dialect)
        except CompileError:
            return False
        declared = declared.lower()
        return any(token in declared for token in TEXT_TYPE_TOKENS)
