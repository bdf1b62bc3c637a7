from __future__ import annotations

import logging
from typing import Optional

from .config import ReplacementJob
from .db.helpers import quote_identifier
from .db.models import Strategy
from .db.session import DbSession
from .serial import SERIALIZED_PROBE_PATTERN

logger = logging.getLogger(__name__)


def has_serialized_values(session: DbSession, table: str, column: str) -> bool:
    """
    Cheap existence probe: does any row of ``column`` start like serialized data?

    Only one matching row is looked for. A column mixing plain and serialized
    values is detected as soon as any serialized value exists, but the probe
    is a heuristic for choosing a strategy, never a correctness check.
    """
    sql = (
        f"SELECT 1 FROM {quote_identifier(table, 'table')} "
        f"WHERE {quote_identifier(column, 'column')} REGEXP :marker LIMIT 1"
    )
    return session.execute_scalar(sql, {"marker": SERIALIZED_PROBE_PATTERN}) is not None


def select_strategy(
    session: DbSession,
    job: ReplacementJob,
    table: str,
    column: str,
) -> Optional[Strategy]:
    """
    Decide how ``table.column`` is processed.

    Returns:
        None if the column is excluded, `Strategy.STRUCTURAL` when the job
        forbids the native path or the column holds serialized data, and
        `Strategy.NATIVE` otherwise
    """
    if column in job.skip_columns:
        return None
    if job.structural_only:
        return Strategy.STRUCTURAL
    if has_serialized_values(session, table, column):
        logger.debug("Serialized data found in %s.%s", table, column)
        return Strategy.STRUCTURAL
    return Strategy.NATIVE
