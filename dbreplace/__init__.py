from .config import EXPORT_STDOUT, ReplacementJob
from .db.models import ColumnReport, Strategy
from .db.session import DbSession
from .engine import ReplacementEngine
from .report import Report

__all__ = [
    "DbSession",
    "ReplacementEngine",
    "ReplacementJob",
    "EXPORT_STDOUT",
    "Report",
    "ColumnReport",
    "Strategy",
]
