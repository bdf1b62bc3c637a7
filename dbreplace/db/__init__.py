from .export import SqlExporter, open_export_sink
from .introspect import ColumnIntrospector
from .iterator import iterate_rows
from .models import ColumnReport, Strategy, TableSchema
from .session import DbSession

__all__ = [
    "DbSession",
    "ColumnIntrospector",
    "iterate_rows",
    "SqlExporter",
    "open_export_sink",
    "ColumnReport",
    "Strategy",
    "TableSchema",
]
