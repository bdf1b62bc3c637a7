from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class Strategy(str, Enum):
    NATIVE = "native"
    STRUCTURAL = "structural"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class TableSchema:
    """
    Column layout of one table, as introspected.
    """
    name: str
    columns: Tuple[str, ...]
    primary_keys: Tuple[str, ...]
    # character/text typed columns, in schema order
    textual_columns: Tuple[str, ...]

    @property
    def has_primary_key(self) -> bool:
        return bool(self.primary_keys)


@dataclass(frozen=True)
class ColumnReport:
    """
    Outcome for a single column. A skipped table is reported once with an
    empty column name.
    """
    table: str
    column: str
    count: int
    strategy: Strategy
