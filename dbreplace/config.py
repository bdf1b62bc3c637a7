from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

from .errors import ConfigurationError

DEFAULT_CHUNK_SIZE = 1000

# Hashed credentials must never be rewritten, whatever the caller asks for.
PROTECTED_COLUMNS = frozenset({"user_pass"})

EXPORT_STDOUT = "-"


@dataclass(frozen=True)
class ReplacementJob:
    """
    Immutable description of one search-and-replace invocation.

    Args:
        old: String (or pattern, when ``regex`` is set) to search for
        new: Replacement string (a ``re.sub`` template in regex mode)
        skip_columns: Column names never touched; ``PROTECTED_COLUMNS``
            are always added
        dry_run: Count what would change without writing
        precise: Always use the row-by-row structural path
        regex: Treat ``old`` as a regular expression
        recurse_objects: Traverse serialized objects, not only arrays
        export_to: ``None`` for in-place mode, ``EXPORT_STDOUT`` or a file
            path to write an SQL dump instead
        chunk_size: Rows fetched per query on the structural path
    """

    old: str
    new: str
    skip_columns: frozenset[str] = field(default_factory=frozenset)
    dry_run: bool = False
    precise: bool = False
    regex: bool = False
    recurse_objects: bool = True
    export_to: Optional[str] = None
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if not isinstance(self.old, str) or not self.old:
            raise ConfigurationError("old must be a non-empty string")
        if not isinstance(self.new, str):
            raise ConfigurationError("new must be a string")
        if self.dry_run and self.export_to is not None:
            raise ConfigurationError("dry_run and export_to cannot be used together")
        if self.export_to == "":
            raise ConfigurationError("export_to must be a path or EXPORT_STDOUT")
        if self.chunk_size < 1:
            raise ConfigurationError(f"chunk_size must be >= 1, got {self.chunk_size}")
        if self.regex:
            try:
                pattern = re.compile(self.old)
            except re.error as exc:
                raise ConfigurationError(f"Invalid pattern {self.old!r}: {exc}") from exc
            try:
                # the template is parsed even when nothing matches
                pattern.sub(self.new, "")
            except re.error as exc:
                raise ConfigurationError(
                    f"Invalid replacement template {self.new!r}: {exc}"
                ) from exc

        object.__setattr__(
            self, "skip_columns", frozenset(self.skip_columns) | PROTECTED_COLUMNS
        )

    @property
    def is_noop(self) -> bool:
        """Literal replacement of a string by itself changes nothing."""
        return self.old == self.new and not self.regex

    @property
    def exporting(self) -> bool:
        return self.export_to is not None

    @property
    def structural_only(self) -> bool:
        """The native in-database replace cannot be used for this job."""
        return self.precise or self.regex or self.exporting
