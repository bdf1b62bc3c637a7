from __future__ import annotations

import re


class Replacement:
    """
    Replace every occurrence of ``old`` by ``new`` in a text fragment.

    In literal mode this is a case-sensitive, left-to-right, non-overlapping
    substring replace. In regex mode ``old`` is compiled as-is with `re` and
    ``new`` is used as a `re.sub` template; no escaping is applied.

    When nothing matches, the input is returned unchanged so callers can
    compare with ``==`` to tell whether a value changed.
    """

    def __init__(self, old: str, new: str, regex: bool = False) -> None:
        self.old = old
        self.new = new
        self.regex = regex
        self._pattern = re.compile(old) if regex else None

    def __call__(self, value: str) -> str:
        if self._pattern is not None:
            result, count = self._pattern.subn(self.new, value)
            return result if count else value
        if self.old not in value:
            return value
        return value.replace(self.old, self.new)

    def __repr__(self) -> str:
        mode = "regex" if self.regex else "literal"
        return f"Replacement({self.old!r} -> {self.new!r}, {mode})"
