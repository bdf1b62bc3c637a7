from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union


class ScalarKind(str, Enum):
    """Scalar type markers, valued by their one-letter wire tag."""

    STRING = "s"
    INTEGER = "i"
    FLOAT = "d"
    BOOLEAN = "b"
    NULL = "N"
    REFERENCE = "r"
    OBJECT_REFERENCE = "R"


@dataclass(frozen=True)
class Scalar:
    """
    A leaf value.

    For ``STRING`` the ``raw`` field holds the decoded text. For every other
    kind it holds the exact token found between the marker and ``;`` (e.g.
    ``"42"`` for ``i:42;``, ``""`` for ``N;``), so re-encoding never
    reformats numbers.
    """

    kind: ScalarKind
    raw: str

    @classmethod
    def string(cls, value: str) -> "Scalar":
        return cls(ScalarKind.STRING, value)

    @classmethod
    def integer(cls, value: int) -> "Scalar":
        return cls(ScalarKind.INTEGER, str(value))


Entries = Tuple[Tuple[Scalar, "Node"], ...]


@dataclass(frozen=True)
class Sequence:
    """An ordered array of ``(key, value)`` pairs; keys are integer or string scalars."""

    entries: Entries


@dataclass(frozen=True)
class Struct:
    """A named object with ordered ``(key, value)`` properties."""

    type_name: str
    entries: Entries


Node = Union[Scalar, Sequence, Struct]

KEY_KINDS = (ScalarKind.INTEGER, ScalarKind.STRING)
