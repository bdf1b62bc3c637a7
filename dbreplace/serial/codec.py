from __future__ import annotations

import re
from typing import Optional, Union

from ..errors import ParseError
from .nodes import KEY_KINDS, Node, Scalar, ScalarKind, Sequence, Struct

# Values starting like an array, an integer or an object. Shared by the
# in-database probe and `looks_serialized`.
SERIALIZED_PROBE_PATTERN = "^[aiO]:[1-9]"

_PROBE_RE = re.compile(SERIALIZED_PROBE_PATTERN)
_COUNT_RE = re.compile(rb"(?:0|[1-9][0-9]*)\Z")
_INT_RE = re.compile(rb"[+-]?[0-9]+\Z")
_FLOAT_RE = re.compile(
    rb"(?:[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|INF|-INF|NAN)\Z"
)
_BOOL_RE = re.compile(rb"[01]\Z")

_TOKEN_RES = {
    ScalarKind.INTEGER: _INT_RE,
    ScalarKind.FLOAT: _FLOAT_RE,
    ScalarKind.BOOLEAN: _BOOL_RE,
    ScalarKind.REFERENCE: _INT_RE,
    ScalarKind.OBJECT_REFERENCE: _INT_RE,
}


def _to_bytes(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def _to_text(data: bytes) -> str:
    return data.decode("utf-8", "surrogateescape")


def looks_serialized(value: str) -> bool:
    """Cheap prefix check; a positive answer does not guarantee `decode` succeeds."""
    return _PROBE_RE.match(value) is not None


class _Frame:
    __slots__ = ("type_name", "count", "entries", "key")

    def __init__(self, type_name: Optional[str], count: int) -> None:
        self.type_name = type_name
        self.count = count
        self.entries: list[tuple[Scalar, Node]] = []
        self.key: Optional[Scalar] = None

    def complete(self) -> bool:
        return self.key is None and len(self.entries) == self.count

    def build(self) -> Node:
        if self.type_name is None:
            return Sequence(tuple(self.entries))
        return Struct(self.type_name, tuple(self.entries))


class _Decoder:
    """
    Single-pass parser over the UTF-8 bytes of a value.

    Containers are tracked on an explicit stack of frames, so nesting depth
    is limited by memory rather than by the interpreter's recursion limit.
    """

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.pos = 0

    def fail(self, message: str) -> None:
        raise ParseError(f"{message} at offset {self.pos}")

    def expect(self, literal: bytes) -> None:
        end = self.pos + len(literal)
        if self.data[self.pos:end] != literal:
            self.fail(f"expected {literal!r}")
        self.pos = end

    def token(self, delimiter: bytes) -> bytes:
        end = self.data.find(delimiter, self.pos)
        if end < 0:
            self.fail(f"unterminated token, expected {delimiter!r}")
        tok = self.data[self.pos:end]
        self.pos = end + len(delimiter)
        return tok

    def count(self, delimiter: bytes) -> int:
        tok = self.token(delimiter)
        # Leading zeros or signs would not survive re-encoding.
        if not _COUNT_RE.match(tok):
            self.fail(f"invalid length {tok!r}")
        return int(tok)

    def chunk(self, size: int) -> bytes:
        end = self.pos + size
        if end > len(self.data):
            self.fail("truncated string")
        data = self.data[self.pos:end]
        self.pos = end
        return data

    def decode(self) -> Node:
        stack: list[_Frame] = []
        while True:
            node = self._next(stack)
            while node is not None:
                if not stack:
                    if self.pos != len(self.data):
                        self.fail("trailing data")
                    return node
                frame = stack[-1]
                if frame.key is None:
                    if not isinstance(node, Scalar) or node.kind not in KEY_KINDS:
                        self.fail("invalid key")
                    frame.key = node
                else:
                    frame.entries.append((frame.key, node))
                    frame.key = None
                node = self._close(stack)

    def _close(self, stack: list[_Frame]) -> Optional[Node]:
        frame = stack[-1]
        if not frame.complete():
            return None
        self.expect(b"}")
        stack.pop()
        return frame.build()

    def _next(self, stack: list[_Frame]) -> Optional[Node]:
        marker = self.data[self.pos:self.pos + 1]
        if marker == b"N":
            self.expect(b"N;")
            return Scalar(ScalarKind.NULL, "")

        if marker == b"s":
            self.pos += 1
            self.expect(b":")
            size = self.count(b":")
            self.expect(b'"')
            value = self.chunk(size)
            self.expect(b'";')
            return Scalar.string(_to_text(value))

        if marker == b"a":
            self.pos += 1
            self.expect(b":")
            size = self.count(b":")
            self.expect(b"{")
            stack.append(_Frame(None, size))
            return self._close(stack)

        if marker == b"O":
            self.pos += 1
            self.expect(b":")
            name_size = self.count(b":")
            self.expect(b'"')
            name = self.chunk(name_size)
            self.expect(b'":')
            size = self.count(b":")
            self.expect(b"{")
            stack.append(_Frame(_to_text(name), size))
            return self._close(stack)

        if marker and marker in b"bidrR":
            kind = ScalarKind(marker.decode("ascii"))
            self.pos += 1
            self.expect(b":")
            tok = self.token(b";")
            if not _TOKEN_RES[kind].match(tok):
                self.fail(f"invalid {kind.name.lower()} token {tok!r}")
            return Scalar(kind, tok.decode("ascii"))

        self.fail(f"unknown type marker {marker!r}")
        return None


def decode(text: str) -> Node:
    """
    Parse a serialized value into a node tree.

    Raises:
        ParseError: If ``text`` is not a complete, well-formed serialized value
    """
    if not text:
        raise ParseError("empty value")
    return _Decoder(_to_bytes(text)).decode()


def _encode_scalar(node: Scalar) -> bytes:
    if node.kind is ScalarKind.STRING:
        data = _to_bytes(node.raw)
        return b's:%d:"%s";' % (len(data), data)
    if node.kind is ScalarKind.NULL:
        return b"N;"
    return b"%s:%s;" % (node.kind.value.encode("ascii"), _to_bytes(node.raw))


def encode(node: Node) -> str:
    """
    Serialize a node tree. Exact inverse of `decode`.

    String length prefixes are recomputed from the UTF-8 byte length of the
    current leaf text.
    """
    out: list[bytes] = []
    stack: list[Union[Node, bytes]] = [node]
    while stack:
        item = stack.pop()
        if isinstance(item, bytes):
            out.append(item)
        elif isinstance(item, Scalar):
            out.append(_encode_scalar(item))
        else:
            if isinstance(item, Struct):
                name = _to_bytes(item.type_name)
                out.append(b'O:%d:"%s":%d:{' % (len(name), name, len(item.entries)))
            else:
                out.append(b"a:%d:{" % len(item.entries))
            stack.append(b"}")
            for key, value in reversed(item.entries):
                stack.append(value)
                stack.append(key)
    return _to_text(b"".join(out))
