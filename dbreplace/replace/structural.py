from __future__ import annotations

from typing import Any, Union

from ..errors import ParseError
from ..serial import codec
from ..serial.nodes import Node, Scalar, ScalarKind, Sequence, Struct
from .function import Replacement

_Container = Union[Sequence, Struct]


class StructuralReplacer:
    """
    Apply a `Replacement` to a column value without breaking serialized data.

    Values that decode as serialized data are rewritten leaf by leaf and
    re-encoded, so every string length prefix matches its new content.
    Anything else is treated as plain text.

    Usage:
        replacer = StructuralReplacer(Replacement("http://a.dev", "http://a.com"))
        new_value = replacer.run(row["option_value"])
        if new_value != row["option_value"]:
            ...
    """

    def __init__(self, replacement: Replacement, recurse_objects: bool = True) -> None:
        self.replacement = replacement
        self.recurse_objects = recurse_objects

    def run(self, value: Any) -> Any:
        """
        Return ``value`` with all occurrences replaced.

        Non-string values and empty strings are returned unchanged. If nothing
        was replaced the original object is returned, never a re-encoded copy.
        """
        if not isinstance(value, str) or value == "":
            return value

        try:
            tree = codec.decode(value)
        except ParseError:
            return self.replacement(value)

        new_tree = self._walk(tree)
        if new_tree is tree:
            return value
        return codec.encode(new_tree)

    def _traverses(self, node: Node) -> bool:
        if isinstance(node, Sequence):
            return True
        return isinstance(node, Struct) and self.recurse_objects

    def _leaf(self, node: Node) -> Node:
        if isinstance(node, Scalar) and node.kind is ScalarKind.STRING:
            # Strings may hold serialized data themselves; `run` handles both cases.
            new_raw = self.run(node.raw)
            if new_raw != node.raw:
                return Scalar.string(new_raw)
        return node

    def _walk(self, root: Node) -> Node:
        if not self._traverses(root):
            return self._leaf(root)

        # Each frame is a container and the entries rebuilt for it so far.
        stack: list[tuple[_Container, list]] = [(root, [])]
        while True:
            container, rebuilt = stack[-1]
            if len(rebuilt) == len(container.entries):
                stack.pop()
                # Unchanged subtrees are kept by identity; deep `==` would recurse.
                if all(
                    new is old for (_, new), (_, old) in zip(rebuilt, container.entries)
                ):
                    node: Node = container
                elif isinstance(container, Struct):
                    node = Struct(container.type_name, tuple(rebuilt))
                else:
                    node = Sequence(tuple(rebuilt))
                if not stack:
                    return node
                parent, parent_rebuilt = stack[-1]
                key = parent.entries[len(parent_rebuilt)][0]
                parent_rebuilt.append((key, node))
                continue

            key, child = container.entries[len(rebuilt)]
            if self._traverses(child):
                stack.append((child, []))
            else:
                rebuilt.append((key, self._leaf(child)))
