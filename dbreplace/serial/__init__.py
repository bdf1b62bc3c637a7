from .codec import SERIALIZED_PROBE_PATTERN, decode, encode, looks_serialized
from .nodes import Node, Scalar, ScalarKind, Sequence, Struct

__all__ = [
    "decode",
    "encode",
    "looks_serialized",
    "SERIALIZED_PROBE_PATTERN",
    "Node",
    "Scalar",
    "ScalarKind",
    "Sequence",
    "Struct",
]
