from .function import Replacement
from .structural import StructuralReplacer

__all__ = ["Replacement", "StructuralReplacer"]
