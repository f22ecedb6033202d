from .strategy import DEFAULT_STRATEGY, Attribute, GenerationOptions, IdHex, IdNumber, Strategy
from .violation import ViolationKind

__all__ = [
    "DEFAULT_STRATEGY",
    "Attribute",
    "GenerationOptions",
    "IdHex",
    "IdNumber",
    "Strategy",
    "ViolationKind",
]
