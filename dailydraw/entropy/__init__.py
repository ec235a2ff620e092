"""Time and randomness collaborators used by the settlement engine."""

from .chain import ChainEntropySource
from .sources import Clock, EntropySource, SystemClock, SystemEntropySource

__all__ = [
    "ChainEntropySource",
    "Clock",
    "EntropySource",
    "SystemClock",
    "SystemEntropySource",
]
