"""Clock and entropy collaborators."""

from __future__ import annotations

import secrets
import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int:
        """Return the current time in integer UNIX seconds."""
        ...


class EntropySource(Protocol):
    def block_entropy(self) -> str:
        """Return a fresh 256-bit value as 64 hex characters."""
        ...


class SystemClock:
    """Wall clock of the host."""

    def now(self) -> int:
        return int(time.time())


class SystemEntropySource:
    """Entropy drawn from the operating system CSPRNG.

    Stronger than a block hash but equally unverifiable by entrants; the engine
    treats every source the same way.
    """

    def block_entropy(self) -> str:
        return secrets.token_hex(32)


__all__ = ["Clock", "EntropySource", "SystemClock", "SystemEntropySource"]
