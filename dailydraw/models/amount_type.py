"""Exact integer column type for currency amounts."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import String
from sqlalchemy.types import TypeDecorator


class Amount(TypeDecorator):
    """Store an arbitrarily large non-negative integer amount as a decimal string.

    Balances are kept in the smallest currency unit (1 unit = 10**18 wei), which
    overflows a 64-bit column long before ``MAX_JACKPOT`` is reached. Storing the
    decimal text avoids both the overflow and the float coercion SQLite applies
    to ``NUMERIC`` columns. Arithmetic always happens on Python ``int`` values.
    """

    impl = String(80)
    cache_ok = True

    def process_bind_param(self, value: Optional[int], dialect: Any) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"amount must be an int, got {type(value).__name__}")
        if value < 0:
            raise ValueError(f"amount must be non-negative, got {value}")
        return str(value)

    def process_result_value(self, value: Optional[str], dialect: Any) -> Optional[int]:
        if value is None:
            return None
        return int(value)


__all__ = ["Amount"]
