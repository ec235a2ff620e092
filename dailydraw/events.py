"""Event records emitted by lottery operations."""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from .models import LotteryEvent

logger = logging.getLogger(__name__)

ENTRY_SUBMITTED = "EntrySubmitted"
DRAWING_COMPLETE = "DrawingComplete"
PRIZE_AWARDED = "PrizeAwarded"
JACKPOT_ROLLOVER = "JackpotRollover"
RESERVE_FUND_TOP_UP = "ReserveFundTopUp"
EMERGENCY_WITHDRAW = "EmergencyWithdraw"
PERIOD_SKIPPED = "PeriodSkipped"
PAUSED = "Paused"
UNPAUSED = "Unpaused"


def emit(
    session: Session,
    name: str,
    *,
    period_key: Optional[int] = None,
    **payload: Any,
) -> LotteryEvent:
    """Append an event to the log inside the caller's transaction.

    The row is discarded together with everything else if the transaction
    rolls back, so the log only ever shows effects that were committed.
    """

    event = LotteryEvent(name=name, payload=dict(payload), period_key=period_key)
    session.add(event)
    logger.info(f"{name} period={period_key} {payload}")
    return event


__all__ = [
    "DRAWING_COMPLETE",
    "EMERGENCY_WITHDRAW",
    "ENTRY_SUBMITTED",
    "JACKPOT_ROLLOVER",
    "PAUSED",
    "PERIOD_SKIPPED",
    "PRIZE_AWARDED",
    "RESERVE_FUND_TOP_UP",
    "UNPAUSED",
    "emit",
]
