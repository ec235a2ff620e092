"""Singleton row holding the engine's shared balances and period cursor."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import BigInteger, Boolean, DateTime, Integer, String, select, text
from sqlalchemy.orm import Mapped, Session, mapped_column

from ..errors import LotteryNotInitialized
from .amount_type import Amount
from .base import Base

STATE_ROW_ID = 1
GENESIS_OUTCOME_DIGEST = "0" * 64


class LotteryState(Base):
    """Global mutable state of the lottery.

    Every mutating operation loads this row first (``FOR UPDATE`` where the
    dialect supports it) so that concurrent settlements and entries are
    serialized on the database as well as on the in-process lock.
    """

    __tablename__ = "lottery_state"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    """Always :data:`STATE_ROW_ID`."""

    owner: Mapped[str] = mapped_column(String(100), nullable=False)
    """Account allowed to pause, top up, withdraw and skip periods."""

    jackpot: Mapped[int] = mapped_column(Amount, nullable=False, default=0)
    """Pooled balance distributed by percentage tiers."""

    reserve_fund: Mapped[int] = mapped_column(Amount, nullable=False, default=0)
    """Balance funding fixed-amount tiers."""

    next_drawing_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    """End of the current period; the next settlement boundary."""

    last_outcome_digest: Mapped[str] = mapped_column(
        String(64), nullable=False, default=GENESIS_OUTCOME_DIGEST
    )
    """Outcome digest of the most recently completed drawing."""

    paused: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __init__(
        self,
        *,
        owner: str,
        next_drawing_time: int,
        jackpot: int = 0,
        reserve_fund: int = 0,
        last_outcome_digest: str = GENESIS_OUTCOME_DIGEST,
        paused: bool = False,
    ) -> None:
        self.id = STATE_ROW_ID
        self.owner = owner
        self.next_drawing_time = next_drawing_time
        self.jackpot = jackpot
        self.reserve_fund = reserve_fund
        self.last_outcome_digest = last_outcome_digest
        self.paused = paused

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<LotteryState(jackpot={self.jackpot}, reserve_fund={self.reserve_fund}, "
            f"next_drawing_time={self.next_drawing_time}, paused={self.paused})>"
        )

    @classmethod
    def load(cls, session: Session, *, for_update: bool = False) -> Optional["LotteryState"]:
        """Return the singleton state row, or ``None`` before initialization."""

        stmt = select(cls).where(cls.id == STATE_ROW_ID)
        if for_update:
            stmt = stmt.with_for_update()
        return session.scalar(stmt)

    @classmethod
    def require(cls, session: Session, *, for_update: bool = False) -> "LotteryState":
        """Return the singleton state row or raise if the lottery was never initialized."""

        state = cls.load(session, for_update=for_update)
        if state is None:
            raise LotteryNotInitialized("Lottery state has not been initialized")
        return state


__all__ = ["GENESIS_OUTCOME_DIGEST", "LotteryState", "STATE_ROW_ID"]
