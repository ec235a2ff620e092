"""Database models for settled drawings."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    select,
    text,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .amount_type import Amount
from .base import Base
from .id_type import ID_TYPE

DRAWING_PENDING = "pending"
DRAWING_SETTLING = "settling"
DRAWING_COMPLETED = "completed"


class Drawing(Base):
    """Outcome of settling one period.

    A row only exists once a settlement has started. It is written inside the
    settlement transaction, so an aborted settlement leaves no row behind and
    the period reads as ``"pending"``. Once :attr:`completed` is set the row is
    never modified again.
    """

    __tablename__ = "drawings"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Surrogate primary key."""

    period_key: Mapped[int] = mapped_column(BigInteger, nullable=False)
    """Start timestamp of the settled period."""

    outcome_digest: Mapped[str] = mapped_column(String(64), nullable=False)
    """SHA-256 digest (hex) derived from the settlement entropy."""

    winning_digits: Mapped[str] = mapped_column(String(32), nullable=False)
    """Low hex digits of :attr:`outcome_digest` entries are scored against."""

    status: Mapped[str] = mapped_column(String(20), nullable=False, default=DRAWING_SETTLING)
    """``"settling"`` while the transaction runs, ``"completed"`` afterwards."""

    completed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )

    pot: Mapped[int] = mapped_column(Amount, nullable=False)
    """Jackpot snapshot taken when the settlement started."""

    entry_count: Mapped[int] = mapped_column(Integer, nullable=False)
    """Entries accepted during the period."""

    has_jackpot_winner: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )

    settled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    winners: Mapped[list["DrawingWinner"]] = relationship(
        back_populates="drawing",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by=lambda: [DrawingWinner.required_matches.desc(), DrawingWinner.position],
    )
    """Winners across all tiers, top tier first, in scan order within a tier."""

    __table_args__ = (
        UniqueConstraint("period_key", name="uq_drawings_period_key"),
        CheckConstraint(
            "status IN ('settling','completed')", name="status_enum"
        ),
    )

    def __init__(
        self,
        *,
        period_key: int,
        outcome_digest: str,
        winning_digits: str,
        pot: int,
        entry_count: int,
        status: str = DRAWING_SETTLING,
    ) -> None:
        self.period_key = period_key
        self.outcome_digest = outcome_digest
        self.winning_digits = winning_digits
        self.pot = pot
        self.entry_count = entry_count
        self.status = status
        self.completed = False
        self.has_jackpot_winner = False

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<Drawing(period_key={p}, status={s}, pot={pot}, winning_digits={w})>".format(
            p=self.period_key, s=self.status, pot=self.pot, w=self.winning_digits
        )

    def mark_completed(self) -> None:
        """Freeze the drawing. Raises if it already completed."""

        if self.completed:
            raise RuntimeError(f"Drawing for period {self.period_key} is already completed")
        self.completed = True
        self.status = DRAWING_COMPLETED
        self.settled_at = datetime.now(timezone.utc)

    def winners_for(self, match_count: int) -> list["DrawingWinner"]:
        """Return the tier's winners for ``match_count`` in payout order."""

        return [w for w in self.winners if w.required_matches == match_count]

    @classmethod
    def get_by_period(cls, session: Session, period_key: int) -> Optional["Drawing"]:
        return session.scalar(select(cls).where(cls.period_key == period_key))


class DrawingWinner(Base):
    """One prize awarded by a drawing."""

    __tablename__ = "drawing_winners"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    drawing_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("drawings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    required_matches: Mapped[int] = mapped_column(Integer, nullable=False)
    """Tier key the winner was assigned to."""

    position: Mapped[int] = mapped_column(Integer, nullable=False)
    """Zero-based position within the tier's winner list."""

    account: Mapped[str] = mapped_column(String(100), nullable=False)
    match_count: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[int] = mapped_column(Amount, nullable=False, default=0)
    """Amount transferred to the winner."""

    proportional: Mapped[bool] = mapped_column(Boolean, nullable=False)
    """``True`` when paid from the jackpot, ``False`` for fixed reserve prizes."""

    claimed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    """Declared by the hardened data model; no payout path reads or writes it."""

    drawing: Mapped["Drawing"] = relationship(back_populates="winners")

    __table_args__ = (
        UniqueConstraint(
            "drawing_id", "required_matches", "position", name="uq_drawing_winners_slot"
        ),
        Index("ix_drawing_winners_account", "account"),
    )

    def __init__(
        self,
        *,
        required_matches: int,
        position: int,
        account: str,
        match_count: int,
        proportional: bool,
        amount: int = 0,
    ) -> None:
        self.required_matches = required_matches
        self.position = position
        self.account = account
        self.match_count = match_count
        self.proportional = proportional
        self.amount = amount
        self.claimed = False

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<DrawingWinner(account={a}, tier={t}, amount={amt})>".format(
            a=self.account, t=self.required_matches, amt=self.amount
        )


__all__ = [
    "DRAWING_COMPLETED",
    "DRAWING_PENDING",
    "DRAWING_SETTLING",
    "Drawing",
    "DrawingWinner",
]
