"""Per-period bookkeeping: entry counter and distinct participant list."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import BigInteger, ForeignKey, Integer, String, UniqueConstraint, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE


class Period(Base):
    """One recurring period, keyed by its start timestamp."""

    __tablename__ = "periods"

    period_key: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    """Start timestamp (UNIX seconds) of the period."""

    entry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    """Number of entries accepted during the period."""

    participants: Mapped[list["PeriodParticipant"]] = relationship(
        back_populates="period",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PeriodParticipant.position",
    )
    """Distinct participating accounts in first-entry order."""

    def __init__(self, *, period_key: int, entry_count: int = 0) -> None:
        self.period_key = period_key
        self.entry_count = entry_count

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<Period(period_key={self.period_key}, entry_count={self.entry_count})>"

    @classmethod
    def get(cls, session: Session, period_key: int) -> Optional["Period"]:
        return session.get(cls, period_key)


class PeriodParticipant(Base):
    """Position of an account in a period's participant list."""

    __tablename__ = "period_participants"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    period_key: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("periods.period_key", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    account: Mapped[str] = mapped_column(String(100), nullable=False)

    period: Mapped["Period"] = relationship(back_populates="participants")

    __table_args__ = (
        UniqueConstraint("period_key", "account", name="uq_period_participants_account"),
        UniqueConstraint("period_key", "position", name="uq_period_participants_position"),
    )

    def __init__(self, *, period_key: int, position: int, account: str) -> None:
        self.period_key = period_key
        self.position = position
        self.account = account

    @classmethod
    def page(
        cls, session: Session, period_key: int, *, offset: int, limit: int
    ) -> list[str]:
        """Return ``limit`` accounts of the period starting at ``offset``."""

        stmt = (
            select(cls.account)
            .where(cls.period_key == period_key)
            .order_by(cls.position.asc())
            .offset(offset)
            .limit(limit)
        )
        return list(session.scalars(stmt).all())


__all__ = ["Period", "PeriodParticipant"]
