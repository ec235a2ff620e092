from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, BigInteger, DateTime, Index, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base
from .id_type import ID_TYPE


class LotteryEvent(Base):
    """Append-only log of records emitted by committed operations."""

    __tablename__ = "lottery_events"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    period_key: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("ix_lottery_events_name", "name"),
        Index("ix_lottery_events_period", "period_key"),
    )

    def __init__(
        self, *, name: str, payload: dict[str, Any], period_key: Optional[int] = None
    ) -> None:
        self.name = name
        self.payload = payload
        self.period_key = period_key

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<LotteryEvent(id={self.id}, name={self.name}, period_key={self.period_key})>"

    @classmethod
    def history(cls, session: Session, name: Optional[str] = None) -> list["LotteryEvent"]:
        """Return events in emission order, optionally filtered by ``name``."""

        stmt = select(cls)
        if name is not None:
            stmt = stmt.where(cls.name == name)
        return list(session.scalars(stmt.order_by(cls.id.asc())).all())
