"""Account balances backing the SQL ledger."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, String, select, text
from sqlalchemy.orm import Mapped, Session, mapped_column

from .amount_type import Amount
from .base import Base
from .id_type import ID_TYPE


class LedgerAccount(Base):
    """Balance held by a single account name."""

    __tablename__ = "ledger_accounts"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    balance: Mapped[int] = mapped_column(Amount, nullable=False, default=0)
    accepts_transfers: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    """Incoming transfers are rejected when ``False``."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __init__(self, *, name: str, balance: int = 0, accepts_transfers: bool = True) -> None:
        self.name = name
        self.balance = balance
        self.accepts_transfers = accepts_transfers

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<LedgerAccount(name={self.name}, balance={self.balance})>"

    @classmethod
    def get_by_name(
        cls, session: Session, name: str, *, for_update: bool = False
    ) -> Optional["LedgerAccount"]:
        stmt = select(cls).where(cls.name == name)
        if for_update:
            stmt = stmt.with_for_update()
        return session.scalar(stmt)


__all__ = ["LedgerAccount"]
