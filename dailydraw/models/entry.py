"""Entry model: one seeded ticket per account per period."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, UniqueConstraint, func, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base
from .id_type import ID_TYPE


class Entry(Base):
    """Immutable record of an accepted entry.

    Entries are never deleted; an account's history is the append-only
    sequence ordered by :attr:`sequence`.
    """

    __tablename__ = "entries"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Surrogate primary key."""

    account: Mapped[str] = mapped_column(String(100), nullable=False)
    """Ledger account that paid for the entry."""

    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    """Zero-based position in the account's entry history."""

    period_key: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    """Start timestamp of the period the entry belongs to."""

    seed: Mapped[str] = mapped_column(String(64), nullable=False)
    """SHA-256 seed (hex) the match digest is derived from."""

    match_digest: Mapped[str] = mapped_column(String(32), nullable=False)
    """Low hex digits of :attr:`seed` compared against the winning digits."""

    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    """Clock reading (UNIX seconds) when the entry was accepted."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("account", "sequence", name="uq_entries_account_sequence"),
        UniqueConstraint("account", "period_key", name="uq_entries_account_period"),
        Index("ix_entries_account_timestamp", "account", "timestamp"),
    )

    def __init__(
        self,
        *,
        account: str,
        sequence: int,
        period_key: int,
        seed: str,
        match_digest: str,
        timestamp: int,
        created_at: Optional[datetime] = None,
    ) -> None:
        self.account = account
        self.sequence = sequence
        self.period_key = period_key
        self.seed = seed
        self.match_digest = match_digest
        self.timestamp = timestamp
        if created_at is not None:
            self.created_at = created_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<Entry(account={a}, sequence={s}, period_key={p}, match_digest={d})>".format(
            a=self.account, s=self.sequence, p=self.period_key, d=self.match_digest
        )

    @classmethod
    def history(cls, session: Session, account: str) -> list["Entry"]:
        """Return every entry ``account`` has submitted, oldest first."""

        stmt = select(cls).where(cls.account == account).order_by(cls.sequence.asc())
        return list(session.scalars(stmt).all())

    @classmethod
    def latest_for(cls, session: Session, account: str) -> Optional["Entry"]:
        """Return the account's most recent entry, if any."""

        stmt = (
            select(cls)
            .where(cls.account == account)
            .order_by(cls.sequence.desc())
            .limit(1)
        )
        return session.scalar(stmt)

    @classmethod
    def count_for(cls, session: Session, account: str) -> int:
        """Return how many entries ``account`` has submitted so far."""

        return int(
            session.scalar(select(func.count(cls.id)).where(cls.account == account)) or 0
        )

    @classmethod
    def for_period(
        cls, session: Session, period_key: int, accounts: list[str]
    ) -> dict[str, list["Entry"]]:
        """Return the period's entries for ``accounts`` grouped by account."""

        grouped: dict[str, list[Entry]] = {account: [] for account in accounts}
        if not accounts:
            return grouped
        stmt = (
            select(cls)
            .where(cls.period_key == period_key, cls.account.in_(accounts))
            .order_by(cls.sequence.asc())
        )
        for entry in session.scalars(stmt):
            grouped[entry.account].append(entry)
        return grouped


__all__ = ["Entry"]
