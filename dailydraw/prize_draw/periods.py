"""Per-period participant and entry-count bookkeeping."""

from __future__ import annotations

from typing import Iterator

from sqlalchemy.orm import Session

from ..models import Period, PeriodParticipant


class PeriodTracker:
    """Read/write access to the participant list and entry counter of a period.

    The tracker performs no validation; :class:`EntryRegistry` decides what is
    recorded here.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def _period(self, period_key: int) -> Period:
        period = Period.get(self._session, period_key)
        if period is None:
            period = Period(period_key=period_key)
            self._session.add(period)
            self._session.flush()
        return period

    def entry_count(self, period_key: int) -> int:
        period = Period.get(self._session, period_key)
        return period.entry_count if period is not None else 0

    def participants(self, period_key: int) -> list[str]:
        """Return the distinct participating accounts in first-entry order."""
        period = Period.get(self._session, period_key)
        if period is None:
            return []
        return [p.account for p in period.participants]

    def record_entry(self, period_key: int, account: str) -> int:
        """Count an entry for ``account`` and return the period's new entry count.

        The account is appended to the participant list unless it is already
        the last one added.
        """
        period = self._period(period_key)
        period.entry_count += 1
        participants = period.participants
        if not participants or participants[-1].account != account:
            participants.append(
                PeriodParticipant(
                    period_key=period_key,
                    position=len(participants),
                    account=account,
                )
            )
        self._session.flush()
        return period.entry_count

    def iter_batches(self, period_key: int, batch_size: int) -> Iterator[list[str]]:
        """Yield the period's participants in consecutive batches of ``batch_size``."""
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        offset = 0
        while True:
            batch = PeriodParticipant.page(
                self._session, period_key, offset=offset, limit=batch_size
            )
            if not batch:
                return
            yield batch
            if len(batch) < batch_size:
                return
            offset += batch_size


__all__ = ["PeriodTracker"]
