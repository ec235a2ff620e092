"""Entry submission: validation, seeding and fee accounting."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from sqlalchemy.orm import Session

from .. import events
from ..errors import (
    DuplicateEntry,
    EntryCapReached,
    InvalidEntryFee,
    JackpotCapExceeded,
    SubmissionWindowClosed,
)
from ..models import Entry, LotteryState
from .digits import derive_entry_seed, extract_match_digits
from .periods import PeriodTracker

if TYPE_CHECKING:
    from ..config import LotteryConfig
    from ..entropy.sources import Clock, EntropySource
    from ..ledger import Ledger

logger = logging.getLogger(__name__)


class EntryRegistry:
    """Accepts at most one paid entry per account per period."""

    def __init__(
        self,
        session: Session,
        config: "LotteryConfig",
        *,
        ledger: "Ledger",
        clock: "Clock",
        entropy: "EntropySource",
        tracker: Optional[PeriodTracker] = None,
    ) -> None:
        """Create a registry bound to a SQLAlchemy session.

        Parameters
        ----------
        session : Session
            Session of the enclosing transaction; nothing is committed here.
        config : LotteryConfig
            Fee, cutoff and capacity parameters.
        ledger : Ledger
            Balance store the entry fee is collected through.
        clock : Clock
            Source of the submission timestamp.
        entropy : EntropySource
            Supplies the block-level entropy mixed into each seed.
        tracker : Optional[PeriodTracker], default: None
            Period bookkeeping; a tracker on ``session`` is created when omitted.
        """

        self._session = session
        self._config = config
        self._ledger = ledger
        self._clock = clock
        self._entropy = entropy
        self._tracker = tracker or PeriodTracker(session)

    def current_period_key(self, state: LotteryState) -> int:
        """Start timestamp of the period that ends at ``state.next_drawing_time``."""
        return state.next_drawing_time - self._config.drawing_interval

    def submit(self, state: LotteryState, account: str, fee: int) -> Entry:
        """Validate and record an entry for ``account`` paying ``fee``.

        Returns
        -------
        Entry
            The persisted entry.

        Raises
        ------
        InvalidEntryFee
            ``fee`` differs from the configured entry fee.
        SubmissionWindowClosed
            The current time is within the cutoff before the drawing (or past it).
        DuplicateEntry
            The account already entered the current period.
        EntryCapReached
            The period already holds the maximum number of entries.
        JackpotCapExceeded
            Crediting the fee would push the jackpot above its cap.
        TransferRejected
            The ledger refused to collect the fee.
        """

        config = self._config
        if not account:
            raise ValueError("account must not be empty")
        if fee != config.entry_fee:
            raise InvalidEntryFee(f"Entry fee must be exactly {config.entry_fee}, got {fee}")

        now = self._clock.now()
        if now >= state.next_drawing_time - config.entry_cutoff_time:
            raise SubmissionWindowClosed(
                f"Submissions for the drawing at {state.next_drawing_time} closed "
                f"{config.entry_cutoff_time}s before it"
            )

        period_key = self.current_period_key(state)
        latest = Entry.latest_for(self._session, account)
        # Entries made before the first period start still belong to it.
        if latest is not None and latest.period_key >= period_key:
            raise DuplicateEntry(f"Account '{account}' already entered period {period_key}")

        if self._tracker.entry_count(period_key) >= config.max_entries_per_drawing:
            raise EntryCapReached(
                f"Period {period_key} reached {config.max_entries_per_drawing} entries"
            )

        jackpot_part = config.jackpot_part
        reserve_part = config.reserve_part
        if state.jackpot + jackpot_part > config.max_jackpot:
            raise JackpotCapExceeded(
                f"Jackpot {state.jackpot} + {jackpot_part} would exceed {config.max_jackpot}"
            )

        self._ledger.transfer(self._session, account, config.treasury_account, fee)

        sequence = Entry.count_for(self._session, account)
        seed = derive_entry_seed(
            timestamp=now,
            block_entropy=self._entropy.block_entropy(),
            account=account,
            sequence=sequence,
            previous_outcome=state.last_outcome_digest,
            engine_id=config.engine_id,
        )
        entry = Entry(
            account=account,
            sequence=sequence,
            period_key=period_key,
            seed=seed,
            match_digest=extract_match_digits(seed, config.match_length),
            timestamp=now,
        )
        self._session.add(entry)
        self._tracker.record_entry(period_key, account)

        state.jackpot += jackpot_part
        state.reserve_fund += reserve_part
        self._session.flush()

        events.emit(
            self._session,
            events.ENTRY_SUBMITTED,
            period_key=period_key,
            account=account,
            seed=seed,
            match_digest=entry.match_digest,
        )
        return entry


__all__ = ["EntryRegistry"]
