"""Settlement engine: derives a period's outcome, scores entries and pays prizes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from sqlalchemy.orm import Session

from .. import events
from ..errors import (
    DrawingAlreadyCompleted,
    DrawingNotReady,
    DrawingWindowMissed,
    NoEntriesForPeriod,
    TooManyWinners,
)
from ..models import Drawing, DrawingWinner, Entry, LotteryState
from .digits import count_matches, derive_outcome_digest, extract_match_digits
from .distributor import PrizeDistributor, TierPayout
from .periods import PeriodTracker
from .reserve import ReserveManager

if TYPE_CHECKING:
    from ..config import LotteryConfig
    from ..entropy.sources import Clock, EntropySource
    from ..ledger import Ledger

logger = logging.getLogger(__name__)


@dataclass
class DrawingSettlement:
    """Value object describing a completed settlement.

    Attributes
    ----------
    drawing : Drawing
        The frozen drawing row.
    payouts : list[TierPayout]
        Per-tier payout summaries, highest tier first.
    rollover : Optional[int]
        Jackpot carried into the next period when nobody hit the top tier,
        otherwise ``None``.
    """

    drawing: Drawing
    payouts: list[TierPayout]
    rollover: Optional[int]


class DrawEngine:
    """Runs the Pending -> Settling -> Completed transition of a period."""

    def __init__(
        self,
        session: Session,
        config: "LotteryConfig",
        *,
        ledger: "Ledger",
        clock: "Clock",
        entropy: "EntropySource",
        tracker: Optional[PeriodTracker] = None,
        reserve: Optional[ReserveManager] = None,
        distributor: Optional[PrizeDistributor] = None,
    ) -> None:
        """Create a draw engine bound to a SQLAlchemy session.

        Parameters
        ----------
        session : Session
            Session of the enclosing transaction. Any exception raised by
            :meth:`conduct` must lead the caller to roll it back.
        config : LotteryConfig
            Timing, capacity and tier parameters.
        ledger : Ledger
            Balance store prizes are transferred through.
        clock : Clock
            Source of the settlement time.
        entropy : EntropySource
            Supplies the single entropy value the outcome is derived from.
        tracker, reserve, distributor : optional
            Collaborators sharing ``session``; defaults are created when omitted.
        """

        self._session = session
        self._config = config
        self._clock = clock
        self._entropy = entropy
        self._tracker = tracker or PeriodTracker(session)
        self._reserve = reserve or ReserveManager(session, config)
        self._distributor = distributor or PrizeDistributor(
            session, config, ledger=ledger, reserve=self._reserve
        )

    def closing_period_key(self, state: LotteryState) -> int:
        return state.next_drawing_time - self._config.drawing_interval

    def check_ready(self, state: LotteryState) -> int:
        """Validate every precondition of a settlement and return the period key.

        Raises
        ------
        DrawingNotReady
            The period has not closed yet.
        DrawingWindowMissed
            The drawing window for this boundary has expired.
        DrawingAlreadyCompleted
            The period was already settled. Completion advances the cursor,
            so this only fires when the stored cursor was moved back.
        NoEntriesForPeriod
            Nobody entered the closing period.
        InsufficientReserve
            The reserve is below the minimum ratio of the jackpot.
        """

        now = self._clock.now()
        if now < state.next_drawing_time:
            raise DrawingNotReady(
                f"Drawing at {state.next_drawing_time} is not due yet (now {now})"
            )
        if now > state.next_drawing_time + self._config.drawing_window:
            raise DrawingWindowMissed(
                f"Drawing window for {state.next_drawing_time} expired "
                f"{now - state.next_drawing_time - self._config.drawing_window}s ago"
            )

        period_key = self.closing_period_key(state)
        existing = Drawing.get_by_period(self._session, period_key)
        if existing is not None and existing.completed:
            raise DrawingAlreadyCompleted(f"Drawing for period {period_key} already completed")
        if self._tracker.entry_count(period_key) <= 0:
            raise NoEntriesForPeriod(f"No entries were submitted for period {period_key}")

        self._reserve.check_pre_draw(state)
        return period_key

    def conduct(self, state: LotteryState) -> DrawingSettlement:
        """Settle the period that closed at ``state.next_drawing_time``.

        This process performs the following steps:

        1. Check timing, drawing state, entry count and the reserve ratio.
        2. Derive the outcome digest and winning digits from one entropy value.
        3. Snapshot the jackpot as the pot.
        4. Score every participant's entries batch by batch and assign winners
           to tiers.
        5. Pay the tiers, emit a rollover when the top tier is empty, freeze the
           drawing and advance the period cursor.

        Every step mutates the session only; the caller owns the transaction.
        """

        period_key = self.check_ready(state)
        config = self._config

        outcome_digest = derive_outcome_digest(
            block_entropy=self._entropy.block_entropy(),
            period_key=period_key,
            engine_id=config.engine_id,
        )
        winning_digits = extract_match_digits(outcome_digest, config.match_length)

        drawing = Drawing(
            period_key=period_key,
            outcome_digest=outcome_digest,
            winning_digits=winning_digits,
            pot=state.jackpot,
            entry_count=self._tracker.entry_count(period_key),
        )
        self._session.add(drawing)
        self._session.flush()
        logger.info(
            f"Settling period {period_key}: {drawing.entry_count} entries, "
            f"pot {drawing.pot}, winning digits {winning_digits}"
        )

        winners_by_tier = self._score_period(drawing)
        payouts = self._distributor.distribute(state, drawing, winners_by_tier)

        rollover: Optional[int] = None
        if not drawing.has_jackpot_winner:
            rollover = state.jackpot
            events.emit(
                self._session, events.JACKPOT_ROLLOVER, period_key=period_key, amount=rollover
            )
            logger.warning(f"No top-tier winner for period {period_key}; rolling over {rollover}")

        drawing.mark_completed()
        state.next_drawing_time += config.drawing_interval
        state.last_outcome_digest = outcome_digest
        self._session.flush()

        events.emit(
            self._session,
            events.DRAWING_COMPLETE,
            period_key=period_key,
            outcome_digest=outcome_digest,
            winning_digits=winning_digits,
            total_pot=drawing.pot,
        )
        return DrawingSettlement(drawing=drawing, payouts=payouts, rollover=rollover)

    def _score_period(self, drawing: Drawing) -> dict[int, list[DrawingWinner]]:
        """Assign every matching entry of the period to its tier."""

        config = self._config
        top_matches = config.prize_tiers.top_tier.required_matches
        winners_by_tier: dict[int, list[DrawingWinner]] = {}

        for batch_no, accounts in enumerate(
            self._tracker.iter_batches(drawing.period_key, config.batch_size)
        ):
            entries_by_account = Entry.for_period(self._session, drawing.period_key, accounts)
            for account in accounts:
                for entry in entries_by_account[account]:
                    matches = count_matches(entry.match_digest, drawing.winning_digits)
                    tier = config.prize_tiers.lookup(matches)
                    if tier is None:
                        continue
                    tier_winners = winners_by_tier.setdefault(tier.required_matches, [])
                    if len(tier_winners) >= config.max_winners_per_tier:
                        raise TooManyWinners(
                            f"Tier {tier.required_matches} exceeds "
                            f"{config.max_winners_per_tier} winners in period "
                            f"{drawing.period_key}"
                        )
                    winner = DrawingWinner(
                        required_matches=tier.required_matches,
                        position=len(tier_winners),
                        account=account,
                        match_count=matches,
                        proportional=tier.is_proportional,
                    )
                    drawing.winners.append(winner)
                    tier_winners.append(winner)
                    if tier.required_matches == top_matches:
                        drawing.has_jackpot_winner = True
            logger.debug(
                f"Scored batch {batch_no} ({len(accounts)} participants) of period "
                f"{drawing.period_key}"
            )

        return winners_by_tier


__all__ = ["DrawEngine", "DrawingSettlement"]
