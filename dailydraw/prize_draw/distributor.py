"""Prize computation and payout for a settled drawing."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping, Optional, Sequence

from sqlalchemy.orm import Session

from .. import events
from ..errors import InsufficientJackpot, PrizeBelowMinimum
from ..models import Drawing, DrawingWinner, LotteryState
from .reserve import ReserveManager
from .tiers import PrizeTier

if TYPE_CHECKING:
    from ..config import LotteryConfig
    from ..ledger import Ledger

logger = logging.getLogger(__name__)


def split_proportional(tier_prize: int, winner_count: int) -> list[int]:
    """Split ``tier_prize`` into ``winner_count`` integer amounts.

    Every winner but the last receives ``tier_prize // winner_count``; the last
    one absorbs the truncation remainder so the amounts sum to ``tier_prize``.
    """

    if winner_count <= 0:
        raise ValueError("winner_count must be positive")
    if tier_prize < 0:
        raise ValueError("tier_prize must be non-negative")
    share = tier_prize // winner_count
    return [share] * (winner_count - 1) + [tier_prize - share * (winner_count - 1)]


@dataclass(frozen=True)
class TierPayout:
    """Summary of what one tier paid out."""

    tier: PrizeTier
    winner_count: int
    total: int


class PrizeDistributor:
    """Pays every winning tier of a drawing through the ledger."""

    def __init__(
        self,
        session: Session,
        config: "LotteryConfig",
        *,
        ledger: "Ledger",
        reserve: Optional[ReserveManager] = None,
    ) -> None:
        self._session = session
        self._config = config
        self._ledger = ledger
        self._reserve = reserve or ReserveManager(session, config)

    def distribute(
        self,
        state: LotteryState,
        drawing: Drawing,
        winners_by_tier: Mapping[int, Sequence[DrawingWinner]],
    ) -> list[TierPayout]:
        """Pay each tier with winners, highest tier first.

        Parameters
        ----------
        state : LotteryState
            Global balances; ``jackpot`` and ``reserve_fund`` are debited per
            transfer.
        drawing : Drawing
            Drawing being settled. Proportional tiers are computed from its
            ``pot`` snapshot.
        winners_by_tier : Mapping[int, Sequence[DrawingWinner]]
            Winner rows keyed by ``required_matches`` in scan order. Their
            ``amount`` fields are filled in here.

        Returns
        -------
        list[TierPayout]
            One summary per tier that had winners.

        Raises
        ------
        PrizeBelowMinimum
            A proportional share would fall below ``min_prize_per_winner``.
        InsufficientReserve
            The reserve cannot fund a fixed tier or breaks the reserve ratio.
        TransferRejected
            Any recipient refused its prize. Nothing is paid in that case
            because the enclosing transaction rolls back.
        """

        payouts: list[TierPayout] = []
        for tier in self._config.prize_tiers:
            winners = list(winners_by_tier.get(tier.required_matches, ()))
            if not winners:
                continue
            if tier.is_proportional:
                total = self._pay_proportional(state, drawing, tier, winners)
            else:
                total = self._pay_fixed(state, drawing, tier, winners)
            payouts.append(TierPayout(tier=tier, winner_count=len(winners), total=total))
        return payouts

    def _pay_proportional(
        self,
        state: LotteryState,
        drawing: Drawing,
        tier: PrizeTier,
        winners: list[DrawingWinner],
    ) -> int:
        tier_prize = drawing.pot * tier.percentage // 100
        amounts = split_proportional(tier_prize, len(winners))
        if amounts[0] < self._config.min_prize_per_winner:
            raise PrizeBelowMinimum(
                f"Tier {tier.required_matches} share {amounts[0]} is below the minimum "
                f"{self._config.min_prize_per_winner}"
            )
        for winner, amount in zip(winners, amounts):
            if state.jackpot < amount:
                raise InsufficientJackpot(
                    f"Jackpot {state.jackpot} cannot cover prize {amount} for '{winner.account}'"
                )
            state.jackpot -= amount
            self._transfer(drawing, winner, amount)
        return tier_prize

    def _pay_fixed(
        self,
        state: LotteryState,
        drawing: Drawing,
        tier: PrizeTier,
        winners: list[DrawingWinner],
    ) -> int:
        total = tier.fixed_prize * len(winners)
        self._reserve.check_fixed_payout(state, total)
        for winner in winners:
            state.reserve_fund -= tier.fixed_prize
            self._transfer(drawing, winner, tier.fixed_prize)
        return total

    def _transfer(self, drawing: Drawing, winner: DrawingWinner, amount: int) -> None:
        winner.amount = amount
        if amount > 0:
            self._ledger.transfer(
                self._session, self._config.treasury_account, winner.account, amount
            )
        events.emit(
            self._session,
            events.PRIZE_AWARDED,
            period_key=drawing.period_key,
            account=winner.account,
            amount=amount,
            match_count=winner.match_count,
            is_proportional_tier=winner.proportional,
        )


__all__ = ["PrizeDistributor", "TierPayout", "split_proportional"]
