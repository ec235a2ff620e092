"""Reserve solvency checks and owner-side reserve movements."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from .. import events
from ..errors import InsufficientReserve
from ..models import LotteryState

if TYPE_CHECKING:
    from ..config import LotteryConfig
    from ..ledger import Ledger

logger = logging.getLogger(__name__)


class ReserveManager:
    """Guards the minimum-reserve-ratio invariant.

    ``reserve_fund >= jackpot * min_reserve_ratio / 100`` must hold before a
    drawing runs and before any fixed-tier payout.
    """

    def __init__(self, session: Session, config: "LotteryConfig") -> None:
        self._session = session
        self._config = config

    def required_reserve(self, jackpot: int) -> int:
        """Minimum reserve for ``jackpot`` (integer division, like all payout math)."""
        return jackpot * self._config.min_reserve_ratio // 100

    def check_pre_draw(self, state: LotteryState) -> None:
        """Raise :class:`InsufficientReserve` when the ratio invariant is violated."""
        required = self.required_reserve(state.jackpot)
        if state.reserve_fund < required:
            raise InsufficientReserve(
                f"Reserve {state.reserve_fund} is below the required {required} "
                f"({self._config.min_reserve_ratio}% of jackpot {state.jackpot})"
            )

    def check_fixed_payout(self, state: LotteryState, amount: int) -> None:
        """Re-check the ratio and that the reserve covers ``amount`` outright."""
        self.check_pre_draw(state)
        if state.reserve_fund < amount:
            raise InsufficientReserve(
                f"Reserve {state.reserve_fund} cannot cover fixed prizes totalling {amount}"
            )

    def top_up(self, state: LotteryState, ledger: "Ledger", source: str, amount: int) -> None:
        """Move ``amount`` from ``source`` into the treasury and credit the reserve."""
        if amount <= 0:
            raise ValueError("top-up amount must be positive")
        ledger.transfer(self._session, source, self._config.treasury_account, amount)
        state.reserve_fund += amount
        events.emit(self._session, events.RESERVE_FUND_TOP_UP, amount=amount)

    def withdraw(
        self, state: LotteryState, ledger: "Ledger", destination: str, amount: int
    ) -> None:
        """Pay ``amount`` out of the reserve to ``destination``.

        The jackpot is never touched and the reserve never goes negative.
        """
        if amount <= 0:
            raise ValueError("withdraw amount must be positive")
        if amount > state.reserve_fund:
            raise InsufficientReserve(
                f"Cannot withdraw {amount}; reserve holds {state.reserve_fund}"
            )
        state.reserve_fund -= amount
        ledger.transfer(self._session, self._config.treasury_account, destination, amount)
        events.emit(
            self._session, events.EMERGENCY_WITHDRAW, owner=destination, amount=amount
        )
        logger.warning(f"Emergency withdrawal of {amount} from reserve to '{destination}'")


__all__ = ["ReserveManager"]
