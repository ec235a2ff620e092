"""Transactional facade exposing the lottery's external operations."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator, Optional

from sqlalchemy.orm import Session, sessionmaker

from . import workflows
from .errors import LotteryError, ReentrantCallError
from .models import Drawing, DrawingWinner, Entry, LotteryEvent, LotteryState
from .prize_draw.engine import DrawingSettlement
from .prize_draw.periods import PeriodTracker

if TYPE_CHECKING:
    from .config import LotteryConfig
    from .entropy.sources import Clock, EntropySource
    from .ledger import SqlLedger

logger = logging.getLogger(__name__)


class LotteryService:
    """Runs every operation as one serialized, all-or-nothing transaction.

    Mutating operations hold a process-wide lock and a single
    ``Session.begin()`` block for their whole duration; any exception rolls
    back every effect, including ledger transfers and emitted events. A call
    made from the thread that is already inside an operation (for example
    from a ledger receiver hook during a payout) raises
    :class:`~dailydraw.errors.ReentrantCallError`.

    ``session_factory`` should be built with ``expire_on_commit=False`` (see
    :func:`dailydraw.db.engine.get_sessionmaker`) so returned rows stay
    readable after the transaction ends.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        config: "LotteryConfig",
        *,
        ledger: "SqlLedger",
        clock: "Clock",
        entropy: "EntropySource",
    ) -> None:
        self._Session = session_factory
        self.config = config
        self.ledger = ledger
        self.clock = clock
        self.entropy = entropy
        self._lock = threading.Lock()
        self._active_thread: Optional[int] = None

    # -------- transaction scopes --------
    def _guard_reentry(self) -> None:
        if self._active_thread == threading.get_ident():
            raise ReentrantCallError("Lottery operations cannot be nested")

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        self._guard_reentry()
        with self._lock:
            self._active_thread = threading.get_ident()
            try:
                with self._Session.begin() as session:
                    yield session
            finally:
                self._active_thread = None

    @contextmanager
    def _reader(self) -> Iterator[Session]:
        self._guard_reentry()
        with self._Session() as session:
            yield session

    # -------- lifecycle --------
    def initialize(self, owner: str, first_drawing_time: int) -> LotteryState:
        with self._transaction() as session:
            return workflows.initialize_lottery(
                session,
                self.config,
                owner=owner,
                first_drawing_time=first_drawing_time,
                ledger=self.ledger,
            )

    def pause(self, caller: str) -> None:
        with self._transaction() as session:
            workflows.pause(session, caller)

    def unpause(self, caller: str) -> None:
        with self._transaction() as session:
            workflows.unpause(session, caller)

    def top_up_reserve(self, caller: str, amount: int) -> int:
        with self._transaction() as session:
            return workflows.top_up_reserve(
                session, self.config, caller, amount, ledger=self.ledger
            )

    def emergency_withdraw(self, caller: str, amount: int) -> int:
        with self._transaction() as session:
            return workflows.emergency_withdraw(
                session, self.config, caller, amount, ledger=self.ledger
            )

    def skip_period(self, caller: str) -> int:
        with self._transaction() as session:
            return workflows.skip_period(session, self.config, caller, clock=self.clock)

    # -------- core operations --------
    def submit_entry(self, account: str, fee: int) -> Entry:
        """Submit ``account``'s entry for the current period, paying ``fee``."""
        with self._transaction() as session:
            return workflows.submit_entry(
                session,
                self.config,
                account,
                fee,
                ledger=self.ledger,
                clock=self.clock,
                entropy=self.entropy,
            )

    def conduct_drawing(self) -> DrawingSettlement:
        """Settle the period that just closed, or raise and change nothing."""
        try:
            with self._transaction() as session:
                return workflows.conduct_drawing(
                    session,
                    self.config,
                    ledger=self.ledger,
                    clock=self.clock,
                    entropy=self.entropy,
                )
        except LotteryError as exc:
            logger.warning(f"Settlement aborted: {type(exc).__name__}: {exc}")
            raise

    # -------- read-only accessors --------
    def state(self) -> LotteryState:
        with self._reader() as session:
            return LotteryState.require(session)

    def current_jackpot(self) -> int:
        return self.state().jackpot

    def reserve_fund(self) -> int:
        return self.state().reserve_fund

    def next_drawing_time(self) -> int:
        return self.state().next_drawing_time

    def is_paused(self) -> bool:
        return self.state().paused

    def entry_history(self, account: str) -> list[Entry]:
        with self._reader() as session:
            return Entry.history(session, account)

    def participants(self, period_key: int) -> list[str]:
        with self._reader() as session:
            return PeriodTracker(session).participants(period_key)

    def entry_count(self, period_key: int) -> int:
        with self._reader() as session:
            return PeriodTracker(session).entry_count(period_key)

    def winners(self, period_key: int, match_count: int) -> list[DrawingWinner]:
        with self._reader() as session:
            return workflows.get_winners(session, period_key, match_count)

    def drawing(self, period_key: int) -> Optional[Drawing]:
        with self._reader() as session:
            return Drawing.get_by_period(session, period_key)

    def drawing_status(self, period_key: int) -> str:
        with self._reader() as session:
            return workflows.get_drawing_status(session, period_key)

    def events(self, name: Optional[str] = None) -> list[LotteryEvent]:
        with self._reader() as session:
            return workflows.get_events(session, name)

    def balance_of(self, account: str) -> int:
        with self._reader() as session:
            return self.ledger.balance_of(session, account)


__all__ = ["LotteryService"]
