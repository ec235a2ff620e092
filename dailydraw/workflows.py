import logging
from typing import TYPE_CHECKING, Optional

from sqlalchemy.orm import Session

from . import events
from .errors import (
    AccessDenied,
    DrawingNotReady,
    DrawingStateError,
    LotteryPaused,
)
from .models import (
    Drawing,
    DrawingWinner,
    Entry,
    LotteryEvent,
    LotteryState,
)
from .models.drawing import DRAWING_PENDING
from .prize_draw.engine import DrawEngine, DrawingSettlement
from .prize_draw.entries import EntryRegistry
from .prize_draw.periods import PeriodTracker
from .prize_draw.reserve import ReserveManager

if TYPE_CHECKING:
    from .config import LotteryConfig
    from .entropy.sources import Clock, EntropySource
    from .ledger import Ledger, SqlLedger

logger = logging.getLogger(__name__)


def _require_owner(state: LotteryState, caller: str) -> None:
    if caller != state.owner:
        raise AccessDenied(f"'{caller}' is not the lottery owner")


def _require_running(state: LotteryState) -> None:
    if state.paused:
        raise LotteryPaused("Lottery is paused")


def initialize_lottery(
    session: Session,
    config: "LotteryConfig",
    *,
    owner: str,
    first_drawing_time: int,
    ledger: "SqlLedger",
) -> LotteryState:
    """Create the singleton state row and the treasury ledger account.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    config : LotteryConfig
        Deployment parameters; ``treasury_account`` is opened on ``ledger``.
    owner : str
        Account allowed to run lifecycle operations.
    first_drawing_time : int
        End of the first period (UNIX seconds). The first period starts
        ``drawing_interval`` seconds earlier.
    ledger : SqlLedger
        Ledger holding the treasury.

    Returns
    -------
    LotteryState
        The persisted state row.
    """

    if LotteryState.load(session) is not None:
        raise ValueError("Lottery state is already initialized")
    if not owner:
        raise ValueError("owner must not be empty")

    state = LotteryState(owner=owner, next_drawing_time=first_drawing_time)
    session.add(state)
    ledger.open_account(session, config.treasury_account)
    session.flush()
    logger.info(f"Initialized lottery owned by '{owner}', first drawing at {first_drawing_time}")
    return state


def submit_entry(
    session: Session,
    config: "LotteryConfig",
    account: str,
    fee: int,
    *,
    ledger: "Ledger",
    clock: "Clock",
    entropy: "EntropySource",
) -> Entry:
    """Record a paid entry for ``account`` in the current period.

    Raises
    ------
    LotteryPaused
        The owner paused the lottery.
    EntryValidationError
        Any of the entry preconditions failed (see :meth:`EntryRegistry.submit`).
    """

    state = LotteryState.require(session, for_update=True)
    _require_running(state)
    registry = EntryRegistry(session, config, ledger=ledger, clock=clock, entropy=entropy)
    return registry.submit(state, account, fee)


def conduct_drawing(
    session: Session,
    config: "LotteryConfig",
    *,
    ledger: "Ledger",
    clock: "Clock",
    entropy: "EntropySource",
) -> DrawingSettlement:
    """Settle the period that just closed.

    This function essentially wraps :class:`DrawEngine`; the caller is
    responsible for rolling the session back when it raises.
    """

    state = LotteryState.require(session, for_update=True)
    _require_running(state)
    engine = DrawEngine(session, config, ledger=ledger, clock=clock, entropy=entropy)
    return engine.conduct(state)


def pause(session: Session, caller: str) -> None:
    state = LotteryState.require(session, for_update=True)
    _require_owner(state, caller)
    if not state.paused:
        state.paused = True
        events.emit(session, events.PAUSED, account=caller)


def unpause(session: Session, caller: str) -> None:
    state = LotteryState.require(session, for_update=True)
    _require_owner(state, caller)
    if state.paused:
        state.paused = False
        events.emit(session, events.UNPAUSED, account=caller)


def top_up_reserve(
    session: Session,
    config: "LotteryConfig",
    caller: str,
    amount: int,
    *,
    ledger: "Ledger",
) -> int:
    """Pay ``amount`` from the owner's ledger account into the reserve.

    Returns
    -------
    int
        The reserve balance after the top-up.
    """

    state = LotteryState.require(session, for_update=True)
    _require_owner(state, caller)
    ReserveManager(session, config).top_up(state, ledger, caller, amount)
    return state.reserve_fund


def emergency_withdraw(
    session: Session,
    config: "LotteryConfig",
    caller: str,
    amount: int,
    *,
    ledger: "Ledger",
) -> int:
    """Withdraw ``amount`` from the reserve (never the jackpot) to the owner.

    Returns
    -------
    int
        The reserve balance after the withdrawal.
    """

    state = LotteryState.require(session, for_update=True)
    _require_owner(state, caller)
    ReserveManager(session, config).withdraw(state, ledger, caller, amount)
    return state.reserve_fund


def skip_period(
    session: Session,
    config: "LotteryConfig",
    caller: str,
    *,
    clock: "Clock",
) -> int:
    """Explicitly abandon a closed period that can no longer be settled.

    Allowed only once the period has closed and either its drawing window has
    expired or nobody entered it. The period cursor advances by whole
    intervals until it lies in the future. Entry fees already collected stay
    in the jackpot and roll into the next drawing.

    Returns
    -------
    int
        The new ``next_drawing_time``.
    """

    state = LotteryState.require(session, for_update=True)
    _require_owner(state, caller)

    now = clock.now()
    if now < state.next_drawing_time:
        raise DrawingNotReady(
            f"Period ending at {state.next_drawing_time} has not closed yet (now {now})"
        )
    period_key = state.next_drawing_time - config.drawing_interval
    entry_count = PeriodTracker(session).entry_count(period_key)
    window_missed = now > state.next_drawing_time + config.drawing_window
    if not window_missed and entry_count > 0:
        raise DrawingStateError(
            f"Period {period_key} has {entry_count} entries and can still be settled"
        )

    while state.next_drawing_time <= now:
        state.next_drawing_time += config.drawing_interval
    events.emit(
        session,
        events.PERIOD_SKIPPED,
        period_key=period_key,
        entry_count=entry_count,
        reason="window_missed" if window_missed else "no_entries",
        next_drawing_time=state.next_drawing_time,
    )
    logger.warning(
        f"Skipped period {period_key} ({entry_count} entries); "
        f"next drawing at {state.next_drawing_time}"
    )
    return state.next_drawing_time


def get_winners(session: Session, period_key: int, match_count: int) -> list[DrawingWinner]:
    """Return the winners of ``period_key`` in the tier for ``match_count``."""

    drawing = Drawing.get_by_period(session, period_key)
    if drawing is None:
        return []
    return drawing.winners_for(match_count)


def get_drawing_status(session: Session, period_key: int) -> str:
    """Return ``"pending"`` until a settlement for ``period_key`` has committed."""

    drawing = Drawing.get_by_period(session, period_key)
    return drawing.status if drawing is not None else DRAWING_PENDING


def get_events(session: Session, name: Optional[str] = None) -> list[LotteryEvent]:
    return LotteryEvent.history(session, name)
