from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .state import LotteryState  # noqa: F401
from .entry import Entry  # noqa: F401
from .period import Period, PeriodParticipant  # noqa: F401
from .drawing import Drawing, DrawingWinner  # noqa: F401
from .ledger import LedgerAccount  # noqa: F401
from .event import LotteryEvent  # noqa: F401

__all__ = [
    "Base",
    "LotteryState",
    "Entry",
    "Period",
    "PeriodParticipant",
    "Drawing",
    "DrawingWinner",
    "LedgerAccount",
    "LotteryEvent",
]
