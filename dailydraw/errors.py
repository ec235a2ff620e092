"""Exception taxonomy for lottery operations.

Every exception raised from a mutating operation aborts the enclosing
transaction; nothing the operation did is persisted.
"""

from __future__ import annotations


class LotteryError(Exception):
    """Base class for all lottery failures."""


class ConfigError(LotteryError, ValueError):
    """Invalid engine configuration."""


# -------- (a) input validation --------
class EntryValidationError(LotteryError, ValueError):
    """An entry submission was rejected before any state change."""


class InvalidEntryFee(EntryValidationError):
    pass


class SubmissionWindowClosed(EntryValidationError):
    pass


class DuplicateEntry(EntryValidationError):
    pass


# -------- (b) capacity --------
class CapacityError(LotteryError):
    """A per-period or per-tier limit would be exceeded."""


class EntryCapReached(EntryValidationError, CapacityError):
    pass


class TooManyWinners(CapacityError):
    pass


# -------- (c) solvency --------
class SolvencyError(LotteryError):
    """A jackpot or reserve balance constraint would be violated."""


class InsufficientReserve(SolvencyError):
    pass


class JackpotCapExceeded(SolvencyError):
    pass


class PrizeBelowMinimum(SolvencyError):
    pass


class InsufficientJackpot(SolvencyError):
    pass


# -------- (d) timing --------
class TimingError(LotteryError):
    """The operation was invoked outside its allowed time window."""


class DrawingNotReady(TimingError):
    pass


class DrawingWindowMissed(TimingError):
    pass


# -------- drawing state --------
class DrawingStateError(LotteryError):
    """The drawing for the period cannot be settled in its current state."""


class DrawingAlreadyCompleted(DrawingStateError):
    pass


class NoEntriesForPeriod(DrawingStateError):
    pass


# -------- lifecycle / access --------
class LotteryNotInitialized(LotteryError):
    pass


class LotteryPaused(LotteryError):
    pass


class AccessDenied(LotteryError, PermissionError):
    pass


class ReentrantCallError(LotteryError, RuntimeError):
    """A mutating operation was invoked from inside another one."""


# -------- ledger --------
class TransferRejected(LotteryError):
    """The ledger refused a value transfer."""


__all__ = [
    "AccessDenied",
    "CapacityError",
    "ConfigError",
    "DrawingAlreadyCompleted",
    "DrawingNotReady",
    "DrawingStateError",
    "DrawingWindowMissed",
    "DuplicateEntry",
    "EntryCapReached",
    "EntryValidationError",
    "InsufficientJackpot",
    "InsufficientReserve",
    "InvalidEntryFee",
    "JackpotCapExceeded",
    "LotteryError",
    "LotteryNotInitialized",
    "LotteryPaused",
    "NoEntriesForPeriod",
    "PrizeBelowMinimum",
    "ReentrantCallError",
    "SolvencyError",
    "SubmissionWindowClosed",
    "TimingError",
    "TooManyWinners",
    "TransferRejected",
]
