"""Entry registration, scoring and settlement for periodic drawings."""

from .digits import (
    count_matches,
    derive_entry_seed,
    derive_outcome_digest,
    extract_match_digits,
)
from .distributor import PrizeDistributor, TierPayout, split_proportional
from .engine import DrawEngine, DrawingSettlement
from .entries import EntryRegistry
from .periods import PeriodTracker
from .reserve import ReserveManager
from .tiers import PrizeTier, TierTable

__all__ = [
    "DrawEngine",
    "DrawingSettlement",
    "EntryRegistry",
    "PeriodTracker",
    "PrizeDistributor",
    "PrizeTier",
    "ReserveManager",
    "TierPayout",
    "TierTable",
    "count_matches",
    "derive_entry_seed",
    "derive_outcome_digest",
    "extract_match_digits",
    "split_proportional",
]
