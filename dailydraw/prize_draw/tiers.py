"""Prize tier definitions and the ordered lookup table used by the draw engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from ..errors import ConfigError


@dataclass(frozen=True)
class PrizeTier:
    """A prize bracket keyed by the number of matching digits.

    Attributes
    ----------
    required_matches : int
        Exact match count an entry needs to land in this tier.
    percentage : int
        Share of the pot (0-100) split among the tier's winners. Zero for
        fixed-prize tiers.
    fixed_prize : int
        Amount (wei) paid from the reserve to each winner. Zero for
        proportional tiers.
    """

    required_matches: int
    percentage: int = 0
    fixed_prize: int = 0

    def __post_init__(self) -> None:
        if self.required_matches < 0:
            raise ConfigError("required_matches must be non-negative")
        if not 0 <= self.percentage <= 100:
            raise ConfigError("percentage must be between 0 and 100")
        if self.fixed_prize < 0:
            raise ConfigError("fixed_prize must be non-negative")
        if (self.percentage > 0) == (self.fixed_prize > 0):
            raise ConfigError(
                f"tier {self.required_matches} must define exactly one of "
                "percentage or fixed_prize"
            )

    @property
    def is_proportional(self) -> bool:
        return self.percentage > 0

    @classmethod
    def parse(cls, text: str) -> "PrizeTier":
        """Parse ``"6:50%"`` (proportional) or ``"3:2000000000000000"`` (fixed)."""

        try:
            matches_text, prize_text = (part.strip() for part in text.split(":"))
            required_matches = int(matches_text)
            if prize_text.endswith("%"):
                return cls(required_matches, percentage=int(prize_text[:-1]))
            return cls(required_matches, fixed_prize=int(prize_text))
        except ValueError as exc:
            if isinstance(exc, ConfigError):
                raise
            raise ConfigError(f"Invalid prize tier definition '{text}'") from exc


class TierTable:
    """Immutable, validated sequence of tiers in descending match order.

    The order doubles as the tie-break: :meth:`lookup` returns the first tier
    whose ``required_matches`` equals the score.
    """

    def __init__(self, tiers: Iterable[PrizeTier]) -> None:
        ordered = tuple(tiers)
        if not ordered:
            raise ConfigError("at least one prize tier is required")
        for higher, lower in zip(ordered, ordered[1:]):
            if lower.required_matches >= higher.required_matches:
                raise ConfigError(
                    "prize tiers must be ordered by strictly descending required_matches"
                )
        if sum(t.percentage for t in ordered) > 100:
            raise ConfigError("prize tier percentages must not exceed 100 in total")
        self._tiers = ordered

    def __iter__(self) -> Iterator[PrizeTier]:
        return iter(self._tiers)

    def __len__(self) -> int:
        return len(self._tiers)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TierTable):
            return NotImplemented
        return self._tiers == other._tiers

    def __hash__(self) -> int:
        return hash(self._tiers)

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"TierTable({list(self._tiers)!r})"

    @property
    def top_tier(self) -> PrizeTier:
        """The tier with the highest ``required_matches`` (the jackpot tier)."""
        return self._tiers[0]

    def lookup(self, matches: int) -> Optional[PrizeTier]:
        """Return the tier awarded for ``matches``, or ``None`` if it wins nothing."""
        for tier in self._tiers:
            if tier.required_matches == matches:
                return tier
        return None

    @classmethod
    def parse(cls, text: str) -> "TierTable":
        """Parse a comma separated list of :meth:`PrizeTier.parse` definitions."""
        return cls(PrizeTier.parse(part) for part in text.split(",") if part.strip())


__all__ = ["PrizeTier", "TierTable"]
