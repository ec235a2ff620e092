"""Engine configuration loaded from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigError
from .prize_draw.tiers import PrizeTier, TierTable

WEI_PER_UNIT = 10**18

DEFAULT_PRIZE_TIERS = TierTable(
    [
        PrizeTier(6, percentage=50),
        PrizeTier(5, percentage=25),
        PrizeTier(4, percentage=10),
        PrizeTier(3, fixed_prize=2 * 10**15),
    ]
)


@dataclass(frozen=True)
class LotteryConfig:
    """Static parameters of a lottery deployment.

    All amounts are in wei (1 unit = 10**18 wei) and all durations in seconds.
    """

    entry_fee: int = 10**15
    jackpot_share: int = 90
    match_length: int = 6
    max_jackpot: int = 1000 * WEI_PER_UNIT
    min_reserve_ratio: int = 10
    max_entries_per_drawing: int = 10_000
    max_winners_per_tier: int = 100
    min_prize_per_winner: int = 10**14
    drawing_interval: int = 86_400
    entry_cutoff_time: int = 3_600
    drawing_window: int = 3_600
    batch_size: int = 100
    engine_id: str = "dailydraw"
    treasury_account: str = "dailydraw:treasury"
    prize_tiers: TierTable = field(default=DEFAULT_PRIZE_TIERS)

    def __post_init__(self) -> None:
        if self.entry_fee <= 0:
            raise ConfigError("entry_fee must be positive")
        if not 0 <= self.jackpot_share <= 100:
            raise ConfigError("jackpot_share must be between 0 and 100")
        if not 1 <= self.match_length <= 64:
            raise ConfigError("match_length must be between 1 and 64")
        if self.min_reserve_ratio < 0:
            raise ConfigError("min_reserve_ratio must be non-negative")
        for name in ("max_entries_per_drawing", "max_winners_per_tier", "batch_size"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive")
        if self.drawing_interval <= 0:
            raise ConfigError("drawing_interval must be positive")
        if not 0 <= self.entry_cutoff_time < self.drawing_interval:
            raise ConfigError("entry_cutoff_time must be shorter than drawing_interval")
        if self.drawing_window < 0:
            raise ConfigError("drawing_window must be non-negative")
        if self.prize_tiers.top_tier.required_matches > self.match_length:
            raise ConfigError("prize tiers cannot require more matches than match_length")
        if not self.treasury_account:
            raise ConfigError("treasury_account must not be empty")

    @property
    def jackpot_part(self) -> int:
        """Portion of one entry fee credited to the jackpot."""
        return self.entry_fee * self.jackpot_share // 100

    @property
    def reserve_part(self) -> int:
        """Portion of one entry fee credited to the reserve."""
        return self.entry_fee - self.jackpot_part

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LotteryConfig":
        """Build a configuration from ``LOTTERY_*`` environment variables.

        Unset variables fall back to the dataclass defaults. ``.env`` is loaded
        first when reading the process environment.
        """

        if environ is None:
            load_dotenv()
            environ = os.environ

        def _int(name: str, default: int) -> int:
            raw = environ.get(name)
            if raw is None or raw.strip() == "":
                return default
            try:
                return int(raw)
            except ValueError as exc:
                raise ConfigError(f"Environment variable '{name}' must be an integer") from exc

        defaults = cls()
        tiers_text = environ.get("LOTTERY_PRIZE_TIERS")
        return cls(
            entry_fee=_int("LOTTERY_ENTRY_FEE", defaults.entry_fee),
            jackpot_share=_int("LOTTERY_JACKPOT_SHARE", defaults.jackpot_share),
            match_length=_int("LOTTERY_MATCH_LENGTH", defaults.match_length),
            max_jackpot=_int("LOTTERY_MAX_JACKPOT", defaults.max_jackpot),
            min_reserve_ratio=_int("LOTTERY_MIN_RESERVE_RATIO", defaults.min_reserve_ratio),
            max_entries_per_drawing=_int(
                "LOTTERY_MAX_ENTRIES_PER_DRAWING", defaults.max_entries_per_drawing
            ),
            max_winners_per_tier=_int(
                "LOTTERY_MAX_WINNERS_PER_TIER", defaults.max_winners_per_tier
            ),
            min_prize_per_winner=_int(
                "LOTTERY_MIN_PRIZE_PER_WINNER", defaults.min_prize_per_winner
            ),
            drawing_interval=_int("LOTTERY_DRAWING_INTERVAL", defaults.drawing_interval),
            entry_cutoff_time=_int("LOTTERY_ENTRY_CUTOFF_TIME", defaults.entry_cutoff_time),
            drawing_window=_int("LOTTERY_DRAWING_WINDOW", defaults.drawing_window),
            batch_size=_int("LOTTERY_BATCH_SIZE", defaults.batch_size),
            engine_id=environ.get("LOTTERY_ENGINE_ID") or defaults.engine_id,
            treasury_account=(
                environ.get("LOTTERY_TREASURY_ACCOUNT") or defaults.treasury_account
            ),
            prize_tiers=(
                TierTable.parse(tiers_text) if tiers_text else defaults.prize_tiers
            ),
        )


__all__ = ["DEFAULT_PRIZE_TIERS", "LotteryConfig", "WEI_PER_UNIT"]
