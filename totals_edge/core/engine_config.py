"""Engine configuration - strategy thresholds and hydration settings.

Every tunable the engine reads lives on :class:`EngineConfig`.  Defaults
match the production thresholds; :meth:`EngineConfig.from_env` lets a
deployment override them through environment variables (a ``.env`` file
is honoured via python-dotenv).

Environment variables:

=========================  ========  =============================================
Variable                   Default   Meaning
=========================  ========  =============================================
``MIN_SAMPLE``             5         Games a ladder segment needs to qualify
``WEIGHTED_MIN_GAMES``     8         Games the recency-weighted estimator needs
``WEIGHTED_YEARS_BACK``    5         Seasons pulled by the recency-weighted pass
``HYBRID_MIN_GAMES``       10        Recent games *each* team needs for hybrid
``HYBRID_GAME_LIMIT``      20        Recent games fetched per team for hybrid
``USE_RECENCY_WEIGHTED``   true      Try the recency-weighted estimator first
``HYDRATION_ENABLED``      true      Allow one hydration attempt per estimate
``HYDRATION_YEARS_BACK``   10        Seasons requested from the hydrator
``HYDRATION_TIMEOUT_S``    20        Upper bound on a hydration attempt
=========================  ========  =============================================
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final, Tuple

from dotenv import load_dotenv

#: Year-difference → weight for the recency-weighted estimator.  The last
#: bucket applies to every older season.
DEFAULT_YEAR_WEIGHTS: Final[Tuple[float, ...]] = (1.0, 0.9, 0.7, 0.5, 0.3)

#: Hybrid results are scored as if they had this fraction of their games;
#: the data is not about this matchup at all.
HYBRID_SAMPLE_MULTIPLIER: Final[float] = 0.5


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class EngineConfig:
    """Immutable engine thresholds.

    Override single fields with :func:`dataclasses.replace`.
    """

    min_sample: int = 5
    weighted_min_games: int = 8
    weighted_years_back: int = 5
    year_weights: Tuple[float, ...] = DEFAULT_YEAR_WEIGHTS
    hybrid_min_games: int = 10
    hybrid_game_limit: int = 20
    hybrid_sample_multiplier: float = HYBRID_SAMPLE_MULTIPLIER
    use_recency_weighted: bool = True
    hydration_enabled: bool = True
    hydration_years_back: int = 10
    hydration_timeout_s: float = 20.0

    def __post_init__(self) -> None:
        if self.min_sample < 1:
            raise ValueError(f"min_sample must be >= 1, got {self.min_sample}")
        if self.weighted_min_games < 1 or self.hybrid_min_games < 1:
            raise ValueError("weighted_min_games and hybrid_min_games must be >= 1")
        if self.hybrid_game_limit < self.hybrid_min_games:
            raise ValueError(
                f"hybrid_game_limit ({self.hybrid_game_limit}) must be >= "
                f"hybrid_min_games ({self.hybrid_min_games})"
            )
        if not self.year_weights or any(w <= 0 for w in self.year_weights):
            raise ValueError("year_weights must be a non-empty tuple of positive weights")
        if self.hydration_timeout_s <= 0:
            raise ValueError("hydration_timeout_s must be positive")

    def year_weight(self, year_diff: int) -> float:
        """Weight for an observation ``year_diff`` seasons old (clamped)."""
        idx = max(0, min(year_diff, len(self.year_weights) - 1))
        return self.year_weights[idx]

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Build a config from environment variables (after ``load_dotenv``)."""
        load_dotenv()
        return cls(
            min_sample=int(os.getenv("MIN_SAMPLE", "5")),
            weighted_min_games=int(os.getenv("WEIGHTED_MIN_GAMES", "8")),
            weighted_years_back=int(os.getenv("WEIGHTED_YEARS_BACK", "5")),
            hybrid_min_games=int(os.getenv("HYBRID_MIN_GAMES", "10")),
            hybrid_game_limit=int(os.getenv("HYBRID_GAME_LIMIT", "20")),
            use_recency_weighted=_env_bool("USE_RECENCY_WEIGHTED", "true"),
            hydration_enabled=_env_bool("HYDRATION_ENABLED", "true"),
            hydration_years_back=int(os.getenv("HYDRATION_YEARS_BACK", "10")),
            hydration_timeout_s=float(os.getenv("HYDRATION_TIMEOUT_S", "20")),
        )
