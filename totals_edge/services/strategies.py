"""
Estimation strategies - which slice of history to trust.

Each strategy answers one question: "given this matchup, can you produce a
percentile estimate from the data you are allowed to use?"  The answer is
either a :class:`StrategyResult` or ``None``.  ``None`` means *not enough
data*; it is an expected outcome, not an error, and the engine simply moves
on to the next strategy.

Strategies, in the order the engine tries them:

    RecencyWeightedEstimator   last 5 seasons of H2H, newer seasons weigh more
    SegmentLadderSelector      narrowest H2H window with >= MIN_SAMPLE games
    HybridFormEstimator        each team's own recent games, any opponent

Later strategies are deliberately lower-confidence, so the order is part of
the contract.  Collaborator failures (``CollaboratorError``) propagate.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence, Tuple

from totals_edge.core.engine_config import EngineConfig
from totals_edge.core.interfaces import (
    HistoricalGameStore,
    HistoricalObservation,
    MatchupKey,
    SegmentStats,
    TeamRef,
)
from totals_edge.core.percentiles import (
    PercentileSummary,
    WeightedValue,
    compute_percentiles,
    compute_weighted_percentiles,
)
from totals_edge.core.segments import (
    LADDER,
    SEGMENT_HYBRID_FORM,
    SEGMENT_RECENCY_WEIGHTED,
    DecadeSegment,
    Segment,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result / context
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EstimationContext:
    """Everything a strategy needs to know about one computation."""

    key: MatchupKey
    home: TeamRef
    away: TeamRef
    as_of: date

    @property
    def reference_year(self) -> int:
        return self.as_of.year


@dataclass(frozen=True)
class StrategyResult:
    """A successful estimate.

    ``played_dates`` holds the played-on date of every observation used, so
    the confidence scorer can bucket them by age.  Hybrid results leave it
    ``None`` because recent-form games carry no head-to-head meaning.
    """

    segment_used: str
    n_used: int
    stats: SegmentStats
    played_dates: Optional[Tuple[date, ...]] = None
    note: str = ""


def _to_segment_stats(segment_key: str, summary: PercentileSummary) -> SegmentStats:
    return SegmentStats(
        segment_key=segment_key,
        n_games=summary.n,
        p05=summary.p05,
        p95=summary.p95,
        median=summary.median,
        min=summary.min,
        max=summary.max,
    )


def _played_dates(observations: Sequence[HistoricalObservation]) -> Tuple[date, ...]:
    return tuple(o.played_at.date() for o in observations)


class EstimationStrategy(ABC):
    """Base class for all strategies."""

    name: str = ""

    def __init__(self, store: HistoricalGameStore, config: Optional[EngineConfig] = None):
        self.store = store
        self.config = config or EngineConfig()

    @abstractmethod
    def estimate(self, ctx: EstimationContext) -> Optional[StrategyResult]:
        """Return an estimate, or ``None`` when the data is too thin."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


# ---------------------------------------------------------------------------
# Segment ladder
# ---------------------------------------------------------------------------

class SegmentLadderSelector(EstimationStrategy):
    """
    Find the narrowest historically-deep-enough window.

    Walks the segment ladder (1y, 3y, 5y, 10y, 20y, all time) and accepts
    the first segment with at least ``min_sample`` games.  A narrow segment
    that falls short is simply skipped; its games are never blended with a
    wider window's.
    """

    name = "segment_ladder"

    def __init__(
        self,
        store: HistoricalGameStore,
        config: Optional[EngineConfig] = None,
        ladder: Sequence[Segment] = LADDER,
    ):
        super().__init__(store, config)
        self.ladder = tuple(ladder)

    def estimate(self, ctx: EstimationContext) -> Optional[StrategyResult]:
        for segment in self.ladder:
            since = segment.cutoff_season(ctx.reference_year)
            observations = self.store.fetch_observations(ctx.key, since_season=since)
            n = len(observations)
            if n < self.config.min_sample:
                logger.debug(
                    "Ladder %s: %s has %d games (< %d), widening",
                    ctx.key, segment.key, n, self.config.min_sample,
                )
                continue

            summary = compute_percentiles(o.total for o in observations)
            logger.info("Ladder %s: selected %s with %d games", ctx.key, segment.key, n)
            return StrategyResult(
                segment_used=segment.key,
                n_used=n,
                stats=_to_segment_stats(segment.key, summary),
                played_dates=_played_dates(observations),
                note=f"{n} games in {segment.label}",
            )

        logger.info("Ladder %s: no segment reached %d games", ctx.key, self.config.min_sample)
        return None

    def select_decade(self, ctx: EstimationContext, decade: DecadeSegment) -> Optional[StrategyResult]:
        """Stats for one explicit decade, or ``None`` below ``min_sample``."""
        observations = self.store.fetch_observations(ctx.key, decade=decade)
        n = len(observations)
        if n < self.config.min_sample:
            return None
        summary = compute_percentiles(o.total for o in observations)
        return StrategyResult(
            segment_used=decade.key,
            n_used=n,
            stats=_to_segment_stats(decade.key, summary),
            played_dates=_played_dates(observations),
            note=f"{n} games in the {decade.label}",
        )


# ---------------------------------------------------------------------------
# Recency-weighted
# ---------------------------------------------------------------------------

class RecencyWeightedEstimator(EstimationStrategy):
    """
    One weighted estimate over the last ``weighted_years_back`` seasons.

    Observation weight by ``year_diff = as_of.year - season_year``::

        0 → 1.0    1 → 0.9    2 → 0.7    3 → 0.5    4+ → 0.3

    Needs at least ``weighted_min_games`` observations (the raw count, not
    the weighted one); otherwise returns ``None`` and the ladder runs.
    """

    name = SEGMENT_RECENCY_WEIGHTED

    def weigh(self, observations: Sequence[HistoricalObservation], reference_year: int) -> List[WeightedValue]:
        return [
            WeightedValue(o.total, self.config.year_weight(reference_year - o.season_year))
            for o in observations
        ]

    def estimate(self, ctx: EstimationContext) -> Optional[StrategyResult]:
        since = ctx.reference_year - self.config.weighted_years_back
        observations = self.store.fetch_observations(ctx.key, since_season=since)
        n = len(observations)
        if n < self.config.weighted_min_games:
            logger.debug(
                "Recency-weighted %s: %d games since %d (< %d)",
                ctx.key, n, since, self.config.weighted_min_games,
            )
            return None

        weighted = self.weigh(observations, ctx.reference_year)
        summary = compute_weighted_percentiles(weighted)
        effective_n = sum(w.weight for w in weighted)
        logger.info(
            "Recency-weighted %s: %d games (effective weight %.1f)",
            ctx.key, n, effective_n,
        )
        return StrategyResult(
            segment_used=SEGMENT_RECENCY_WEIGHTED,
            n_used=n,
            stats=_to_segment_stats(SEGMENT_RECENCY_WEIGHTED, summary),
            played_dates=_played_dates(observations),
            note=f"{n} games since {since}, recency weighted",
        )


# ---------------------------------------------------------------------------
# Hybrid form
# ---------------------------------------------------------------------------

class HybridFormEstimator(EstimationStrategy):
    """
    Last resort: pool each team's own recent totals, any opponent.

    Both teams need at least ``hybrid_min_games`` of their last
    ``hybrid_game_limit`` games, otherwise the whole strategy returns
    ``None``.  The pooled sample says nothing about this specific matchup,
    so callers must treat it as materially weaker evidence.
    """

    name = SEGMENT_HYBRID_FORM

    def estimate(self, ctx: EstimationContext) -> Optional[StrategyResult]:
        limit = self.config.hybrid_game_limit
        home_totals = list(self.store.fetch_team_recent_games(ctx.home.team_id, limit))[:limit]
        away_totals = list(self.store.fetch_team_recent_games(ctx.away.team_id, limit))[:limit]

        if min(len(home_totals), len(away_totals)) < self.config.hybrid_min_games:
            logger.debug(
                "Hybrid %s: recent games %d / %d (need %d each)",
                ctx.key, len(home_totals), len(away_totals), self.config.hybrid_min_games,
            )
            return None

        pooled = home_totals + away_totals
        summary = compute_percentiles(pooled)
        logger.info(
            "Hybrid %s: pooled %d + %d recent games",
            ctx.key, len(home_totals), len(away_totals),
        )
        return StrategyResult(
            segment_used=SEGMENT_HYBRID_FORM,
            n_used=len(pooled),
            stats=_to_segment_stats(SEGMENT_HYBRID_FORM, summary),
            played_dates=None,
            note=f"recent form: {len(home_totals)} + {len(away_totals)} games, any opponent",
        )
