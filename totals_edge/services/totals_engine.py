"""
Totals engine - historical percentile estimate for one matchup.

Pipeline (strictly sequential, first success wins):

    1. RecencyWeightedEstimator   (when ``use_recency_weighted``)
    2. SegmentLadderSelector
    3. HybridFormEstimator
    4. Hydration, at most once, then steps 1-3 again

Later steps are deliberately lower-confidence, so the order is a
correctness requirement.  Each strategy returns ``None`` on thin data; the
engine never uses exceptions for that.

Failure handling
----------------
* ``CollaboratorError`` from the game store ends the computation with a
  well-formed ``insufficient`` result whose ``diagnostic`` names the
  failing collaborator.  Callers can always render the output.
* Roster-snapshot failures only cost the roster sub-score; continuity is
  treated as unknown (neutral 50).
* Hydration runs on a daemon worker thread bounded by ``hydration_timeout_s``
  (or the per-call override).  On timeout, ``HydrationError`` or any other
  exception from the hydrator the engine proceeds to ``insufficient``.  An
  abandoned worker never holds up interpreter shutdown.

Confidence convention for hybrid results: the sample sub-score uses an
effective size of ``floor(n_used × hybrid_sample_multiplier)`` (0.5 by
default), and recency falls back to the ``hybrid_form`` lookup value.

The engine holds no per-matchup state, so one instance can serve
concurrent computations as long as its store can.
"""

import logging
import math
import threading
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from totals_edge.core.confidence import (
    INSUFFICIENT_CONFIDENCE,
    ConfidenceResult,
    recency_buckets,
    score_confidence,
)
from totals_edge.core.engine_config import EngineConfig
from totals_edge.core.errors import CollaboratorError
from totals_edge.core.interfaces import (
    HistoricalGameStore,
    HydrationResult,
    Hydrator,
    MatchupKey,
    TeamRef,
)
from totals_edge.core.segments import SEGMENT_HYBRID_FORM, SEGMENT_INSUFFICIENT
from totals_edge.services.roster_continuity import latest_continuity
from totals_edge.services.strategies import (
    EstimationContext,
    EstimationStrategy,
    HybridFormEstimator,
    RecencyWeightedEstimator,
    SegmentLadderSelector,
    StrategyResult,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TotalsEstimate:
    """Engine output.  Stats are ``None`` for an insufficient result."""

    segment_used: str
    n_used: int
    p05: Optional[float]
    p95: Optional[float]
    median: Optional[float]
    min: Optional[float]
    max: Optional[float]
    confidence: ConfidenceResult
    keyed_by: str
    diagnostic: str
    hydration: Optional[HydrationResult] = None

    @property
    def is_insufficient(self) -> bool:
        return self.segment_used == SEGMENT_INSUFFICIENT

    @classmethod
    def insufficient(
        cls,
        key: MatchupKey,
        diagnostic: str,
        hydration: Optional[HydrationResult] = None,
    ) -> "TotalsEstimate":
        return cls(
            segment_used=SEGMENT_INSUFFICIENT,
            n_used=0,
            p05=None,
            p95=None,
            median=None,
            min=None,
            max=None,
            confidence=INSUFFICIENT_CONFIDENCE,
            keyed_by=key.keyed_by,
            diagnostic=diagnostic,
            hydration=hydration,
        )

    def to_dict(self) -> Dict:
        return {
            "segment_used": self.segment_used,
            "n_used": self.n_used,
            "p05": self.p05,
            "p95": self.p95,
            "median": self.median,
            "min": self.min,
            "max": self.max,
            "confidence": self.confidence.to_dict(),
            "keyed_by": self.keyed_by,
            "diagnostic": self.diagnostic,
            "hydration": (
                {
                    "inserted_count": self.hydration.inserted_count,
                    "total_count": self.hydration.total_count,
                }
                if self.hydration is not None else None
            ),
        }


def first_success(
    strategies: Iterable[EstimationStrategy],
    ctx: EstimationContext,
) -> Optional[StrategyResult]:
    """Run strategies in order and return the first non-``None`` result."""
    for strategy in strategies:
        result = strategy.estimate(ctx)
        if result is not None:
            return result
    return None


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class TotalsEngine:
    """
    Chooses the historical slice to trust and scores its reliability.

    Args:
        store: Historical game / roster collaborator.
        hydrator: Optional upstream fetcher used when every strategy fails.
        config: Thresholds; defaults to :class:`EngineConfig` defaults.
        strategies: Explicit strategy list, mainly for tests.  When omitted
            the standard order is built from ``config``.
    """

    def __init__(
        self,
        store: HistoricalGameStore,
        hydrator: Optional[Hydrator] = None,
        config: Optional[EngineConfig] = None,
        strategies: Optional[List[EstimationStrategy]] = None,
    ):
        self.store = store
        self.hydrator = hydrator
        self.config = config or EngineConfig()
        self.strategies = strategies if strategies is not None else self._default_strategies()

    def _default_strategies(self) -> List[EstimationStrategy]:
        strategies: List[EstimationStrategy] = []
        if self.config.use_recency_weighted:
            strategies.append(RecencyWeightedEstimator(self.store, self.config))
        strategies.append(SegmentLadderSelector(self.store, self.config))
        strategies.append(HybridFormEstimator(self.store, self.config))
        return strategies

    # ------------------------------------------------------------------ #

    def estimate(
        self,
        sport_id: str,
        home: TeamRef,
        away: TeamRef,
        as_of: Optional[date] = None,
        allow_hydration: bool = True,
        hydration_timeout: Optional[float] = None,
    ) -> TotalsEstimate:
        """
        Percentile estimate and confidence for one matchup.

        Args:
            sport_id:          Sport identifier (``"nba"`` ...).
            home, away:        The two sides; order does not matter for the
                               history lookup.
            as_of:             Reference date for windows and recency.
                               Defaults to today.  Pass it explicitly for
                               reproducible output.
            allow_hydration:   Permit the single hydration attempt.
            hydration_timeout: Seconds; overrides ``hydration_timeout_s``.

        Returns:
            :class:`TotalsEstimate`.  Never raises for insufficient data or
            collaborator failures.
        """
        key = MatchupKey.from_teams(sport_id, home, away)
        ctx = EstimationContext(key=key, home=home, away=away, as_of=as_of or date.today())

        try:
            result = first_success(self.strategies, ctx)
        except CollaboratorError as exc:
            logger.error("Estimate %s aborted: %s unavailable: %s", key, exc.collaborator, exc)
            return TotalsEstimate.insufficient(key, f"{exc.collaborator} unavailable: {exc}")

        hydration: Optional[HydrationResult] = None
        if result is None and allow_hydration and self._can_hydrate():
            hydration = self._hydrate(key, hydration_timeout)
            if hydration is not None and hydration.inserted_count > 0:
                try:
                    result = first_success(self.strategies, ctx)
                except CollaboratorError as exc:
                    logger.error("Retry for %s aborted: %s", key, exc)
                    return TotalsEstimate.insufficient(
                        key, f"{exc.collaborator} unavailable after hydration: {exc}", hydration,
                    )

        if result is None:
            diagnostic = "no strategy reached its minimum sample"
            if hydration is not None:
                diagnostic += f" (hydration inserted {hydration.inserted_count} games)"
            logger.info("Estimate %s: insufficient - %s", key, diagnostic)
            return TotalsEstimate.insufficient(key, diagnostic, hydration)

        home_cont, away_cont = self.team_continuity(sport_id, home, away)
        confidence = self._score(result, ctx, home_cont, away_cont)
        diagnostic = f"{result.segment_used}: {result.note}"
        if hydration is not None:
            diagnostic += f" (after hydration, +{hydration.inserted_count} games)"

        stats = result.stats
        return TotalsEstimate(
            segment_used=result.segment_used,
            n_used=result.n_used,
            p05=stats.p05,
            p95=stats.p95,
            median=stats.median,
            min=stats.min,
            max=stats.max,
            confidence=confidence,
            keyed_by=key.keyed_by,
            diagnostic=diagnostic,
            hydration=hydration,
        )

    # ------------------------------------------------------------------ #
    #  Confidence                                                          #
    # ------------------------------------------------------------------ #

    def effective_sample(self, result: StrategyResult) -> int:
        if result.segment_used == SEGMENT_HYBRID_FORM:
            return int(math.floor(result.n_used * self.config.hybrid_sample_multiplier))
        return result.n_used

    def _score(
        self,
        result: StrategyResult,
        ctx: EstimationContext,
        home_cont: Optional[float],
        away_cont: Optional[float],
    ) -> ConfidenceResult:
        buckets = None
        if result.played_dates is not None:
            buckets = recency_buckets(result.played_dates, ctx.as_of)
        return score_confidence(
            n_games=self.effective_sample(result),
            segment_used=result.segment_used,
            home_continuity=home_cont,
            away_continuity=away_cont,
            buckets=buckets,
        )

    def team_continuity(self, sport_id: str, home: TeamRef, away: TeamRef) -> Tuple[Optional[float], Optional[float]]:
        """Latest continuity score per side; None where unknown or unavailable."""
        values = []
        for team in (home, away):
            try:
                snapshots = self.store.fetch_roster_snapshots(team.team_id, sport_id)
            except CollaboratorError as exc:
                logger.warning("Roster snapshots for %s unavailable: %s", team.team_id, exc)
                snapshots = []
            values.append(latest_continuity(snapshots))
        return values[0], values[1]

    # ------------------------------------------------------------------ #
    #  Hydration                                                           #
    # ------------------------------------------------------------------ #

    def _can_hydrate(self) -> bool:
        return self.hydrator is not None and self.config.hydration_enabled

    def _hydrate(self, key: MatchupKey, timeout: Optional[float]) -> Optional[HydrationResult]:
        """One bounded hydration attempt.  Returns None on timeout or failure."""
        limit = timeout if timeout is not None else self.config.hydration_timeout_s
        years_back = self.config.hydration_years_back
        logger.info("Hydrating %s (%d years, timeout %.1fs)", key, years_back, limit)

        outcome: Dict[str, object] = {}

        def run():
            try:
                outcome["result"] = self.hydrator.trigger_hydration(key, years_back, limit)
            except Exception as exc:
                outcome["error"] = exc

        worker = threading.Thread(target=run, name="hydrate", daemon=True)
        worker.start()
        worker.join(limit)
        if worker.is_alive():
            logger.warning("Hydration for %s timed out after %.1fs", key, limit)
            return None

        error = outcome.get("error")
        if isinstance(error, CollaboratorError):
            logger.warning("Hydration for %s failed: %s", key, error)
            return None
        if error is not None:
            logger.error("Hydration for %s raised %s: %s", key, type(error).__name__, error)
            return None

        hydration = outcome["result"]

        logger.info(
            "Hydration for %s inserted %d games (%d total)",
            key, hydration.inserted_count, hydration.total_count,
        )
        return hydration
