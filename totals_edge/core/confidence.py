"""Data confidence scoring - one 0-100 reliability number per estimate.

The score blends three independent sub-scores, each 0-100:

    sample size        (weight 0.40)
    recency            (weight 0.30)
    roster continuity  (weight 0.30)

and maps the rounded blend onto a qualitative label::

    >= 80  Excellent
    >= 60  Good
    >= 40  Fair
    >= 20  Low
    else   Insufficient

The weights and the sample staircase are versioned together as
:data:`CONFIDENCE_MODEL_VERSION`.  Changing either changes scoring
semantics for every stored result, so bump the version with them.

Sample-size staircase (canonical)::

    n >= 20 → 100    n >= 15 → 90    n >= 10 → 75
    n >= 7  → 60     n >= 5  → 45    n >= 3  → 25
    otherwise n × 8

All functions are pure.  There is no wall-clock access here: recency is
measured by the caller (see :func:`recency_buckets`) against an explicit
``as_of`` date.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import date
from typing import Dict, Final, Iterable, Optional, Tuple

from totals_edge.core.segments import SEGMENT_HYBRID_FORM, SEGMENT_INSUFFICIENT

CONFIDENCE_MODEL_VERSION: Final[str] = "conf-v2"

WEIGHT_SAMPLE: Final[float] = 0.40
WEIGHT_RECENCY: Final[float] = 0.30
WEIGHT_ROSTER: Final[float] = 0.30

#: Neutral continuity assumed for a team with no roster snapshot.
NEUTRAL_CONTINUITY: Final[float] = 50.0

#: (minimum n, score) pairs, checked top-down.
_SAMPLE_STAIRCASE: Final[Tuple[Tuple[int, int], ...]] = (
    (20, 100),
    (15, 90),
    (10, 75),
    (7, 60),
    (5, 45),
    (3, 25),
)
_SMALL_SAMPLE_SLOPE: Final[int] = 8

#: Recency fallback when year-bucket counts are not available.
SEGMENT_RECENCY_SCORES: Final[Dict[str, int]] = {
    "recency_weighted": 90,
    "h2h_10y": 75,
    "h2h_20y": 55,
    "h2h_all": 40,
    "franchise_10y": 60,
    "franchise_20y": 45,
    "franchise_all": 30,
    SEGMENT_HYBRID_FORM: 20,
    SEGMENT_INSUFFICIENT: 10,
}
_DEFAULT_RECENCY_SCORE: Final[int] = 50

_LABELS: Final[Tuple[Tuple[int, str], ...]] = (
    (80, "Excellent"),
    (60, "Good"),
    (40, "Fair"),
    (20, "Low"),
)
LABEL_INSUFFICIENT: Final[str] = "Insufficient"

_DAYS_PER_YEAR: Final[float] = 365.25


# ---------------------------------------------------------------------------
# Data transfer objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RecencyBuckets:
    """Cumulative counts of observations by age.

    ``within_3y`` includes ``within_1y``; ``within_5y`` includes both.
    """

    within_1y: int
    within_3y: int
    within_5y: int
    total: int


@dataclass(frozen=True)
class ConfidenceFactors:
    sample_size_score: int
    recency_score: int
    roster_continuity_score: int


@dataclass(frozen=True)
class ConfidenceResult:
    score: int
    label: str
    factors: Optional[ConfidenceFactors]

    def to_dict(self) -> Dict:
        return {
            "score": self.score,
            "label": self.label,
            "factors": asdict(self.factors) if self.factors is not None else None,
        }


#: Terminal result used when no strategy produced an estimate.
INSUFFICIENT_CONFIDENCE: Final[ConfidenceResult] = ConfidenceResult(
    score=0, label=LABEL_INSUFFICIENT, factors=None,
)


# ---------------------------------------------------------------------------
# Sub-scores
# ---------------------------------------------------------------------------


def round_half_up(x: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(x + 0.5))


def sample_size_score(n_games: int) -> int:
    """Canonical sample-size staircase.  Monotone non-decreasing in ``n``."""
    for threshold, score in _SAMPLE_STAIRCASE:
        if n_games >= threshold:
            return score
    return max(0, n_games * _SMALL_SAMPLE_SLOPE)


def recency_buckets(played_dates: Iterable[date], as_of: date) -> RecencyBuckets:
    """Count observations by age relative to ``as_of``.

    Games in the future relative to ``as_of`` count as age zero.
    """
    w1 = w3 = w5 = total = 0
    for played in played_dates:
        total += 1
        age_years = max(0, (as_of - played).days) / _DAYS_PER_YEAR
        if age_years < 1:
            w1 += 1
        if age_years < 3:
            w3 += 1
        if age_years < 5:
            w5 += 1
    return RecencyBuckets(within_1y=w1, within_3y=w3, within_5y=w5, total=total)


def recency_score(
    segment_used: Optional[str],
    buckets: Optional[RecencyBuckets] = None,
) -> int:
    """Recency sub-score.

    With buckets: ``(w1×0.5 + (w3−w1)×0.3 + (w5−w3)×0.2) / total × 100``.
    Without: fixed lookup by ``segment_used`` (50 for unknown segments).
    """
    if buckets is not None:
        if buckets.total == 0:
            return 0
        ratio = (
            buckets.within_1y * 0.5
            + (buckets.within_3y - buckets.within_1y) * 0.3
            + (buckets.within_5y - buckets.within_3y) * 0.2
        ) / buckets.total
        return round_half_up(ratio * 100)

    if not segment_used:
        return _DEFAULT_RECENCY_SCORE
    return SEGMENT_RECENCY_SCORES.get(segment_used, _DEFAULT_RECENCY_SCORE)


def roster_continuity_score(
    home_continuity: Optional[float],
    away_continuity: Optional[float],
) -> int:
    """Average of both teams' continuity; a missing side counts as neutral."""
    if home_continuity is None and away_continuity is None:
        return round_half_up(NEUTRAL_CONTINUITY)
    home = NEUTRAL_CONTINUITY if home_continuity is None else home_continuity
    away = NEUTRAL_CONTINUITY if away_continuity is None else away_continuity
    return round_half_up((home + away) / 2)


def label_for(score: float) -> str:
    for threshold, label in _LABELS:
        if score >= threshold:
            return label
    return LABEL_INSUFFICIENT


# ---------------------------------------------------------------------------
# Blend
# ---------------------------------------------------------------------------


def score_confidence(
    n_games: int,
    segment_used: Optional[str] = None,
    home_continuity: Optional[float] = None,
    away_continuity: Optional[float] = None,
    buckets: Optional[RecencyBuckets] = None,
    recency_override: Optional[float] = None,
) -> ConfidenceResult:
    """Combine the three sub-scores into a :class:`ConfidenceResult`.

    Args:
        n_games: Effective sample size.
        segment_used: Strategy/segment key; drives the recency lookup when
            no buckets are given.
        home_continuity: Latest continuity (0-100) for one side, or None.
        away_continuity: Same for the other side.
        buckets: Year-bucket counts of the observations used.
        recency_override: Explicit recency sub-score.  The segment report
            passes ``recency_weight × 100`` here.
    """
    if recency_override is not None:
        recency = round_half_up(recency_override)
    else:
        recency = recency_score(segment_used, buckets)

    factors = ConfidenceFactors(
        sample_size_score=sample_size_score(n_games),
        recency_score=recency,
        roster_continuity_score=roster_continuity_score(home_continuity, away_continuity),
    )
    score = round_half_up(
        factors.sample_size_score * WEIGHT_SAMPLE
        + factors.recency_score * WEIGHT_RECENCY
        + factors.roster_continuity_score * WEIGHT_ROSTER
    )
    return ConfidenceResult(score=score, label=label_for(score), factors=factors)


def data_applicability(
    segment_used: Optional[str],
    home_continuity: Optional[float] = None,
    away_continuity: Optional[float] = None,
) -> Tuple[int, str]:
    """Even blend of segment recency and roster continuity.

    A quick "is history still relevant" indicator shown next to the
    confidence badge.  Not part of the confidence score.

    Returns:
        ``(score, label)`` with label ``High`` (>= 75), ``Med`` (>= 50)
        or ``Low``.
    """
    score = round_half_up(
        recency_score(segment_used) * 0.5
        + roster_continuity_score(home_continuity, away_continuity) * 0.5
    )
    if score >= 75:
        return score, "High"
    if score >= 50:
        return score, "Med"
    return score, "Low"
