"""
Segment report - every window side by side for one matchup.

Where the engine picks *one* slice of history, the report computes stats
for every ladder segment (and optionally every decade) so a user can see
how the distribution shifts with the window.  It also recommends a
segment:

    - Eligible segments have at least ``MIN_GAMES_MINIMUM`` (3) games.
    - A 1y or 3y segment with at least ``MIN_GAMES_GOOD`` (10) games wins
      outright: recent data with current rosters is the most relevant.
    - Otherwise the eligible segment with the highest confidence wins,
      ties broken by the higher recency weight.
    - No eligible segment → ``insufficient``.

Confidence here uses the canonical scorer with the segment's own recency
weight (× 100) as the recency sub-score.

One store read covers the whole report; segments are filtered in memory.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple, Union

from totals_edge.core.confidence import label_for, score_confidence
from totals_edge.core.interfaces import (
    HistoricalGameStore,
    HistoricalObservation,
    MatchupKey,
    TeamRef,
)
from totals_edge.core.percentiles import compute_percentiles
from totals_edge.core.segments import DECADES, LADDER, SEGMENT_INSUFFICIENT, DecadeSegment, Segment

logger = logging.getLogger(__name__)

MIN_GAMES_MINIMUM = 3
MIN_GAMES_GOOD = 10

_RECENT_KEYS = frozenset({"h2h_1y", "h2h_3y"})


@dataclass
class SegmentReportRow:
    segment_key: str
    label: str
    n_games: int
    recency_weight: float
    p05: Optional[float] = None
    p95: Optional[float] = None
    median: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None
    confidence: int = 0
    confidence_label: str = "Insufficient"
    is_recommended: bool = False
    games_by_year: Dict[int, int] = field(default_factory=dict)

    @property
    def range(self) -> Optional[float]:
        if self.p05 is None or self.p95 is None:
            return None
        return self.p95 - self.p05


@dataclass
class SegmentReport:
    key: MatchupKey
    rows: List[SegmentReportRow]
    recommended_segment: str
    recommendation_reason: str
    total_historical_games: int
    data_quality: str


def _in_segment(obs: HistoricalObservation, segment: Union[Segment, DecadeSegment], reference_year: int) -> bool:
    if isinstance(segment, DecadeSegment):
        return segment.contains(obs.played_at.date())
    cutoff = segment.cutoff_season(reference_year)
    return cutoff is None or obs.season_year >= cutoff


def _build_row(
    segment: Union[Segment, DecadeSegment],
    observations: Sequence[HistoricalObservation],
    home_continuity: Optional[float],
    away_continuity: Optional[float],
) -> SegmentReportRow:
    # Calendar year of play, not season year.
    by_year = dict(sorted(Counter(o.played_at.year for o in observations).items()))
    row = SegmentReportRow(
        segment_key=segment.key,
        label=segment.label,
        n_games=len(observations),
        recency_weight=segment.recency_weight,
        games_by_year=by_year,
    )
    if not observations:
        return row

    summary = compute_percentiles(o.total for o in observations)
    conf = score_confidence(
        n_games=summary.n,
        segment_used=segment.key,
        home_continuity=home_continuity,
        away_continuity=away_continuity,
        recency_override=segment.recency_weight * 100,
    )
    row.p05, row.p95, row.median = summary.p05, summary.p95, summary.median
    row.min, row.max = summary.min, summary.max
    row.confidence, row.confidence_label = conf.score, conf.label
    return row


def recommend_segment(rows: Sequence[SegmentReportRow]) -> Tuple[str, str]:
    """Return ``(segment_key, reason)`` for the rows of one report."""
    eligible = [r for r in rows if r.n_games >= MIN_GAMES_MINIMUM]
    if not eligible:
        return SEGMENT_INSUFFICIENT, "Not enough historical data for reliable analysis"

    for row in eligible:
        if row.segment_key in _RECENT_KEYS and row.n_games >= MIN_GAMES_GOOD:
            return (
                row.segment_key,
                f"{row.n_games} games in {row.label} - most relevant with current rosters",
            )

    best = max(eligible, key=lambda r: (r.confidence, r.recency_weight))
    return (
        best.segment_key,
        f"{best.n_games} games ({best.confidence_label} confidence) - "
        "best balance of sample size and recency",
    )


def build_segment_report(
    store: HistoricalGameStore,
    sport_id: str,
    home: TeamRef,
    away: TeamRef,
    as_of: Optional[date] = None,
    home_continuity: Optional[float] = None,
    away_continuity: Optional[float] = None,
    include_decades: bool = False,
) -> SegmentReport:
    """
    Stats for every segment of one matchup plus a recommended segment.

    ``CollaboratorError`` from the store propagates; unlike the engine the
    report has no meaningful partial answer.
    """
    key = MatchupKey.from_teams(sport_id, home, away)
    reference_year = (as_of or date.today()).year
    observations = store.fetch_observations(key)

    segments: List[Union[Segment, DecadeSegment]] = list(LADDER)
    if include_decades:
        segments.extend(DECADES)

    rows = [
        _build_row(
            seg,
            [o for o in observations if _in_segment(o, seg, reference_year)],
            home_continuity,
            away_continuity,
        )
        for seg in segments
    ]

    # Decades are shown for comparison only and never recommended.
    ladder_keys = {s.key for s in LADDER}
    recommended, reason = recommend_segment([r for r in rows if r.segment_key in ladder_keys])
    for row in rows:
        row.is_recommended = row.segment_key == recommended

    best = max((r.confidence for r in rows), default=0)
    data_quality = label_for(best).lower()

    logger.info(
        "Segment report %s: %d games, recommended %s (%s)",
        key, len(observations), recommended, data_quality,
    )
    return SegmentReport(
        key=key,
        rows=rows,
        recommended_segment=recommended,
        recommendation_reason=reason,
        total_historical_games=len(observations),
        data_quality=data_quality,
    )
