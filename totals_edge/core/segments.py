"""Segment catalog - the static set of historical time windows.

A *segment* is a named slice of head-to-head history.  Rolling segments
look back ``years_back`` seasons from the reference year (``None`` = all
time); decade segments carry an explicit ``[start, end)`` date range on the
game's played-at timestamp.

The ladder order is significant: :class:`~totals_edge.services.strategies.SegmentLadderSelector`
walks :data:`LADDER` from the narrowest, most recent window to the broadest
and stops at the first window with enough games.  Nothing here is mutated
at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, Final, Optional, Tuple

# ---------------------------------------------------------------------------
# Strategy labels that are not catalog segments
# ---------------------------------------------------------------------------

SEGMENT_RECENCY_WEIGHTED: Final[str] = "recency_weighted"
SEGMENT_HYBRID_FORM: Final[str] = "hybrid_form"
SEGMENT_INSUFFICIENT: Final[str] = "insufficient"


@dataclass(frozen=True)
class Segment:
    """A rolling look-back window.

    Attributes:
        key: Stable identifier (``"h2h_3y"``) used in API payloads and logs.
        years_back: Seasons to look back from the reference year.  ``None``
            means the whole history.
        label: Human-readable name.
        recency_weight: 0-1 weight reflecting how representative the window
            is of the current rosters.  Used by the segment report as the
            recency sub-score (``weight × 100``).
    """

    key: str
    years_back: Optional[int]
    label: str
    recency_weight: float

    def cutoff_season(self, reference_year: int) -> Optional[int]:
        """Earliest ``season_year`` included, or ``None`` for all time."""
        if self.years_back is None:
            return None
        return reference_year - self.years_back


@dataclass(frozen=True)
class DecadeSegment:
    """A fixed calendar decade, ``start`` inclusive and ``end`` exclusive."""

    key: str
    start: date
    end: date
    label: str
    recency_weight: float

    def contains(self, played_on: date) -> bool:
        return self.start <= played_on < self.end


#: Ladder order - most recent first.  Do not reorder.
LADDER: Final[Tuple[Segment, ...]] = (
    Segment("h2h_1y", 1, "Last 1 Year", 1.0),
    Segment("h2h_3y", 3, "Last 3 Years", 0.85),
    Segment("h2h_5y", 5, "Last 5 Years", 0.7),
    Segment("h2h_10y", 10, "Last 10 Years", 0.5),
    Segment("h2h_20y", 20, "Last 20 Years", 0.4),
    Segment("h2h_all", None, "All Time", 0.3),
)

DECADES: Final[Tuple[DecadeSegment, ...]] = (
    DecadeSegment("decade_2020s", date(2020, 1, 1), date(2030, 1, 1), "2020s", 0.9),
    DecadeSegment("decade_2010s", date(2010, 1, 1), date(2020, 1, 1), "2010s", 0.5),
    DecadeSegment("decade_2000s", date(2000, 1, 1), date(2010, 1, 1), "2000s", 0.3),
    DecadeSegment("decade_1990s", date(1990, 1, 1), date(2000, 1, 1), "1990s", 0.2),
)

_BY_KEY: Dict[str, Segment] = {s.key: s for s in LADDER}
_DECADES_BY_KEY: Dict[str, DecadeSegment] = {d.key: d for d in DECADES}


def get_segment(key: str) -> Segment:
    """Look up a ladder segment by key.

    Raises:
        KeyError: If ``key`` is not a ladder segment.
    """
    try:
        return _BY_KEY[key]
    except KeyError:
        raise KeyError(f"Unknown segment {key!r}; expected one of {sorted(_BY_KEY)}") from None


def get_decade(key: str) -> DecadeSegment:
    """Look up a decade segment by key (``"decade_2010s"``)."""
    try:
        return _DECADES_BY_KEY[key]
    except KeyError:
        raise KeyError(f"Unknown decade {key!r}; expected one of {sorted(_DECADES_BY_KEY)}") from None
