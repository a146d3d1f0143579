"""
Roster continuity and era tracking.

Historical totals are only predictive while the rosters that produced them
are still around.  This module quantifies that:

    continuity    share of this season's key players who were key players
                  last season (0-100, one decimal)
    era           stable / transition / retooling / rebuild, from the
                  continuity score, plus the season the era began

Era thresholds::

    continuity < 30   rebuild
    continuity >= 70  stable
    continuity < 50   retooling
    otherwise         transition

``stable`` and ``transition`` are *stable-like*; ``rebuild`` and
``retooling`` are *rebuild-like*.  The era start year is found by walking
the team's earlier snapshots backwards while the broad category holds.

Snapshots are written once per team per season by the roster backfill job;
this module only builds them and reads them back.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Union

from totals_edge.core.interfaces import RosterPlayer, RosterSnapshot
from totals_edge.core.sport_config import SportConfig

logger = logging.getLogger(__name__)

REBUILD_THRESHOLD = 30.0
STABLE_THRESHOLD = 70.0
TRANSITION_THRESHOLD = 50.0

#: Continuity assumed for a historical snapshot that has no score.
_UNKNOWN_CONTINUITY = 50.0

ERA_STABLE = "stable"
ERA_TRANSITION = "transition"
ERA_RETOOLING = "retooling"
ERA_REBUILD = "rebuild"

_STABLE_LIKE = frozenset({ERA_STABLE, ERA_TRANSITION})

PlayerLike = Union[str, RosterPlayer]


def _player_ids(players: Iterable[PlayerLike]) -> List[str]:
    return [p.id if isinstance(p, RosterPlayer) else str(p) for p in players]


def continuity(prev_players: Iterable[PlayerLike], curr_players: Iterable[PlayerLike]) -> float:
    """Percentage of the current roster that was on the previous one.

    Returns 0.0 when either roster is empty.  Rounded to one decimal.
    """
    prev_ids = set(_player_ids(prev_players))
    curr_ids = set(_player_ids(curr_players))
    if not prev_ids or not curr_ids:
        return 0.0
    retained = len(curr_ids & prev_ids)
    return round(100.0 * retained / len(curr_ids), 1)


def classify_era(continuity_score: Optional[float]) -> str:
    score = _UNKNOWN_CONTINUITY if continuity_score is None else continuity_score
    if score < REBUILD_THRESHOLD:
        return ERA_REBUILD
    if score >= STABLE_THRESHOLD:
        return ERA_STABLE
    if score < TRANSITION_THRESHOLD:
        return ERA_RETOOLING
    return ERA_TRANSITION


def is_stable_like(era_tag: str) -> bool:
    return era_tag in _STABLE_LIKE


def find_era_start(
    current_year: int,
    era_tag: str,
    history: Sequence[RosterSnapshot],
) -> int:
    """First season of the current era.

    Args:
        current_year: Season being classified.
        era_tag: Its era.
        history: Earlier snapshots, newest first.  Seasons ``>= current_year``
            are ignored.  A snapshot with no continuity score counts as 50.  A
            recorded 0.0 is complete turnover and classifies as a rebuild.
    """
    start = current_year
    current_stable = is_stable_like(era_tag)
    for snap in history:
        if snap.season_year >= current_year:
            continue
        snap_era = classify_era(snap.continuity_score)
        if is_stable_like(snap_era) != current_stable:
            break
        start = snap.season_year
    return start


def describe_era(era_tag: str, era_start_year: int, current_year: int, continuity_score: Optional[float]) -> str:
    years_in_era = current_year - era_start_year + 1
    if era_tag == ERA_STABLE:
        if years_in_era > 3:
            return f"Core intact since {era_start_year} ({years_in_era}yr dynasty)"
        return f"Stable core since {era_start_year}"
    if era_tag == ERA_REBUILD:
        if years_in_era > 2:
            return f"Major rebuild underway since {era_start_year}"
        return f"New era starting {current_year}"
    if era_tag == ERA_RETOOLING:
        score = _UNKNOWN_CONTINUITY if continuity_score is None else continuity_score
        return f"Retooling roster ({score:.0f}% continuity)"
    return "Roster in transition"


def latest_continuity(snapshots: Sequence[RosterSnapshot]) -> Optional[float]:
    """Continuity of the newest snapshot, or None if there is none."""
    if not snapshots:
        return None
    newest = max(snapshots, key=lambda s: s.season_year)
    return newest.continuity_score


class RosterContinuityTracker:
    """Builds per-season roster snapshots for one sport."""

    def __init__(self, sport: Optional[SportConfig] = None, sport_id: str = "nba"):
        self.sport = sport or SportConfig.for_sport(sport_id)

    def identify_key_players(self, players: Sequence[RosterPlayer]) -> List[RosterPlayer]:
        """Top players at the sport's key positions by experience.

        Padded with the most experienced remaining players when fewer than
        ``key_player_count`` key-position players exist.  Ties keep roster
        order.
        """
        count = self.sport.key_player_count
        by_experience = sorted(players, key=lambda p: p.experience, reverse=True)
        key_players = [p for p in by_experience if p.position in self.sport.key_positions][:count]

        if len(key_players) < count:
            chosen = {p.id for p in key_players}
            remaining = [p for p in by_experience if p.id not in chosen]
            key_players.extend(remaining[:count - len(key_players)])
        return key_players

    def build_snapshot(
        self,
        team_id: str,
        season_year: int,
        roster: Sequence[RosterPlayer],
        history: Sequence[RosterSnapshot] = (),
    ) -> RosterSnapshot:
        """Assemble this season's snapshot.

        Args:
            team_id: Team the roster belongs to.
            season_year: Season being recorded.
            roster: Full current roster.
            history: The team's earlier snapshots, newest first.  The entry
                for ``season_year - 1`` (if any) supplies the previous key
                players; the rest drive era detection.
        """
        key_players = self.identify_key_players(roster)
        prev = next((s for s in history if s.season_year == season_year - 1), None)

        if prev is None or not prev.key_players:
            continuity_score = None
            logger.debug("No prior key roster for %s %d; continuity unknown", team_id, season_year)
        else:
            continuity_score = continuity(prev.key_players, key_players)

        era_tag = classify_era(continuity_score)
        era_start = find_era_start(season_year, era_tag, history)
        notes = describe_era(era_tag, era_start, season_year, continuity_score)
        logger.info(
            "%s %s %d: continuity=%s era=%s (%d)",
            self.sport.sport_name, team_id, season_year, continuity_score, era_tag, era_start,
        )
        return RosterSnapshot(
            team_id=team_id,
            sport_id=self.sport.sport_id,
            season_year=season_year,
            continuity_score=continuity_score,
            key_players=tuple(key_players),
            era_tag=era_tag,
            era_start_year=era_start,
            notes=notes,
        )
