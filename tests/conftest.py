"""Shared fixtures: an in-memory historical game store and sample data helpers."""

from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

import pytest

from totals_edge.core.errors import CollaboratorError
from totals_edge.core.interfaces import (
    HistoricalGameStore,
    HistoricalObservation,
    MatchupKey,
    RosterSnapshot,
    TeamRef,
)
from totals_edge.core.segments import DecadeSegment

AS_OF = date(2025, 6, 1)
HOME = TeamRef("BOS")
AWAY = TeamRef("LAL")


def make_observations(totals, season_year: int, month: int = 1) -> List[HistoricalObservation]:
    """Observations played mid-month of ``season_year``."""
    return [
        HistoricalObservation(total=float(t), played_at=datetime(season_year, month, 15, 0, 30), season_year=season_year)
        for t in totals
    ]


class InMemoryGameStore(HistoricalGameStore):
    """Dict-backed store.  ``failing`` names methods that raise CollaboratorError."""

    def __init__(self):
        self.h2h: Dict[Tuple, List[HistoricalObservation]] = {}
        self.recent: Dict[str, List[float]] = {}
        self.rosters: Dict[str, List[RosterSnapshot]] = {}
        self.failing = set()
        self.calls: List[str] = []

    @staticmethod
    def _key(key: MatchupKey) -> Tuple:
        return (key.sport_id, key.keyed_by, key.entity_low_id, key.entity_high_id)

    def add_h2h(self, key: MatchupKey, observations: List[HistoricalObservation]) -> None:
        self.h2h.setdefault(self._key(key), []).extend(observations)

    def _maybe_fail(self, name: str) -> None:
        self.calls.append(name)
        if name in self.failing:
            raise CollaboratorError(f"{name} exploded", collaborator="roster_store" if "roster" in name else "game_store")

    def fetch_observations(
        self,
        key: MatchupKey,
        since_season: Optional[int] = None,
        decade: Optional[DecadeSegment] = None,
    ) -> List[HistoricalObservation]:
        self._maybe_fail("fetch_observations")
        rows = list(self.h2h.get(self._key(key), []))
        if since_season is not None:
            rows = [o for o in rows if o.season_year >= since_season]
        if decade is not None:
            rows = [o for o in rows if decade.contains(o.played_at.date())]
        return rows

    def fetch_team_recent_games(self, team_id: str, limit: int) -> List[float]:
        self._maybe_fail("fetch_team_recent_games")
        return list(self.recent.get(team_id, []))[:limit]

    def fetch_roster_snapshots(self, team_id: str, sport_id: str) -> List[RosterSnapshot]:
        self._maybe_fail("fetch_roster_snapshots")
        snaps = [s for s in self.rosters.get(team_id, []) if s.sport_id == sport_id]
        return sorted(snaps, key=lambda s: s.season_year, reverse=True)


@pytest.fixture
def store():
    return InMemoryGameStore()


@pytest.fixture
def key():
    return MatchupKey.from_teams("nba", HOME, AWAY)


@pytest.fixture
def make_obs():
    return make_observations
