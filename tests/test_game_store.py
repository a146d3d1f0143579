"""
Tests for the SQL historical game store against in-memory SQLite
Run with: pytest tests/test_game_store.py -v
"""

from datetime import datetime
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from totals_edge.core.errors import CollaboratorError
from totals_edge.core.interfaces import MatchupKey, RosterPlayer, RosterSnapshot, TeamRef
from totals_edge.core.segments import get_decade
from totals_edge.models import Base, Game, MatchupGame
from totals_edge.services.game_store import SqlGameStore


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine)()
    yield session
    session.close()
    engine.dispose()


def _matchup(total, played, season, low="BOS", high="LAL", f_low="f-bos", f_high="f-lal"):
    return MatchupGame(
        sport_id="nba",
        team_low_id=low,
        team_high_id=high,
        franchise_low_id=f_low,
        franchise_high_id=f_high,
        total=total,
        played_at_utc=played,
        season_year=season,
    )


@pytest.fixture
def seeded(db):
    db.add_all([
        _matchup(221.0, datetime(2025, 1, 10), 2025),
        _matchup(214.0, datetime(2023, 3, 2), 2023),
        _matchup(205.0, datetime(2014, 2, 20), 2014),
        _matchup(199.0, datetime(2019, 12, 31, 23, 0), 2020),
        _matchup(230.0, datetime(2024, 1, 5), 2024, low="BOS", high="NYK", f_high="f-nyk"),
    ])
    db.commit()
    return db


# ---------------------------------------------------------------------------
# Head-to-head observations
# ---------------------------------------------------------------------------

class TestFetchObservations:

    def test_team_key_newest_first(self, seeded):
        key = MatchupKey.from_teams("nba", TeamRef("LAL"), TeamRef("BOS"))
        obs = SqlGameStore(seeded).fetch_observations(key)
        assert [o.total for o in obs] == [221.0, 214.0, 199.0, 205.0]
        assert obs[0].season_year == 2025

    def test_since_season(self, seeded):
        key = MatchupKey.from_teams("nba", TeamRef("BOS"), TeamRef("LAL"))
        obs = SqlGameStore(seeded).fetch_observations(key, since_season=2023)
        assert sorted(o.total for o in obs) == [214.0, 221.0]

    def test_decade_uses_played_date(self, seeded):
        key = MatchupKey.from_teams("nba", TeamRef("BOS"), TeamRef("LAL"))
        store = SqlGameStore(seeded)
        # played 2019-12-31 belongs to the 2010s even though season_year is 2020
        assert sorted(o.total for o in store.fetch_observations(key, decade=get_decade("decade_2010s"))) == [199.0, 205.0]
        assert sorted(o.total for o in store.fetch_observations(key, decade=get_decade("decade_2020s"))) == [214.0, 221.0]

    def test_franchise_key(self, seeded):
        key = MatchupKey.from_teams("nba", TeamRef("BOS", "f-bos"), TeamRef("LAL", "f-lal"))
        assert key.uses_franchise
        assert len(SqlGameStore(seeded).fetch_observations(key)) == 4

    def test_other_matchups_excluded(self, seeded):
        key = MatchupKey.from_teams("nba", TeamRef("BOS"), TeamRef("NYK"))
        assert [o.total for o in SqlGameStore(seeded).fetch_observations(key)] == [230.0]

    def test_since_and_decade_exclusive(self, seeded):
        key = MatchupKey.from_teams("nba", TeamRef("BOS"), TeamRef("LAL"))
        with pytest.raises(ValueError):
            SqlGameStore(seeded).fetch_observations(key, since_season=2020, decade=get_decade("decade_2020s"))


# ---------------------------------------------------------------------------
# Recent form
# ---------------------------------------------------------------------------

def test_team_recent_games(db):
    db.add_all([
        Game(sport_id="nba", start_time_utc=datetime(2025, 3, 1), home_team_id="BOS",
             away_team_id="MIA", home_score=110, away_score=100, status="final"),
        Game(sport_id="nba", start_time_utc=datetime(2025, 3, 3), home_team_id="NYK",
             away_team_id="BOS", home_score=120, away_score=118, status="final"),
        Game(sport_id="nba", start_time_utc=datetime(2025, 3, 5), home_team_id="BOS",
             away_team_id="CHI", home_score=99, away_score=101, status="final"),
        Game(sport_id="nba", start_time_utc=datetime(2025, 3, 7), home_team_id="BOS",
             away_team_id="ATL", status="scheduled"),
        Game(sport_id="nba", start_time_utc=datetime(2025, 3, 8), home_team_id="LAL",
             away_team_id="DEN", home_score=130, away_score=125, status="final"),
    ])
    db.commit()

    store = SqlGameStore(db)
    assert store.fetch_team_recent_games("BOS", 2) == [200.0, 238.0]
    assert store.fetch_team_recent_games("BOS", 20) == [200.0, 238.0, 210.0]
    assert store.fetch_team_recent_games("SAC", 20) == []


# ---------------------------------------------------------------------------
# Roster snapshots
# ---------------------------------------------------------------------------

class TestRosterSnapshots:

    def test_round_trip_newest_first(self, db):
        store = SqlGameStore(db)
        players = (RosterPlayer("1", "A. Guard", "PG", 7), RosterPlayer("2", "B. Wing", "SF", 3))
        store.save_roster_snapshot(RosterSnapshot("BOS", "nba", 2023, None, players, "transition", 2023, "Roster in transition"))
        store.save_roster_snapshot(RosterSnapshot("BOS", "nba", 2024, 72.5, players, "stable", 2024, "Stable core since 2024"))

        snaps = store.fetch_roster_snapshots("BOS", "nba")

        assert [s.season_year for s in snaps] == [2024, 2023]
        assert snaps[0].continuity_score == 72.5
        assert snaps[0].key_players == players
        assert snaps[1].continuity_score is None

    def test_save_replaces_team_season(self, db):
        store = SqlGameStore(db)
        store.save_roster_snapshot(RosterSnapshot("BOS", "nba", 2024, 40.0))
        store.save_roster_snapshot(RosterSnapshot("BOS", "nba", 2024, 90.0, era_tag="stable"))

        snaps = store.fetch_roster_snapshots("BOS", "nba")
        assert len(snaps) == 1
        assert snaps[0].continuity_score == 90.0
        assert snaps[0].era_tag == "stable"

    def test_sport_filter(self, db):
        store = SqlGameStore(db)
        store.save_roster_snapshot(RosterSnapshot("BOS", "nhl", 2024, 40.0))
        assert store.fetch_roster_snapshots("BOS", "nba") == []


# ---------------------------------------------------------------------------
# Failure wrapping
# ---------------------------------------------------------------------------

def _broken_session():
    session = MagicMock()
    session.query.side_effect = OperationalError("SELECT 1", {}, Exception("database is locked"))
    return session


def test_observation_query_failure_wrapped():
    key = MatchupKey.from_teams("nba", TeamRef("BOS"), TeamRef("LAL"))
    with pytest.raises(CollaboratorError) as exc_info:
        SqlGameStore(_broken_session()).fetch_observations(key)
    assert exc_info.value.collaborator == "game_store"


def test_roster_query_failure_wrapped():
    with pytest.raises(CollaboratorError) as exc_info:
        SqlGameStore(_broken_session()).fetch_roster_snapshots("BOS", "nba")
    assert exc_info.value.collaborator == "roster_store"


def test_recent_games_failure_wrapped():
    with pytest.raises(CollaboratorError):
        SqlGameStore(_broken_session()).fetch_team_recent_games("BOS", 20)
