#!/usr/bin/env python3
"""
Record one season of roster snapshots from a roster dump.

The dump is JSON keyed by team id::

    {"BOS": [{"id": "4065648", "name": "...", "position": "SF", "experience": 8}, ...],
     "LAL": [...]}

Each team's key players, continuity against the previous season and era
are computed and written to ``roster_snapshots`` (replacing any existing
row for that team-season).

Usage:
    python scripts/record_rosters.py nba 2025 rosters_2025.json
"""

import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv
load_dotenv()

import argparse
import json
import logging

from totals_edge.core.errors import CollaboratorError
from totals_edge.core.interfaces import RosterPlayer
from totals_edge.models import SessionLocal
from totals_edge.services.game_store import SqlGameStore
from totals_edge.services.roster_continuity import RosterContinuityTracker

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def record_rosters(store: SqlGameStore, sport_id: str, season_year: int, rosters: dict) -> int:
    """Build and save a snapshot per team.  Returns the number saved."""
    tracker = RosterContinuityTracker(sport_id=sport_id)
    saved = 0
    for team_id, players in rosters.items():
        roster = [
            RosterPlayer(
                id=str(p["id"]),
                name=p.get("name", ""),
                position=p.get("position") or "N/A",
                experience=int(p.get("experience") or 0),
            )
            for p in players
        ]
        history = store.fetch_roster_snapshots(team_id, sport_id)
        snapshot = tracker.build_snapshot(team_id, season_year, roster, history)
        store.save_roster_snapshot(snapshot)
        saved += 1
    return saved


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Record roster snapshots for one season")
    parser.add_argument("sport", help="Sport id, e.g. nba")
    parser.add_argument("season", type=int, help="Season year")
    parser.add_argument("roster_file", help="JSON roster dump keyed by team id")
    args = parser.parse_args(argv)

    with open(args.roster_file) as f:
        rosters = json.load(f)

    db = SessionLocal()
    try:
        saved = record_rosters(SqlGameStore(db), args.sport, args.season, rosters)
    except CollaboratorError as e:
        logger.error("Roster recording failed: %s", e)
        return 1
    finally:
        db.close()

    logger.info("Recorded %d %s roster snapshots for %d", saved, args.sport, args.season)
    return 0


if __name__ == "__main__":
    sys.exit(main())
