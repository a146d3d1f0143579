"""
SQL-backed historical game store.

Implements :class:`~totals_edge.core.interfaces.HistoricalGameStore` on top
of the ``matchup_games``, ``games`` and ``roster_snapshots`` tables.  Every
SQLAlchemy failure is re-raised as ``CollaboratorError`` so the engine can
degrade to an ``insufficient`` result instead of crashing the request.
"""

import logging
from datetime import datetime, time
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from totals_edge.core.errors import CollaboratorError
from totals_edge.core.interfaces import (
    HistoricalGameStore,
    HistoricalObservation,
    MatchupKey,
    RosterPlayer,
    RosterSnapshot,
)
from totals_edge.core.segments import DecadeSegment
from totals_edge.models import Game, MatchupGame, RosterSnapshotRecord

logger = logging.getLogger(__name__)


def _player_from_json(raw) -> RosterPlayer:
    if isinstance(raw, str):
        return RosterPlayer(id=raw)
    return RosterPlayer(
        id=str(raw.get("id")),
        name=raw.get("name") or "",
        position=raw.get("position") or "N/A",
        experience=int(raw.get("experience") or 0),
    )


def _player_to_json(player: RosterPlayer) -> dict:
    return {
        "id": player.id,
        "name": player.name,
        "position": player.position,
        "experience": player.experience,
    }


class SqlGameStore(HistoricalGameStore):
    """Read adapter over one SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def fetch_observations(
        self,
        key: MatchupKey,
        since_season: Optional[int] = None,
        decade: Optional[DecadeSegment] = None,
    ) -> List[HistoricalObservation]:
        if since_season is not None and decade is not None:
            raise ValueError("since_season and decade are mutually exclusive")

        if key.uses_franchise:
            low_col, high_col = MatchupGame.franchise_low_id, MatchupGame.franchise_high_id
        else:
            low_col, high_col = MatchupGame.team_low_id, MatchupGame.team_high_id

        try:
            query = self.db.query(MatchupGame).filter(
                MatchupGame.sport_id == key.sport_id,
                low_col == key.entity_low_id,
                high_col == key.entity_high_id,
            )
            if since_season is not None:
                query = query.filter(MatchupGame.season_year >= since_season)
            if decade is not None:
                query = query.filter(
                    MatchupGame.played_at_utc >= datetime.combine(decade.start, time.min),
                    MatchupGame.played_at_utc < datetime.combine(decade.end, time.min),
                )
            rows = query.order_by(MatchupGame.played_at_utc.desc()).all()
        except SQLAlchemyError as exc:
            logger.error("matchup_games query failed for %s: %s", key, exc)
            raise CollaboratorError(f"matchup_games query failed: {exc}") from exc

        return [
            HistoricalObservation(
                total=float(r.total),
                played_at=r.played_at_utc,
                season_year=r.season_year,
            )
            for r in rows
        ]

    def fetch_team_recent_games(self, team_id: str, limit: int) -> List[float]:
        try:
            games = (
                self.db.query(Game)
                .filter(
                    or_(Game.home_team_id == team_id, Game.away_team_id == team_id),
                    Game.status == "final",
                    Game.home_score.isnot(None),
                    Game.away_score.isnot(None),
                )
                .order_by(Game.start_time_utc.desc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as exc:
            logger.error("games query failed for team %s: %s", team_id, exc)
            raise CollaboratorError(f"games query failed: {exc}") from exc

        return [float(g.home_score + g.away_score) for g in games]

    def fetch_roster_snapshots(self, team_id: str, sport_id: str) -> List[RosterSnapshot]:
        try:
            rows = (
                self.db.query(RosterSnapshotRecord)
                .filter(
                    RosterSnapshotRecord.team_id == team_id,
                    RosterSnapshotRecord.sport_id == sport_id,
                )
                .order_by(RosterSnapshotRecord.season_year.desc())
                .all()
            )
        except SQLAlchemyError as exc:
            logger.error("roster_snapshots query failed for %s: %s", team_id, exc)
            raise CollaboratorError(f"roster_snapshots query failed: {exc}", collaborator="roster_store") from exc

        return [
            RosterSnapshot(
                team_id=r.team_id,
                sport_id=r.sport_id,
                season_year=r.season_year,
                continuity_score=r.continuity_score,
                key_players=tuple(_player_from_json(p) for p in (r.key_players or [])),
                era_tag=r.era_tag,
                era_start_year=r.era_start_year,
                notes=r.notes,
            )
            for r in rows
        ]

    # ------------------------------------------------------------------ #
    #  Backfill writer                                                     #
    # ------------------------------------------------------------------ #

    def save_roster_snapshot(self, snapshot: RosterSnapshot) -> None:
        """Insert or replace the snapshot for its team-season and commit."""
        try:
            record = (
                self.db.query(RosterSnapshotRecord)
                .filter_by(
                    team_id=snapshot.team_id,
                    sport_id=snapshot.sport_id,
                    season_year=snapshot.season_year,
                )
                .first()
            )
            if record is None:
                record = RosterSnapshotRecord(
                    team_id=snapshot.team_id,
                    sport_id=snapshot.sport_id,
                    season_year=snapshot.season_year,
                )
                self.db.add(record)

            record.key_players = [_player_to_json(p) for p in snapshot.key_players]
            record.continuity_score = snapshot.continuity_score
            record.era_tag = snapshot.era_tag
            record.era_start_year = snapshot.era_start_year
            record.notes = snapshot.notes
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Saving roster snapshot %s %d failed: %s", snapshot.team_id, snapshot.season_year, exc)
            raise CollaboratorError(f"roster snapshot write failed: {exc}", collaborator="roster_store") from exc
