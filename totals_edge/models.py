"""
Database models for the totals engine's historical-game store.
SQLAlchemy ORM; PostgreSQL in production, SQLite locally and in tests.

The engine only *reads* these tables.  They are populated by the ingestion
and backfill jobs, which live outside this package.
"""

from sqlalchemy import (
    create_engine,
    Column,
    Integer,
    String,
    Float,
    DateTime,
    JSON,
    Text,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, sessionmaker, relationship
from datetime import datetime
import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./totals_edge.db")

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, pool_pre_ping=True, echo=False, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class Franchise(Base):
    """A team identity that survives relocations and renames"""

    __tablename__ = "franchises"

    id = Column(String, primary_key=True)
    sport_id = Column(String, nullable=False, index=True)
    canonical_name = Column(String, nullable=False)

    teams = relationship("Team", back_populates="franchise")


class Team(Base):
    """A team as it currently exists (abbrev, city, name)"""

    __tablename__ = "teams"

    id = Column(String, primary_key=True)
    sport_id = Column(String, nullable=False, index=True)
    abbrev = Column(String, nullable=False)
    name = Column(String, nullable=False)
    franchise_id = Column(String, ForeignKey("franchises.id"), nullable=True, index=True)

    franchise = relationship("Franchise", back_populates="teams")

    __table_args__ = (
        UniqueConstraint("sport_id", "abbrev", name="uq_team_sport_abbrev"),
    )


class Game(Base):
    """Any game, scheduled or completed"""

    __tablename__ = "games"

    id = Column(Integer, primary_key=True, index=True)
    sport_id = Column(String, nullable=False, index=True)
    start_time_utc = Column(DateTime, nullable=False, index=True)
    home_team_id = Column(String, ForeignKey("teams.id"), nullable=False, index=True)
    away_team_id = Column(String, ForeignKey("teams.id"), nullable=False, index=True)

    # Filled after the game
    home_score = Column(Integer)
    away_score = Column(Integer)
    status = Column(String, default="scheduled", nullable=False)  # "scheduled" | "final"

    created_at = Column(DateTime, default=datetime.utcnow)


class MatchupGame(Base):
    """
    One completed head-to-head game, keyed both by team pair and by
    franchise pair.  Pairs are stored sorted (low id first).
    """

    __tablename__ = "matchup_games"

    id = Column(Integer, primary_key=True, index=True)
    sport_id = Column(String, nullable=False)
    game_id = Column(Integer, ForeignKey("games.id"), nullable=True)

    team_low_id = Column(String, nullable=False)
    team_high_id = Column(String, nullable=False)
    franchise_low_id = Column(String, nullable=True)
    franchise_high_id = Column(String, nullable=True)

    total = Column(Float, nullable=False)
    played_at_utc = Column(DateTime, nullable=False)
    season_year = Column(Integer, nullable=False)

    __table_args__ = (
        Index("ix_matchup_games_teams", "sport_id", "team_low_id", "team_high_id"),
        Index("ix_matchup_games_franchises", "sport_id", "franchise_low_id", "franchise_high_id"),
    )


class RosterSnapshotRecord(Base):
    """Key roster and continuity for one team-season"""

    __tablename__ = "roster_snapshots"

    id = Column(Integer, primary_key=True, index=True)
    team_id = Column(String, ForeignKey("teams.id"), nullable=False, index=True)
    sport_id = Column(String, nullable=False)
    season_year = Column(Integer, nullable=False)

    key_players = Column(JSON)          # [{id, name, position, experience}, ...]
    continuity_score = Column(Float)    # NULL when no prior season to compare
    era_tag = Column(String)
    era_start_year = Column(Integer)
    notes = Column(Text)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("team_id", "sport_id", "season_year", name="uq_roster_team_season"),
    )
