#!/usr/bin/env python3
"""
Database initialization script
Creates all tables and optionally seeds a small demo matchup
"""

import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Load .env file
from dotenv import load_dotenv
load_dotenv()

from totals_edge.models import Base, engine, SessionLocal
from totals_edge.models import Franchise, Team, MatchupGame
from datetime import datetime
import logging
from sqlalchemy import text, inspect
from sqlalchemy.exc import SQLAlchemyError

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def init_database(drop_existing: bool = False):
    """
    Initialize database tables

    Args:
        drop_existing: If True, drops all tables first (DANGER: data loss!)
    """
    logger.info("Initializing totals database...")

    if drop_existing:
        logger.warning("Dropping all existing tables!")
        response = input("Are you sure? This will delete all data. Type 'yes' to confirm: ")
        if response.lower() != 'yes':
            logger.info("Aborted.")
            return False

        Base.metadata.drop_all(bind=engine)
        logger.info("Existing tables dropped")

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")

    inspector = inspect(engine)
    logger.info("Tables: %s", ", ".join(inspector.get_table_names()))
    return True


def seed_demo_data():
    """Two NBA franchises and eight seasons of head-to-head totals"""
    logger.info("Seeding demo data...")

    db = SessionLocal()
    try:
        db.add_all([
            Franchise(id="nba-bos", sport_id="nba", canonical_name="Boston Celtics"),
            Franchise(id="nba-lal", sport_id="nba", canonical_name="Los Angeles Lakers"),
        ])
        db.add_all([
            Team(id="BOS", sport_id="nba", abbrev="BOS", name="Boston Celtics", franchise_id="nba-bos"),
            Team(id="LAL", sport_id="nba", abbrev="LAL", name="Los Angeles Lakers", franchise_id="nba-lal"),
        ])

        this_year = datetime.utcnow().year
        for i, total in enumerate([221, 214, 230, 208, 226, 219, 235, 212, 224, 217, 229, 210]):
            season = this_year - (i // 2)
            db.add(MatchupGame(
                sport_id="nba",
                team_low_id="BOS",
                team_high_id="LAL",
                franchise_low_id="nba-bos",
                franchise_high_id="nba-lal",
                total=float(total),
                played_at_utc=datetime(season, 1 + (i % 2) * 2, 15, 0, 30),
                season_year=season,
            ))
        db.commit()
        logger.info("Demo data seeded")
    except SQLAlchemyError as e:
        logger.error("Error seeding data: %s", e)
        db.rollback()
    finally:
        db.close()


def check_connection():
    """Test database connection"""
    try:
        db = SessionLocal()
        db.execute(text("SELECT 1"))
        db.close()
        logger.info("Database connection successful")
        return True
    except SQLAlchemyError as e:
        logger.error("Database connection failed: %s", e)
        return False


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Initialize the totals database")
    parser.add_argument("--drop", action="store_true", help="Drop existing tables (DANGER!)")
    parser.add_argument("--seed", action="store_true", help="Seed a demo matchup")
    parser.add_argument("--check", action="store_true", help="Only check connection")

    args = parser.parse_args()

    if args.check:
        check_connection()
    else:
        if check_connection():
            if init_database(drop_existing=args.drop) and args.seed:
                seed_demo_data()
            logger.info("Database initialization complete")
        else:
            logger.error("Cannot initialize database - connection failed")
            sys.exit(1)
