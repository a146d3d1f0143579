#!/usr/bin/env python3
"""
Print the engine's estimate (or the full segment report) for one matchup.

Usage:
    python scripts/estimate_matchup.py nba BOS "Los Angeles Lakers"
    python scripts/estimate_matchup.py nba BOS LAL --as-of 2025-01-15 --segments
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
from dataclasses import asdict
from datetime import date

from totals_edge.core.engine_config import EngineConfig
from totals_edge.models import SessionLocal
from totals_edge.services.game_store import SqlGameStore
from totals_edge.services.hydration import hydrator_from_env
from totals_edge.services.segment_report import build_segment_report
from totals_edge.services.team_mapping import TeamDirectory
from totals_edge.services.totals_engine import TotalsEngine

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Historical totals estimate for one matchup")
    parser.add_argument("sport", help="Sport id, e.g. nba")
    parser.add_argument("home", help="Home team id, abbreviation or name")
    parser.add_argument("away", help="Away team id, abbreviation or name")
    parser.add_argument("--as-of", type=date.fromisoformat, default=None, help="Reference date (YYYY-MM-DD)")
    parser.add_argument("--no-hydrate", action="store_true", help="Never call the hydration service")
    parser.add_argument("--segments", action="store_true", help="Print every segment instead of one estimate")
    parser.add_argument("--decades", action="store_true", help="Include decade rows with --segments")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        directory = TeamDirectory.from_db(db)
        home = directory.resolve(args.sport, args.home)
        away = directory.resolve(args.sport, args.away)
        if home is None or away is None:
            logger.error("Unknown team: %s", args.home if home is None else args.away)
            return 2

        engine = TotalsEngine(SqlGameStore(db), hydrator=hydrator_from_env(), config=EngineConfig.from_env())

        if args.segments:
            home_cont, away_cont = engine.team_continuity(args.sport, home, away)
            report = build_segment_report(
                engine.store, args.sport, home, away,
                as_of=args.as_of,
                home_continuity=home_cont,
                away_continuity=away_cont,
                include_decades=args.decades,
            )
            output = {
                "matchup_key": str(report.key),
                "recommended_segment": report.recommended_segment,
                "recommendation_reason": report.recommendation_reason,
                "data_quality": report.data_quality,
                "rows": [asdict(r) for r in report.rows],
            }
        else:
            result = engine.estimate(args.sport, home, away, as_of=args.as_of, allow_hydration=not args.no_hydrate)
            output = result.to_dict()
    finally:
        db.close()

    print(json.dumps(output, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
