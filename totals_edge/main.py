"""
FastAPI application for the totals percentile engine.

Endpoints:
    GET  /health                 database connectivity
    POST /api/totals/estimate    engine estimate for one matchup
    POST /api/totals/segments    every segment side by side
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Tuple
import logging
import os

from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from totals_edge import __version__
from totals_edge.core.engine_config import EngineConfig
from totals_edge.core.errors import CollaboratorError
from totals_edge.core.interfaces import TeamRef
from totals_edge.models import get_db
from totals_edge.schemas import (
    EstimateResponse,
    MatchupRequest,
    SegmentReportRequest,
    SegmentReportResponse,
    SegmentRowOut,
)
from totals_edge.services.game_store import SqlGameStore
from totals_edge.services.hydration import hydrator_from_env
from totals_edge.services.segment_report import build_segment_report
from totals_edge.services.team_mapping import TeamDirectory
from totals_edge.services.totals_engine import TotalsEngine

# Logging setup
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    app.state.engine_config = EngineConfig.from_env()
    app.state.hydrator = hydrator_from_env()
    app.state.team_directory = None
    logger.info("Starting totals engine API %s", __version__)
    yield
    logger.info("Totals engine API stopped")


app = FastAPI(
    title="Totals Edge",
    description="Historical segment selection and percentile estimation for game totals",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# DEPENDENCIES
# ============================================================================

def get_team_directory(request: Request, db: Session = Depends(get_db)) -> TeamDirectory:
    """Process-wide directory, loaded on first use."""
    directory = getattr(request.app.state, "team_directory", None)
    if directory is None:
        try:
            directory = TeamDirectory.from_db(db)
        except CollaboratorError as exc:
            raise HTTPException(status_code=503, detail=str(exc))
        request.app.state.team_directory = directory
    return directory


def get_engine(request: Request, db: Session = Depends(get_db)) -> TotalsEngine:
    config = getattr(request.app.state, "engine_config", None) or EngineConfig.from_env()
    hydrator = getattr(request.app.state, "hydrator", None)
    return TotalsEngine(SqlGameStore(db), hydrator=hydrator, config=config)


def _resolve_teams(directory: TeamDirectory, payload: MatchupRequest) -> Tuple[TeamRef, TeamRef]:
    home = directory.resolve(payload.sport_id, payload.home_team)
    away = directory.resolve(payload.sport_id, payload.away_team)
    missing = [q for q, ref in ((payload.home_team, home), (payload.away_team, away)) if ref is None]
    if missing:
        raise HTTPException(
            status_code=404,
            detail=f"Unknown {payload.sport_id} team(s): {', '.join(missing)}",
        )
    if home.team_id == away.team_id:
        raise HTTPException(status_code=422, detail="home_team and away_team resolve to the same team")
    return home, away


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    return {
        "app": "Totals Edge",
        "version": __version__,
        "status": "operational",
        "timestamp": datetime.utcnow().isoformat(),
    }


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Health check endpoint"""
    health = {"status": "healthy", "database": "connected"}
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Health check database error: %s", e)
        health["status"] = "degraded"
        health["database"] = f"error: {e}"
    return health


# ============================================================================
# TOTALS
# ============================================================================

@app.post("/api/totals/estimate", response_model=EstimateResponse)
def estimate_totals(
    payload: MatchupRequest,
    directory: TeamDirectory = Depends(get_team_directory),
    engine: TotalsEngine = Depends(get_engine),
):
    """Percentile estimate and confidence for one matchup."""
    home, away = _resolve_teams(directory, payload)
    result = engine.estimate(
        payload.sport_id,
        home,
        away,
        as_of=payload.as_of,
        allow_hydration=payload.allow_hydration,
        hydration_timeout=payload.hydration_timeout_s,
    )
    logger.info(
        "Estimate %s %s vs %s: %s n=%d conf=%d",
        payload.sport_id, home.team_id, away.team_id,
        result.segment_used, result.n_used, result.confidence.score,
    )
    return EstimateResponse(**result.to_dict())


@app.post("/api/totals/segments", response_model=SegmentReportResponse)
def segment_report(
    payload: SegmentReportRequest,
    directory: TeamDirectory = Depends(get_team_directory),
    engine: TotalsEngine = Depends(get_engine),
):
    """Stats for every historical window plus a recommended one."""
    home, away = _resolve_teams(directory, payload)
    home_cont, away_cont = engine.team_continuity(payload.sport_id, home, away)
    try:
        report = build_segment_report(
            engine.store,
            payload.sport_id,
            home,
            away,
            as_of=payload.as_of,
            home_continuity=home_cont,
            away_continuity=away_cont,
            include_decades=payload.include_decades,
        )
    except CollaboratorError as exc:
        logger.error("Segment report failed: %s", exc)
        raise HTTPException(status_code=503, detail=f"{exc.collaborator} unavailable")

    return SegmentReportResponse(
        matchup_key=str(report.key),
        keyed_by=report.key.keyed_by,
        rows=[
            SegmentRowOut(
                segment_key=r.segment_key,
                label=r.label,
                n_games=r.n_games,
                recency_weight=r.recency_weight,
                p05=r.p05,
                p95=r.p95,
                median=r.median,
                min=r.min,
                max=r.max,
                range=r.range,
                confidence=r.confidence,
                confidence_label=r.confidence_label,
                is_recommended=r.is_recommended,
                games_by_year=r.games_by_year,
            )
            for r in report.rows
        ],
        recommended_segment=report.recommended_segment,
        recommendation_reason=report.recommendation_reason,
        total_historical_games=report.total_historical_games,
        data_quality=report.data_quality,
    )


# ============================================================================
# ERROR HANDLERS
# ============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Catch-all exception handler"""
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": type(exc).__name__}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
