"""
Pydantic request/response schemas for the totals API.

Responses mirror ``TotalsEstimate.to_dict()`` and the segment report so
the OpenAPI docs describe exactly what the engine returns.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class MatchupRequest(BaseModel):
    """
    Payload for POST /api/totals/estimate.

    Teams may be given as internal id, abbreviation (ESPN or internal) or
    display name; the team directory resolves all three.
    """

    sport_id: str = Field(..., min_length=2, max_length=16, description='e.g. "nba"')
    home_team: str = Field(..., min_length=1, max_length=120)
    away_team: str = Field(..., min_length=1, max_length=120)
    as_of: Optional[date] = Field(None, description="Reference date; defaults to today")
    allow_hydration: bool = Field(True, description="Permit one upstream fetch on thin history")
    hydration_timeout_s: Optional[float] = Field(None, gt=0, le=120)

    @field_validator("sport_id")
    @classmethod
    def normalize_sport(cls, v: str) -> str:
        return v.strip().lower()

    @model_validator(mode="after")
    def distinct_teams(self) -> MatchupRequest:
        if self.home_team.strip().lower() == self.away_team.strip().lower():
            raise ValueError("home_team and away_team must differ")
        return self

    model_config = {
        "json_schema_extra": {
            "example": {
                "sport_id": "nba",
                "home_team": "BOS",
                "away_team": "Los Angeles Lakers",
                "as_of": "2025-01-15",
            }
        }
    }


class SegmentReportRequest(MatchupRequest):
    """Payload for POST /api/totals/segments."""

    include_decades: bool = Field(False, description="Add decade rows for comparison")


# ---------------------------------------------------------------------------
# Estimate response
# ---------------------------------------------------------------------------

class ConfidenceFactorsOut(BaseModel):
    sample_size_score: int
    recency_score: int
    roster_continuity_score: int


class ConfidenceOut(BaseModel):
    score: int = Field(..., ge=0, le=100)
    label: str
    factors: Optional[ConfidenceFactorsOut] = None


class HydrationOut(BaseModel):
    inserted_count: int
    total_count: int


class EstimateResponse(BaseModel):
    segment_used: str
    n_used: int
    p05: Optional[float] = None
    p95: Optional[float] = None
    median: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None
    confidence: ConfidenceOut
    keyed_by: str
    diagnostic: str
    hydration: Optional[HydrationOut] = None


# ---------------------------------------------------------------------------
# Segment report response
# ---------------------------------------------------------------------------

class SegmentRowOut(BaseModel):
    segment_key: str
    label: str
    n_games: int
    recency_weight: float
    p05: Optional[float] = None
    p95: Optional[float] = None
    median: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None
    range: Optional[float] = None
    confidence: int
    confidence_label: str
    is_recommended: bool
    games_by_year: Dict[int, int] = Field(default_factory=dict)


class SegmentReportResponse(BaseModel):
    matchup_key: str
    keyed_by: str
    rows: List[SegmentRowOut]
    recommended_segment: str
    recommendation_reason: str
    total_historical_games: int
    data_quality: str
