#!/usr/bin/env python3
"""
Response models for API endpoints.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict, Any


class FactorScoreModel(BaseModel):
    """One factor of a compatibility breakdown."""
    score: int = Field(ge=0, le=100)
    weight: float = Field(ge=0, le=1)
    weighted: int = Field(ge=0, le=100)


class CompatibilityModel(BaseModel):
    """Compatibility of one (opening, builder) pair."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "passes": True,
                "score": 95,
                "quality": "EXCELLENT",
                "reason": None,
                "breakdown": {
                    "compensation": {"score": 100, "weight": 0.3, "weighted": 30},
                    "commitment": {"score": 100, "weight": 0.2, "weighted": 20},
                    "stage": {"score": 100, "weight": 0.15, "weighted": 15},
                    "skills": {"score": 100, "weight": 0.15, "weighted": 15},
                    "scenario": {"score": 50, "weight": 0.1, "weighted": 5},
                    "geography": {"score": 100, "weight": 0.1, "weighted": 10}
                }
            }
        }
    )

    passes: bool
    score: int = Field(ge=0, le=100)
    quality: str
    reason: Optional[str] = None
    breakdown: Optional[Dict[str, FactorScoreModel]] = None


class CompatibilityResponse(BaseModel):
    """Response for the compatibility preview endpoint."""
    success: bool
    opening_id: str
    builder_id: str
    compatibility: CompatibilityModel


class FactorInfo(BaseModel):
    name: str
    weight: float
    description: str


class AlgorithmInfoResponse(BaseModel):
    """Weights, thresholds and factor descriptions."""
    success: bool
    weights: Dict[str, float]
    thresholds: Dict[str, int]
    factors: List[FactorInfo]


class RankedCandidateModel(BaseModel):
    """One entry of a generated candidate list."""
    opening_id: str
    founder_id: str
    builder_id: str
    score: int = Field(ge=0, le=100)
    quality: str
    breakdown: Optional[Dict[str, FactorScoreModel]] = None


class GenerateResponse(BaseModel):
    """Response for the generate-for-opening and generate-for-builder endpoints."""
    success: bool
    count: int
    candidates: List[RankedCandidateModel]


class MatchSummary(BaseModel):
    """Summary of a stored match."""
    match_id: str
    founder_id: str
    builder_id: str
    opening_id: str
    compatibility_score: int = Field(ge=0, le=100)
    score_breakdown: Optional[Dict[str, Any]] = None
    status: str
    founder_action: Optional[str] = None
    builder_action: Optional[str] = None
    is_mutual: bool
    matched_at: Optional[str] = None
    calculated_at: Optional[str] = None
    last_activity_at: Optional[str] = None
    status_history: List[Dict[str, Any]] = []


class MatchesResponse(BaseModel):
    """Response for match listings (daily feed, mutual matches)."""
    success: bool
    count: int
    matches: List[MatchSummary]


class MatchActionResponse(BaseModel):
    """Response after recording an action."""
    success: bool
    message: str
    match: MatchSummary
    is_mutual: bool
    newly_mutual: bool


class NightlyRunResponse(BaseModel):
    """Summary of a nightly sweep."""
    success: bool
    openings_processed: int
    matches_created: int
    matches_updated: int
    errors: int
    duration_ms: int
    cancelled: bool
    error: Optional[str] = None


class NightlyStopResponse(BaseModel):
    """Result of a stop request for the running sweep."""
    success: bool
    message: str


class OpeningStatsResponse(BaseModel):
    """Stored match counts for one opening, by status."""
    success: bool
    opening_id: str
    total: int
    by_status: Dict[str, int]
