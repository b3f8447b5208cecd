#!/usr/bin/env python3
"""
Match endpoints - compatibility previews, generation, feeds and actions.

The caller is identified by the X-User-Id header set by the upstream
auth layer.
"""

import uuid
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query

from core.app_context import AppContext
from core.matching.models import FeedRole
from core.matching.service import algorithm_info
from database.repository import MatchingRepository
from ..dependencies import get_app_context, get_current_user_id, get_repo, parse_uuid
from ..services.match_service import MatchService
from ..services.nightly_service import get_nightly_manager
from ..models.requests import MatchActionRequest
from ..models.responses import (
    AlgorithmInfoResponse,
    CompatibilityResponse,
    GenerateResponse,
    MatchActionResponse,
    MatchesResponse,
    NightlyRunResponse,
    NightlyStopResponse,
    OpeningStatsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/matches", tags=["matches"])


@router.get("/algorithm-info", response_model=AlgorithmInfoResponse)
def get_algorithm_info():
    """Factor weights, quality thresholds and factor descriptions."""
    return AlgorithmInfoResponse(success=True, **algorithm_info())


@router.get("/compatibility", response_model=CompatibilityResponse)
def get_compatibility(
    opening_id: str = Query(..., description="Opening ID"),
    builder_id: str = Query(..., description="Builder user ID"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: MatchingRepository = Depends(get_repo),
    ctx: AppContext = Depends(get_app_context)
):
    """
    Preview the compatibility of an opening and a builder.

    Nothing is stored. Returns the score, quality band and per-factor
    breakdown, or the hard filter reason if the pair is filtered out.
    """
    service = MatchService(repo, ctx)
    return service.preview_compatibility(
        parse_uuid(opening_id, "opening_id"),
        parse_uuid(builder_id, "builder_id")
    )


@router.post("/generate/opening/{opening_id}", response_model=GenerateResponse)
def generate_for_opening(
    opening_id: str,
    limit: Optional[int] = Query(default=None, ge=0, le=500, description="Maximum candidates"),
    min_score: Optional[int] = Query(default=None, ge=0, le=100, description="Minimum score"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: MatchingRepository = Depends(get_repo),
    ctx: AppContext = Depends(get_app_context)
):
    """Rank builders for one of the caller's openings."""
    matching_config = ctx.config.matching
    service = MatchService(repo, ctx)
    return service.generate_for_opening(
        parse_uuid(opening_id, "opening_id"),
        user_id,
        limit=limit if limit is not None else matching_config.default_limit,
        min_score=min_score if min_score is not None else matching_config.min_score
    )


@router.post("/generate/builder/{builder_id}", response_model=GenerateResponse)
def generate_for_builder(
    builder_id: str,
    limit: Optional[int] = Query(default=None, ge=0, le=500, description="Maximum candidates"),
    min_score: Optional[int] = Query(default=None, ge=0, le=100, description="Minimum score"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: MatchingRepository = Depends(get_repo),
    ctx: AppContext = Depends(get_app_context)
):
    """Rank active openings for the calling builder."""
    matching_config = ctx.config.matching
    service = MatchService(repo, ctx)
    return service.generate_for_builder(
        parse_uuid(builder_id, "builder_id"),
        user_id,
        limit=limit if limit is not None else matching_config.default_limit,
        min_score=min_score if min_score is not None else matching_config.min_score
    )


@router.get("/daily", response_model=MatchesResponse)
def get_daily_matches(
    role: FeedRole = Query(..., description="Feed side: founder or builder"),
    tier: Optional[str] = Query(default=None, description="Subscription tier (FREE, FOUNDER_PRO, BUILDER_BOOST)"),
    limit: Optional[int] = Query(default=None, description="Override the tier cap; negative for no cap"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: MatchingRepository = Depends(get_repo),
    ctx: AppContext = Depends(get_app_context)
):
    """
    Today's feed: matches the caller has not liked or skipped yet,
    best score first.
    """
    return MatchService(repo, ctx).daily_matches(user_id, role, tier=tier, limit=limit)


@router.get("/mutual", response_model=MatchesResponse)
def get_mutual_matches(
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: MatchingRepository = Depends(get_repo),
    ctx: AppContext = Depends(get_app_context)
):
    """Mutual matches for the caller, most recent first."""
    return MatchService(repo, ctx).mutual_matches(user_id)


@router.post("/admin/run-nightly", response_model=NightlyRunResponse)
def run_nightly(ctx: AppContext = Depends(get_app_context)):
    """Run the nightly sweep now and return its summary."""
    result = get_nightly_manager().run(ctx)
    return NightlyRunResponse(**result.to_dict())


@router.post("/admin/stop-nightly", response_model=NightlyStopResponse)
def stop_nightly():
    """
    Stop the running on-demand sweep after its current opening.

    The sweep's own response reports the partial summary.
    """
    if not get_nightly_manager().stop():
        return NightlyStopResponse(success=False, message="No nightly sweep is running.")
    return NightlyStopResponse(success=True, message="Nightly sweep cancellation requested.")


@router.get("/openings/{opening_id}/stats", response_model=OpeningStatsResponse)
def get_opening_stats(
    opening_id: str,
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: MatchingRepository = Depends(get_repo),
    ctx: AppContext = Depends(get_app_context)
):
    """Stored match counts by status for one of the caller's openings."""
    return MatchService(repo, ctx).opening_stats(parse_uuid(opening_id, "opening_id"), user_id)


@router.post("/{match_id}/action", response_model=MatchActionResponse)
def record_match_action(
    match_id: str,
    request: MatchActionRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: MatchingRepository = Depends(get_repo),
    ctx: AppContext = Depends(get_app_context)
):
    """
    Record LIKE, SKIP or SAVE on a match.

    newly_mutual is true only on the request that made the match mutual.
    """
    service = MatchService(repo, ctx)
    return service.record_action(parse_uuid(match_id, "match_id"), user_id, request.action)


@router.post("/{match_id}/like", response_model=MatchActionResponse)
def like_match(
    match_id: str,
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: MatchingRepository = Depends(get_repo),
    ctx: AppContext = Depends(get_app_context)
):
    service = MatchService(repo, ctx)
    return service.like(parse_uuid(match_id, "match_id"), user_id)


@router.post("/{match_id}/skip", response_model=MatchActionResponse)
def skip_match(
    match_id: str,
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: MatchingRepository = Depends(get_repo),
    ctx: AppContext = Depends(get_app_context)
):
    service = MatchService(repo, ctx)
    return service.skip(parse_uuid(match_id, "match_id"), user_id)


@router.post("/{match_id}/save", response_model=MatchActionResponse)
def save_match(
    match_id: str,
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: MatchingRepository = Depends(get_repo),
    ctx: AppContext = Depends(get_app_context)
):
    service = MatchService(repo, ctx)
    return service.save(parse_uuid(match_id, "match_id"), user_id)
