#!/usr/bin/env python3
"""
Match service - business logic behind the match endpoints.
"""

import logging
from typing import Any, List, Optional

from core.app_context import AppContext
from core.matching.actions import ActionResult, MatchActionService
from core.matching.exceptions import ForbiddenError
from core.matching.feed import DailyFeedSelector, limit_for_tier
from core.matching.generator import BatchMatchGenerator
from core.matching.models import RankedCandidate
from database.models import Match
from database.repository import MatchingRepository
from ..models.responses import (
    CompatibilityModel,
    CompatibilityResponse,
    GenerateResponse,
    MatchActionResponse,
    MatchesResponse,
    MatchSummary,
    OpeningStatsResponse,
    RankedCandidateModel,
)
from ..utils import id_str, safe_score, safe_datetime_iso

logger = logging.getLogger(__name__)


class MatchService:
    """Service for match previews, generation, feeds and actions."""

    def __init__(self, repo: MatchingRepository, ctx: AppContext):
        self.repo = repo
        self.ctx = ctx

    def _generator(self) -> BatchMatchGenerator:
        return BatchMatchGenerator(
            self.repo.profiles,
            self.ctx.compatibility_service,
            max_workers=self.ctx.config.matching.max_workers
        )

    def preview_compatibility(self, opening_id: Any, builder_id: Any) -> CompatibilityResponse:
        """
        Score one opening against one builder without persisting anything.

        Raises:
            NotFoundError: If the opening or builder profile is not found.
        """
        opening = self.repo.profiles.get_opening(opening_id)
        builder = self.repo.profiles.get_builder_profile(builder_id)

        result = self.ctx.compatibility_service.calculate_compatibility(opening, builder)

        return CompatibilityResponse(
            success=True,
            opening_id=str(opening_id),
            builder_id=str(builder_id),
            compatibility=CompatibilityModel(**result.to_dict())
        )

    def generate_for_opening(
        self,
        opening_id: Any,
        user_id: Any,
        limit: int,
        min_score: int
    ) -> GenerateResponse:
        """
        Rank builders for an opening owned by the caller.

        Raises:
            NotFoundError: If the opening is not found.
            ForbiddenError: If the caller does not own the opening.
            InvalidInputError: If the opening is not active.
        """
        row = self.repo.profiles.get_opening_row(opening_id)
        if str(row.founder_id) != str(user_id):
            raise ForbiddenError(f"User {user_id} does not own opening {opening_id}")

        candidates = self._generator().generate_for_opening(opening_id, limit=limit, min_score=min_score)
        return self._to_generate_response(candidates)

    def generate_for_builder(
        self,
        builder_id: Any,
        user_id: Any,
        limit: int,
        min_score: int
    ) -> GenerateResponse:
        """
        Rank openings for the calling builder.

        Raises:
            ForbiddenError: If the caller is not the builder.
            NotFoundError: If the builder profile is not found.
            InvalidInputError: If the builder profile is incomplete.
        """
        if str(builder_id) != str(user_id):
            raise ForbiddenError(f"User {user_id} cannot generate matches for builder {builder_id}")

        candidates = self._generator().generate_for_builder(builder_id, limit=limit, min_score=min_score)
        return self._to_generate_response(candidates)

    def daily_matches(
        self,
        user_id: Any,
        role: str,
        tier: Optional[str] = None,
        limit: Optional[int] = None
    ) -> MatchesResponse:
        """Daily feed; an explicit limit wins over the tier cap."""
        if limit is None:
            limit = limit_for_tier(tier, self.ctx.config.feed.tier_limits)

        selector = DailyFeedSelector(self.repo.matches, self.repo.profiles)
        matches = selector.daily_matches_for(user_id, role, limit=limit)
        return self._to_matches_response(matches)

    def mutual_matches(self, user_id: Any) -> MatchesResponse:
        selector = DailyFeedSelector(self.repo.matches, self.repo.profiles)
        return self._to_matches_response(selector.mutual_matches_for(user_id))

    def record_action(self, match_id: Any, user_id: Any, action: str) -> MatchActionResponse:
        """
        Record LIKE / SKIP / SAVE for the caller.

        Raises:
            InvalidInputError: If the action is not LIKE, SKIP or SAVE.
            NotFoundError: If the match is not found.
            ForbiddenError: If the caller is not a participant.
        """
        return self._to_action_response(self._actions().record_action(match_id, user_id, action))

    def like(self, match_id: Any, user_id: Any) -> MatchActionResponse:
        return self._to_action_response(self._actions().like(match_id, user_id))

    def skip(self, match_id: Any, user_id: Any) -> MatchActionResponse:
        return self._to_action_response(self._actions().skip(match_id, user_id))

    def save(self, match_id: Any, user_id: Any) -> MatchActionResponse:
        return self._to_action_response(self._actions().save(match_id, user_id))

    def opening_stats(self, opening_id: Any, user_id: Any) -> OpeningStatsResponse:
        """
        Stored match counts by status for one of the caller's openings.

        Raises:
            NotFoundError: If the opening is not found.
            ForbiddenError: If the caller does not own the opening.
        """
        row = self.repo.profiles.get_opening_row(opening_id)
        if str(row.founder_id) != str(user_id):
            raise ForbiddenError(f"User {user_id} does not own opening {opening_id}")

        by_status = self.repo.matches.count_by_status(opening_id)
        return OpeningStatsResponse(
            success=True,
            opening_id=str(opening_id),
            total=sum(by_status.values()),
            by_status=by_status
        )

    def _actions(self) -> MatchActionService:
        return MatchActionService(self.repo.matches)

    def _to_action_response(self, result: ActionResult) -> MatchActionResponse:
        message = "Action recorded"
        if result.newly_mutual:
            message = "It's a match! You both liked each other."

        return MatchActionResponse(
            success=True,
            message=message,
            match=self._to_match_summary(result.match),
            is_mutual=bool(result.match.is_mutual),
            newly_mutual=result.newly_mutual
        )

    def _to_generate_response(self, candidates: List[RankedCandidate]) -> GenerateResponse:
        return GenerateResponse(
            success=True,
            count=len(candidates),
            candidates=[
                RankedCandidateModel(
                    opening_id=id_str(c.opening_id),
                    founder_id=id_str(c.founder_id),
                    builder_id=id_str(c.builder_id),
                    score=c.score,
                    quality=c.compatibility.quality.value,
                    breakdown=c.compatibility.breakdown_dict()
                )
                for c in candidates
            ]
        )

    def _to_matches_response(self, matches: List[Match]) -> MatchesResponse:
        return MatchesResponse(
            success=True,
            count=len(matches),
            matches=[self._to_match_summary(m) for m in matches]
        )

    def _to_match_summary(self, match: Match) -> MatchSummary:
        """Convert ORM model to MatchSummary response model."""
        return MatchSummary(
            match_id=id_str(match.id),
            founder_id=id_str(match.founder_id),
            builder_id=id_str(match.builder_id),
            opening_id=id_str(match.opening_id),
            compatibility_score=safe_score(match.compatibility_score),
            score_breakdown=match.score_breakdown,
            status=match.status,
            founder_action=match.founder_action,
            builder_action=match.builder_action,
            is_mutual=bool(match.is_mutual),
            matched_at=safe_datetime_iso(match.matched_at),
            calculated_at=safe_datetime_iso(match.calculated_at),
            last_activity_at=safe_datetime_iso(match.last_activity_at),
            status_history=list(match.status_history or [])
        )
