import logging
from typing import Any, Iterator, Optional

from sqlalchemy import select

from core.matching.exceptions import InvalidInputError
from core.matching.models import BuilderSnapshot, Location, OpeningSnapshot, Range
from database.models import BuilderProfile, FounderProfile, Opening, ScenarioResponse
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

ACTIVE_OPENING_STATUS = 'ACTIVE'

# Rows fetched per round trip when streaming large candidate sets
STREAM_BATCH_SIZE = 500


def _to_float(value) -> float:
    if value is None:
        return 0.0
    return float(value)


def opening_to_snapshot(opening: Opening, founder: Optional[FounderProfile] = None) -> OpeningSnapshot:
    """Project an Opening row (and its founder profile) onto an OpeningSnapshot.

    Raises:
        InvalidInputError: if the row is missing required fields
    """
    founder = founder or opening.founder_profile
    return OpeningSnapshot(
        id=opening.id,
        founder_id=opening.founder_id,
        role_type=opening.role_type,
        required_skills=frozenset(opening.skills_required or []),
        equity_range=Range(_to_float(opening.equity_min), _to_float(opening.equity_max)),
        cash_range=Range(_to_float(opening.cash_min), _to_float(opening.cash_max)),
        hours_per_week=_to_float(opening.hours_per_week),
        remote_preference=opening.remote_preference,
        startup_stage=founder.startup_stage if founder else None,
        founder_location=Location(
            city=founder.city if founder else None,
            country=founder.country if founder else None,
        ),
        currency=opening.currency or 'INR',
    )


def builder_to_snapshot(profile: BuilderProfile) -> BuilderSnapshot:
    """Project a BuilderProfile row onto a BuilderSnapshot.

    Raises:
        InvalidInputError: if the row is missing required fields
    """
    return BuilderSnapshot(
        user_id=profile.user_id,
        profile_id=profile.id,
        skills=frozenset(profile.skills or []),
        risk_appetite=profile.risk_appetite,
        compensation_openness=frozenset(profile.compensation_openness or []),
        hours_per_week=_to_float(profile.hours_per_week),
        roles_interested=frozenset(profile.roles_interested or []),
        remote_preference=profile.remote_preference,
        location=Location(city=profile.city, country=profile.country),
    )


class ProfileRepository(BaseRepository):
    """Read-only access to openings, profiles and quiz responses."""

    def get_opening_row(self, opening_id: Any) -> Opening:
        return self._one_or_not_found(
            select(Opening).where(Opening.id == opening_id),
            f"Opening {opening_id} not found"
        )

    def get_opening(self, opening_id: Any) -> OpeningSnapshot:
        return opening_to_snapshot(self.get_opening_row(opening_id))

    def get_builder_row(self, user_id: Any) -> BuilderProfile:
        return self._one_or_not_found(
            select(BuilderProfile).where(BuilderProfile.user_id == user_id),
            f"Builder profile for user {user_id} not found"
        )

    def get_builder_profile(self, user_id: Any) -> BuilderSnapshot:
        return builder_to_snapshot(self.get_builder_row(user_id))

    def _safe_opening_snapshot(self, opening: Opening) -> Optional[OpeningSnapshot]:
        try:
            return opening_to_snapshot(opening)
        except InvalidInputError as e:
            logger.warning(f"Skipping opening {opening.id}: {e}")
            return None

    def _stream_openings(self, stmt) -> Iterator[Opening]:
        stmt = stmt.execution_options(yield_per=STREAM_BATCH_SIZE)
        for opening in self.db.execute(stmt).scalars():
            yield opening

    def list_active_openings(self) -> Iterator[OpeningSnapshot]:
        """Stream every ACTIVE opening as a snapshot, in id order."""
        stmt = select(Opening).where(Opening.status == ACTIVE_OPENING_STATUS).order_by(Opening.id)
        for opening in self._stream_openings(stmt):
            snapshot = self._safe_opening_snapshot(opening)
            if snapshot is not None:
                yield snapshot

    def list_active_opening_ids(self) -> list:
        stmt = select(Opening.id).where(Opening.status == ACTIVE_OPENING_STATUS).order_by(Opening.id)
        return list(self.db.execute(stmt).scalars().all())

    def list_eligible_builders(self) -> Iterator[BuilderSnapshot]:
        """Stream builders that are complete, visible and open to opportunities."""
        stmt = (
            select(BuilderProfile)
            .where(
                BuilderProfile.is_complete.is_(True),
                BuilderProfile.is_visible.is_(True),
                BuilderProfile.is_open_to_opportunities.is_(True),
            )
            .order_by(BuilderProfile.id)
            .execution_options(yield_per=STREAM_BATCH_SIZE)
        )
        for profile in self.db.execute(stmt).scalars():
            try:
                yield builder_to_snapshot(profile)
            except InvalidInputError as e:
                logger.warning(f"Skipping builder profile {profile.id}: {e}")

    def candidates_for_opening(self, opening: OpeningSnapshot) -> Iterator[BuilderSnapshot]:
        """Eligible builders for an opening, excluding the opening's own founder."""
        for builder in self.list_eligible_builders():
            if builder.user_id == opening.founder_id:
                continue
            yield builder

    def candidates_for_builder(self, builder: BuilderSnapshot) -> Iterator[OpeningSnapshot]:
        """Active openings not owned by the builder's own user account."""
        stmt = (
            select(Opening)
            .where(
                Opening.status == ACTIVE_OPENING_STATUS,
                Opening.founder_id != builder.user_id,
            )
            .order_by(Opening.id)
        )
        for opening in self._stream_openings(stmt):
            snapshot = self._safe_opening_snapshot(opening)
            if snapshot is not None:
                yield snapshot

    def get_scenario_responses(self, user_id: Any) -> Optional[ScenarioResponse]:
        return self.db.execute(
            select(ScenarioResponse).where(ScenarioResponse.user_id == user_id)
        ).scalar_one_or_none()

    def list_active_opening_ids_for_founder(self, founder_id: Any) -> list:
        stmt = select(Opening.id).where(
            Opening.founder_id == founder_id,
            Opening.status == ACTIVE_OPENING_STATUS,
        ).order_by(Opening.id)
        return list(self.db.execute(stmt).scalars().all())
