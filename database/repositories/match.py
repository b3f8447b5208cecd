import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select, update, or_, func
from sqlalchemy.dialects import postgresql, sqlite

from core.matching.models import MatchStatus
from database.models import Match
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

_INSERT_BY_DIALECT = {
    'postgresql': postgresql.insert,
    'sqlite': sqlite.insert,
}


@dataclass
class MatchFilter:
    """Query filter for match listings. None means "do not filter"."""
    founder_id: Any = None
    builder_id: Any = None
    opening_ids: Optional[Sequence[Any]] = None
    statuses: Optional[Sequence[str]] = None
    # Actions allowed on the named side; None inside the list matches "no action yet"
    founder_actions: Optional[Sequence[Optional[str]]] = None
    builder_actions: Optional[Sequence[Optional[str]]] = None
    is_mutual: Optional[bool] = None
    min_score: Optional[int] = None


def status_entry(status: str, changed_at: datetime) -> Dict[str, str]:
    """One status_history element."""
    return {'status': status, 'changed_at': changed_at.isoformat()}


def _action_clause(column, allowed: Sequence[Optional[str]]):
    values = [a for a in allowed if a is not None]
    clauses = []
    if values:
        clauses.append(column.in_(values))
    if any(a is None for a in allowed):
        clauses.append(column.is_(None))
    return or_(*clauses)


class MatchRepository(BaseRepository):
    def _insert(self):
        dialect = self.db.get_bind().dialect.name
        try:
            return _INSERT_BY_DIALECT[dialect]
        except KeyError:
            raise NotImplementedError(f"Match upsert is not supported on dialect '{dialect}'")

    def get_existing_match(
        self,
        founder_id: Any,
        builder_id: Any,
        opening_id: Any
    ) -> Optional[Match]:
        stmt = select(Match).where(
            Match.founder_id == founder_id,
            Match.builder_id == builder_id,
            Match.opening_id == opening_id
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def upsert_match(
        self,
        founder_id: Any,
        builder_id: Any,
        opening_id: Any,
        score: int,
        breakdown: Optional[Dict[str, Any]],
        founder_profile_id: Any = None,
        builder_profile_id: Any = None
    ) -> Tuple[Match, bool]:
        """
        Create or refresh the match for (founder, builder, opening).

        Only compatibility_score, score_breakdown and calculated_at are written
        on refresh; action, status and mutuality state are never touched. A
        concurrent insert of the same key resolves through ON CONFLICT into the
        same score-only update.

        Returns:
            (match, created) where created is True if this call inserted the row
        """
        now = datetime.now(timezone.utc)
        key = (
            Match.founder_id == founder_id,
            Match.builder_id == builder_id,
            Match.opening_id == opening_id,
        )

        result = self.db.execute(
            update(Match)
            .where(*key)
            .values(compatibility_score=score, score_breakdown=breakdown, calculated_at=now)
            .execution_options(synchronize_session=False)
        )
        created = result.rowcount == 0

        if created:
            insert = self._insert()
            stmt = insert(Match).values(
                founder_id=founder_id,
                builder_id=builder_id,
                opening_id=opening_id,
                founder_profile_id=founder_profile_id,
                builder_profile_id=builder_profile_id,
                compatibility_score=score,
                score_breakdown=breakdown,
                status=MatchStatus.PENDING.value,
                status_history=[status_entry(MatchStatus.PENDING.value, now)],
                is_mutual=False,
                calculated_at=now,
            ).on_conflict_do_update(
                index_elements=['founder_id', 'builder_id', 'opening_id'],
                set_={
                    'compatibility_score': score,
                    'score_breakdown': breakdown,
                    'calculated_at': now,
                }
            )
            self.db.execute(stmt)

        match = self.db.execute(
            select(Match).where(*key).execution_options(populate_existing=True)
        ).scalar_one()

        if created:
            logger.info(f"Match created: {match.id} (opening {opening_id}, builder {builder_id}, score {score})")
        else:
            logger.debug(f"Match refreshed: {match.id} (score {score})")

        return match, created

    def find_match(self, match_id: Any) -> Match:
        return self._one_or_not_found(
            select(Match).where(Match.id == match_id),
            f"Match {match_id} not found"
        )

    def find_match_for_update(self, match_id: Any) -> Match:
        """Load a match with a row lock (no-op on SQLite) and fresh attributes."""
        stmt = (
            select(Match)
            .where(Match.id == match_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self._one_or_not_found(stmt, f"Match {match_id} not found")

    def query_matches(
        self,
        match_filter: MatchFilter,
        limit: Optional[int] = None
    ) -> List[Match]:
        """Filtered matches ordered by score descending, then id for a stable order."""
        stmt = select(Match)

        if match_filter.founder_id is not None:
            stmt = stmt.where(Match.founder_id == match_filter.founder_id)
        if match_filter.builder_id is not None:
            stmt = stmt.where(Match.builder_id == match_filter.builder_id)
        if match_filter.opening_ids is not None:
            stmt = stmt.where(Match.opening_id.in_(list(match_filter.opening_ids)))
        if match_filter.statuses is not None:
            stmt = stmt.where(Match.status.in_(list(match_filter.statuses)))
        if match_filter.founder_actions is not None:
            stmt = stmt.where(_action_clause(Match.founder_action, match_filter.founder_actions))
        if match_filter.builder_actions is not None:
            stmt = stmt.where(_action_clause(Match.builder_action, match_filter.builder_actions))
        if match_filter.is_mutual is not None:
            stmt = stmt.where(Match.is_mutual.is_(match_filter.is_mutual))
        if match_filter.min_score is not None:
            stmt = stmt.where(Match.compatibility_score >= match_filter.min_score)

        stmt = stmt.order_by(Match.compatibility_score.desc(), Match.id.asc())

        if limit is not None:
            stmt = stmt.limit(limit)

        return list(self.db.execute(stmt).scalars().all())

    def get_mutual_matches(self, user_id: Any) -> List[Match]:
        stmt = select(Match).where(
            or_(Match.founder_id == user_id, Match.builder_id == user_id),
            Match.is_mutual.is_(True)
        ).order_by(Match.matched_at.desc(), Match.id.asc())
        return list(self.db.execute(stmt).scalars().all())

    def save_match(self, match: Match) -> None:
        self.db.add(match)
        self.db.flush()

    def count_by_status(self, opening_id: Any) -> Dict[str, int]:
        stmt = (
            select(Match.status, func.count(Match.id))
            .where(Match.opening_id == opening_id)
            .group_by(Match.status)
        )
        return {status: count for status, count in self.db.execute(stmt).all()}
