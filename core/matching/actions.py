#!/usr/bin/env python3
"""
Match Actions - LIKE / SKIP / SAVE state machine.

    PENDING -> LIKED (one side liked) -> MUTUAL (both liked)
    PENDING | LIKED -> SKIPPED (either side skipped)

MUTUAL and SKIPPED are terminal here: later actions are still recorded on
the acting side, but the status no longer moves. Downstream lifecycle
states are owned elsewhere and are left alone as well.

Every status change is appended to the match's status_history.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from core.matching.exceptions import ForbiddenError, InvalidInputError
from core.matching.models import FeedRole, MatchAction, MatchStatus
from database.models import Match
from database.repositories.match import MatchRepository, status_entry

logger = logging.getLogger(__name__)

# Statuses from which an action can still move the match
OPEN_STATUSES = frozenset({MatchStatus.PENDING.value, MatchStatus.LIKED.value})


@dataclass
class ActionResult:
    match: Match
    # True only on the call that made the match mutual
    newly_mutual: bool


def parse_action(action: Any) -> MatchAction:
    if isinstance(action, MatchAction):
        return action
    try:
        return MatchAction(str(action).upper())
    except ValueError:
        raise InvalidInputError(f"Invalid action: {action!r}. Must be one of LIKE, SKIP, SAVE")


def side_of(match: Match, user_id: Any) -> FeedRole:
    """Which side of the match the user is on."""
    if str(match.founder_id) == str(user_id):
        return FeedRole.FOUNDER
    if str(match.builder_id) == str(user_id):
        return FeedRole.BUILDER
    raise ForbiddenError(f"User {user_id} is not a participant in match {match.id}")


def _next_status(match: Match) -> str:
    if match.status not in OPEN_STATUSES:
        return match.status

    founder = match.founder_action
    builder = match.builder_action

    if founder == MatchAction.LIKE.value and builder == MatchAction.LIKE.value:
        return MatchStatus.MUTUAL.value
    if MatchAction.SKIP.value in (founder, builder):
        return MatchStatus.SKIPPED.value
    if MatchAction.LIKE.value in (founder, builder):
        return MatchStatus.LIKED.value
    return match.status


class MatchActionService:
    """Records actions on matches within the caller's unit of work."""

    def __init__(self, matches: MatchRepository):
        self.matches = matches

    def record_action(self, match_id: Any, user_id: Any, action: Any) -> ActionResult:
        """
        Record a founder or builder action on a match.

        Args:
            match_id: Match primary key
            user_id: Acting user; must be the match's founder or builder
            action: LIKE, SKIP or SAVE (case-insensitive string or MatchAction)

        Returns:
            ActionResult with the updated match and the mutual edge flag

        Raises:
            InvalidInputError: action is not LIKE, SKIP or SAVE
            NotFoundError: match does not exist
            ForbiddenError: user is not a participant
        """
        parsed = parse_action(action)
        match = self.matches.find_match_for_update(match_id)
        side = side_of(match, user_id)

        now = datetime.now(timezone.utc)
        if side == FeedRole.FOUNDER:
            match.founder_action = parsed.value
            match.founder_action_at = now
        else:
            match.builder_action = parsed.value
            match.builder_action_at = now

        was_mutual = bool(match.is_mutual)
        previous_status = match.status
        match.status = _next_status(match)
        match.last_activity_at = now

        if match.status != previous_status:
            # reassign so the JSON column is flagged dirty
            match.status_history = list(match.status_history or []) + [status_entry(match.status, now)]

        if match.status == MatchStatus.MUTUAL.value:
            match.is_mutual = True
            if match.matched_at is None:
                match.matched_at = now

        newly_mutual = bool(match.is_mutual) and not was_mutual

        self.matches.save_match(match)

        logger.info(
            f"Match {match.id}: {side.value} {user_id} -> {parsed.value} "
            f"({previous_status} -> {match.status})"
        )
        if newly_mutual:
            logger.info(f"Match {match.id} is now mutual")

        return ActionResult(match=match, newly_mutual=newly_mutual)

    def like(self, match_id: Any, user_id: Any) -> ActionResult:
        return self.record_action(match_id, user_id, MatchAction.LIKE)

    def skip(self, match_id: Any, user_id: Any) -> ActionResult:
        return self.record_action(match_id, user_id, MatchAction.SKIP)

    def save(self, match_id: Any, user_id: Any) -> ActionResult:
        return self.record_action(match_id, user_id, MatchAction.SAVE)
