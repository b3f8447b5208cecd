#!/usr/bin/env python3
"""
Daily Feed - Which matches a user sees today.

A user sees matches they have not yet acted on (or only saved), still in
PENDING or LIKED, best score first. The size of the feed is a subscription
tier concern; limit_for_tier maps a tier to its daily cap.
"""

import logging
from typing import Any, Dict, List, Optional

from core.matching.exceptions import InvalidInputError
from core.matching.models import FeedRole, MatchAction, MatchStatus
from database.models import Match
from database.repositories.match import MatchFilter, MatchRepository
from database.repositories.profile import ProfileRepository

logger = logging.getLogger(__name__)

DEFAULT_TIER = 'FREE'

DEFAULT_TIER_LIMITS: Dict[str, Optional[int]] = {
    'FREE': 5,
    'FOUNDER_PRO': 999,
    'BUILDER_BOOST': 15,
}

FEED_STATUSES = (MatchStatus.PENDING.value, MatchStatus.LIKED.value)

# Own-side actions that keep a match in the feed; None is "not acted yet"
FEED_ACTIONS = (None, MatchAction.SAVE.value)


def limit_for_tier(tier: Optional[str], tier_limits: Optional[Dict[str, Optional[int]]] = None) -> Optional[int]:
    """Daily feed cap for a subscription tier; unknown tiers get the FREE cap."""
    limits = tier_limits if tier_limits is not None else DEFAULT_TIER_LIMITS
    if tier and tier.upper() in limits:
        return limits[tier.upper()]
    return limits.get(DEFAULT_TIER, DEFAULT_TIER_LIMITS[DEFAULT_TIER])


class DailyFeedSelector:
    def __init__(self, matches: MatchRepository, profiles: ProfileRepository):
        self.matches = matches
        self.profiles = profiles

    def daily_matches_for(
        self,
        user_id: Any,
        role: Any,
        limit: Optional[int] = None
    ) -> List[Match]:
        """
        Feed for one side of the market.

        Args:
            user_id: Requesting user
            role: 'founder' or 'builder'
            limit: Cap on entries; None or negative for no cap

        Returns:
            Matches ordered by score descending, then id

        Raises:
            InvalidInputError: role is not founder or builder
        """
        try:
            role = FeedRole(role)
        except ValueError:
            raise InvalidInputError(f"Invalid role: {role!r}. Must be founder or builder")

        if limit is not None and limit < 0:
            limit = None

        if role == FeedRole.FOUNDER:
            opening_ids = self.profiles.list_active_opening_ids_for_founder(user_id)
            if not opening_ids:
                logger.info(f"Founder {user_id} has no active openings, empty feed")
                return []
            match_filter = MatchFilter(
                founder_id=user_id,
                opening_ids=opening_ids,
                statuses=FEED_STATUSES,
                founder_actions=FEED_ACTIONS,
            )
        else:
            match_filter = MatchFilter(
                builder_id=user_id,
                statuses=FEED_STATUSES,
                builder_actions=FEED_ACTIONS,
            )

        feed = self.matches.query_matches(match_filter, limit=limit)
        logger.info(f"Daily feed for {role.value} {user_id}: {len(feed)} matches (limit={limit})")
        return feed

    def mutual_matches_for(self, user_id: Any) -> List[Match]:
        """Mutual matches for a user on either side, most recent first."""
        return self.matches.get_mutual_matches(user_id)
