"""Business logic services."""

from .match_service import MatchService
from .nightly_service import NightlyRunManager, get_nightly_manager
