#!/usr/bin/env python3
"""
Matching Module - Founder/builder compatibility and match engine.

Public API:
- CompatibilityService: Scores one (opening, builder) pair
- quality_for, algorithm_info: Score banding and algorithm description

Modules:

- models.py: Vocabulary enums, snapshots, result dataclasses, weights
- exceptions.py: Error taxonomy (NotFound, InvalidInput, Forbidden)
- filters.py: Hard filters (deal-breakers evaluated before scoring)
- factors.py: The six factor scorers
- scenario.py: Scenario quiz providers and the timeout guard
- service.py: CompatibilityService aggregator
- generator.py: BatchMatchGenerator (ranked candidates, worker pool)
- actions.py: MatchActionService (LIKE/SKIP/SAVE state machine)
- feed.py: DailyFeedSelector and tier limits

generator, actions and feed depend on the database package and are
imported from their modules directly.
"""

from core.matching.exceptions import (
    ForbiddenError,
    InvalidInputError,
    MatchingError,
    NotFoundError,
    ScenarioUnavailableError,
)
from core.matching.models import (
    BuilderSnapshot,
    CompatibilityResult,
    OpeningSnapshot,
    RankedCandidate,
)
from core.matching.service import CompatibilityService, algorithm_info, quality_for

__all__ = [
    'CompatibilityService',
    'CompatibilityResult',
    'OpeningSnapshot',
    'BuilderSnapshot',
    'RankedCandidate',
    'algorithm_info',
    'quality_for',
    'MatchingError',
    'NotFoundError',
    'InvalidInputError',
    'ForbiddenError',
    'ScenarioUnavailableError',
]
