#!/usr/bin/env python3
"""
Matching Exceptions - Error taxonomy for the compatibility & match engine.

NotFound, InvalidInput and Forbidden surface to interactive callers.
ScenarioUnavailableError is recovered inside the scenario guard and never
reaches a caller.
"""


class MatchingError(Exception):
    """Base exception for match engine errors."""
    pass


class NotFoundError(MatchingError):
    """Raised when an opening, builder profile or match id does not resolve."""
    pass


class InvalidInputError(MatchingError):
    """Raised for malformed actions or snapshots missing required fields."""
    pass


class ForbiddenError(MatchingError):
    """Raised when a non-participant tries to act on a match."""
    pass


class ScenarioUnavailableError(MatchingError):
    """Raised by scenario providers when a lookup fails or times out."""
    pass
