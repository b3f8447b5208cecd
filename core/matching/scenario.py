#!/usr/bin/env python3
"""
Scenario Compatibility - Working-style quiz agreement between two users.

Each user answers six scenarios with one of A-D. Per scenario, an exact
match scores 10 points, an adjacent answer 5, anything else 0; the total is
normalized to 0-100.

Providers return None when either user has not completed the quiz. The
GuardedScenarioProvider bounds each lookup with a timeout and turns
failures into None so one slow lookup never fails a candidate.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Mapping, Optional

from sqlalchemy.orm import Session

from core.matching.exceptions import ScenarioUnavailableError
from core.matching.models import round_half_up
from database.repositories.profile import ProfileRepository

logger = logging.getLogger(__name__)

SCENARIO_KEYS = ('scenario1', 'scenario2', 'scenario3', 'scenario4', 'scenario5', 'scenario6')

EXACT_POINTS = 10
ADJACENT_POINTS = 5
MAX_RAW_SCORE = EXACT_POINTS * len(SCENARIO_KEYS)

ADJACENT_ANSWERS = {
    'A': ('B',),
    'B': ('A', 'C'),
    'C': ('B', 'D'),
    'D': ('C',),
}


def score_scenario_responses(
    responses_a: Mapping[str, Optional[str]],
    responses_b: Mapping[str, Optional[str]]
) -> int:
    """
    Score two completed quizzes against each other.

    Args:
        responses_a: Mapping of scenario key -> answer letter
        responses_b: Mapping of scenario key -> answer letter

    Returns:
        Normalized agreement score 0-100
    """
    total = 0
    for key in SCENARIO_KEYS:
        a = responses_a.get(key)
        b = responses_b.get(key)
        if a is None or b is None:
            continue
        if a == b:
            total += EXACT_POINTS
        elif b in ADJACENT_ANSWERS.get(a, ()):
            total += ADJACENT_POINTS
    return round_half_up(total / MAX_RAW_SCORE * 100)


class ScenarioCompatibilityProvider(ABC):
    """Source of scenario agreement scores between two users."""

    @abstractmethod
    def scenario_score(self, user_a: Any, user_b: Any) -> Optional[int]:
        """
        Return 0-100 agreement, or None if either user has no completed quiz.

        Raises:
            ScenarioUnavailableError: when the lookup itself fails
        """
        pass


class InMemoryScenarioProvider(ScenarioCompatibilityProvider):
    """Dict-backed provider keyed by user id."""

    def __init__(self, responses: Optional[Dict[Any, Mapping[str, str]]] = None):
        self.responses = dict(responses or {})

    def scenario_score(self, user_a: Any, user_b: Any) -> Optional[int]:
        a = self.responses.get(user_a)
        b = self.responses.get(user_b)
        if not a or not b:
            return None
        return score_scenario_responses(a, b)


class SqlScenarioProvider(ScenarioCompatibilityProvider):
    """Reads quiz responses from the scenario_response table.

    Opens a short-lived session per lookup so it can be called from
    scoring worker threads.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def _load(self, session: Session, user_id: Any) -> Optional[Dict[str, Optional[str]]]:
        row = ProfileRepository(session).get_scenario_responses(user_id)
        if row is None or not row.is_complete:
            return None
        return {key: getattr(row, key) for key in SCENARIO_KEYS}

    def scenario_score(self, user_a: Any, user_b: Any) -> Optional[int]:
        session = self.session_factory()
        try:
            a = self._load(session, user_a)
            b = self._load(session, user_b)
        except Exception as e:
            raise ScenarioUnavailableError(f"Scenario lookup failed: {e}") from e
        finally:
            session.close()

        if a is None or b is None:
            return None
        return score_scenario_responses(a, b)


class GuardedScenarioProvider(ScenarioCompatibilityProvider):
    """Wraps a provider with a per-lookup timeout and failure fallback.

    Timeouts and provider errors are logged at WARNING and reported as None,
    which the scenario factor maps to the neutral score.

    Each lookup runs on its own daemon thread, so the timeout covers the
    lookup alone and never time spent behind other callers. A lookup that
    hangs past the timeout is abandoned.
    """

    def __init__(self, inner: ScenarioCompatibilityProvider, timeout_seconds: float = 2.0):
        self.inner = inner
        self.timeout_seconds = timeout_seconds
        self._lock = threading.Lock()
        self.fallback_count = 0

    def _record_fallback(self) -> None:
        with self._lock:
            self.fallback_count += 1

    def scenario_score(self, user_a: Any, user_b: Any) -> Optional[int]:
        outcome: Dict[str, Any] = {}

        def lookup() -> None:
            try:
                outcome['score'] = self.inner.scenario_score(user_a, user_b)
            except Exception as e:
                outcome['error'] = e

        worker = threading.Thread(target=lookup, name="scenario-lookup", daemon=True)
        worker.start()
        worker.join(self.timeout_seconds)

        if worker.is_alive():
            self._record_fallback()
            logger.warning(
                f"Scenario lookup for {user_a}/{user_b} timed out after "
                f"{self.timeout_seconds}s, using neutral score"
            )
            return None

        if 'error' in outcome:
            self._record_fallback()
            logger.warning(
                f"Scenario lookup for {user_a}/{user_b} failed, using neutral score: {outcome['error']}"
            )
            return None

        return outcome.get('score')
