#!/usr/bin/env python3
"""
Compatibility Service - Combines hard filters and factor scores.

Score formula:
    score = round(compensation*0.30 + commitment*0.20 + stage*0.15 +
                  skills*0.15 + scenario*0.10 + geography*0.10)

Filtered pairs short-circuit: no factor scorer and no scenario lookup runs
for a pair that fails a hard filter.
"""

import logging
from typing import Any, Dict, Optional

from core.matching import factors
from core.matching.filters import apply_hard_filters
from core.matching.models import (
    BuilderSnapshot,
    CompatibilityResult,
    Factor,
    FactorScore,
    MatchQuality,
    OpeningSnapshot,
    SCORE_THRESHOLDS,
    WEIGHTS,
    round_half_up,
)
from core.matching.scenario import ScenarioCompatibilityProvider

logger = logging.getLogger(__name__)

FACTOR_DESCRIPTIONS = {
    Factor.COMPENSATION: "Alignment between what founder offers and what builder accepts",
    Factor.COMMITMENT: "Hours per week overlap",
    Factor.STAGE: "Builder risk appetite vs startup stage",
    Factor.SKILLS: "Skill match percentage",
    Factor.SCENARIO: "Scenario response compatibility",
    Factor.GEOGRAPHY: "Location and remote preference alignment",
}


def quality_for(score: int) -> MatchQuality:
    """Map a 0-100 score to its quality band."""
    if score >= SCORE_THRESHOLDS[MatchQuality.EXCELLENT]:
        return MatchQuality.EXCELLENT
    if score >= SCORE_THRESHOLDS[MatchQuality.GOOD]:
        return MatchQuality.GOOD
    if score >= SCORE_THRESHOLDS[MatchQuality.FAIR]:
        return MatchQuality.FAIR
    return MatchQuality.WEAK


def algorithm_info() -> Dict[str, Any]:
    """Weights, thresholds and factor descriptions for display."""
    return {
        'weights': {factor.value: weight for factor, weight in WEIGHTS.items()},
        'thresholds': {quality.value: value for quality, value in SCORE_THRESHOLDS.items()},
        'factors': [
            {
                'name': factor.value,
                'weight': WEIGHTS[factor],
                'description': FACTOR_DESCRIPTIONS[factor],
            }
            for factor in WEIGHTS
        ],
    }


class CompatibilityService:
    """
    Scores (opening, builder) pairs.

    Stateless apart from the scenario provider, so a single instance is
    shared by all scoring worker threads.
    """

    def __init__(self, scenario_provider: Optional[ScenarioCompatibilityProvider] = None):
        self.scenario_provider = scenario_provider

    def _scenario_factor(self, opening: OpeningSnapshot, builder: BuilderSnapshot) -> int:
        if self.scenario_provider is None:
            return factors.scenario_score(None)
        raw = self.scenario_provider.scenario_score(opening.founder_id, builder.user_id)
        return factors.scenario_score(raw)

    def calculate_compatibility(
        self,
        opening: OpeningSnapshot,
        builder: BuilderSnapshot
    ) -> CompatibilityResult:
        """Calculate the full compatibility result for one pair.

        Args:
            opening: Opening snapshot including founder stage/location
            builder: Builder snapshot

        Returns:
            CompatibilityResult; breakdown is None when a hard filter trips
        """
        filter_result = apply_hard_filters(opening, builder)
        if not filter_result.passes:
            return CompatibilityResult(
                passes=False,
                score=0,
                quality=MatchQuality.WEAK,
                reason=filter_result.reason,
                breakdown=None,
            )

        raw_scores = {
            Factor.COMPENSATION: factors.compensation_score(opening, builder),
            Factor.COMMITMENT: factors.commitment_score(opening, builder),
            Factor.STAGE: factors.stage_score(opening, builder),
            Factor.SKILLS: factors.skills_score(opening, builder),
            Factor.SCENARIO: self._scenario_factor(opening, builder),
            Factor.GEOGRAPHY: factors.geography_score(opening, builder),
        }

        total = round_half_up(sum(raw_scores[f] * WEIGHTS[f] for f in WEIGHTS))

        # Each weighted value is rounded on its own; their sum may differ from total by 1
        breakdown = {
            factor: FactorScore(
                score=raw_scores[factor],
                weight=WEIGHTS[factor],
                weighted=round_half_up(raw_scores[factor] * WEIGHTS[factor]),
            )
            for factor in WEIGHTS
        }

        logger.debug(f"Opening {opening.id} / builder {builder.user_id}: score={total}")

        return CompatibilityResult(
            passes=True,
            score=total,
            quality=quality_for(total),
            reason=None,
            breakdown=breakdown,
        )
