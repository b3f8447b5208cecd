#!/usr/bin/env python3
"""
Factor Scorers - The six weighted soft-scoring dimensions.

Each scorer is a pure function returning an integer 0-100:

- compensation (0.30): offer shape vs. builder compensation openness
- commitment   (0.20): available vs. required hours
- stage        (0.15): risk appetite vs. startup stage matrix
- skills       (0.15): required skill coverage
- scenario     (0.10): working-style quiz agreement (via provider)
- geography    (0.10): remote preference and location proximity
"""

import logging
from typing import Optional

from core.matching.models import (
    BuilderSnapshot,
    CompensationType,
    NEUTRAL_SCENARIO_SCORE,
    OpeningSnapshot,
    RemotePreference,
    RiskAppetite,
    StartupStage,
    round_half_up,
)

logger = logging.getLogger(__name__)

STAGE_COMPATIBILITY = {
    RiskAppetite.HIGH: {
        StartupStage.IDEA: 100,
        StartupStage.MVP_PROGRESS: 100,
        StartupStage.MVP_LIVE: 100,
        StartupStage.EARLY_REVENUE: 80,
    },
    RiskAppetite.MEDIUM: {
        StartupStage.IDEA: 60,
        StartupStage.MVP_PROGRESS: 100,
        StartupStage.MVP_LIVE: 100,
        StartupStage.EARLY_REVENUE: 100,
    },
    RiskAppetite.LOW: {
        StartupStage.IDEA: 0,  # unreachable while the risk hard filter is active
        StartupStage.MVP_PROGRESS: 60,
        StartupStage.MVP_LIVE: 100,
        StartupStage.EARLY_REVENUE: 100,
    },
}

DEFAULT_STAGE_SCORE = 50


def compensation_score(opening: OpeningSnapshot, builder: BuilderSnapshot) -> int:
    has_equity = opening.offers_equity
    has_cash = opening.offers_cash
    openness = builder.compensation_openness

    equity_only = CompensationType.EQUITY_ONLY in openness
    equity_stipend = CompensationType.EQUITY_STIPEND in openness
    internship = CompensationType.INTERNSHIP in openness
    paid_only = CompensationType.PAID_ONLY in openness

    # Exact matches
    if has_equity and not has_cash and equity_only:
        return 100
    if has_equity and has_cash and equity_stipend:
        return 100
    if has_cash and paid_only:
        return 100
    if has_equity and has_cash and internship:
        return 100

    # Partial matches
    if has_equity and has_cash and equity_only:
        return 75
    if has_equity and not has_cash and equity_stipend:
        return 50
    if has_equity and paid_only:
        return 25

    score = 0
    if has_equity and (equity_only or equity_stipend):
        score += 50
    if has_cash and (equity_stipend or paid_only or internship):
        score += 50
    return min(score, 100)


def commitment_score(opening: OpeningSnapshot, builder: BuilderSnapshot) -> int:
    required = opening.hours_per_week
    available = builder.hours_per_week

    if available >= required:
        return 100

    ratio = available / required
    if ratio >= 0.8:
        return 80
    if ratio >= 0.6:
        return 60
    if ratio >= 0.4:
        return 40
    return 0


def stage_score(opening: OpeningSnapshot, builder: BuilderSnapshot) -> int:
    row = STAGE_COMPATIBILITY.get(builder.risk_appetite)
    if row is None or opening.startup_stage not in row:
        return DEFAULT_STAGE_SCORE
    return row[opening.startup_stage]


def skills_score(opening: OpeningSnapshot, builder: BuilderSnapshot) -> int:
    """Share of required skills covered, matched by case-insensitive substring either way."""
    required = [s.lower() for s in opening.required_skills]
    if not required:
        return 100

    available = [s.lower() for s in builder.skills]
    matched = [
        skill for skill in required
        if any(have in skill or skill in have for have in available)
    ]
    return round_half_up(len(matched) / len(required) * 100)


def scenario_score(raw_score: Optional[int]) -> int:
    """Map a provider result to the factor score; unavailable is neutral."""
    if raw_score is None:
        return NEUTRAL_SCENARIO_SCORE
    return max(0, min(100, int(raw_score)))


def _norm(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return value.strip().lower() or None


def geography_score(opening: OpeningSnapshot, builder: BuilderSnapshot) -> int:
    if (opening.remote_preference == RemotePreference.REMOTE
            and builder.remote_preference == RemotePreference.REMOTE):
        return 100

    founder_city = _norm(opening.founder_location.city)
    builder_city = _norm(builder.location.city)
    if founder_city and builder_city and founder_city == builder_city:
        return 100

    founder_country = _norm(opening.founder_location.country)
    builder_country = _norm(builder.location.country)
    if founder_country and builder_country and founder_country == builder_country:
        return 75

    if (opening.remote_preference == RemotePreference.HYBRID
            or builder.remote_preference == RemotePreference.HYBRID):
        return 50

    return 25
