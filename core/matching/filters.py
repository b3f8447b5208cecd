#!/usr/bin/env python3
"""
Hard Filters - Deal-breaker checks evaluated before any scoring.

Filters run in a fixed order and the first failure wins, so the reason
reported for a pair is deterministic.
"""

import logging

from core.matching.models import (
    BuilderSnapshot,
    CompensationType,
    FilterResult,
    MIN_COMMITMENT_RATIO,
    OpeningSnapshot,
    RemotePreference,
    RiskAppetite,
    StartupStage,
)

logger = logging.getLogger(__name__)

PASS = FilterResult(passes=True, reason=None)


def _format_hours(hours: float) -> str:
    return f"{hours:g}"


def check_compensation(opening: OpeningSnapshot, builder: BuilderSnapshot) -> FilterResult:
    equity_only_offer = opening.cash_range.max == 0
    wants_paid_only = builder.compensation_openness == frozenset({CompensationType.PAID_ONLY})
    if equity_only_offer and wants_paid_only:
        return FilterResult(
            passes=False,
            reason="Compensation mismatch: Founder offers equity-only, builder wants paid-only"
        )
    return PASS


def check_commitment(opening: OpeningSnapshot, builder: BuilderSnapshot) -> FilterResult:
    ratio = builder.hours_per_week / opening.hours_per_week
    if ratio < MIN_COMMITMENT_RATIO:
        return FilterResult(
            passes=False,
            reason=(
                f"Commitment gap too large: Builder offers {_format_hours(builder.hours_per_week)}hrs, "
                f"opening requires {_format_hours(opening.hours_per_week)}hrs"
            )
        )
    return PASS


def check_risk(opening: OpeningSnapshot, builder: BuilderSnapshot) -> FilterResult:
    if builder.risk_appetite == RiskAppetite.LOW and opening.startup_stage == StartupStage.IDEA:
        return FilterResult(
            passes=False,
            reason="Risk mismatch: Low risk builder cannot match with idea-stage startup"
        )
    return PASS


def check_role(opening: OpeningSnapshot, builder: BuilderSnapshot) -> FilterResult:
    if builder.roles_interested and opening.role_type not in builder.roles_interested:
        interested = ', '.join(sorted(r.value for r in builder.roles_interested))
        return FilterResult(
            passes=False,
            reason=f"Role mismatch: Builder interested in {interested}, opening is {opening.role_type.value}"
        )
    return PASS


def check_geography(opening: OpeningSnapshot, builder: BuilderSnapshot) -> FilterResult:
    if (opening.remote_preference == RemotePreference.ONSITE
            and builder.remote_preference == RemotePreference.REMOTE):
        return FilterResult(
            passes=False,
            reason="Geography mismatch: Opening requires on-site, builder is remote-only"
        )
    return PASS


HARD_FILTERS = (
    check_compensation,
    check_commitment,
    check_risk,
    check_role,
    check_geography,
)


def apply_hard_filters(opening: OpeningSnapshot, builder: BuilderSnapshot) -> FilterResult:
    """
    Run every deal-breaker check in order.

    Args:
        opening: Opening snapshot (carries the founder's stage and location)
        builder: Builder snapshot

    Returns:
        FilterResult with passes=False and the first failing reason, or PASS
    """
    for check in HARD_FILTERS:
        result = check(opening, builder)
        if not result.passes:
            logger.debug(f"Opening {opening.id} / builder {builder.user_id} filtered: {result.reason}")
            return result
    return PASS
