#!/usr/bin/env python3
"""
Matching Models - Vocabulary, snapshots and result structures.

Snapshots are read-only projections of opening and profile data. They are
validated on construction so malformed records are rejected before any
scoring happens.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Optional

from core.matching.exceptions import InvalidInputError


class RoleType(str, Enum):
    COFOUNDER = 'COFOUNDER'
    EMPLOYEE = 'EMPLOYEE'
    INTERN = 'INTERN'
    FRACTIONAL = 'FRACTIONAL'


class StartupStage(str, Enum):
    IDEA = 'IDEA'
    MVP_PROGRESS = 'MVP_PROGRESS'
    MVP_LIVE = 'MVP_LIVE'
    EARLY_REVENUE = 'EARLY_REVENUE'


class RiskAppetite(str, Enum):
    LOW = 'LOW'
    MEDIUM = 'MEDIUM'
    HIGH = 'HIGH'


class CompensationType(str, Enum):
    EQUITY_ONLY = 'EQUITY_ONLY'
    EQUITY_STIPEND = 'EQUITY_STIPEND'
    INTERNSHIP = 'INTERNSHIP'
    PAID_ONLY = 'PAID_ONLY'


class RemotePreference(str, Enum):
    ONSITE = 'ONSITE'
    REMOTE = 'REMOTE'
    HYBRID = 'HYBRID'


class MatchStatus(str, Enum):
    PENDING = 'PENDING'
    LIKED = 'LIKED'
    SKIPPED = 'SKIPPED'
    MUTUAL = 'MUTUAL'
    # Downstream lifecycle, owned outside the engine
    ACTIVE = 'ACTIVE'
    IN_TRIAL = 'IN_TRIAL'
    COMPLETED = 'COMPLETED'
    HIRED = 'HIRED'
    ENDED = 'ENDED'
    EXPIRED = 'EXPIRED'


class MatchAction(str, Enum):
    LIKE = 'LIKE'
    SKIP = 'SKIP'
    SAVE = 'SAVE'


class MatchQuality(str, Enum):
    WEAK = 'WEAK'
    FAIR = 'FAIR'
    GOOD = 'GOOD'
    EXCELLENT = 'EXCELLENT'


class Factor(str, Enum):
    COMPENSATION = 'compensation'
    COMMITMENT = 'commitment'
    STAGE = 'stage'
    SKILLS = 'skills'
    SCENARIO = 'scenario'
    GEOGRAPHY = 'geography'


class FeedRole(str, Enum):
    FOUNDER = 'founder'
    BUILDER = 'builder'


WEIGHTS: Dict[Factor, float] = {
    Factor.COMPENSATION: 0.30,
    Factor.COMMITMENT: 0.20,
    Factor.STAGE: 0.15,
    Factor.SKILLS: 0.15,
    Factor.SCENARIO: 0.10,
    Factor.GEOGRAPHY: 0.10,
}

SCORE_THRESHOLDS: Dict[MatchQuality, int] = {
    MatchQuality.EXCELLENT: 90,
    MatchQuality.GOOD: 75,
    MatchQuality.FAIR: 60,
    MatchQuality.WEAK: 0,
}

# Builder must offer at least this share of the opening's hours
MIN_COMMITMENT_RATIO = 0.4

NEUTRAL_SCENARIO_SCORE = 50


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def _coerce_enum(enum_cls, value: Any, field_name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidInputError(f"Invalid {field_name}: {value!r}")


def _coerce_enum_set(enum_cls, values: Optional[Iterable[Any]], field_name: str) -> FrozenSet:
    if values is None:
        return frozenset()
    if isinstance(values, str):
        values = [values]
    return frozenset(_coerce_enum(enum_cls, v, field_name) for v in values)


@dataclass(frozen=True)
class Location:
    city: Optional[str] = None
    country: Optional[str] = None


@dataclass(frozen=True)
class Range:
    """Inclusive numeric range with 0 <= min <= max."""
    min: float = 0
    max: float = 0

    def __post_init__(self):
        if self.min is None or self.max is None:
            raise InvalidInputError("Range bounds are required")
        if self.min < 0 or self.max < 0:
            raise InvalidInputError(f"Range bounds must be >= 0, got ({self.min}, {self.max})")
        if self.min > self.max:
            raise InvalidInputError(f"Range min {self.min} exceeds max {self.max}")


@dataclass(frozen=True)
class OpeningSnapshot:
    """Comparable attributes of an opening, with its founder's stage and location."""
    id: Any
    founder_id: Any
    role_type: RoleType
    required_skills: FrozenSet[str]
    equity_range: Range
    cash_range: Range
    hours_per_week: float
    remote_preference: RemotePreference
    startup_stage: StartupStage
    founder_location: Location = field(default_factory=Location)
    currency: str = 'INR'

    def __post_init__(self):
        if self.id is None or self.founder_id is None:
            raise InvalidInputError("Opening snapshot requires id and founder_id")
        object.__setattr__(self, 'role_type', _coerce_enum(RoleType, self.role_type, 'role type'))
        object.__setattr__(self, 'remote_preference',
                           _coerce_enum(RemotePreference, self.remote_preference, 'remote preference'))
        object.__setattr__(self, 'startup_stage', _coerce_enum(StartupStage, self.startup_stage, 'startup stage'))
        object.__setattr__(self, 'required_skills', frozenset(self.required_skills or ()))
        if not isinstance(self.equity_range, Range) or not isinstance(self.cash_range, Range):
            raise InvalidInputError(f"Opening {self.id} requires equity and cash ranges")
        if not self.hours_per_week or self.hours_per_week <= 0:
            raise InvalidInputError(f"Opening {self.id} hours per week must be > 0")
        if self.founder_location is None:
            object.__setattr__(self, 'founder_location', Location())

    @property
    def offers_equity(self) -> bool:
        return self.equity_range.max > 0

    @property
    def offers_cash(self) -> bool:
        return self.cash_range.max > 0


@dataclass(frozen=True)
class BuilderSnapshot:
    """Comparable attributes of a builder profile."""
    user_id: Any
    skills: FrozenSet[str]
    risk_appetite: RiskAppetite
    compensation_openness: FrozenSet[CompensationType]
    hours_per_week: float
    remote_preference: RemotePreference
    roles_interested: FrozenSet[RoleType] = frozenset()
    location: Location = field(default_factory=Location)
    profile_id: Any = None

    def __post_init__(self):
        if self.user_id is None:
            raise InvalidInputError("Builder snapshot requires user_id")
        object.__setattr__(self, 'skills', frozenset(self.skills or ()))
        object.__setattr__(self, 'risk_appetite', _coerce_enum(RiskAppetite, self.risk_appetite, 'risk appetite'))
        object.__setattr__(self, 'remote_preference',
                           _coerce_enum(RemotePreference, self.remote_preference, 'remote preference'))
        openness = _coerce_enum_set(CompensationType, self.compensation_openness, 'compensation type')
        if not openness:
            raise InvalidInputError(f"Builder {self.user_id} has no compensation openness")
        object.__setattr__(self, 'compensation_openness', openness)
        object.__setattr__(self, 'roles_interested',
                           _coerce_enum_set(RoleType, self.roles_interested, 'role type'))
        if not self.hours_per_week or self.hours_per_week <= 0:
            raise InvalidInputError(f"Builder {self.user_id} hours per week must be > 0")
        if self.location is None:
            object.__setattr__(self, 'location', Location())


@dataclass(frozen=True)
class FilterResult:
    passes: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class FactorScore:
    score: int
    weight: float
    weighted: int

    def to_dict(self) -> Dict[str, Any]:
        return {'score': self.score, 'weight': self.weight, 'weighted': self.weighted}


@dataclass
class CompatibilityResult:
    """Outcome of scoring one (opening, builder) pair."""
    passes: bool
    score: int = 0
    quality: MatchQuality = MatchQuality.WEAK
    reason: Optional[str] = None
    breakdown: Optional[Dict[Factor, FactorScore]] = None

    def breakdown_dict(self) -> Optional[Dict[str, Dict[str, Any]]]:
        if self.breakdown is None:
            return None
        return {factor.value: fs.to_dict() for factor, fs in self.breakdown.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'passes': self.passes,
            'score': self.score,
            'quality': self.quality.value,
            'reason': self.reason,
            'breakdown': self.breakdown_dict(),
        }


@dataclass
class RankedCandidate:
    """One entry of a generated candidate list."""
    opening_id: Any
    founder_id: Any
    builder_id: Any
    compatibility: CompatibilityResult
    builder_profile_id: Any = None

    @property
    def score(self) -> int:
        return self.compatibility.score
