import yaml
import os
from typing import Optional, Dict
from pydantic import BaseModel, Field


class DatabaseConfig(BaseModel):
    url: str


class ScheduleConfig(BaseModel):
    # Hour of day (0-23, local time) at which the nightly sweep runs
    nightly_hour: int = 2
    # Poll interval while waiting for the nightly hour
    interval_seconds: int = 300


class MatchingConfig(BaseModel):
    """
    Configuration for the compatibility & match engine.

    Weights and thresholds are fixed by the algorithm and are not
    configurable here; see core.matching.models.
    """
    enabled: bool = True

    # Interactive generate-for-opening / generate-for-builder
    default_limit: int = 50
    min_score: int = 60

    # Nightly sweep keeps weaker matches than the interactive calls
    nightly_min_score: int = 50

    # Scoring worker pool per generation call
    max_workers: int = 8
    # Openings processed concurrently by the nightly sweep
    max_parallel_openings: int = 1

    # Bound on each scenario quiz lookup; on timeout the factor is neutral
    scenario_timeout_seconds: float = 2.0


class FeedConfig(BaseModel):
    """Daily feed caps per subscription tier. Unknown tiers use FREE."""
    tier_limits: Dict[str, Optional[int]] = Field(default_factory=lambda: {
        'FREE': 5,
        'FOUNDER_PRO': 999,
        'BUILDER_BOOST': 15,
    })


class WebConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080


class AppConfig(BaseModel):
    database: DatabaseConfig
    matching: Optional[MatchingConfig] = MatchingConfig()
    feed: FeedConfig = Field(default_factory=FeedConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    web: WebConfig = Field(default_factory=WebConfig)


def load_config(config_path: str = "config.yaml") -> AppConfig:
    # If not found at relative path (e.g. running from root), try the repo root
    if not os.path.exists(config_path):
        base_dir = os.path.dirname(os.path.abspath(__file__))
        config_path = os.path.join(base_dir, "..", "config.yaml")

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}

    # Allow env var override for DB URL
    env_db_url = os.environ.get("DATABASE_URL")
    if env_db_url:
        if 'database' not in data or data['database'] is None:
            data['database'] = {}
        data['database']['url'] = env_db_url

    # Allow env var override for the nightly hour (cron deployments)
    env_nightly_hour = os.environ.get("MATCHING_NIGHTLY_HOUR")
    if env_nightly_hour:
        if 'schedule' not in data or data['schedule'] is None:
            data['schedule'] = {}
        data['schedule']['nightly_hour'] = int(env_nightly_hour)

    return AppConfig(**data)
