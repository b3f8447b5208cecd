from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.orm import Session

from core.config_loader import AppConfig, MatchingConfig
from core.matching.scenario import (
    GuardedScenarioProvider,
    ScenarioCompatibilityProvider,
    SqlScenarioProvider,
)
from core.matching.service import CompatibilityService
from pipeline.runner import NightlyMatchRunner


@dataclass
class AppContext:
    """Application context container that holds all wired dependencies.

    Services here are stateless across requests. DB access should be
    obtained via matching_uow() inside each operation.
    """
    config: AppConfig
    scenario_provider: ScenarioCompatibilityProvider
    compatibility_service: CompatibilityService
    nightly_runner: NightlyMatchRunner
    session_factory: Optional[Callable[[], Session]] = None

    @classmethod
    def build(
        cls,
        config: AppConfig,
        session_factory: Optional[Callable[[], Session]] = None,
        scenario_provider: Optional[ScenarioCompatibilityProvider] = None
    ) -> "AppContext":
        """Build an AppContext from config.

        Args:
            config: Loaded application configuration
            session_factory: Session factory; defaults to database.database.SessionLocal
            scenario_provider: Provider override; defaults to the SQL-backed one

        Returns:
            Fully wired AppContext instance (no DB session attached)
        """
        if session_factory is None:
            from database.database import SessionLocal
            session_factory = SessionLocal

        matching_config = config.matching or MatchingConfig()

        if scenario_provider is None:
            scenario_provider = cls._build_scenario_provider(matching_config, session_factory)

        compatibility_service = CompatibilityService(scenario_provider=scenario_provider)

        nightly_runner = NightlyMatchRunner(
            compatibility_service=compatibility_service,
            config=matching_config,
            session_factory=session_factory
        )

        return cls(
            config=config,
            scenario_provider=scenario_provider,
            compatibility_service=compatibility_service,
            nightly_runner=nightly_runner,
            session_factory=session_factory
        )

    @staticmethod
    def _build_scenario_provider(
        matching_config: MatchingConfig,
        session_factory: Callable[[], Session]
    ) -> ScenarioCompatibilityProvider:
        """SQL provider behind the timeout guard."""
        return GuardedScenarioProvider(
            SqlScenarioProvider(session_factory),
            timeout_seconds=matching_config.scenario_timeout_seconds
        )
