"""Nightly match sweep.

Regenerates Match rows for every active opening. Used by main.py on the
nightly schedule and by the admin endpoint of the web application.
"""

import time
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait, FIRST_COMPLETED
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, Optional, Tuple

from sqlalchemy.orm import Session

from core.config_loader import MatchingConfig
from core.matching.generator import BatchMatchGenerator
from core.matching.service import CompatibilityService
from database.database import shares_single_connection
from database.uow import matching_uow


logger = logging.getLogger(__name__)


@dataclass
class NightlyRunResult:
    """Summary of one nightly sweep. Partial when cancelled."""
    success: bool
    openings_processed: int = 0
    matches_created: int = 0
    matches_updated: int = 0
    errors: int = 0
    duration_ms: int = 0
    cancelled: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class NightlyMatchRunner:
    """
    Runs the nightly sweep.

    Each opening is generated and persisted in its own unit of work, so a
    failing opening rolls back alone and the sweep moves on. Cancellation is
    checked between openings; an opening already in progress finishes.
    """

    def __init__(
        self,
        compatibility_service: CompatibilityService,
        config: Optional[MatchingConfig] = None,
        session_factory: Optional[Callable[[], Session]] = None
    ):
        self.compatibility_service = compatibility_service
        self.config = config or MatchingConfig()
        self.session_factory = session_factory

    def process_opening(self, opening_id: Any) -> Tuple[int, int]:
        """Generate and upsert matches for one opening.

        Returns:
            (created, updated) counts
        """
        created_count = 0
        updated_count = 0

        with matching_uow(self.session_factory) as repo:
            generator = BatchMatchGenerator(
                repo.profiles,
                self.compatibility_service,
                max_workers=self.config.max_workers
            )
            candidates = generator.generate_for_opening(
                opening_id,
                limit=self.config.default_limit,
                min_score=self.config.nightly_min_score
            )

            for candidate in candidates:
                _, created = repo.matches.upsert_match(
                    founder_id=candidate.founder_id,
                    builder_id=candidate.builder_id,
                    opening_id=candidate.opening_id,
                    score=candidate.score,
                    breakdown=candidate.compatibility.breakdown_dict(),
                    builder_profile_id=candidate.builder_profile_id,
                )
                if created:
                    created_count += 1
                else:
                    updated_count += 1

        return created_count, updated_count

    def _safe_process(self, opening_id: Any) -> Optional[Tuple[int, int]]:
        try:
            return self.process_opening(opening_id)
        except Exception as e:
            logger.error(f"Nightly sweep failed for opening {opening_id}: {e}", exc_info=True)
            return None

    def _load_opening_ids(self) -> list:
        with matching_uow(self.session_factory) as repo:
            return repo.profiles.list_active_opening_ids()

    def _parallel_openings(self) -> int:
        parallel = max(1, self.config.max_parallel_openings)
        if parallel > 1 and shares_single_connection(self.session_factory):
            logger.warning(
                f"max_parallel_openings={parallel} ignored: all sessions share one "
                f"database connection, processing openings one at a time"
            )
            return 1
        return parallel

    def run(self, stop_event: Optional[threading.Event] = None) -> NightlyRunResult:
        """Run one sweep over all active openings.

        Args:
            stop_event: Optional event; when set, no further openings are started

        Returns:
            NightlyRunResult, with cancelled=True and partial counts if stopped,
            or success=False and error set if the openings could not be listed
        """
        if stop_event is None:
            stop_event = threading.Event()

        run_start = time.time()
        result = NightlyRunResult(success=True)

        logger.info("=" * 60)
        logger.info("STARTING NIGHTLY MATCH SWEEP")
        logger.info("=" * 60)

        if not self.config.enabled:
            logger.info("=== NIGHTLY MATCH SWEEP: Skipped (disabled in config) ===")
            result.error = "Matching disabled in config"
            return result

        try:
            opening_ids = self._load_opening_ids()
        except Exception as e:
            logger.error(f"Nightly sweep aborted, could not list active openings: {e}", exc_info=True)
            result.success = False
            result.error = str(e)
            result.duration_ms = int((time.time() - run_start) * 1000)
            return result

        logger.info(f"Found {len(opening_ids)} active openings")

        def collect(outcome: Optional[Tuple[int, int]]) -> None:
            if outcome is None:
                result.errors += 1
                return
            created, updated = outcome
            result.openings_processed += 1
            result.matches_created += created
            result.matches_updated += updated

        parallel = self._parallel_openings()

        if parallel == 1:
            for opening_id in opening_ids:
                if stop_event.is_set():
                    result.cancelled = True
                    break
                collect(self._safe_process(opening_id))
        else:
            with ThreadPoolExecutor(max_workers=parallel, thread_name_prefix="nightly") as executor:
                pending = set()
                for opening_id in opening_ids:
                    if stop_event.is_set():
                        result.cancelled = True
                        break
                    if len(pending) >= parallel:
                        done, pending = wait(pending, return_when=FIRST_COMPLETED)
                        for future in done:
                            collect(future.result())
                    pending.add(executor.submit(self._safe_process, opening_id))
                for future in pending:
                    collect(future.result())

        result.duration_ms = int((time.time() - run_start) * 1000)

        if result.cancelled:
            result.success = False
            result.error = "Interrupted by system"
            logger.warning(
                f"Nightly sweep cancelled after {result.openings_processed + result.errors}/{len(opening_ids)} openings"
            )

        logger.info("=" * 60)
        logger.info(f"NIGHTLY MATCH SWEEP FINISHED in {result.duration_ms / 1000:.2f}s")
        logger.info(
            f"Openings: {result.openings_processed}, created: {result.matches_created}, "
            f"updated: {result.matches_updated}, errors: {result.errors}"
        )
        logger.info("=" * 60)

        return result
