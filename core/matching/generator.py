#!/usr/bin/env python3
"""
Batch Match Generator - Ranks candidates for one opening or one builder.

Candidates are streamed from the profile repository on the calling thread
(the Session is not shared) and scored chunk by chunk on a bounded thread
pool. Results are collected in candidate order so equal scores keep a
stable ranking.
"""

import heapq
import logging
from concurrent.futures import ThreadPoolExecutor
from itertools import islice
from typing import Any, Iterable, List, Optional, Tuple

from core.matching.exceptions import InvalidInputError
from core.matching.models import (
    BuilderSnapshot,
    CompatibilityResult,
    OpeningSnapshot,
    RankedCandidate,
)
from core.matching.service import CompatibilityService
from database.repositories.profile import ACTIVE_OPENING_STATUS, ProfileRepository, builder_to_snapshot, opening_to_snapshot

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
DEFAULT_MIN_SCORE = 60
DEFAULT_MAX_WORKERS = 8

# Candidates pulled from the enumerator and scored per round
DEFAULT_CHUNK_SIZE = 200

Pair = Tuple[OpeningSnapshot, BuilderSnapshot]


class BatchMatchGenerator:
    """
    Generates ranked candidate lists.

    Idempotent: the same profiles always produce the same list. Nothing is
    persisted here; the nightly runner and the API decide what to store.
    """

    def __init__(
        self,
        profiles: ProfileRepository,
        compatibility_service: CompatibilityService,
        max_workers: int = DEFAULT_MAX_WORKERS,
        chunk_size: int = DEFAULT_CHUNK_SIZE
    ):
        self.profiles = profiles
        self.compatibility_service = compatibility_service
        self.max_workers = max(1, max_workers)
        self.chunk_size = max(1, chunk_size)

    def _score_pair(self, pair: Pair) -> Optional[CompatibilityResult]:
        opening, builder = pair
        try:
            return self.compatibility_service.calculate_compatibility(opening, builder)
        except Exception as e:
            logger.warning(
                f"Failed to score builder {builder.user_id} for opening {opening.id}: {e}"
            )
            return None

    def _score_chunk(
        self,
        executor: Optional[ThreadPoolExecutor],
        chunk: List[Pair]
    ) -> List[Optional[CompatibilityResult]]:
        if executor is None or len(chunk) <= 1:
            return [self._score_pair(pair) for pair in chunk]
        # map preserves input order; _score_pair never raises
        return list(executor.map(self._score_pair, chunk))

    def rank_candidates(
        self,
        pairs: Iterable[Pair],
        limit: Optional[int] = DEFAULT_LIMIT,
        min_score: int = DEFAULT_MIN_SCORE
    ) -> List[RankedCandidate]:
        """
        Score pairs, keep passing ones at or above min_score, rank descending.

        Pairs are pulled from the iterable chunk_size at a time, so a streamed
        candidate set is never held in memory whole. With a limit, only the
        best `limit` candidates seen so far are kept.

        Args:
            pairs: (opening, builder) snapshots in enumeration order
            limit: Maximum entries returned; None for no cap
            min_score: Inclusive lower bound on the score

        Returns:
            Ranked candidates, ties kept in enumeration order
        """
        if limit is not None:
            limit = max(0, limit)

        # heap entries are (score, -index, candidate): the root is the lowest
        # score, and among equal scores the latest enumerated
        kept: List[Tuple[int, int, RankedCandidate]] = []
        scored = 0
        iterator = iter(pairs)

        executor = None
        if self.max_workers > 1:
            executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="match-score")

        try:
            while True:
                chunk = list(islice(iterator, self.chunk_size))
                if not chunk:
                    break

                results = self._score_chunk(executor, chunk)
                for (opening, builder), result in zip(chunk, results):
                    index = scored
                    scored += 1
                    if result is None or not result.passes or result.score < min_score:
                        continue
                    entry = (result.score, -index, RankedCandidate(
                        opening_id=opening.id,
                        founder_id=opening.founder_id,
                        builder_id=builder.user_id,
                        compatibility=result,
                        builder_profile_id=builder.profile_id,
                    ))
                    if limit is None or len(kept) < limit:
                        heapq.heappush(kept, entry)
                    elif kept and entry[:2] > kept[0][:2]:
                        heapq.heapreplace(kept, entry)
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

        kept.sort(key=lambda e: (-e[0], -e[1]))
        ranked = [candidate for _, _, candidate in kept]

        logger.info(
            f"Ranked {len(ranked)} of {scored} candidates (min_score={min_score}, limit={limit})"
        )
        return ranked

    def load_active_opening(self, opening_id: Any) -> OpeningSnapshot:
        row = self.profiles.get_opening_row(opening_id)
        if row.status != ACTIVE_OPENING_STATUS:
            raise InvalidInputError(f"Opening {opening_id} is not active (status {row.status})")
        return opening_to_snapshot(row)

    def load_complete_builder(self, builder_id: Any) -> BuilderSnapshot:
        row = self.profiles.get_builder_row(builder_id)
        if not row.is_complete:
            raise InvalidInputError(f"Builder profile for user {builder_id} is incomplete")
        return builder_to_snapshot(row)

    def generate_for_opening(
        self,
        opening_id: Any,
        limit: Optional[int] = DEFAULT_LIMIT,
        min_score: int = DEFAULT_MIN_SCORE
    ) -> List[RankedCandidate]:
        """Rank eligible builders for an active opening.

        Raises:
            NotFoundError: opening does not exist
            InvalidInputError: opening is not ACTIVE or its data is malformed
        """
        opening = self.load_active_opening(opening_id)
        pairs = ((opening, builder) for builder in self.profiles.candidates_for_opening(opening))
        logger.info(f"Ranking eligible builders for opening {opening_id}")
        return self.rank_candidates(pairs, limit=limit, min_score=min_score)

    def generate_for_builder(
        self,
        builder_id: Any,
        limit: Optional[int] = DEFAULT_LIMIT,
        min_score: int = DEFAULT_MIN_SCORE
    ) -> List[RankedCandidate]:
        """Rank active openings for a builder.

        Raises:
            NotFoundError: builder has no profile
            InvalidInputError: profile is incomplete or malformed
        """
        builder = self.load_complete_builder(builder_id)
        pairs = ((opening, builder) for opening in self.profiles.candidates_for_builder(builder))
        logger.info(f"Ranking active openings for builder {builder_id}")
        return self.rank_candidates(pairs, limit=limit, min_score=min_score)
