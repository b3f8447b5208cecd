#!/usr/bin/env python3
"""
Test BatchMatchGenerator against seeded profiles in SQLite.
"""

import unittest
import uuid
from unittest.mock import MagicMock

from core.matching.exceptions import InvalidInputError, NotFoundError
from core.matching.generator import BatchMatchGenerator
from core.matching.models import CompatibilityResult, MatchQuality
from core.matching.service import CompatibilityService
from database.repositories.profile import ProfileRepository
from tests import make_sqlite_session_factory
from tests.fixtures.factories import (
    add_builder,
    add_founder,
    add_opening,
    make_builder,
    make_opening,
)


class TestRankCandidates(unittest.TestCase):
    """Ranking logic on in-memory snapshots."""

    def setUp(self):
        self.generator = BatchMatchGenerator(MagicMock(), CompatibilityService(), max_workers=4)
        self.opening = make_opening(hours_per_week=40)

    def _pairs(self, *hours):
        return [(self.opening, make_builder(hours_per_week=h)) for h in hours]

    def test_01_sorted_descending(self):
        # 40h -> 95, 32h -> 91, 24h -> 87
        ranked = self.generator.rank_candidates(self._pairs(24, 40, 32), min_score=0)

        self.assertEqual([c.score for c in ranked], [95, 91, 87])

    def test_02_min_score_is_inclusive(self):
        ranked = self.generator.rank_candidates(self._pairs(24, 40, 32), min_score=91)

        self.assertEqual([c.score for c in ranked], [95, 91])

    def test_03_filtered_pairs_excluded_even_at_zero_min_score(self):
        ranked = self.generator.rank_candidates(self._pairs(40, 10), min_score=0)

        self.assertEqual(len(ranked), 1)

    def test_04_limit(self):
        pairs = self._pairs(40, 40, 40, 40)

        self.assertEqual(len(self.generator.rank_candidates(pairs, limit=2, min_score=0)), 2)
        self.assertEqual(self.generator.rank_candidates(pairs, limit=0, min_score=0), [])
        self.assertEqual(len(self.generator.rank_candidates(pairs, limit=None, min_score=0)), 4)

    def test_05_ties_keep_enumeration_order(self):
        pairs = self._pairs(40, 40, 40, 40, 40, 40)

        ranked = self.generator.rank_candidates(pairs, min_score=0)

        self.assertEqual([c.builder_id for c in ranked], [b.user_id for _, b in pairs])

    def test_06_idempotent(self):
        pairs = self._pairs(24, 40, 32, 40, 28)

        first = self.generator.rank_candidates(pairs, min_score=0)
        second = self.generator.rank_candidates(pairs, min_score=0)

        self.assertEqual(
            [(c.builder_id, c.score) for c in first],
            [(c.builder_id, c.score) for c in second]
        )

    def test_07_failing_candidate_is_skipped(self):
        """One scoring error is logged and dropped; the rest still rank."""
        pairs = self._pairs(40, 40, 40)
        bad_builder = pairs[1][1]
        real = CompatibilityService()

        def flaky(opening, builder):
            if builder.user_id == bad_builder.user_id:
                raise RuntimeError("boom")
            return real.calculate_compatibility(opening, builder)

        service = MagicMock()
        service.calculate_compatibility.side_effect = flaky
        generator = BatchMatchGenerator(MagicMock(), service, max_workers=2)

        with self.assertLogs('core.matching.generator', level='WARNING'):
            ranked = generator.rank_candidates(pairs, min_score=0)

        self.assertEqual(len(ranked), 2)
        self.assertNotIn(bad_builder.user_id, [c.builder_id for c in ranked])

    def test_08_single_worker_matches_pool(self):
        pairs = self._pairs(24, 40, 32, 36)
        serial = BatchMatchGenerator(MagicMock(), CompatibilityService(), max_workers=1)

        self.assertEqual(
            [c.builder_id for c in serial.rank_candidates(pairs, min_score=0)],
            [c.builder_id for c in self.generator.rank_candidates(pairs, min_score=0)]
        )

    def test_09_candidate_carries_result(self):
        ranked = self.generator.rank_candidates(self._pairs(40), min_score=0)

        candidate = ranked[0]
        self.assertIsInstance(candidate.compatibility, CompatibilityResult)
        self.assertEqual(candidate.compatibility.quality, MatchQuality.EXCELLENT)
        self.assertEqual(candidate.opening_id, self.opening.id)
        self.assertEqual(candidate.founder_id, self.opening.founder_id)

    def test_10_streamed_pairs_read_in_bounded_chunks(self):
        """The enumerator is never read more than one chunk ahead of scoring."""
        pulled = [0]
        read_ahead = []
        real = CompatibilityService()

        def stream(count):
            for _ in range(count):
                pulled[0] += 1
                yield (self.opening, make_builder(hours_per_week=40))

        def score(opening, builder):
            read_ahead.append(pulled[0] - len(read_ahead))
            return real.calculate_compatibility(opening, builder)

        service = MagicMock()
        service.calculate_compatibility.side_effect = score
        generator = BatchMatchGenerator(MagicMock(), service, max_workers=1, chunk_size=10)

        ranked = generator.rank_candidates(stream(45), limit=5, min_score=0)

        self.assertEqual(len(ranked), 5)
        self.assertEqual(pulled[0], 45)
        self.assertLessEqual(max(read_ahead), 10)

    def test_11_chunking_does_not_change_ranking(self):
        # ties straddle chunk boundaries; limit cuts inside a tie group
        pairs = self._pairs(24, 40, 32, 40, 28, 40, 32, 24, 40, 36, 40)
        single = BatchMatchGenerator(MagicMock(), CompatibilityService(), max_workers=2, chunk_size=100)
        chunked = BatchMatchGenerator(MagicMock(), CompatibilityService(), max_workers=2, chunk_size=3)

        for limit in (None, 4, 7):
            with self.subTest(limit=limit):
                self.assertEqual(
                    [c.builder_id for c in chunked.rank_candidates(pairs, limit=limit, min_score=0)],
                    [c.builder_id for c in single.rank_candidates(pairs, limit=limit, min_score=0)]
                )

        top = chunked.rank_candidates(pairs, limit=4, min_score=0)
        forties = [b.user_id for _, b in pairs if b.hours_per_week == 40]
        self.assertEqual([c.builder_id for c in top], forties[:4])


class TestGenerateFromDatabase(unittest.TestCase):
    """generate_for_opening / generate_for_builder with seeded rows."""

    def setUp(self):
        self.engine, factory = make_sqlite_session_factory()
        self.session = factory()
        self.founder = add_founder(self.session)
        self.opening = add_opening(self.session, self.founder)
        self.builders = [add_builder(self.session) for _ in range(3)]
        self.session.commit()
        self.generator = BatchMatchGenerator(
            ProfileRepository(self.session), CompatibilityService(), max_workers=2
        )

    def tearDown(self):
        self.session.close()
        self.engine.dispose()

    def test_01_generate_for_opening(self):
        ranked = self.generator.generate_for_opening(self.opening.id, min_score=60)

        print(f"\n📊 Generated {len(ranked)} candidates")
        self.assertEqual(
            sorted(c.builder_id for c in ranked),
            sorted(b.user_id for b in self.builders)
        )
        self.assertTrue(all(c.score == 95 for c in ranked))

    def test_02_ineligible_builders_excluded(self):
        add_builder(self.session, is_visible=False)
        add_builder(self.session, is_open_to_opportunities=False)
        add_builder(self.session, is_complete=False)
        self.session.commit()

        ranked = self.generator.generate_for_opening(self.opening.id, min_score=0)

        self.assertEqual(len(ranked), 3)

    def test_03_founder_never_matched_with_own_opening(self):
        add_builder(self.session, user_id=self.founder.user_id)
        self.session.commit()

        ranked = self.generator.generate_for_opening(self.opening.id, min_score=0)

        self.assertNotIn(self.founder.user_id, [c.builder_id for c in ranked])

    def test_04_inactive_opening_rejected(self):
        paused = add_opening(self.session, self.founder, status='PAUSED')
        self.session.commit()

        with self.assertRaises(InvalidInputError):
            self.generator.generate_for_opening(paused.id)

    def test_05_unknown_opening(self):
        with self.assertRaises(NotFoundError):
            self.generator.generate_for_opening(uuid.uuid4())

    def test_06_generate_for_builder(self):
        other_founder = add_founder(self.session)
        add_opening(self.session, other_founder, title='Second Role')
        add_opening(self.session, other_founder, status='CLOSED')
        self.session.commit()

        ranked = self.generator.generate_for_builder(self.builders[0].user_id, min_score=0)

        self.assertEqual(len(ranked), 2)
        self.assertTrue(all(c.builder_id == self.builders[0].user_id for c in ranked))

    def test_07_builder_own_openings_excluded(self):
        own = add_founder(self.session, user_id=self.builders[0].user_id)
        add_opening(self.session, own)
        self.session.commit()

        ranked = self.generator.generate_for_builder(self.builders[0].user_id, min_score=0)

        self.assertEqual([c.opening_id for c in ranked], [self.opening.id])

    def test_08_incomplete_builder_rejected(self):
        incomplete = add_builder(self.session, is_complete=False)
        self.session.commit()

        with self.assertRaises(InvalidInputError):
            self.generator.generate_for_builder(incomplete.user_id)

    def test_09_unknown_builder(self):
        with self.assertRaises(NotFoundError):
            self.generator.generate_for_builder(uuid.uuid4())


if __name__ == '__main__':
    unittest.main()
