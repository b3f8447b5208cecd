#!/usr/bin/env python3
"""
MatchRepository tests on SQLite.

The upsert runs through the dialect's ON CONFLICT insert, so these tests
cover the same statement shape that runs on PostgreSQL.
"""

import unittest
import uuid

from core.matching.exceptions import NotFoundError
from database.repositories.match import MatchFilter, MatchRepository
from tests import make_sqlite_session_factory
from tests.fixtures.factories import add_builder, add_founder, add_match, add_opening


class TestMatchUpsert(unittest.TestCase):

    def setUp(self):
        self.engine, factory = make_sqlite_session_factory()
        self.session = factory()
        self.founder = add_founder(self.session)
        self.opening = add_opening(self.session, self.founder)
        self.builder = add_builder(self.session)
        self.session.commit()
        self.repo = MatchRepository(self.session)

    def tearDown(self):
        self.session.close()
        self.engine.dispose()

    def _upsert(self, score, breakdown=None):
        return self.repo.upsert_match(
            founder_id=self.founder.user_id,
            builder_id=self.builder.user_id,
            opening_id=self.opening.id,
            score=score,
            breakdown=breakdown or {'skills': {'score': 100, 'weight': 0.15, 'weighted': 15}},
            builder_profile_id=self.builder.id,
        )

    def test_01_first_upsert_creates(self):
        match, created = self._upsert(80)

        self.assertTrue(created)
        self.assertEqual(match.compatibility_score, 80)
        self.assertEqual(match.status, 'PENDING')
        self.assertFalse(match.is_mutual)
        self.assertEqual(match.builder_profile_id, self.builder.id)
        self.assertIsNotNone(match.calculated_at)

    def test_02_second_upsert_updates_same_row(self):
        first, _ = self._upsert(80)
        second, created = self._upsert(85, {'skills': {'score': 50, 'weight': 0.15, 'weighted': 8}})

        self.assertFalse(created)
        self.assertEqual(first.id, second.id)
        self.assertEqual(second.compatibility_score, 85)
        self.assertEqual(second.score_breakdown['skills']['weighted'], 8)

    def test_03_refresh_preserves_action_state(self):
        """Re-scoring never resets actions, status or mutuality."""
        match, _ = self._upsert(80)
        match.founder_action = 'LIKE'
        match.builder_action = 'LIKE'
        match.status = 'MUTUAL'
        match.is_mutual = True
        self.repo.save_match(match)
        self.session.commit()

        refreshed, created = self._upsert(72)

        print(f"\n📊 Refreshed match status: {refreshed.status}, score: {refreshed.compatibility_score}")
        self.assertFalse(created)
        self.assertEqual(refreshed.compatibility_score, 72)
        self.assertEqual(refreshed.status, 'MUTUAL')
        self.assertTrue(refreshed.is_mutual)
        self.assertEqual(refreshed.founder_action, 'LIKE')
        self.assertEqual(refreshed.builder_action, 'LIKE')

    def test_04_get_existing_match(self):
        self.assertIsNone(self.repo.get_existing_match(
            self.founder.user_id, self.builder.user_id, self.opening.id))

        match, _ = self._upsert(80)

        found = self.repo.get_existing_match(self.founder.user_id, self.builder.user_id, self.opening.id)
        self.assertEqual(found.id, match.id)

    def test_05_find_match(self):
        match, _ = self._upsert(80)

        self.assertEqual(self.repo.find_match(match.id).id, match.id)
        self.assertEqual(self.repo.find_match_for_update(match.id).id, match.id)
        with self.assertRaises(NotFoundError):
            self.repo.find_match(uuid.uuid4())
        with self.assertRaises(NotFoundError):
            self.repo.find_match_for_update(uuid.uuid4())

    def test_06_new_match_history_starts_pending(self):
        match, _ = self._upsert(80)
        self.assertEqual([entry['status'] for entry in match.status_history], ['PENDING'])

        refreshed, created = self._upsert(90)

        self.assertFalse(created)
        self.assertEqual(len(refreshed.status_history), 1)


class TestMatchQueries(unittest.TestCase):

    def setUp(self):
        self.engine, factory = make_sqlite_session_factory()
        self.session = factory()
        self.founder = add_founder(self.session)
        self.opening = add_opening(self.session, self.founder)
        self.repo = MatchRepository(self.session)

    def tearDown(self):
        self.session.close()
        self.engine.dispose()

    def _match(self, **kwargs):
        return add_match(self.session, self.opening, add_builder(self.session), **kwargs)

    def test_01_action_filter_includes_unacted(self):
        unacted = self._match(score=70)
        saved = self._match(score=75, founder_action='SAVE')
        self._match(score=99, founder_action='LIKE', status='LIKED')

        result = self.repo.query_matches(MatchFilter(
            founder_id=self.founder.user_id,
            founder_actions=(None, 'SAVE'),
        ))

        self.assertEqual([m.id for m in result], [saved.id, unacted.id])

    def test_02_status_min_score_and_limit(self):
        self._match(score=90, status='SKIPPED')
        a = self._match(score=85)
        b = self._match(score=80, status='LIKED')
        self._match(score=50)

        result = self.repo.query_matches(
            MatchFilter(statuses=('PENDING', 'LIKED'), min_score=60), limit=5
        )
        limited = self.repo.query_matches(MatchFilter(statuses=('PENDING', 'LIKED')), limit=1)

        self.assertEqual([m.id for m in result], [a.id, b.id])
        self.assertEqual([m.id for m in limited], [a.id])

    def test_03_equal_scores_ordered_by_id(self):
        matches = [self._match(score=70) for _ in range(4)]

        result = self.repo.query_matches(MatchFilter(opening_ids=[self.opening.id]))

        self.assertEqual([m.id for m in result], sorted(m.id for m in matches))

    def test_04_mutual_filter(self):
        mutual = self._match(status='MUTUAL', is_mutual=True)
        self._match()

        result = self.repo.query_matches(MatchFilter(is_mutual=True))

        self.assertEqual([m.id for m in result], [mutual.id])

    def test_05_count_by_status(self):
        self._match()
        self._match()
        self._match(status='LIKED')

        self.assertEqual(self.repo.count_by_status(self.opening.id), {'PENDING': 2, 'LIKED': 1})


if __name__ == '__main__':
    unittest.main()
