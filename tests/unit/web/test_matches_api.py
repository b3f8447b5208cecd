#!/usr/bin/env python3
"""
Unit tests for the /api/matches endpoints.

The app context is overridden with one bound to an in-memory SQLite
database, so requests run the real services end to end.
"""

import threading
import unittest
import uuid

from fastapi.testclient import TestClient

from core.app_context import AppContext
from core.config_loader import AppConfig, DatabaseConfig, MatchingConfig
from core.matching.scenario import InMemoryScenarioProvider
from web.backend.app import app
from web.backend.dependencies import get_app_context
from web.backend.services.nightly_service import get_nightly_manager
from tests import make_sqlite_session_factory
from tests.fixtures.factories import add_builder, add_founder, add_match, add_opening


class MatchesApiTestCase(unittest.TestCase):

    def setUp(self):
        self.engine, self.factory = make_sqlite_session_factory()
        config = AppConfig(
            database=DatabaseConfig(url="sqlite://"),
            matching=MatchingConfig(max_workers=2),
        )
        self.ctx = AppContext.build(
            config,
            session_factory=self.factory,
            scenario_provider=InMemoryScenarioProvider()
        )
        app.dependency_overrides[get_app_context] = lambda: self.ctx
        self.client = TestClient(app)

        with self.factory() as session:
            self.founder = add_founder(session)
            self.opening = add_opening(session, self.founder)
            self.builder = add_builder(session)
            self.other_builder = add_builder(session, hours_per_week=5)
            self.match = add_match(session, self.opening, self.builder, score=88)
            session.commit()

    def tearDown(self):
        app.dependency_overrides.clear()
        self.engine.dispose()

    def headers(self, user_id):
        return {"X-User-Id": str(user_id)}


class TestReadEndpoints(MatchesApiTestCase):

    def test_01_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "healthy")

    def test_02_algorithm_info(self):
        response = self.client.get("/api/matches/algorithm-info")

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data["success"])
        self.assertEqual(data["weights"]["compensation"], 0.3)
        self.assertEqual(len(data["factors"]), 6)

    def test_03_compatibility_preview(self):
        response = self.client.get(
            "/api/matches/compatibility",
            params={"opening_id": str(self.opening.id), "builder_id": str(self.builder.user_id)},
            headers=self.headers(self.founder.user_id)
        )

        self.assertEqual(response.status_code, 200)
        compatibility = response.json()["compatibility"]
        print(f"\n📊 Preview: {compatibility['score']} {compatibility['quality']}")
        self.assertTrue(compatibility["passes"])
        self.assertEqual(compatibility["score"], 95)
        self.assertEqual(compatibility["quality"], "EXCELLENT")
        self.assertEqual(compatibility["breakdown"]["scenario"]["score"], 50)

    def test_04_compatibility_preview_filtered(self):
        response = self.client.get(
            "/api/matches/compatibility",
            params={"opening_id": str(self.opening.id), "builder_id": str(self.other_builder.user_id)},
            headers=self.headers(self.founder.user_id)
        )

        compatibility = response.json()["compatibility"]
        self.assertFalse(compatibility["passes"])
        self.assertEqual(compatibility["score"], 0)
        self.assertIsNone(compatibility["breakdown"])
        self.assertIn("Commitment gap too large", compatibility["reason"])

    def test_05_compatibility_unknown_opening(self):
        response = self.client.get(
            "/api/matches/compatibility",
            params={"opening_id": str(uuid.uuid4()), "builder_id": str(self.builder.user_id)},
            headers=self.headers(self.founder.user_id)
        )

        self.assertEqual(response.status_code, 404)
        data = response.json()
        self.assertFalse(data["success"])
        self.assertEqual(data["type"], "NotFoundError")

    def test_06_missing_user_header(self):
        response = self.client.get("/api/matches/mutual")
        self.assertEqual(response.status_code, 401)

    def test_07_invalid_user_header(self):
        response = self.client.get("/api/matches/mutual", headers={"X-User-Id": "not-a-uuid"})
        self.assertEqual(response.status_code, 400)

    def test_08_daily_feed(self):
        response = self.client.get(
            "/api/matches/daily",
            params={"role": "builder"},
            headers=self.headers(self.builder.user_id)
        )

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["count"], 1)
        self.assertEqual(data["matches"][0]["match_id"], str(self.match.id))
        self.assertEqual(data["matches"][0]["compatibility_score"], 88)

    def test_09_daily_feed_invalid_role(self):
        response = self.client.get(
            "/api/matches/daily",
            params={"role": "investor"},
            headers=self.headers(self.builder.user_id)
        )
        self.assertEqual(response.status_code, 422)


class TestGenerateEndpoints(MatchesApiTestCase):

    def test_01_generate_for_own_opening(self):
        response = self.client.post(
            f"/api/matches/generate/opening/{self.opening.id}",
            headers=self.headers(self.founder.user_id)
        )

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["count"], 1)
        self.assertEqual(data["candidates"][0]["builder_id"], str(self.builder.user_id))
        self.assertEqual(data["candidates"][0]["quality"], "EXCELLENT")

    def test_02_generate_for_someone_elses_opening(self):
        response = self.client.post(
            f"/api/matches/generate/opening/{self.opening.id}",
            headers=self.headers(self.builder.user_id)
        )

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["type"], "ForbiddenError")

    def test_03_generate_for_inactive_opening(self):
        with self.factory() as session:
            paused = add_opening(session, self.founder, status='PAUSED')
            session.commit()

        response = self.client.post(
            f"/api/matches/generate/opening/{paused.id}",
            headers=self.headers(self.founder.user_id)
        )

        self.assertEqual(response.status_code, 400)

    def test_04_generate_for_builder(self):
        response = self.client.post(
            f"/api/matches/generate/builder/{self.builder.user_id}",
            params={"limit": 10, "min_score": 90},
            headers=self.headers(self.builder.user_id)
        )

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual([c["opening_id"] for c in data["candidates"]], [str(self.opening.id)])

    def test_05_generate_for_another_builder(self):
        response = self.client.post(
            f"/api/matches/generate/builder/{self.builder.user_id}",
            headers=self.headers(self.other_builder.user_id)
        )
        self.assertEqual(response.status_code, 403)

    def test_06_invalid_opening_id(self):
        response = self.client.post(
            "/api/matches/generate/opening/abc",
            headers=self.headers(self.founder.user_id)
        )
        self.assertEqual(response.status_code, 400)


class TestActionEndpoints(MatchesApiTestCase):

    def test_01_like_then_mutual(self):
        first = self.client.post(
            f"/api/matches/{self.match.id}/like",
            headers=self.headers(self.founder.user_id)
        )
        second = self.client.post(
            f"/api/matches/{self.match.id}/like",
            headers=self.headers(self.builder.user_id)
        )

        self.assertEqual(first.status_code, 200)
        self.assertFalse(first.json()["newly_mutual"])
        self.assertEqual(first.json()["match"]["status"], "LIKED")

        data = second.json()
        self.assertTrue(data["newly_mutual"])
        self.assertTrue(data["is_mutual"])
        self.assertEqual(data["message"], "It's a match! You both liked each other.")
        self.assertIsNotNone(data["match"]["matched_at"])
        self.assertEqual([e["status"] for e in data["match"]["status_history"]], ["LIKED", "MUTUAL"])

        mutual = self.client.get("/api/matches/mutual", headers=self.headers(self.founder.user_id))
        self.assertEqual(mutual.json()["count"], 1)

    def test_02_action_body(self):
        response = self.client.post(
            f"/api/matches/{self.match.id}/action",
            json={"action": "skip"},
            headers=self.headers(self.builder.user_id)
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["match"]["status"], "SKIPPED")
        self.assertEqual(response.json()["match"]["builder_action"], "SKIP")

    def test_03_invalid_action(self):
        response = self.client.post(
            f"/api/matches/{self.match.id}/action",
            json={"action": "SUPERLIKE"},
            headers=self.headers(self.builder.user_id)
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["type"], "InvalidInputError")

    def test_04_non_participant(self):
        response = self.client.post(
            f"/api/matches/{self.match.id}/save",
            headers=self.headers(uuid.uuid4())
        )
        self.assertEqual(response.status_code, 403)

    def test_05_unknown_match(self):
        response = self.client.post(
            f"/api/matches/{uuid.uuid4()}/like",
            headers=self.headers(self.builder.user_id)
        )
        self.assertEqual(response.status_code, 404)


class TestNightlyEndpoint(MatchesApiTestCase):

    def test_01_run_nightly(self):
        response = self.client.post("/api/matches/admin/run-nightly")

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data["success"])
        self.assertEqual(data["openings_processed"], 1)
        # The seeded match is refreshed, not duplicated
        self.assertEqual(data["matches_created"], 0)
        self.assertEqual(data["matches_updated"], 1)

    def test_02_concurrent_run_rejected(self):
        manager = get_nightly_manager()
        manager._lock.acquire()
        try:
            response = self.client.post("/api/matches/admin/run-nightly")
        finally:
            manager._lock.release()

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["type"], "NightlyRunLockedException")

    def test_03_stop_without_running_sweep(self):
        response = self.client.post("/api/matches/admin/stop-nightly")

        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["success"])

    def test_04_stop_running_sweep(self):
        manager = get_nightly_manager()
        stop_event = threading.Event()
        manager._stop_event = stop_event
        try:
            response = self.client.post("/api/matches/admin/stop-nightly")
        finally:
            manager._stop_event = None

        self.assertTrue(response.json()["success"])
        self.assertTrue(stop_event.is_set())


class TestOpeningStatsEndpoint(MatchesApiTestCase):

    def test_01_counts_by_status(self):
        self.client.post(f"/api/matches/{self.match.id}/skip", headers=self.headers(self.builder.user_id))
        with self.factory() as session:
            add_match(session, self.opening, self.other_builder, score=70)
            session.commit()

        response = self.client.get(
            f"/api/matches/openings/{self.opening.id}/stats",
            headers=self.headers(self.founder.user_id)
        )

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["total"], 2)
        self.assertEqual(data["by_status"], {"SKIPPED": 1, "PENDING": 1})

    def test_02_only_owner_sees_stats(self):
        response = self.client.get(
            f"/api/matches/openings/{self.opening.id}/stats",
            headers=self.headers(self.builder.user_id)
        )
        self.assertEqual(response.status_code, 403)

    def test_03_unknown_opening(self):
        response = self.client.get(
            f"/api/matches/openings/{uuid.uuid4()}/stats",
            headers=self.headers(self.founder.user_id)
        )
        self.assertEqual(response.status_code, 404)


if __name__ == '__main__':
    unittest.main()
