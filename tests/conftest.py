"""
Pytest configuration and fixtures.

This file provides pytest-specific configuration and fixtures.
For standard test utilities, see tests/__init__.py
"""

import pytest


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "db: marks tests as requiring PostgreSQL (deselect with '-m \"not db\"')"
    )


@pytest.fixture
def session_factory():
    """Session factory bound to a fresh in-memory SQLite database."""
    from tests import make_sqlite_session_factory

    engine, factory = make_sqlite_session_factory()
    yield factory
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    """A session on a fresh database, closed after the test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="session")
def test_db_url():
    """PostgreSQL URL for db-marked tests; skips when none is reachable."""
    from tests import TEST_DB_URL, check_db_available

    if not check_db_available():
        pytest.skip("PostgreSQL test database not available (set TEST_DATABASE_URL)")
    return TEST_DB_URL
