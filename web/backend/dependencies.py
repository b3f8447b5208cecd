#!/usr/bin/env python3
"""
FastAPI dependencies for dependency injection.
"""

import uuid
import threading
from typing import Generator, Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import sessionmaker

from core.app_context import AppContext
from database.database import make_engine
from database.repository import MatchingRepository
from database.uow import matching_uow
from .config import get_config


class ContextManager:
    """Builds the AppContext (engine, session factory, services) on first use."""

    def __init__(self):
        self._ctx: Optional[AppContext] = None
        self._lock = threading.Lock()

    def get(self) -> AppContext:
        if self._ctx is None:
            with self._lock:
                if self._ctx is None:
                    config = get_config()
                    engine = make_engine(config.database.url)
                    session_factory = sessionmaker(
                        autocommit=False,
                        autoflush=False,
                        bind=engine
                    )
                    self._ctx = AppContext.build(config, session_factory=session_factory)
        return self._ctx


# Global context manager instance
_context_manager = ContextManager()


def get_app_context() -> AppContext:
    """FastAPI dependency returning the wired application context."""
    return _context_manager.get()


def get_repo(
    ctx: AppContext = Depends(get_app_context)
) -> Generator[MatchingRepository, None, None]:
    """
    FastAPI dependency that yields a repository inside a unit of work.

    Commits when the endpoint returns normally, rolls back on exceptions.

    Usage:
        @router.post("/endpoint")
        def my_endpoint(repo: MatchingRepository = Depends(get_repo)):
            ...
    """
    with matching_uow(ctx.session_factory) as repo:
        yield repo


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> uuid.UUID:
    """
    Caller identity from the X-User-Id header.

    Authentication happens upstream; this only parses the forwarded id.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return parse_uuid(x_user_id, "X-User-Id")


def parse_uuid(value: str, name: str) -> uuid.UUID:
    """Validate that value is a UUID, raising 400 otherwise."""
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid {name} format: {value}. Must be a valid UUID."
        )
