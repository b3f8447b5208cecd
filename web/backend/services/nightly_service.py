#!/usr/bin/env python3
"""
Nightly service - runs the sweep on demand from the admin endpoint.
"""

import logging
from threading import Lock, Event
from typing import Optional

from core.app_context import AppContext
from pipeline.runner import NightlyRunResult
from ..exceptions import NightlyRunLockedException

logger = logging.getLogger(__name__)


class NightlyRunManager:
    """Allows one on-demand sweep at a time in this process."""

    def __init__(self):
        self._lock = Lock()
        self._stop_event: Optional[Event] = None

    def run(self, ctx: AppContext) -> NightlyRunResult:
        """
        Run a sweep synchronously.

        Raises:
            NightlyRunLockedException: If a sweep is already running.
        """
        if not self._lock.acquire(blocking=False):
            raise NightlyRunLockedException("Nightly sweep is already running. Please try again later.")

        try:
            self._stop_event = Event()
            logger.info("Nightly sweep triggered from admin endpoint")
            return ctx.nightly_runner.run(stop_event=self._stop_event)
        finally:
            self._stop_event = None
            self._lock.release()

    def stop(self) -> bool:
        """Signal the running sweep to stop after the current opening."""
        stop_event = self._stop_event
        if stop_event is None:
            return False
        stop_event.set()
        return True


_nightly_manager = NightlyRunManager()


def get_nightly_manager() -> NightlyRunManager:
    return _nightly_manager
