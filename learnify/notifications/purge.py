"""Periodic background purge of stale read notifications."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass

from learnify.notifications.repository import NotificationRepository

LOGGER = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class PurgeSettings:
    """Purge schedule settings."""

    interval_seconds: float = SECONDS_PER_DAY
    retention_days: int = 30


class NotificationPurger:
    """Background loop deleting read notifications older than the retention window."""

    def __init__(self, repo: NotificationRepository, settings: PurgeSettings) -> None:
        self._repo = repo
        self._settings = settings
        self._worker_task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()

    def purge_once(self, *, now: int | None = None) -> int:
        """Run one purge pass and return the number of deleted notifications."""
        current = int(time.time()) if now is None else now
        cutoff = current - self._settings.retention_days * SECONDS_PER_DAY
        deleted = self._repo.purge_read_before(cutoff)
        LOGGER.info("notifications_purged", extra={"deleted": deleted})
        return deleted

    async def start(self) -> None:
        """Start background loop if not already running."""
        if self._worker_task and not self._worker_task.done():
            return
        self._stop_event.clear()
        self._worker_task = asyncio.create_task(self._worker_loop())

    async def stop(self) -> None:
        """Stop background loop gracefully."""
        self._stop_event.set()
        if self._worker_task:
            await self._worker_task
            self._worker_task = None

    async def _worker_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.to_thread(self.purge_once)
            except Exception:
                LOGGER.exception("notifications_purge_failed")
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(), timeout=self._settings.interval_seconds
                )
            except asyncio.TimeoutError:
                continue
