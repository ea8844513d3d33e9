from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

from pagebot.application.ports.dedup_cache import DedupCachePort
from pagebot.application.ports.session_store import SessionStorePort


class MaintenanceLoops:
    """Periodic session sweep and dedup reset, run as background tasks next to request handling."""

    def __init__(
        self,
        sessions: SessionStorePort,
        dedup: DedupCachePort,
        session_ttl: float = 30 * 60,
        sweep_interval: float = 10 * 60,
        dedup_reset_interval: float = 60 * 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._sessions = sessions
        self._dedup = dedup
        self._session_ttl = session_ttl
        self._sweep_interval = sweep_interval
        self._dedup_reset_interval = dedup_reset_interval
        self._clock = clock
        self._tasks: list[asyncio.Task[None]] = []
        self._logger = logging.getLogger(__name__)

    async def sweep_sessions(self) -> list[str]:
        return await self._sessions.sweep_expired(self._clock(), self._session_ttl)

    async def reset_dedup(self) -> int:
        return self._dedup.reset_if_full()

    def start(self) -> None:
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._every(self._sweep_interval, self.sweep_sessions), name="session-sweep"),
            asyncio.create_task(self._every(self._dedup_reset_interval, self.reset_dedup), name="dedup-reset"),
        ]
        self._logger.info("Maintenance loops started")

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

    async def _every(self, interval: float, job: Callable[[], Awaitable[object]]) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await job()
            except Exception:
                # a failed sweep must never stop the loop or touch request handling
                self._logger.exception("Maintenance job failed", extra={"reason": getattr(job, "__name__", "job")})
