from __future__ import annotations

import logging
import time
from typing import AsyncContextManager, Sequence

from pagebot.application.ports.session_store import SessionStorePort
from pagebot.application.utils.keyed_lock import KeyedLock
from pagebot.domain.entities.session import ConversationSession
from pagebot.domain.entities.step import StepDefinition


class MemorySessionStore(SessionStorePort):
    def __init__(self) -> None:
        self._sessions: dict[str, ConversationSession] = {}
        self._locks = KeyedLock()
        self._logger = logging.getLogger(__name__)

    def get(self, user_id: str) -> ConversationSession | None:
        return self._sessions.get(user_id)

    def create(
        self,
        user_id: str,
        step_sequence: Sequence[StepDefinition],
        now: float | None = None,
    ) -> ConversationSession:
        session = ConversationSession(
            user_id=user_id,
            step_sequence=tuple(step_sequence),
            started_at=time.time() if now is None else now,
        )
        self._sessions[user_id] = session
        return session

    def save(self, session: ConversationSession) -> None:
        self._sessions[session.user_id] = session

    def delete(self, user_id: str) -> None:
        self._sessions.pop(user_id, None)

    def lock(self, user_id: str) -> AsyncContextManager[None]:
        return self._locks.hold(user_id)

    async def sweep_expired(self, now: float, ttl: float) -> list[str]:
        candidates = [uid for uid, s in self._sessions.items() if s.is_expired(now, ttl)]
        removed: list[str] = []
        for user_id in candidates:
            async with self.lock(user_id):
                # re-check: the user may have restarted while we waited for the lock
                session = self._sessions.get(user_id)
                if session is not None and session.is_expired(now, ttl):
                    del self._sessions[user_id]
                    removed.append(user_id)
        if removed:
            self._logger.info("Swept stale sessions", extra={"count": len(removed)})
        return removed

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._sessions
