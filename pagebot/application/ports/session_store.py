from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncContextManager, Sequence

from pagebot.domain.entities.session import ConversationSession
from pagebot.domain.entities.step import StepDefinition


class SessionStorePort(ABC):
    @abstractmethod
    def get(self, user_id: str) -> ConversationSession | None:
        raise NotImplementedError

    @abstractmethod
    def create(
        self,
        user_id: str,
        step_sequence: Sequence[StepDefinition],
        now: float | None = None,
    ) -> ConversationSession:
        """Create a fresh session at step 0, replacing any existing one."""
        raise NotImplementedError

    @abstractmethod
    def save(self, session: ConversationSession) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, user_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def lock(self, user_id: str) -> AsyncContextManager[None]:
        """
        Serialize read-modify-write sequences for one user.
        Every state transition for the user must run inside this context.
        """
        raise NotImplementedError

    @abstractmethod
    async def sweep_expired(self, now: float, ttl: float) -> list[str]:
        """Delete sessions started more than `ttl` seconds before `now`. Returns removed user ids."""
        raise NotImplementedError
