from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping

from pagebot.domain.entities.keyword import KeywordEntry
from pagebot.domain.entities.page_config import PageConfig
from pagebot.domain.entities.step import StepDefinition


class ConfigStorePort(ABC):
    @abstractmethod
    async def get_page_config(self, page_id: str) -> PageConfig | None:
        raise NotImplementedError

    @abstractmethod
    async def list_page_configs(self) -> list[PageConfig]:
        raise NotImplementedError

    @abstractmethod
    async def get_keywords(self, source_id: str, force_refresh: bool = False) -> list[KeywordEntry]:
        """Keyword table for a source, cached per source id until force_refresh."""
        raise NotImplementedError

    @abstractmethod
    async def get_step_sequence(self, source_id: str) -> tuple[StepDefinition, ...] | None:
        """Booking steps for a source. None when the table is missing or invalid."""
        raise NotImplementedError

    @abstractmethod
    async def save_order(self, user_id: str, answers: Mapping[str, str], destination_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def log_user(self, user_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def ping(self) -> bool:
        """Health check against the backing store."""
        raise NotImplementedError
