from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from pagebot.application.exceptions import AdapterFailure, InvalidStepSequence
from pagebot.application.ports.config_store import ConfigStorePort
from pagebot.application.utils.step_sequence import build_step_sequence
from pagebot.domain.entities.keyword import KeywordEntry
from pagebot.domain.entities.page_config import PageConfig
from pagebot.domain.entities.step import StepDefinition
from pagebot.infrastructure.sheets.sheets_client import SheetsClient

WEBHOOK_CONFIG_RANGE = "WebhookConfig!A:D"
KEYWORDS_RANGE = "KeywordsDM!A:C"
BOOKING_CONFIG_RANGE = "BookingConfig!A:D"
ORDERS_RANGE = "ConfirmedOrders!A:Z"
USER_LOG_RANGE = "PSIDs!A:B"


def build_order_row(user_id: str, answers: Mapping[str, str], completed_at: str) -> list[Any]:
    """[user id, answers ordered by field key, completion timestamp]."""
    return [user_id, *(answers[key] for key in sorted(answers)), completed_at]


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class SheetsConfigStore(ConfigStorePort):
    """
    Page directory, keyword tables and booking tables kept in Google Sheets.

    The master sheet (SHEET_ID) holds WebhookConfig and the user log; each page
    points at its own keyword sheet and booking sheet.
    """

    def __init__(
        self,
        client: SheetsClient,
        master_sheet_id: str,
        page_cache_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
        timestamp: Callable[[], str] = utc_timestamp,
    ) -> None:
        self._client = client
        self._master_sheet_id = master_sheet_id
        self._page_cache_seconds = page_cache_seconds
        self._clock = clock
        self._timestamp = timestamp
        self._pages: dict[str, PageConfig] | None = None
        self._pages_loaded_at = 0.0
        self._keywords: dict[str, list[KeywordEntry]] = {}
        self._logger = logging.getLogger(__name__)

    async def _load_pages(self) -> dict[str, PageConfig]:
        fresh = self._pages is not None and self._clock() - self._pages_loaded_at < self._page_cache_seconds
        if fresh:
            return self._pages or {}
        try:
            rows = await self._client.get_values(self._master_sheet_id, WEBHOOK_CONFIG_RANGE)
        except AdapterFailure as e:
            self._logger.error("Error fetching page config", extra={"reason": str(e)})
            return self._pages or {}
        pages: dict[str, PageConfig] = {}
        for row in rows[1:]:
            config = PageConfig.from_row(row)
            if config is not None:
                pages[config.page_id] = config
        self._pages = pages
        self._pages_loaded_at = self._clock()
        return pages

    async def get_page_config(self, page_id: str) -> PageConfig | None:
        pages = await self._load_pages()
        return pages.get(str(page_id))

    async def list_page_configs(self) -> list[PageConfig]:
        pages = await self._load_pages()
        return list(pages.values())

    async def get_keywords(self, source_id: str, force_refresh: bool = False) -> list[KeywordEntry]:
        if force_refresh or source_id not in self._keywords:
            try:
                rows = await self._client.get_values(source_id, KEYWORDS_RANGE)
            except AdapterFailure as e:
                self._logger.error("Error fetching keywords", extra={"reason": str(e)})
                return self._keywords.get(source_id, [])
            entries = [KeywordEntry.from_row(row) for row in rows[1:]]
            self._keywords[source_id] = [e for e in entries if e is not None]
            self._logger.info("Keywords loaded", extra={"count": len(self._keywords[source_id])})
        return self._keywords[source_id]

    async def get_step_sequence(self, source_id: str) -> tuple[StepDefinition, ...] | None:
        try:
            rows = await self._client.get_values(source_id, BOOKING_CONFIG_RANGE)
            return build_step_sequence(rows[1:])
        except AdapterFailure as e:
            self._logger.error("Error fetching booking config", extra={"reason": str(e)})
        except InvalidStepSequence as e:
            self._logger.error("Invalid booking config", extra={"reason": str(e)})
        return None

    async def save_order(self, user_id: str, answers: Mapping[str, str], destination_id: str) -> bool:
        row = build_order_row(user_id, answers, self._timestamp())
        try:
            await self._client.append_row(destination_id, ORDERS_RANGE, row)
        except AdapterFailure as e:
            self._logger.error("Error saving order", extra={"user_id": user_id, "reason": str(e)})
            return False
        self._logger.info("Order saved", extra={"user_id": user_id})
        return True

    async def log_user(self, user_id: str) -> None:
        try:
            await self._client.append_row(self._master_sheet_id, USER_LOG_RANGE, [user_id, self._timestamp()])
        except AdapterFailure as e:
            self._logger.error("Error logging user", extra={"user_id": user_id, "reason": str(e)})

    async def ping(self) -> bool:
        try:
            await self._client.get_metadata(self._master_sheet_id)
        except AdapterFailure:
            return False
        return True

    async def aclose(self) -> None:
        await self._client.aclose()
