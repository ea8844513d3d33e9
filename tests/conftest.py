from __future__ import annotations

import os
from datetime import date
from typing import Any, Mapping

import pytest

os.environ.setdefault("ENV", "test")

from pagebot.application.ports.config_store import ConfigStorePort
from pagebot.application.use_cases.conversation import ConversationController
from pagebot.application.use_cases.keyword_reply import KeywordReplyUseCase
from pagebot.application.use_cases.outbound_scheduler import OutboundScheduler
from pagebot.application.use_cases.route_event import EventRouter
from pagebot.application.utils.step_sequence import build_step_sequence
from pagebot.domain.entities.keyword import KeywordEntry
from pagebot.domain.entities.page_config import PageConfig
from pagebot.domain.entities.step import StepDefinition
from pagebot.infrastructure.messenger.mock_platform import MockMessengerPlatform
from pagebot.infrastructure.sms.mock_sms import MockSmsGateway
from pagebot.infrastructure.store.dedup_cache import MemoryDedupCache
from pagebot.infrastructure.store.memory_session_store import MemorySessionStore

PAGE = PageConfig(page_id="page_1", page_token="tok_1", keywords_source_id="kw_sheet", booking_source_id="book_sheet")

BOOKING_ROWS = [
    ["name", "What is your name?", "text", ""],
    ["mobile", "📱 Your mobile number?", "mobile", ""],
    ["date", "📅 Preferred date?", "date", ""],
]

TODAY = date(2026, 10, 17)


class FakeConfigStore(ConfigStorePort):
    def __init__(
        self,
        pages: list[PageConfig] | None = None,
        keywords: list[KeywordEntry] | None = None,
        steps: tuple[StepDefinition, ...] | None = None,
        save_ok: bool = True,
    ) -> None:
        self.pages = {p.page_id: p for p in (pages if pages is not None else [PAGE])}
        self.keywords = keywords or []
        self.steps = steps
        self.save_ok = save_ok
        self.orders: list[tuple[str, dict[str, str], str]] = []
        self.logged_users: list[str] = []
        self.keyword_refreshes = 0

    async def get_page_config(self, page_id: str) -> PageConfig | None:
        return self.pages.get(page_id)

    async def list_page_configs(self) -> list[PageConfig]:
        return list(self.pages.values())

    async def get_keywords(self, source_id: str, force_refresh: bool = False) -> list[KeywordEntry]:
        if force_refresh:
            self.keyword_refreshes += 1
        return self.keywords

    async def get_step_sequence(self, source_id: str) -> tuple[StepDefinition, ...] | None:
        return self.steps

    async def save_order(self, user_id: str, answers: Mapping[str, str], destination_id: str) -> bool:
        self.orders.append((user_id, dict(answers), destination_id))
        return self.save_ok

    async def log_user(self, user_id: str) -> None:
        self.logged_users.append(user_id)

    async def ping(self) -> bool:
        return True


async def no_sleep(seconds: float) -> None:
    return None


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def booking_steps() -> tuple[StepDefinition, ...]:
    return build_step_sequence(BOOKING_ROWS)


@pytest.fixture
def sessions() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture
def config_store(booking_steps) -> FakeConfigStore:
    return FakeConfigStore(
        keywords=[
            KeywordEntry.from_row(["price,cost", "Our rates start at 500.", ""]),
            KeywordEntry.from_row(["time", "", "time"]),
        ],
        steps=booking_steps,
    )


@pytest.fixture
def sms() -> MockSmsGateway:
    return MockSmsGateway()


@pytest.fixture
def controller(sessions, config_store, sms) -> ConversationController:
    return ConversationController(store=sessions, config_store=config_store, sms=sms, today=lambda: TODAY)


@pytest.fixture
def platform() -> MockMessengerPlatform:
    return MockMessengerPlatform()


@pytest.fixture
def scheduler(platform) -> OutboundScheduler:
    return OutboundScheduler(platform=platform, sleep=no_sleep)


@pytest.fixture
def event_router(config_store, sessions, controller, scheduler) -> EventRouter:
    return EventRouter(
        config_store=config_store,
        sessions=sessions,
        dedup=MemoryDedupCache(capacity=100),
        controller=controller,
        keyword_reply=KeywordReplyUseCase(timezone="Asia/Manila"),
        scheduler=scheduler,
    )


def texts(directives: list[Any]) -> list[str]:
    return [d.body for d in directives if d.body is not None]
