from __future__ import annotations

import logging
from datetime import date, datetime
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pagebot.application.ports.config_store import ConfigStorePort
from pagebot.application.ports.message_platform import MessagePlatformPort
from pagebot.application.ports.sms_gateway import SmsGatewayPort
from pagebot.application.use_cases.conversation import ConversationController
from pagebot.application.use_cases.keyword_reply import KeywordReplyUseCase
from pagebot.application.use_cases.maintenance import MaintenanceLoops
from pagebot.application.use_cases.outbound_scheduler import OutboundScheduler
from pagebot.application.use_cases.route_event import EventRouter
from pagebot.core.config import settings
from pagebot.infrastructure.messenger.graph_client import GraphClient
from pagebot.infrastructure.messenger.messenger_platform import MessengerPlatform
from pagebot.infrastructure.messenger.mock_platform import MockMessengerPlatform
from pagebot.infrastructure.sheets.sheets_client import SheetsClient
from pagebot.infrastructure.sheets.sheets_config_store import SheetsConfigStore
from pagebot.infrastructure.sms.mock_sms import MockSmsGateway
from pagebot.infrastructure.sms.semaphore_client import SemaphoreSmsGateway
from pagebot.infrastructure.store.dedup_cache import MemoryDedupCache
from pagebot.infrastructure.store.json_config_store import JsonConfigStore
from pagebot.infrastructure.store.memory_session_store import MemorySessionStore

MOCK_ENVS = {"local", "test"}

logger = logging.getLogger(__name__)


def _is_mock_env() -> bool:
    return settings.ENV.lower() in MOCK_ENVS


@lru_cache
def get_config_store() -> ConfigStorePort:
    if settings.SHEET_ID and settings.GOOGLE_SHEETS_ACCESS_TOKEN:
        logger.info("Using Google Sheets config store")
        client = SheetsClient(
            access_token=settings.GOOGLE_SHEETS_ACCESS_TOKEN,
            base_url=settings.SHEETS_API_BASE_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
        return SheetsConfigStore(
            client=client,
            master_sheet_id=settings.SHEET_ID,
            page_cache_seconds=settings.PAGE_CONFIG_CACHE_SECONDS,
        )
    if not _is_mock_env() and settings.ENV.lower() != "dev":
        logger.warning("SHEET_ID or GOOGLE_SHEETS_ACCESS_TOKEN missing; falling back to local config file")
    logger.info("Using JSON config store", extra={"reason": settings.LOCAL_CONFIG_PATH})
    return JsonConfigStore(config_path=settings.LOCAL_CONFIG_PATH, data_dir=settings.LOCAL_DATA_DIR)


@lru_cache
def get_message_platform() -> MessagePlatformPort:
    logger.info("ENV=%s", settings.ENV)
    if _is_mock_env():
        logger.info("Using MockMessengerPlatform (ENV=local/test)")
        return MockMessengerPlatform()
    client = GraphClient(
        base_url=settings.GRAPH_API_BASE_URL,
        api_version=settings.GRAPH_API_VERSION,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
    return MessengerPlatform(client=client, auto_reply_enabled=settings.AUTO_REPLY_ENABLED)


@lru_cache
def get_sms_gateway() -> SmsGatewayPort | None:
    if settings.SEMAPHORE_API_KEY:
        return SemaphoreSmsGateway(
            api_key=settings.SEMAPHORE_API_KEY,
            sender_name=settings.SEMAPHORE_SENDER_NAME,
            endpoint=settings.SEMAPHORE_ENDPOINT,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
    if _is_mock_env():
        return MockSmsGateway()
    logger.info("SEMAPHORE_API_KEY missing; booking SMS disabled")
    return None


@lru_cache
def get_session_store() -> MemorySessionStore:
    return MemorySessionStore()


@lru_cache
def get_dedup_cache() -> MemoryDedupCache:
    return MemoryDedupCache(capacity=settings.DEDUP_CAPACITY)


@lru_cache
def get_scheduler() -> OutboundScheduler:
    return OutboundScheduler(
        platform=get_message_platform(),
        typing_delay=settings.TYPING_DELAY_SECONDS,
        followup_delay=settings.FOLLOWUP_DELAY_SECONDS,
    )


def _business_today() -> date:
    try:
        tz = ZoneInfo(settings.BUSINESS_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        return date.today()
    return datetime.now(tz).date()


@lru_cache
def get_conversation_controller() -> ConversationController:
    return ConversationController(
        store=get_session_store(),
        config_store=get_config_store(),
        sms=get_sms_gateway(),
        today=_business_today,
    )


@lru_cache
def get_event_router() -> EventRouter:
    return EventRouter(
        config_store=get_config_store(),
        sessions=get_session_store(),
        dedup=get_dedup_cache(),
        controller=get_conversation_controller(),
        keyword_reply=KeywordReplyUseCase(timezone=settings.BUSINESS_TIMEZONE),
        scheduler=get_scheduler(),
        comment_dm_delay=settings.COMMENT_DM_DELAY_SECONDS,
        comment_booking_delay=settings.COMMENT_BOOKING_DELAY_SECONDS,
    )


@lru_cache
def get_maintenance() -> MaintenanceLoops:
    return MaintenanceLoops(
        sessions=get_session_store(),
        dedup=get_dedup_cache(),
        session_ttl=settings.SESSION_TTL_SECONDS,
        sweep_interval=settings.SESSION_SWEEP_INTERVAL_SECONDS,
        dedup_reset_interval=settings.DEDUP_RESET_INTERVAL_SECONDS,
    )


def get_container() -> dict[str, object]:
    return {
        "router": get_event_router(),
        "sessions": get_session_store(),
        "scheduler": get_scheduler(),
        "platform": get_message_platform(),
        "config_store": get_config_store(),
    }
