from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Sequence

from pagebot.application.exceptions import ConfigMissing, DuplicateEvent
from pagebot.application.ports.config_store import ConfigStorePort
from pagebot.application.ports.dedup_cache import DedupCachePort
from pagebot.application.ports.session_store import SessionStorePort
from pagebot.application.use_cases.conversation import ConversationController
from pagebot.application.use_cases.keyword_reply import DEFAULT_COMMENT_DM, KeywordReplyUseCase
from pagebot.application.use_cases.outbound_scheduler import OutboundScheduler
from pagebot.application.utils.prompts import (
    ANSWER_PAYLOAD_PREFIX,
    CANCEL_PAYLOAD,
    CONFIRM_PAYLOAD,
    UNAVAILABLE_TEXT,
)
from pagebot.application.utils.validators import is_override_sentinel
from pagebot.domain.entities.directive import ReplyDirective
from pagebot.domain.entities.inbound import (
    Cancel,
    ChoiceAnswer,
    CommentEvent,
    Confirm,
    CustomOverrideStart,
    FreeText,
    InboundAction,
    InboundEvent,
    PostbackEvent,
    TextMessageEvent,
)
from pagebot.domain.entities.page_config import PageConfig

REFRESH_COMMAND = "refresh data"
REFRESHED_TEXT = "✅ Keywords refreshed!"
DM_BOOKING_WORDS = ("order", "book")
COMMENT_BOOKING_WORDS = ("book", "order", "reserve", "appointment")


def decode_postback(payload: str) -> InboundAction | None:
    """Map a button payload to a controller action. Unknown payloads decode to None."""
    payload = (payload or "").strip()
    if payload == CONFIRM_PAYLOAD:
        return Confirm()
    if payload == CANCEL_PAYLOAD:
        return Cancel()
    if payload.startswith(ANSWER_PAYLOAD_PREFIX):
        value = payload[len(ANSWER_PAYLOAD_PREFIX) :].replace("_", " ").strip()
        if not value:
            return None
        if is_override_sentinel(value):
            return CustomOverrideStart()
        return ChoiceAnswer(value=value)
    return None


def has_booking_intent(text: str, words: Sequence[str]) -> bool:
    lowered = text.lower()
    return any(word in lowered for word in words)


class EventRouter:
    def __init__(
        self,
        config_store: ConfigStorePort,
        sessions: SessionStorePort,
        dedup: DedupCachePort,
        controller: ConversationController,
        keyword_reply: KeywordReplyUseCase,
        scheduler: OutboundScheduler,
        comment_dm_delay: float = 2.0,
        comment_booking_delay: float = 5.0,
    ) -> None:
        self._config_store = config_store
        self._sessions = sessions
        self._dedup = dedup
        self._controller = controller
        self._keyword_reply = keyword_reply
        self._scheduler = scheduler
        self._comment_dm_delay = comment_dm_delay
        self._comment_booking_delay = comment_booking_delay
        self._logger = logging.getLogger(__name__)

    async def dispatch_all(self, events: Iterable[InboundEvent]) -> None:
        """Handle a delivery batch, one task per event. Never raises."""
        events = list(events)
        results = await asyncio.gather(*(self.dispatch(event) for event in events), return_exceptions=True)
        for event, result in zip(events, results):
            if isinstance(result, BaseException):
                self._logger.error(
                    "Event handling failed",
                    exc_info=result,
                    extra={"event_id": event.event_id, "page_id": event.page_id},
                )

    async def dispatch(self, event: InboundEvent) -> None:
        try:
            page = await self._require_page(event.page_id)
            self._dedup.claim(event.event_id)
        except ConfigMissing as e:
            self._logger.error("No config for page", extra={"page_id": event.page_id, "reason": str(e)})
            return
        except DuplicateEvent:
            self._logger.info("Duplicate event ignored", extra={"event_id": event.event_id})
            return

        if isinstance(event, PostbackEvent):
            await self._handle_postback(page, event)
        elif isinstance(event, TextMessageEvent):
            await self._handle_text(page, event)
        elif isinstance(event, CommentEvent):
            await self._handle_comment(page, event)
        else:
            self._logger.warning("Unclassified event dropped", extra={"event_id": getattr(event, "event_id", None)})

    async def _require_page(self, page_id: str) -> PageConfig:
        page = await self._config_store.get_page_config(page_id)
        if page is None:
            raise ConfigMissing(f"page {page_id} is not provisioned")
        return page

    async def _handle_postback(self, page: PageConfig, event: PostbackEvent) -> None:
        action = decode_postback(event.payload)
        if action is None:
            self._logger.warning("Unknown postback payload", extra={"user_id": event.sender_id, "reason": event.payload})
            return
        self._logger.info("Postback", extra={"user_id": event.sender_id, "action": type(action).__name__})

        async with self._sessions.lock(event.sender_id):
            directives = await self._controller.handle(page, event.sender_id, action)
        self._scheduler.schedule(event.sender_id, page.page_token, directives)

    async def _handle_text(self, page: PageConfig, event: TextMessageEvent) -> None:
        user_id = event.sender_id
        lowered = event.text.lower().strip()

        if lowered == REFRESH_COMMAND:
            await self._config_store.get_keywords(page.keywords_source_id, force_refresh=True)
            self._scheduler.schedule(user_id, page.page_token, [ReplyDirective.text(REFRESHED_TEXT)])
            return

        new_conversation = False
        async with self._sessions.lock(user_id):
            if self._sessions.get(user_id) is not None:
                directives = await self._controller.handle(page, user_id, FreeText(text=event.text))
            else:
                new_conversation = True
                if has_booking_intent(lowered, DM_BOOKING_WORDS):
                    directives = await self._start_booking(page, user_id, announce_unavailable=True)
                else:
                    keywords = await self._config_store.get_keywords(page.keywords_source_id)
                    directives = self._keyword_reply.build_reply(keywords, lowered)

        self._scheduler.schedule(user_id, page.page_token, directives)
        if new_conversation:
            await self._log_user(user_id)

    async def _handle_comment(self, page: PageConfig, event: CommentEvent) -> None:
        commenter = event.sender_id
        if commenter == page.page_id:
            self._logger.info("Comment by page itself ignored", extra={"event_id": event.event_id})
            return

        self._logger.info(
            "New comment",
            extra={"event_id": event.event_id, "user_id": commenter, "page_id": page.page_id},
        )
        keywords = await self._config_store.get_keywords(page.keywords_source_id)
        dm = self._keyword_reply.build_reply(keywords, event.text, default=DEFAULT_COMMENT_DM, allow_actions=False)
        batches = [(self._comment_dm_delay, dm)]

        if has_booking_intent(event.text, COMMENT_BOOKING_WORDS):
            self._logger.info("Booking keyword in comment", extra={"user_id": commenter})
            async with self._sessions.lock(commenter):
                directives = await self._start_booking(page, commenter, announce_unavailable=False)
            # The booking prompt follows the finished DM, never overtakes it.
            gap = max(self._comment_booking_delay - self._comment_dm_delay, 0.0)
            batches.append((gap, directives))

        self._scheduler.schedule_chain(commenter, page.page_token, batches)
        await self._log_user(commenter)

    async def _start_booking(self, page: PageConfig, user_id: str, announce_unavailable: bool) -> list[ReplyDirective]:
        steps = await self._config_store.get_step_sequence(page.booking_source_id)
        if not steps:
            self._logger.warning("Booking not configured", extra={"page_id": page.page_id})
            return [ReplyDirective.text(UNAVAILABLE_TEXT)] if announce_unavailable else []
        return self._controller.start_conversation(user_id, steps)

    async def _log_user(self, user_id: str) -> None:
        try:
            await self._config_store.log_user(user_id)
        except Exception as e:
            self._logger.warning("Failed to log user", extra={"user_id": user_id, "reason": str(e)})
