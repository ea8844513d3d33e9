from __future__ import annotations

import logging
from typing import Any

from pagebot.application.ports.message_platform import MessagePlatformPort
from pagebot.domain.entities.directive import ReplyDirective


class MockMessengerPlatform(MessagePlatformPort):
    def __init__(self) -> None:
        self.sent: list[tuple[str, ReplyDirective]] = []
        self.typing: list[str] = []
        self._logger = logging.getLogger(__name__)

    async def send_typing(self, recipient_id: str, page_token: str) -> None:
        self.typing.append(recipient_id)

    async def send_message(self, recipient_id: str, page_token: str, directive: ReplyDirective) -> None:
        self.sent.append((recipient_id, directive))
        self._logger.info(
            "Mock send to Messenger",
            extra={"user_id": recipient_id, "kind": directive.kind.value, "text": directive.body},
        )

    async def subscribe_page(self, page_id: str, page_token: str) -> bool:
        self._logger.info("Mock page subscription", extra={"page_id": page_id})
        return True

    async def get_subscriptions(self, page_id: str, page_token: str) -> dict[str, Any]:
        return {"page_id": page_id, "subscribed_fields": [], "has_feed": False}
