from __future__ import annotations

import logging
from typing import Any

from pagebot.application.ports.message_platform import MessagePlatformPort
from pagebot.domain.entities.directive import DirectiveKind, ReplyDirective
from pagebot.infrastructure.messenger.graph_client import GraphClient


def directive_to_message(directive: ReplyDirective) -> dict[str, Any]:
    if directive.kind is DirectiveKind.TEMPLATE:
        return {"attachment": directive.payload}
    if directive.kind is DirectiveKind.ATTACHMENT:
        return {"attachment": {"type": "image", "payload": {"url": directive.url, "is_reusable": True}}}
    return {"text": directive.body or ""}


class MessengerPlatform(MessagePlatformPort):
    def __init__(self, client: GraphClient, auto_reply_enabled: bool = True) -> None:
        self._client = client
        self._auto_reply_enabled = auto_reply_enabled
        self._logger = logging.getLogger(__name__)

    async def send_typing(self, recipient_id: str, page_token: str) -> None:
        if not self._auto_reply_enabled:
            return
        await self._client.send_action(recipient_id, page_token, "typing_on")

    async def send_message(self, recipient_id: str, page_token: str, directive: ReplyDirective) -> None:
        if not self._auto_reply_enabled:
            self._logger.info("WOULD_SEND_REPLY", extra={"user_id": recipient_id, "kind": directive.kind.value})
            self._logger.info("AUTO_REPLY_ENABLED=false -> skipping send")
            return
        await self._client.send_message(recipient_id, page_token, directive_to_message(directive))

    async def subscribe_page(self, page_id: str, page_token: str) -> bool:
        body = await self._client.subscribe_app(page_id, page_token)
        return bool(body.get("success"))

    async def get_subscriptions(self, page_id: str, page_token: str) -> dict[str, Any]:
        body = await self._client.get_subscribed_apps(page_id, page_token)
        apps = body.get("data") or []
        fields = list((apps[0] if apps else {}).get("subscribed_fields") or [])
        return {"page_id": page_id, "subscribed_fields": fields, "has_feed": "feed" in fields}

    async def aclose(self) -> None:
        await self._client.aclose()
