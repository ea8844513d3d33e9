from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

from pagebot.domain.entities.inbound import CommentEvent, InboundEvent, PostbackEvent, TextMessageEvent

logger = logging.getLogger(__name__)

SUPPORTED_OBJECTS = {"page", "instagram"}


def comment_event_id(value: dict[str, Any]) -> str | None:
    """Stable id for a comment change: comment id, else post:author:created_time."""
    comment_id = value.get("comment_id") or value.get("id")
    if comment_id:
        return str(comment_id)
    post_id = value.get("post_id") or (value.get("media") or {}).get("id")
    author = (value.get("from") or {}).get("id")
    created = value.get("created_time")
    if post_id and author and created:
        return f"{post_id}:{author}:{created}"
    return None


class WebhookEventDTO(BaseModel):
    object: str | None = None
    entry: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def is_supported(self) -> bool:
        return self.object in SUPPORTED_OBJECTS

    def extract_events(self) -> list[InboundEvent]:
        events: list[InboundEvent] = []
        for entry in self.entry or []:
            page_id = entry.get("id")
            if not page_id:
                logger.warning("Entry without page id dropped")
                continue
            page_id = str(page_id)

            for messaging in entry.get("messaging", []) or []:
                event = _classify_messaging(page_id, messaging)
                if event is not None:
                    events.append(event)

            for change in entry.get("changes", []) or []:
                event = _classify_change(page_id, change)
                if event is not None:
                    events.append(event)
        return events


def _classify_messaging(page_id: str, messaging: dict[str, Any]) -> InboundEvent | None:
    sender = (messaging.get("sender") or {}).get("id")
    timestamp = messaging.get("timestamp")
    if not sender:
        logger.info("Messaging event without sender dropped", extra={"page_id": page_id})
        return None
    sender = str(sender)

    postback = messaging.get("postback")
    if postback:
        payload = postback.get("payload")
        if not payload:
            logger.info("Postback without payload dropped", extra={"user_id": sender})
            return None
        event_id = postback.get("mid") or f"postback:{sender}:{timestamp}:{payload}"
        return PostbackEvent(
            event_id=str(event_id),
            page_id=page_id,
            sender_id=sender,
            payload=str(payload),
            timestamp=_as_int(timestamp),
        )

    message = messaging.get("message") or {}
    if message.get("is_echo"):
        return None
    text = message.get("text")
    if text:
        # quick replies arrive as messages carrying a postback-style payload
        quick_reply = (message.get("quick_reply") or {}).get("payload")
        event_id = message.get("mid") or f"message:{sender}:{timestamp}"
        if quick_reply:
            return PostbackEvent(
                event_id=str(event_id),
                page_id=page_id,
                sender_id=sender,
                payload=str(quick_reply),
                timestamp=_as_int(timestamp),
            )
        return TextMessageEvent(
            event_id=str(event_id),
            page_id=page_id,
            sender_id=sender,
            text=str(text),
            timestamp=_as_int(timestamp),
        )

    logger.info(
        "Unclassified messaging event dropped",
        extra={"page_id": page_id, "user_id": sender, "reason": ",".join(sorted(messaging.keys()))},
    )
    return None


def _classify_change(page_id: str, change: dict[str, Any]) -> CommentEvent | None:
    field = change.get("field")
    value = change.get("value") or {}
    if field == "feed":
        if value.get("item") != "comment":
            return None
        if value.get("verb") not in (None, "add", "edited"):
            return None
        text = value.get("message")
    elif field == "comments":
        text = value.get("text")
    else:
        logger.info("Unclassified change dropped", extra={"page_id": page_id, "reason": field})
        return None

    author = value.get("from") or {}
    commenter = author.get("id")
    event_id = comment_event_id(value)
    if not commenter or not text or not event_id:
        logger.info("Comment with missing data dropped", extra={"page_id": page_id, "event_id": event_id})
        return None

    return CommentEvent(
        event_id=event_id,
        page_id=page_id,
        sender_id=str(commenter),
        text=str(text),
        sender_name=str(author.get("name") or author.get("username") or "Unknown"),
        post_id=value.get("post_id") or (value.get("media") or {}).get("id"),
    )


def _as_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
