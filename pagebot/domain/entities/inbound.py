from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class PostbackEvent:
    event_id: str
    page_id: str
    sender_id: str
    payload: str
    timestamp: int | None = None


@dataclass(frozen=True)
class TextMessageEvent:
    event_id: str
    page_id: str
    sender_id: str
    text: str
    timestamp: int | None = None


@dataclass(frozen=True)
class CommentEvent:
    event_id: str  # comment_id, or post_id:from_id:created_time when missing
    page_id: str
    sender_id: str
    text: str
    sender_name: str = "Unknown"
    post_id: str | None = None


InboundEvent = Union[PostbackEvent, TextMessageEvent, CommentEvent]


# Actions fed to the conversation controller.


@dataclass(frozen=True)
class Confirm:
    pass


@dataclass(frozen=True)
class Cancel:
    pass


@dataclass(frozen=True)
class ChoiceAnswer:
    value: str


@dataclass(frozen=True)
class CustomOverrideStart:
    pass


@dataclass(frozen=True)
class FreeText:
    text: str


InboundAction = Union[Confirm, Cancel, ChoiceAnswer, CustomOverrideStart, FreeText]
