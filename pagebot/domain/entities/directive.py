from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class DirectiveKind(str, Enum):
    TEXT = "text"
    TEMPLATE = "template"
    ATTACHMENT = "attachment"


@dataclass(frozen=True)
class ReplyDirective:
    """A pre-rendered outbound message that has not been sent yet."""

    kind: DirectiveKind
    body: str | None = None
    payload: dict[str, Any] | None = None  # template attachment (button / generic)
    url: str | None = None  # image attachment

    @staticmethod
    def text(body: str) -> "ReplyDirective":
        return ReplyDirective(kind=DirectiveKind.TEXT, body=body)

    @staticmethod
    def template(payload: dict[str, Any]) -> "ReplyDirective":
        return ReplyDirective(kind=DirectiveKind.TEMPLATE, payload=payload)

    @staticmethod
    def attachment(url: str) -> "ReplyDirective":
        return ReplyDirective(kind=DirectiveKind.ATTACHMENT, url=url)
