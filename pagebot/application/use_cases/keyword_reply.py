from __future__ import annotations

import logging
import random
from datetime import datetime
from typing import Callable, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pagebot.domain.entities.directive import ReplyDirective
from pagebot.domain.entities.keyword import KeywordEntry

DEFAULT_DM_REPLY = "Sorry, I didn't understand that. Can you rephrase?"
DEFAULT_COMMENT_DM = "Hi! Thanks for commenting on our post. How can I help you? 😊"


def find_keyword(entries: Sequence[KeywordEntry], text: str) -> KeywordEntry | None:
    """First entry with any keyword contained in the text."""
    for entry in entries:
        if entry.matches(text):
            return entry
    return None


class KeywordReplyUseCase:
    def __init__(
        self,
        timezone: str = "Asia/Manila",
        rng: random.Random | None = None,
        now: Callable[[ZoneInfo], datetime] | None = None,
    ) -> None:
        self._timezone = timezone
        self._rng = rng or random.Random()
        self._now = now or (lambda tz: datetime.now(tz))
        self._logger = logging.getLogger(__name__)

    def build_reply(
        self,
        entries: Sequence[KeywordEntry],
        text: str,
        default: str = DEFAULT_DM_REPLY,
        allow_actions: bool = True,
    ) -> list[ReplyDirective]:
        """
        Directives for a keyword match: one text (random pick among the entry's
        replies, or a special action result) followed by image attachments.
        Unmatched text gets the default reply.
        """
        entry = find_keyword(entries, text)
        if entry is None:
            return [ReplyDirective.text(default)]

        self._logger.info("Keyword matched", extra={"keyword": entry.keywords[0]})
        directives: list[ReplyDirective] = []

        reply: str | None = None
        if allow_actions and entry.action:
            reply = self.run_action(entry.action)
        if reply is None and entry.replies:
            reply = self._rng.choice(entry.replies)
        if reply is None and not entry.image_urls:
            reply = default

        if reply:
            directives.append(ReplyDirective.text(reply))
        directives.extend(ReplyDirective.attachment(url) for url in entry.image_urls)
        return directives

    def run_action(self, action: str) -> str | None:
        if action == "time":
            return self.current_time()
        self._logger.warning("Unknown keyword action", extra={"reason": action})
        return None

    def current_time(self) -> str:
        tz = _safe_timezone(self._timezone)
        now = self._now(tz)
        hour = now.strftime("%I").lstrip("0") or "12"
        return f"Current time: {now.strftime('%A, %B')} {now.day}, {now.year} at {hour}:{now.strftime('%M %p')}"


def _safe_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")
