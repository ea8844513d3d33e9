from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence


@dataclass(frozen=True)
class KeywordEntry:
    keywords: tuple[str, ...]
    replies: tuple[str, ...] = field(default_factory=tuple)
    action: str | None = None
    image_urls: tuple[str, ...] = field(default_factory=tuple)

    @staticmethod
    def from_row(row: Sequence[str]) -> "KeywordEntry | None":
        """Row layout: keyword CSV, ``|``-separated replies, action name or ``|``-separated image URLs."""
        cells = [str(c) for c in row] + ["", "", ""]
        keywords = tuple(k.strip().lower() for k in cells[0].split(",") if k.strip())
        if not keywords:
            return None
        replies = tuple(r.strip() for r in cells[1].split("|") if r.strip())
        column_c = cells[2].strip()
        if column_c.startswith("http"):
            urls = tuple(u.strip() for u in column_c.split("|") if u.strip())
            return KeywordEntry(keywords=keywords, replies=replies, image_urls=urls)
        return KeywordEntry(keywords=keywords, replies=replies, action=column_c.lower() or None)

    def matches(self, text: str) -> bool:
        lowered = text.lower()
        return any(keyword in lowered for keyword in self.keywords)
