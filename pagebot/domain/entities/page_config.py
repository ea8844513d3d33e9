from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class PageConfig:
    page_id: str
    page_token: str
    keywords_source_id: str
    booking_source_id: str

    @staticmethod
    def from_row(row: Sequence[str]) -> "PageConfig | None":
        cells = [str(c).strip() for c in row] + ["", "", "", ""]
        page_id, page_token, keywords_source, booking_source = cells[:4]
        if not page_id or not page_token:
            return None
        return PageConfig(
            page_id=page_id,
            page_token=page_token,
            keywords_source_id=keywords_source,
            booking_source_id=booking_source or keywords_source,
        )
