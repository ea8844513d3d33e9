from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

from pagebot.application.exceptions import InvalidStepSequence
from pagebot.application.ports.config_store import ConfigStorePort
from pagebot.application.utils.step_sequence import build_step_sequence
from pagebot.domain.entities.keyword import KeywordEntry
from pagebot.domain.entities.page_config import PageConfig
from pagebot.domain.entities.step import StepDefinition


class JsonConfigStore(ConfigStorePort):
    """
    Local stand-in for the spreadsheet store.

    Config file layout::

        {
          "pages": [{"page_id": "...", "page_token": "...",
                     "keywords_source_id": "main", "booking_source_id": "main"}],
          "keywords": {"main": [["price,cost", "Our prices start at 500.", ""]]},
          "booking_steps": {"main": [["name", "Your name?", "text", ""]]}
        }

    Keyword and booking rows use the same column layout as the sheets, without
    header rows. Orders and the user log are appended as JSON lines under
    data_dir.
    """

    def __init__(self, config_path: str = "./data/pagebot.json", data_dir: str = "./data") -> None:
        self._config_path = Path(config_path)
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._keywords: dict[str, list[KeywordEntry]] = {}
        self._write_lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    @property
    def orders_path(self) -> Path:
        return self._data_dir / "orders.jsonl"

    @property
    def users_path(self) -> Path:
        return self._data_dir / "users.jsonl"

    def _load(self) -> dict[str, Any]:
        if not self._config_path.exists():
            self._logger.warning("Config file missing", extra={"reason": str(self._config_path)})
            return {}
        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            self._logger.error("Config file unreadable", extra={"reason": str(e)})
            return {}

    def _pages(self) -> dict[str, PageConfig]:
        pages: dict[str, PageConfig] = {}
        for item in self._load().get("pages", []):
            config = PageConfig.from_row(
                [
                    item.get("page_id", ""),
                    item.get("page_token", ""),
                    item.get("keywords_source_id", ""),
                    item.get("booking_source_id", ""),
                ]
            )
            if config is not None:
                pages[config.page_id] = config
        return pages

    async def get_page_config(self, page_id: str) -> PageConfig | None:
        return self._pages().get(str(page_id))

    async def list_page_configs(self) -> list[PageConfig]:
        return list(self._pages().values())

    async def get_keywords(self, source_id: str, force_refresh: bool = False) -> list[KeywordEntry]:
        if force_refresh or source_id not in self._keywords:
            rows = self._load().get("keywords", {}).get(source_id, [])
            entries = [KeywordEntry.from_row(row) for row in rows]
            self._keywords[source_id] = [e for e in entries if e is not None]
        return self._keywords[source_id]

    async def get_step_sequence(self, source_id: str) -> tuple[StepDefinition, ...] | None:
        rows = self._load().get("booking_steps", {}).get(source_id)
        if rows is None:
            return None
        try:
            return build_step_sequence(rows)
        except InvalidStepSequence as e:
            self._logger.error("Invalid booking config", extra={"reason": str(e)})
            return None

    async def save_order(self, user_id: str, answers: Mapping[str, str], destination_id: str) -> bool:
        record = {
            "user_id": user_id,
            "destination_id": destination_id,
            "answers": dict(sorted(answers.items())),
            "completed_at": _now_iso(),
        }
        try:
            self._append(self.orders_path, record)
        except OSError as e:
            self._logger.error("Error saving order", extra={"user_id": user_id, "reason": str(e)})
            return False
        return True

    async def log_user(self, user_id: str) -> None:
        self._append(self.users_path, {"user_id": user_id, "seen_at": _now_iso()})

    async def ping(self) -> bool:
        return self._config_path.exists()

    def _append(self, path: Path, record: dict[str, Any]) -> None:
        with self._write_lock:
            with open(path, "a", encoding="utf-8") as f:
                f.write(json.dumps(record, ensure_ascii=False) + "\n")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
