from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from pagebot.application.exceptions import AdapterFailure


class SheetsClient:
    """Minimal Google Sheets v4 REST client (values.get / values.append / metadata)."""

    def __init__(
        self,
        access_token: str,
        base_url: str = "https://sheets.googleapis.com/v4",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._access_token = access_token
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._logger = logging.getLogger(__name__)

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._access_token}"}

    def _values_url(self, spreadsheet_id: str, cell_range: str) -> str:
        return f"{self._base_url}/spreadsheets/{spreadsheet_id}/values/{quote(cell_range, safe='!:')}"

    async def get_values(self, spreadsheet_id: str, cell_range: str) -> list[list[str]]:
        body = await self._request("GET", self._values_url(spreadsheet_id, cell_range))
        return [list(row) for row in body.get("values", [])]

    async def append_row(self, spreadsheet_id: str, cell_range: str, values: list[Any]) -> None:
        url = self._values_url(spreadsheet_id, cell_range) + ":append"
        params = {"valueInputOption": "RAW", "insertDataOption": "INSERT_ROWS"}
        await self._request("POST", url, params=params, json={"values": [values]})

    async def get_metadata(self, spreadsheet_id: str) -> dict[str, Any]:
        url = f"{self._base_url}/spreadsheets/{spreadsheet_id}"
        return await self._request("GET", url, params={"fields": "spreadsheetId,properties.title"})

    async def _request(
        self,
        method: str,
        url: str,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            resp = await self._client.request(method, url, params=params, json=json, headers=self._headers())
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            self._logger.error(
                "Sheets API error",
                extra={"status": e.response.status_code, "reason": e.response.text[:200]},
            )
            raise AdapterFailure(f"Sheets API returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            self._logger.error("Sheets API request failed", extra={"reason": str(e)})
            raise AdapterFailure(f"Sheets API request failed: {e}") from e
        try:
            return resp.json()
        except ValueError:
            return {}

    async def aclose(self) -> None:
        await self._client.aclose()
