from __future__ import annotations

import logging
from typing import Any

import httpx

from pagebot.application.exceptions import AdapterFailure

SUBSCRIBED_FIELDS = "feed,messages,messaging_postbacks,message_reads,message_deliveries"


class GraphClient:
    def __init__(
        self,
        base_url: str = "https://graph.facebook.com",
        api_version: str = "v21.0",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base = f"{base_url.rstrip('/')}/{api_version}"
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._logger = logging.getLogger(__name__)

    @property
    def messages_url(self) -> str:
        return f"{self._base}/me/messages"

    async def send_action(self, recipient_id: str, page_token: str, action: str) -> None:
        payload = {"recipient": {"id": recipient_id}, "sender_action": action}
        await self._post(self.messages_url, page_token, payload, recipient_id)

    async def send_message(self, recipient_id: str, page_token: str, message: dict[str, Any]) -> dict[str, Any]:
        payload = {"recipient": {"id": recipient_id}, "message": message}
        return await self._post(self.messages_url, page_token, payload, recipient_id)

    async def subscribe_app(self, page_id: str, page_token: str, fields: str = SUBSCRIBED_FIELDS) -> dict[str, Any]:
        url = f"{self._base}/{page_id}/subscribed_apps"
        params = {"access_token": page_token, "subscribed_fields": fields}
        return await self._request("POST", url, params=params, label=page_id)

    async def get_subscribed_apps(self, page_id: str, page_token: str) -> dict[str, Any]:
        url = f"{self._base}/{page_id}/subscribed_apps"
        return await self._request("GET", url, params={"access_token": page_token}, label=page_id)

    async def _post(self, url: str, page_token: str, payload: dict[str, Any], recipient_id: str) -> dict[str, Any]:
        return await self._request("POST", url, params={"access_token": page_token}, json=payload, label=recipient_id)

    async def _request(
        self,
        method: str,
        url: str,
        params: dict[str, str],
        json: dict[str, Any] | None = None,
        label: str = "",
    ) -> dict[str, Any]:
        try:
            resp = await self._client.request(method, url, params=params, json=json)
        except httpx.HTTPError as e:
            self._logger.error("Graph API request failed", extra={"user_id": label, "reason": str(e)})
            raise AdapterFailure(f"Graph API request failed: {e}") from e

        if resp.status_code >= 400:
            try:
                error = resp.json().get("error", {})
                error_code = error.get("code")
                error_message = error.get("message")
                error_subcode = error.get("error_subcode")
            except Exception:
                error_code = None
                error_message = resp.text
                error_subcode = None

            self._logger.error(
                "Graph API error",
                extra={
                    "status": resp.status_code,
                    "error_code": error_code,
                    "error_message": error_message,
                    "error_subcode": error_subcode,
                    "user_id": label,
                },
            )
            raise AdapterFailure(f"Graph API returned {resp.status_code}: {error_message}")

        try:
            return resp.json()
        except ValueError:
            return {}

    async def aclose(self) -> None:
        await self._client.aclose()
