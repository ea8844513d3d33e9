from __future__ import annotations

import logging
from typing import Any

import httpx

from pagebot.application.ports.sms_gateway import SmsGatewayPort, SmsResult


class SemaphoreSmsGateway(SmsGatewayPort):
    def __init__(
        self,
        api_key: str,
        sender_name: str = "KIARA",
        endpoint: str = "https://api.semaphore.co/api/v4/messages",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._sender_name = sender_name
        self._endpoint = endpoint
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._logger = logging.getLogger(__name__)

    async def send_sms(self, phone_number: str, text: str) -> SmsResult:
        form = {
            "apikey": self._api_key,
            "number": phone_number,
            "message": text,
            "sendername": self._sender_name,
        }
        try:
            resp = await self._client.post(self._endpoint, data=form)
            body: Any = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            self._logger.error("SMS request failed", extra={"reason": str(e)})
            return SmsResult(success=False, raw=str(e))

        if _message_id(body):
            self._logger.info("SMS sent", extra={"status": resp.status_code})
            return SmsResult(success=True, raw=body)
        self._logger.error("SMS rejected", extra={"status": resp.status_code, "reason": str(body)[:200]})
        return SmsResult(success=False, raw=body)

    async def aclose(self) -> None:
        await self._client.aclose()


def _message_id(body: Any) -> Any:
    if isinstance(body, dict):
        return body.get("message_id")
    if isinstance(body, list) and body and isinstance(body[0], dict):
        return body[0].get("message_id")
    return None
