from __future__ import annotations

import logging

from pagebot.application.ports.sms_gateway import SmsGatewayPort, SmsResult


class MockSmsGateway(SmsGatewayPort):
    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []
        self._logger = logging.getLogger(__name__)

    async def send_sms(self, phone_number: str, text: str) -> SmsResult:
        self.sent.append((phone_number, text))
        self._logger.info("Mock SMS", extra={"text": text})
        return SmsResult(success=True, raw={"message_id": f"mock_{len(self.sent)}"})
