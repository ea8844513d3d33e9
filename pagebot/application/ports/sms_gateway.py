from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class SmsResult:
    success: bool
    raw: Any = field(default=None)


class SmsGatewayPort(ABC):
    @abstractmethod
    async def send_sms(self, phone_number: str, text: str) -> SmsResult:
        raise NotImplementedError
