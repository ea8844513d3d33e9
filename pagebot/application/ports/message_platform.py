from abc import ABC, abstractmethod
from typing import Any

from pagebot.domain.entities.directive import ReplyDirective


class MessagePlatformPort(ABC):
    @abstractmethod
    async def send_typing(self, recipient_id: str, page_token: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def send_message(self, recipient_id: str, page_token: str, directive: ReplyDirective) -> None:
        raise NotImplementedError

    @abstractmethod
    async def subscribe_page(self, page_id: str, page_token: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def get_subscriptions(self, page_id: str, page_token: str) -> dict[str, Any]:
        raise NotImplementedError
