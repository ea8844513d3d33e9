from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

from pagebot.application.ports.message_platform import MessagePlatformPort
from pagebot.domain.entities.directive import ReplyDirective


class OutboundScheduler:
    """
    Delivers directive lists with human-like pacing:
    typing indicator, pause, first directive, short pause, the rest in order.

    Each list runs as its own task, so callers never wait on the pacing and
    never hold a per-user lock across it. Send failures are logged and
    dropped; nothing is retried.
    """

    def __init__(
        self,
        platform: MessagePlatformPort,
        typing_delay: float = 1.0,
        followup_delay: float = 0.5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._platform = platform
        self._typing_delay = typing_delay
        self._followup_delay = followup_delay
        self._sleep = sleep
        self._tasks: set[asyncio.Task[None]] = set()
        self._logger = logging.getLogger(__name__)

    def schedule(
        self,
        recipient_id: str,
        page_token: str,
        directives: Sequence[ReplyDirective],
        initial_delay: float = 0.0,
    ) -> asyncio.Task[None] | None:
        if not directives:
            return None
        task = asyncio.create_task(
            self.deliver(recipient_id, page_token, list(directives), initial_delay),
            name=f"outbound:{recipient_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def schedule_chain(
        self,
        recipient_id: str,
        page_token: str,
        batches: Sequence[tuple[float, Sequence[ReplyDirective]]],
    ) -> asyncio.Task[None] | None:
        """Deliver several lists in one task; each delay counts from the end of the previous list."""
        batches = [(delay, list(directives)) for delay, directives in batches if directives]
        if not batches:
            return None
        task = asyncio.create_task(
            self._deliver_chain(recipient_id, page_token, batches),
            name=f"outbound:{recipient_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _deliver_chain(
        self,
        recipient_id: str,
        page_token: str,
        batches: Sequence[tuple[float, Sequence[ReplyDirective]]],
    ) -> None:
        for delay, directives in batches:
            await self.deliver(recipient_id, page_token, directives, initial_delay=delay)

    async def deliver(
        self,
        recipient_id: str,
        page_token: str,
        directives: Sequence[ReplyDirective],
        initial_delay: float = 0.0,
    ) -> None:
        if initial_delay > 0:
            await self._sleep(initial_delay)

        try:
            await self._platform.send_typing(recipient_id, page_token)
        except Exception as e:
            self._logger.warning("Typing indicator failed", extra={"user_id": recipient_id, "reason": str(e)})

        await self._sleep(self._typing_delay)
        first, rest = directives[0], directives[1:]
        await self._send(recipient_id, page_token, first)

        if rest:
            await self._sleep(self._followup_delay)
            for directive in rest:
                await self._send(recipient_id, page_token, directive)

        self._logger.info("Directives delivered", extra={"user_id": recipient_id, "directive_count": len(directives)})

    async def _send(self, recipient_id: str, page_token: str, directive: ReplyDirective) -> None:
        try:
            await self._platform.send_message(recipient_id, page_token, directive)
        except Exception as e:
            self._logger.error(
                "Send failed",
                extra={"user_id": recipient_id, "kind": directive.kind.value, "reason": str(e)},
            )

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every scheduled sequence, including ones scheduled while waiting."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()
