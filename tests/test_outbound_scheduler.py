import asyncio

from pagebot.application.use_cases.outbound_scheduler import OutboundScheduler
from pagebot.domain.entities.directive import ReplyDirective
from pagebot.infrastructure.messenger.mock_platform import MockMessengerPlatform


class TimelinePlatform(MockMessengerPlatform):
    """Records typing and sends on one shared timeline."""

    def __init__(self, timeline: list[str], fail_on: str | None = None) -> None:
        super().__init__()
        self.timeline = timeline
        self.fail_on = fail_on

    async def send_typing(self, recipient_id, page_token):
        self.timeline.append("typing")
        if self.fail_on == "typing":
            raise RuntimeError("typing failed")

    async def send_message(self, recipient_id, page_token, directive):
        self.timeline.append(f"send:{directive.body}")
        if self.fail_on == directive.body:
            raise RuntimeError("send failed")
        await super().send_message(recipient_id, page_token, directive)


def _scheduler(timeline, **kwargs):
    async def sleep(seconds):
        timeline.append(f"sleep:{seconds}")

    platform = TimelinePlatform(timeline, **kwargs)
    return OutboundScheduler(platform=platform, typing_delay=1.0, followup_delay=0.5, sleep=sleep), platform


async def test_delivery_pacing_order():
    timeline: list[str] = []
    scheduler, _ = _scheduler(timeline)
    directives = [ReplyDirective.text("a"), ReplyDirective.text("b"), ReplyDirective.text("c")]
    await scheduler.deliver("u1", "tok", directives, initial_delay=2.0)
    assert timeline == ["sleep:2.0", "typing", "sleep:1.0", "send:a", "sleep:0.5", "send:b", "send:c"]


async def test_single_directive_has_no_followup_pause():
    timeline: list[str] = []
    scheduler, _ = _scheduler(timeline)
    await scheduler.deliver("u1", "tok", [ReplyDirective.text("a")])
    assert timeline == ["typing", "sleep:1.0", "send:a"]


async def test_failures_are_logged_and_delivery_continues():
    timeline: list[str] = []
    scheduler, platform = _scheduler(timeline, fail_on="a")
    await scheduler.deliver("u1", "tok", [ReplyDirective.text("a"), ReplyDirective.text("b")])
    assert [d.body for _, d in platform.sent] == ["b"]

    timeline.clear()
    scheduler, platform = _scheduler(timeline, fail_on="typing")
    await scheduler.deliver("u1", "tok", [ReplyDirective.text("a")])
    assert [d.body for _, d in platform.sent] == ["a"]


async def test_schedule_runs_in_background_and_drains():
    timeline: list[str] = []
    scheduler, platform = _scheduler(timeline)
    assert scheduler.schedule("u1", "tok", []) is None

    task = scheduler.schedule("u1", "tok", [ReplyDirective.text("hi")])
    assert scheduler.pending == 1
    await scheduler.drain()
    assert task.done()
    assert scheduler.pending == 0
    assert [d.body for _, d in platform.sent] == ["hi"]


async def test_aclose_cancels_pending_sequences():
    platform = MockMessengerPlatform()
    scheduler = OutboundScheduler(platform=platform, typing_delay=60.0)
    scheduler.schedule("u1", "tok", [ReplyDirective.text("never")])
    await asyncio.sleep(0)
    await scheduler.aclose()
    assert scheduler.pending == 0
    assert platform.sent == []


async def test_chain_delivers_lists_in_order():
    timeline: list[str] = []
    scheduler, _ = _scheduler(timeline)
    assert scheduler.schedule_chain("u1", "tok", [(2.0, [])]) is None

    scheduler.schedule_chain(
        "u1",
        "tok",
        [(2.0, [ReplyDirective.text("dm"), ReplyDirective.text("photo")]), (3.0, [ReplyDirective.text("ask")])],
    )
    await scheduler.drain()
    assert timeline == [
        "sleep:2.0", "typing", "sleep:1.0", "send:dm", "sleep:0.5", "send:photo",
        "sleep:3.0", "typing", "sleep:1.0", "send:ask",
    ]
