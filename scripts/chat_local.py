#!/usr/bin/env python3
"""
Interactive local chat harness (no HTTP, no Messenger).

Usage:
  python3 scripts/chat_local.py

Typed lines go through the same EventRouter the webhook uses, with the mock
platform and the JSON config store. Replies are printed as the scheduler
delivers them.

Commands:
  /tap PAYLOAD   send a button postback (e.g. /tap BOOKING_YES)
  /comment TEXT  simulate a comment on a page post
  /new           switch to a new user id
  /quit
"""

from __future__ import annotations

import asyncio
import json
import os
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dotenv import load_dotenv

load_dotenv()
os.environ["ENV"] = "local"
os.environ.setdefault("TYPING_DELAY_SECONDS", "0")
os.environ.setdefault("FOLLOWUP_DELAY_SECONDS", "0")
os.environ.setdefault("COMMENT_DM_DELAY_SECONDS", "0")
os.environ.setdefault("COMMENT_BOOKING_DELAY_SECONDS", "0")

from pagebot.domain.entities.directive import DirectiveKind, ReplyDirective  # noqa: E402
from pagebot.domain.entities.inbound import CommentEvent, PostbackEvent, TextMessageEvent  # noqa: E402
from pagebot.wiring.dependencies import get_container  # noqa: E402


def _render(directive: ReplyDirective) -> str:
    if directive.kind is DirectiveKind.TEXT:
        return directive.body or ""
    if directive.kind is DirectiveKind.ATTACHMENT:
        return f"[image] {directive.url}"
    payload = (directive.payload or {}).get("payload", {})
    lines = []
    if payload.get("text"):
        lines.append(payload["text"])
    for button in payload.get("buttons", []):
        lines.append(f"  [{button['title']}] -> /tap {button['payload']}")
    for element in payload.get("elements", []):
        for button in element.get("buttons", []):
            lines.append(f"  [{button['title']}] -> /tap {button['payload']}")
    return "\n".join(lines) or json.dumps(directive.payload)


async def _run() -> None:
    container = get_container()
    router = container["router"]
    scheduler = container["scheduler"]
    platform = container["platform"]

    pages = await container["config_store"].list_page_configs()
    if not pages:
        print("No pages in the local config file. See JsonConfigStore for the layout.")
        return
    page_id = pages[0].page_id
    user_id = os.getenv("CHAT_USER_ID", "local_user_1")

    print("\nLocal Chat Harness")
    print("-" * 60)
    print(f"page_id: {page_id}  user_id: {user_id}")
    print("-" * 60)

    while True:
        try:
            line = (await asyncio.to_thread(input, "\n> ")).strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            return
        if not line:
            continue
        if line in ("/quit", "/exit"):
            print("Bye!")
            return
        if line == "/new":
            user_id = f"local_user_{int(time.time())}"
            print(f"New user_id: {user_id}")
            continue

        event_id = f"local_{time.time_ns()}"
        if line.startswith("/tap "):
            event = PostbackEvent(event_id=event_id, page_id=page_id, sender_id=user_id, payload=line[5:].strip())
        elif line.startswith("/comment "):
            event = CommentEvent(event_id=event_id, page_id=page_id, sender_id=user_id, text=line[9:].strip())
        else:
            event = TextMessageEvent(event_id=event_id, page_id=page_id, sender_id=user_id, text=line)

        before = len(platform.sent)
        await router.dispatch(event)
        await scheduler.drain()
        replies = platform.sent[before:]
        if not replies:
            print("(no outbound message)")
        for _, directive in replies:
            print(_render(directive))
            print("-" * 60)


def main() -> None:
    asyncio.run(_run())


if __name__ == "__main__":
    main()
