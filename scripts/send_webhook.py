#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Any

import httpx
from httpx import ConnectError

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pagebot.infrastructure.messenger.webhook_verify import SIGNATURE_HEADER, sign_body  # noqa: E402


def build_message(sender_id: str, page_id: str, text: str) -> dict[str, Any]:
    now_ms = int(time.time() * 1000)
    return {
        "sender": {"id": sender_id},
        "recipient": {"id": page_id},
        "timestamp": now_ms,
        "message": {"mid": f"m_{now_ms}", "text": text},
    }


def build_postback(sender_id: str, page_id: str, payload: str) -> dict[str, Any]:
    now_ms = int(time.time() * 1000)
    return {
        "sender": {"id": sender_id},
        "recipient": {"id": page_id},
        "timestamp": now_ms,
        "postback": {"mid": f"pb_{now_ms}", "title": payload, "payload": payload},
    }


def build_comment(sender_id: str, page_id: str, text: str) -> dict[str, Any]:
    now = int(time.time())
    return {
        "field": "feed",
        "value": {
            "item": "comment",
            "verb": "add",
            "comment_id": f"{page_id}_c{now}",
            "post_id": f"{page_id}_post",
            "from": {"id": sender_id, "name": "Test User"},
            "message": text,
            "created_time": now,
        },
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Send a test page webhook POST")
    parser.add_argument("--url", default="http://127.0.0.1:8000/webhook")
    parser.add_argument("--sender", default="user_123")
    parser.add_argument("--page", default="page_456")
    parser.add_argument("--text", default="price")
    parser.add_argument("--postback", default="", help="send a button payload instead of text")
    parser.add_argument("--comment", action="store_true", help="send the text as a post comment")
    parser.add_argument("--app-secret", default="", help="Meta app secret for signature")
    args = parser.parse_args()

    entry: dict[str, Any] = {"id": args.page, "time": int(time.time() * 1000)}
    if args.comment:
        entry["changes"] = [build_comment(args.sender, args.page, args.text)]
    elif args.postback:
        entry["messaging"] = [build_postback(args.sender, args.page, args.postback)]
    else:
        entry["messaging"] = [build_message(args.sender, args.page, args.text)]
    body = json.dumps({"object": "page", "entry": [entry]}).encode("utf-8")

    headers = {"Content-Type": "application/json"}
    if args.app_secret:
        headers[SIGNATURE_HEADER] = sign_body(body, args.app_secret)

    try:
        resp = httpx.post(args.url, content=body, headers=headers, timeout=10.0)
    except ConnectError:
        print("Connection refused. Is the FastAPI server running?")
        print("Try: uvicorn pagebot.main:app --reload")
        return

    print(resp.status_code)
    if resp.text:
        print(resp.text)


if __name__ == "__main__":
    main()
