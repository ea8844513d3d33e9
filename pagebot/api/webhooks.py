from __future__ import annotations

import json
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, Response
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from pagebot.application.dto.webhook_event import WebhookEventDTO
from pagebot.application.use_cases.route_event import EventRouter
from pagebot.core.config import settings
from pagebot.infrastructure.messenger.webhook_verify import (
    SIGNATURE_HEADER,
    verify_get_request,
    verify_post_signature,
)
from pagebot.wiring.dependencies import get_event_router


router = APIRouter()
logger = logging.getLogger(__name__)

UNSIGNED_ENVS = {"dev", "local", "test"}


@router.get("/webhook")
def verify_webhook(
    hub_mode: str | None = Query(None, alias="hub.mode"),
    hub_verify_token: str | None = Query(None, alias="hub.verify_token"),
    hub_challenge: str | None = Query(None, alias="hub.challenge"),
):
    challenge = verify_get_request(
        {"hub.mode": hub_mode, "hub.verify_token": hub_verify_token, "hub.challenge": hub_challenge},
        settings.VERIFY_TOKEN,
    )
    if challenge is None:
        logger.warning("Webhook verification failed", extra={"reason": hub_mode})
        raise HTTPException(status_code=403, detail="Verification failed")
    logger.info("Webhook verified")
    return PlainTextResponse(challenge)


@router.post("/webhook")
async def receive_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    event_router: EventRouter = Depends(get_event_router),
) -> Response:
    body = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)
    allow_unsigned = settings.ENV.lower() in UNSIGNED_ENVS
    if not verify_post_signature(body, signature, settings.META_APP_SECRET, allow_unsigned=allow_unsigned):
        logger.warning("Webhook signature rejected")
        return Response(status_code=403)

    try:
        payload = json.loads(body.decode("utf-8")) if body else {}
        event = WebhookEventDTO.model_validate(payload)
    except (UnicodeDecodeError, json.JSONDecodeError, ValidationError):
        logger.exception("Failed to parse webhook body")
        return Response(status_code=400)

    if not event.is_supported:
        logger.info("Unsupported webhook object", extra={"reason": event.object})
        return Response(status_code=404)

    events = event.extract_events()
    logger.info("Webhook received", extra={"event_count": len(events)})
    if events:
        background_tasks.add_task(event_router.dispatch_all, events)
    return Response(status_code=200)
