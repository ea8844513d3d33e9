from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from pagebot.application.exceptions import AdapterFailure
from pagebot.application.ports.config_store import ConfigStorePort
from pagebot.application.ports.message_platform import MessagePlatformPort
from pagebot.wiring.dependencies import get_config_store, get_message_platform


router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health(config_store: ConfigStorePort = Depends(get_config_store)) -> dict[str, str]:
    if not await config_store.ping():
        raise HTTPException(status_code=503, detail="Config store unreachable")
    return {"status": "ok"}


@router.get("/subscriptions")
async def list_subscriptions(
    config_store: ConfigStorePort = Depends(get_config_store),
    platform: MessagePlatformPort = Depends(get_message_platform),
) -> list[dict[str, Any]]:
    results = []
    for page in await config_store.list_page_configs():
        try:
            results.append(await platform.get_subscriptions(page.page_id, page.page_token))
        except AdapterFailure as e:
            logger.error("Subscription lookup failed", extra={"page_id": page.page_id, "reason": str(e)})
            results.append({"page_id": page.page_id, "error": str(e)})
    return results


@router.post("/subscriptions")
async def subscribe_pages(
    config_store: ConfigStorePort = Depends(get_config_store),
    platform: MessagePlatformPort = Depends(get_message_platform),
) -> list[dict[str, Any]]:
    """Subscribe the app to feed and messaging fields on every configured page."""
    results = []
    for page in await config_store.list_page_configs():
        try:
            ok = await platform.subscribe_page(page.page_id, page.page_token)
        except AdapterFailure as e:
            logger.error("Page subscription failed", extra={"page_id": page.page_id, "reason": str(e)})
            results.append({"page_id": page.page_id, "success": False, "error": str(e)})
            continue
        logger.info("Page subscribed", extra={"page_id": page.page_id, "reason": ok})
        results.append({"page_id": page.page_id, "success": ok})
    return results
