import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from pagebot.api.admin import router as admin_router
from pagebot.api.webhooks import router as webhooks_router
from pagebot.core.config import settings
from pagebot.wiring.dependencies import (
    get_config_store,
    get_maintenance,
    get_message_platform,
    get_scheduler,
    get_sms_gateway,
)


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("page_id", "user_id", "event_id", "state", "event_count", "directive_count", "reason"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    maintenance = get_maintenance()
    maintenance.start()
    logger.info("Server started", extra={"reason": settings.ENV})
    try:
        yield
    finally:
        await maintenance.stop()
        await get_scheduler().aclose()
        for adapter in (get_message_platform(), get_config_store(), get_sms_gateway()):
            aclose = getattr(adapter, "aclose", None)
            if aclose is not None:
                await aclose()
        logger.info("Server stopped")


app = FastAPI(title="Messenger Page Bot", version="1.0.0", lifespan=lifespan)

app.include_router(webhooks_router, tags=["webhooks"])
app.include_router(admin_router, tags=["admin"])
