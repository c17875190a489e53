import uvicorn
from fastapi import Depends, FastAPI

from paperbot.config import get_settings
from paperbot.dependencies import get_messenger, get_store
from paperbot.logging_config import get_logger, setup_logging
from paperbot.routers import webhook
from paperbot.services.conversation_store import ConversationStore

setup_logging(get_settings().log_level, json_output=not get_settings().debug)

logger = get_logger("main")

app = FastAPI(
    title="PaperBot API",
    description="WhatsApp relay for research title suggestions and journal search",
    version="0.1.0",
)

app.include_router(webhook.router)


@app.on_event("shutdown")
async def close_http_clients() -> None:
    if get_messenger.cache_info().currsize:
        await get_messenger().aclose()
        logger.info("WhatsApp client closed")


@app.get("/health")
async def health(store: ConversationStore = Depends(get_store)):
    return {"status": "ok", **store.snapshot()}


def run() -> None:
    settings = get_settings()
    logger.info(f"Server is running on port {settings.port}")
    uvicorn.run("paperbot.main:app", host=settings.host, port=settings.port)
