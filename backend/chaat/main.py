import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chaat.api import characters, chat, messages, stickers
from chaat.core.config import settings
from chaat.core.database import init_db
from chaat.services.scheduler.auto_reply import auto_reply_loop


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Configure logging based on debug setting
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s" if settings.debug
        else "%(levelname)-8s %(name)s: %(message)s",
    )

    init_db()

    # Start background auto-reply checks
    auto_reply_task = asyncio.create_task(auto_reply_loop())

    yield

    # Cancel auto-reply loop on shutdown
    auto_reply_task.cancel()
    try:
        await auto_reply_task
    except asyncio.CancelledError:
        pass


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat.router, prefix="/api/chat", tags=["chat"])
app.include_router(characters.router, prefix="/api/characters", tags=["characters"])
app.include_router(messages.router, prefix="/api/messages", tags=["messages"])
app.include_router(stickers.router, prefix="/api/stickers", tags=["stickers"])


@app.get("/api/health")
async def health():
    return {"status": "ok", "app": settings.app_name}
