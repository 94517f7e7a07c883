from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from safeshare.config import get_settings
from safeshare.routers import health, share
from safeshare.services.item_backend import FileItemBackend
from safeshare.services.share_store import ShareStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)

    # Index must be populated before the first request is served
    backend = FileItemBackend(settings.items_dir)
    store = ShareStore(backend, max_filename_length=settings.max_filename_length)
    store.rehydrate()
    app.state.share_store = store
    logger.info("SafeShare store ready at %s", settings.items_dir)

    yield

    app.state.share_store = None


app = FastAPI(
    title="SafeShare",
    description="Download-limited storage for client-side encrypted content",
    version="0.1.0",
    lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        f"https://{settings.domain}",
        "http://localhost:3000",
    ],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(share.router)
