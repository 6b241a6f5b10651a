import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from deckbox.api import (
    cards_router,
    decks_router,
    groups_router,
    health_router,
    scans_router,
    tags_router,
)
from deckbox.config import settings
from deckbox.db.database import init_db
from deckbox.services.card_library import CardLibrary
from deckbox.services.scryfall_client import RateLimiter, ScryfallClient


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    await init_db()

    client = ScryfallClient(
        RateLimiter(settings.min_request_interval),
        base_url=settings.scryfall_base_url,
        user_agent=settings.user_agent,
        timeout=settings.request_timeout,
        max_retries=settings.max_rate_limit_retries,
    )
    app.state.card_library = CardLibrary(client, asyncio.Lock())
    try:
        yield
    finally:
        await client.aclose()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("deckbox"),
    lifespan=lifespan,
)

app.include_router(cards_router)
app.include_router(decks_router)
app.include_router(groups_router)
app.include_router(health_router)
app.include_router(scans_router)
app.include_router(tags_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
