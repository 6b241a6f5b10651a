from collections.abc import Callable
from typing import Any

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from deckbox.db.database import get_session
from deckbox.db.operations import ensure_built_in_group_types
from deckbox.main import app
from deckbox.models.card_record import CardRecord
from deckbox.models.db import Base
from deckbox.services.card_library import CardLibrary
from deckbox.services.scryfall_client import RateLimiter, ScryfallClient


def card_payload(name: str = "Lightning Bolt", **overrides: Any) -> dict[str, Any]:
    """A /cards/named JSON payload with sensible defaults."""
    payload: dict[str, Any] = {
        "object": "card",
        "name": name,
        "set": "lea",
        "set_name": "Limited Edition Alpha",
        "collector_number": "161",
        "image_uris": {
            "small": f"https://img.example/{name}/small.jpg",
            "normal": f"https://img.example/{name}/normal.jpg",
        },
        "mana_cost": "{R}",
        "cmc": 1.0,
        "type_line": "Instant",
        "oracle_text": "Lightning Bolt deals 3 damage to any target.",
        "rarity": "common",
        "reserved": False,
        "artist": "Christopher Rush",
        "color_identity": ["R"],
        "colors": ["R"],
        "keywords": [],
        "legalities": {"standard": "not_legal", "modern": "legal", "vintage": "legal"},
        "layout": "normal",
    }
    payload.update(overrides)
    return payload


def delver_payload() -> dict[str, Any]:
    """A transform card: no top-level image, both faces carry their own."""
    return {
        "object": "card",
        "name": "Delver of Secrets // Insectile Aberration",
        "set": "isd",
        "set_name": "Innistrad",
        "collector_number": "51",
        "cmc": 1.0,
        "type_line": "Creature — Human Wizard // Creature — Human Insect",
        "rarity": "common",
        "reserved": False,
        "color_identity": ["U"],
        "keywords": ["Flying", "Transform"],
        "legalities": {"modern": "legal", "pauper": "legal"},
        "layout": "transform",
        "card_faces": [
            {
                "name": "Delver of Secrets",
                "mana_cost": "{U}",
                "type_line": "Creature — Human Wizard",
                "oracle_text": "At the beginning of your upkeep, look at the top card...",
                "power": "1",
                "toughness": "1",
                "artist": "Nils Hamm",
                "colors": ["U"],
                "image_uris": {"normal": "https://img.example/delver/front.jpg"},
            },
            {
                "name": "Insectile Aberration",
                "mana_cost": "",
                "type_line": "Creature — Human Insect",
                "oracle_text": "Flying",
                "power": "3",
                "toughness": "2",
                "artist": "Nils Hamm",
                "colors": ["U"],
                "image_uris": {"normal": "https://img.example/delver/back.jpg"},
            },
        ],
    }


@pytest.fixture
def make_record() -> Callable[..., CardRecord]:
    """Factory for provider records built from card_payload."""

    def _make(name: str = "Lightning Bolt", **overrides: Any) -> CardRecord:
        return CardRecord.model_validate(card_payload(name, **overrides))

    return _make


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory for tests that need a fresh session per unit of work."""
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncSession:
    """Provide a database session for tests."""
    async with session_factory() as session:
        yield session


class SleepRecorder:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleeps() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
async def scryfall(sleeps: SleepRecorder):
    """Scryfall client with no request spacing and recorded backoff sleeps."""
    client = ScryfallClient(RateLimiter(0), sleep=sleeps)
    yield client
    await client.aclose()


@pytest.fixture
def library(scryfall: ScryfallClient) -> CardLibrary:
    return CardLibrary(scryfall)


@pytest.fixture
def make_payload() -> Callable[..., dict[str, Any]]:
    return card_payload


@pytest.fixture
def delver_json() -> dict[str, Any]:
    return delver_payload()


@pytest.fixture
def catalog() -> Callable[..., Callable[[httpx.Request], httpx.Response]]:
    """
    Build a respx side effect serving /cards/named from a set of payloads.

    Lookups match names case-insensitively; unknown names get Scryfall's 404.
    """

    def _build(*payloads: dict[str, Any]) -> Callable[[httpx.Request], httpx.Response]:
        by_name = {payload["name"].lower(): payload for payload in payloads}

        def respond(request: httpx.Request) -> httpx.Response:
            name = request.url.params["fuzzy"]
            payload = by_name.get(name.lower())
            if payload is None:
                return httpx.Response(
                    404,
                    json={
                        "object": "error",
                        "code": "not_found",
                        "details": f"No cards found matching “{name}”",
                    },
                )
            return httpx.Response(200, json=payload)

        return respond

    return _build


@pytest.fixture
async def client(session_factory, library: CardLibrary):
    """Provide an async test client with overridden database session."""
    async with session_factory() as session:
        await ensure_built_in_group_types(session)
        await session.commit()

    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.state.card_library = library

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
    del app.state.card_library
