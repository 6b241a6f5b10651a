"""Tests for card endpoints."""

from datetime import UTC, datetime, timedelta

import httpx
import respx
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from deckbox.db.operations import get_group
from deckbox.models.db import CardDB
from deckbox.services.group_membership import set_quantity

NAMED_URL = "https://api.scryfall.com/cards/named"


async def _decks_group(client: AsyncClient, name: str = "Burn") -> int:
    response = await client.post("/groups", json={"name": name})
    assert response.status_code == 201
    return response.json()["id"]


async def _seed_duplicate_islands(
    session_factory: async_sessionmaker[AsyncSession], group_id: int
) -> int:
    """Commit two Island rows; only the newer one belongs to the group."""
    created = datetime(2024, 1, 1, tzinfo=UTC)
    async with session_factory() as session:
        group = await get_group(session, group_id)
        assert group is not None
        first = CardDB.new(name="Island", quantity=2, created_at=created)
        second = CardDB.new(name="Island", quantity=3, created_at=created + timedelta(minutes=1))
        session.add_all([first, second])
        await session.flush()
        set_quantity(group, second, 3)
        await session.commit()
        return first.id


class TestAddCard:
    @respx.mock
    async def test_add_new_card(self, client: AsyncClient, catalog, make_payload) -> None:
        respx.get(NAMED_URL).mock(side_effect=catalog(make_payload("Lightning Bolt")))

        response = await client.post("/cards", json={"name": "Lightning Bolt"})

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Lightning Bolt"
        assert data["quantity"] == 1
        assert data["image_url"] == "https://img.example/Lightning Bolt/normal.jpg"
        assert [tag["name"] for tag in data["tags"]] == ["Common"]

    @respx.mock
    async def test_add_twice_increments(self, client: AsyncClient, catalog, make_payload) -> None:
        respx.get(NAMED_URL).mock(side_effect=catalog(make_payload("Lightning Bolt")))

        first = await client.post("/cards", json={"name": "Lightning Bolt"})
        second = await client.post("/cards", json={"name": "lightning bolt"})

        assert second.json()["id"] == first.json()["id"]
        assert second.json()["quantity"] == 2

        listing = await client.get("/cards")
        assert len(listing.json()) == 1

    @respx.mock
    async def test_add_into_group(self, client: AsyncClient, catalog, make_payload) -> None:
        respx.get(NAMED_URL).mock(side_effect=catalog(make_payload("Lightning Bolt")))
        group_id = await _decks_group(client)

        response = await client.post(
            "/cards", json={"name": "Lightning Bolt", "group_id": group_id}
        )

        assert response.json()["groups"] == {str(group_id): 1}

    async def test_unknown_group(self, client: AsyncClient) -> None:
        response = await client.post("/cards", json={"name": "Lightning Bolt", "group_id": 999})

        assert response.status_code == 404

    @respx.mock
    async def test_not_found_surfaces_reason(self, client: AsyncClient, catalog) -> None:
        respx.get(NAMED_URL).mock(side_effect=catalog())

        response = await client.post("/cards", json={"name": "Xyzzy"})

        assert response.status_code == 404
        assert response.json()["detail"] == "No cards found matching “Xyzzy”"

    @respx.mock
    async def test_rate_limited(self, client: AsyncClient) -> None:
        respx.get(NAMED_URL).mock(return_value=httpx.Response(429))

        response = await client.post("/cards", json={"name": "Lightning Bolt"})

        assert response.status_code == 429

    @respx.mock
    async def test_provider_error(self, client: AsyncClient) -> None:
        respx.get(NAMED_URL).mock(return_value=httpx.Response(503))

        response = await client.post("/cards", json={"name": "Lightning Bolt"})

        assert response.status_code == 502

    async def test_empty_name_rejected(self, client: AsyncClient) -> None:
        response = await client.post("/cards", json={"name": ""})

        assert response.status_code == 422


class TestBulkAdd:
    @respx.mock
    async def test_bulk_add(self, client: AsyncClient, catalog, make_payload) -> None:
        respx.get(NAMED_URL).mock(
            side_effect=catalog(make_payload("Lightning Bolt"), make_payload("Opt"))
        )

        response = await client.post("/cards/bulk", json={"names": ["Lightning Bolt", "Opt"]})

        assert response.status_code == 201
        assert response.json()["added"] == 2

    @respx.mock
    async def test_failure_keeps_completed_cards(
        self, client: AsyncClient, catalog, make_payload
    ) -> None:
        respx.get(NAMED_URL).mock(side_effect=catalog(make_payload("Opt")))

        response = await client.post("/cards/bulk", json={"names": ["Opt", "Xyzzy", "Opt"]})

        assert response.status_code == 502
        detail = response.json()["detail"]
        assert detail["completed"] == 1
        assert detail["total"] == 3
        assert detail["failed_name"] == "Xyzzy"

        listing = await client.get("/cards", params={"name": "Opt"})
        assert [card["quantity"] for card in listing.json()] == [1]

    async def test_no_names(self, client: AsyncClient) -> None:
        response = await client.post("/cards/bulk", json={"names": ["", "  "]})

        assert response.status_code == 400


class TestBrowseAndDelete:
    @respx.mock
    async def test_get_and_delete(self, client: AsyncClient, catalog, make_payload) -> None:
        respx.get(NAMED_URL).mock(side_effect=catalog(make_payload("Opt")))
        card_id = (await client.post("/cards", json={"name": "Opt"})).json()["id"]

        assert (await client.get(f"/cards/{card_id}")).status_code == 200

        response = await client.delete(f"/cards/{card_id}")
        assert response.json() == {"id": card_id, "deleted": True}
        assert (await client.get(f"/cards/{card_id}")).status_code == 404

    async def test_delete_missing(self, client: AsyncClient) -> None:
        response = await client.delete("/cards/999")

        assert response.json() == {"id": 999, "deleted": False}

    @respx.mock
    async def test_delete_removes_group_membership(
        self, client: AsyncClient, catalog, make_payload
    ) -> None:
        respx.get(NAMED_URL).mock(side_effect=catalog(make_payload("Opt")))
        group_id = await _decks_group(client)
        added = await client.post("/cards", json={"name": "Opt", "group_id": group_id})
        card_id = added.json()["id"]

        await client.delete(f"/cards/{card_id}")

        group = await client.get(f"/groups/{group_id}")
        assert group.json()["cards"] == []

    async def test_consolidate_unknown(self, client: AsyncClient) -> None:
        response = await client.post("/cards/consolidate", json={"name": "Island"})

        assert response.status_code == 404

    async def test_consolidate_duplicate_in_group(
        self, client: AsyncClient, session_factory
    ) -> None:
        group_id = await _decks_group(client, "Mono Blue")
        first_id = await _seed_duplicate_islands(session_factory, group_id)

        response = await client.post("/cards/consolidate", json={"name": "Island"})

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == first_id
        assert data["quantity"] == 5
        assert data["groups"] == {str(group_id): 3}

        group = (await client.get(f"/groups/{group_id}")).json()
        assert [(c["card_id"], c["quantity"]) for c in group["cards"]] == [(first_id, 3)]

    @respx.mock
    async def test_add_merges_duplicate_in_group(
        self, client: AsyncClient, session_factory, catalog, make_payload
    ) -> None:
        respx.get(NAMED_URL).mock(side_effect=catalog(make_payload("Island")))
        group_id = await _decks_group(client, "Mono Blue")
        first_id = await _seed_duplicate_islands(session_factory, group_id)

        response = await client.post("/cards", json={"name": "Island"})

        assert response.status_code == 201
        assert response.json()["id"] == first_id
        assert response.json()["quantity"] == 6
        assert len((await client.get("/cards")).json()) == 1
