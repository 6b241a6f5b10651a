"""
Card API endpoints.

Add cards by name, merge duplicates, and browse or delete library cards.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from deckbox.api.dependencies import get_card_library, lookup_error_to_http
from deckbox.db import delete_card, get_card, get_cards_named, get_group, list_cards
from deckbox.db.database import get_session
from deckbox.models.db import CardDB, CardGroupDB
from deckbox.services.card_library import BatchImportError, CardLibrary
from deckbox.services.scryfall_client import CardLookupError

router = APIRouter(prefix="/cards", tags=["cards"])


class TagSummary(BaseModel):
    id: int
    name: str
    color: str
    category: str | None = None


class FaceResponse(BaseModel):
    """One printed face of a multi-faced card."""

    position: int
    name: str
    image_url: str | None = None
    mana_cost: str | None = None
    type_line: str = ""
    oracle_text: str | None = None
    power: str | None = None
    toughness: str | None = None
    loyalty: str | None = None


class CardResponse(BaseModel):
    """Response model for a library card."""

    id: int
    name: str
    set_code: str | None = None
    set_name: str | None = None
    collector_number: str | None = None
    quantity: int
    image_url: str | None = None
    mana_cost: str | None = None
    cmc: float = 0.0
    type_line: str = ""
    oracle_text: str | None = None
    flavor_text: str | None = None
    power: str | None = None
    toughness: str | None = None
    loyalty: str | None = None
    rarity: str = ""
    is_reserved: bool = False
    artist: str | None = None
    colors: list[str] = Field(default_factory=list)
    color_identity: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    legalities: dict[str, str] = Field(default_factory=dict)
    layout: str = "normal"
    tags: list[TagSummary] = Field(default_factory=list)
    faces: list[FaceResponse] = Field(default_factory=list)
    groups: dict[int, int] = Field(
        default_factory=dict,
        description="Map of group id to quantity of this card in that group",
    )


class AddCardRequest(BaseModel):
    """Request model for adding a card by name."""

    name: str = Field(..., min_length=1, examples=["Lightning Bolt"])
    group_id: int | None = Field(
        default=None,
        description="Also add the new copy to this group",
    )


class BulkAddRequest(BaseModel):
    names: list[str] = Field(..., examples=[["Lightning Bolt", "Counterspell"]])


class BulkAddResponse(BaseModel):
    added: int
    cards: list[CardResponse]


class ConsolidateRequest(BaseModel):
    name: str = Field(..., min_length=1)


class DeleteResponse(BaseModel):
    id: int
    deleted: bool


def card_to_response(card: CardDB) -> CardResponse:
    """Convert a card entity to its API representation."""
    return CardResponse(
        id=card.id,
        name=card.name,
        set_code=card.set_code,
        set_name=card.set_name,
        collector_number=card.collector_number,
        quantity=card.quantity,
        image_url=card.image_url,
        mana_cost=card.mana_cost,
        cmc=card.cmc,
        type_line=card.type_line,
        oracle_text=card.oracle_text,
        flavor_text=card.flavor_text,
        power=card.power,
        toughness=card.toughness,
        loyalty=card.loyalty,
        rarity=card.rarity,
        is_reserved=card.is_reserved,
        artist=card.artist,
        colors=list(card.colors or []),
        color_identity=list(card.color_identity or []),
        keywords=list(card.keywords or []),
        legalities=dict(card.legalities or {}),
        layout=card.layout,
        tags=[
            TagSummary(id=tag.id, name=tag.name, color=tag.color, category=tag.category)
            for tag in card.tags
        ],
        faces=[
            FaceResponse(
                position=face.position,
                name=face.name,
                image_url=face.image_url,
                mana_cost=face.mana_cost,
                type_line=face.type_line,
                oracle_text=face.oracle_text,
                power=face.power,
                toughness=face.toughness,
                loyalty=face.loyalty,
            )
            for face in card.faces
        ],
        groups={m.group_id: m.quantity for m in card.memberships},
    )


async def load_group_or_404(session: AsyncSession, group_id: int) -> CardGroupDB:
    group = await get_group(session, group_id)
    if group is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Group {group_id} not found",
        )
    return group


def batch_error_detail(error: BatchImportError) -> dict[str, object]:
    return {
        "message": str(error),
        "completed": error.progress.completed,
        "total": error.progress.total,
        "failed_name": error.failed_name,
        "reason": error.reason,
    }


@router.get("", response_model=list[CardResponse])
async def get_library(
    session: Annotated[AsyncSession, Depends(get_session)],
    name: Annotated[str | None, Query(description="Exact card name filter")] = None,
) -> list[CardResponse]:
    """List library cards, optionally only those with an exact name."""
    cards = await get_cards_named(session, name) if name else await list_cards(session)
    return [card_to_response(card) for card in cards]


@router.get("/{card_id}", response_model=CardResponse)
async def get_library_card(
    card_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CardResponse:
    card = await get_card(session, card_id)
    if card is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Card {card_id} not found",
        )
    return card_to_response(card)


@router.post("", response_model=CardResponse, status_code=status.HTTP_201_CREATED)
async def add_card(
    request: AddCardRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    library: Annotated[CardLibrary, Depends(get_card_library)],
) -> CardResponse:
    """
    Add one copy of a card by (fuzzy) name.

    Looks the card up on Scryfall, then merges it into any existing cards
    with the same name or creates it. Existing duplicates are collapsed and
    descriptive fields refreshed from the lookup.
    """
    group = await load_group_or_404(session, request.group_id) if request.group_id else None

    try:
        card = await library.add_card(session, request.name.strip(), group)
    except CardLookupError as e:
        raise lookup_error_to_http(e) from e

    return card_to_response(card)


@router.post("/bulk", response_model=BulkAddResponse, status_code=status.HTTP_201_CREATED)
async def bulk_add_cards(
    request: BulkAddRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    library: Annotated[CardLibrary, Depends(get_card_library)],
) -> BulkAddResponse:
    """
    Add one copy of each named card, in order.

    Stops at the first failed lookup. Cards added before the failure are
    kept, and the error detail reports how far the batch got.
    """
    if not any(name.strip() for name in request.names):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No valid card names found",
        )

    try:
        cards = await library.bulk_add_cards(session, request.names)
    except BatchImportError as e:
        # Keep the completed part of the batch
        await session.commit()
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=batch_error_detail(e),
        ) from e

    return BulkAddResponse(added=len(cards), cards=[card_to_response(c) for c in cards])


@router.post("/consolidate", response_model=CardResponse)
async def consolidate_cards(
    request: ConsolidateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    library: Annotated[CardLibrary, Depends(get_card_library)],
) -> CardResponse:
    """Merge every card with exactly this name into one, summing quantities."""
    card = await library.consolidate(session, request.name)
    if card is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No card named '{request.name}' in the library",
        )
    return card_to_response(card)


@router.delete("/{card_id}", response_model=DeleteResponse)
async def remove_card(
    card_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
    library: Annotated[CardLibrary, Depends(get_card_library)],
) -> DeleteResponse:
    """Delete a card and remove it from every tag, group and deck."""
    async with library.write_lock:
        deleted = await delete_card(session, card_id)
    return DeleteResponse(id=card_id, deleted=deleted)
