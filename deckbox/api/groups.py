"""
Group API endpoints.

Groups (decks, cubes, ...) hold a quantity of each member card, never more
than the user owns. Quantities above the owned amount are clamped, and the
stored value is returned so clients can see the clamp.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from deckbox.api.cards import batch_error_detail, load_group_or_404
from deckbox.api.dependencies import get_card_library
from deckbox.db import (
    create_group,
    delete_group,
    delete_group_type,
    get_card,
    get_group_type_by_name,
    list_group_types,
)
from deckbox.db.database import get_session
from deckbox.models.db import CardGroupDB
from deckbox.models.deck import DeckFormat
from deckbox.services.card_library import BatchImportError, CardLibrary

router = APIRouter(prefix="/groups", tags=["groups"])


class GroupTypeResponse(BaseModel):
    id: int
    name: str
    icon_name: str
    is_built_in: bool
    group_count: int = 0


class GroupCardEntry(BaseModel):
    card_id: int
    name: str
    quantity: int
    owned: int


class GroupResponse(BaseModel):
    """Response model for a group and its cards."""

    id: int
    name: str
    group_type: str
    deck_format: DeckFormat | None = None
    cards: list[GroupCardEntry] = Field(default_factory=list)
    total_cards: int = 0


class GroupCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, examples=["Modern Burn"])
    group_type: str = Field(default="Decks", description="Name of an existing group type")
    deck_format: DeckFormat | None = None


class QuantityRequest(BaseModel):
    quantity: int = Field(..., description="New quantity; 0 or less removes the card")


class QuantityResponse(BaseModel):
    group_id: int
    card_id: int
    requested: int
    quantity: int = Field(..., description="Quantity stored after clamping to owned copies")
    in_group: bool


class DeckListImportRequest(BaseModel):
    text: str = Field(
        ...,
        description="One card per line with quantity",
        examples=["4 Lightning Bolt\n2x Counterspell"],
    )


class ImportedLine(BaseModel):
    card_id: int
    name: str
    requested: int
    in_group: int
    was_owned: bool


class DeckListImportResponse(BaseModel):
    group: GroupResponse
    imported: list[ImportedLine]


class DeleteResponse(BaseModel):
    id: int
    deleted: bool


def group_to_response(group: CardGroupDB) -> GroupResponse:
    entries = sorted(
        (
            GroupCardEntry(
                card_id=m.card.id,
                name=m.card.name,
                quantity=m.quantity,
                owned=m.card.quantity,
            )
            for m in group.memberships
        ),
        key=lambda entry: entry.name,
    )
    return GroupResponse(
        id=group.id,
        name=group.name,
        group_type=group.group_type.name,
        deck_format=DeckFormat(group.deck_format) if group.deck_format else None,
        cards=entries,
        total_cards=sum(entry.quantity for entry in entries),
    )


@router.get("/types", response_model=list[GroupTypeResponse])
async def get_group_types(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> list[GroupTypeResponse]:
    types = await list_group_types(session)
    return [
        GroupTypeResponse(
            id=t.id,
            name=t.name,
            icon_name=t.icon_name,
            is_built_in=t.is_built_in,
            group_count=len(t.groups),
        )
        for t in types
    ]


@router.delete("/types/{group_type_id}", response_model=DeleteResponse)
async def remove_group_type(
    group_type_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
    library: Annotated[CardLibrary, Depends(get_card_library)],
) -> DeleteResponse:
    """Delete a group type together with all of its groups."""
    async with library.write_lock:
        deleted = await delete_group_type(session, group_type_id)
    return DeleteResponse(id=group_type_id, deleted=deleted)


@router.post("", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def add_group(
    request: GroupCreateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> GroupResponse:
    group_type = await get_group_type_by_name(session, request.group_type)
    if group_type is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown group type '{request.group_type}'",
        )

    group = await create_group(session, request.name.strip(), group_type, request.deck_format)
    return group_to_response(group)


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group_detail(
    group_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> GroupResponse:
    group = await load_group_or_404(session, group_id)
    return group_to_response(group)


@router.delete("/{group_id}", response_model=DeleteResponse)
async def remove_group(
    group_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
    library: Annotated[CardLibrary, Depends(get_card_library)],
) -> DeleteResponse:
    """Delete a group. Its cards stay in the library."""
    async with library.write_lock:
        deleted = await delete_group(session, group_id)
    return DeleteResponse(id=group_id, deleted=deleted)


@router.put("/{group_id}/cards/{card_id}", response_model=QuantityResponse)
async def set_card_quantity(
    group_id: int,
    card_id: int,
    request: QuantityRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    library: Annotated[CardLibrary, Depends(get_card_library)],
) -> QuantityResponse:
    """
    Set how many copies of a card the group holds.

    The stored quantity is clamped to the copies owned; 0 or less removes
    the card from the group.
    """
    group = await load_group_or_404(session, group_id)
    card = await get_card(session, card_id)
    if card is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Card {card_id} not found",
        )

    stored = await library.set_group_quantity(session, group, card, request.quantity)
    return QuantityResponse(
        group_id=group_id,
        card_id=card_id,
        requested=request.quantity,
        quantity=stored,
        in_group=any(m.card is card for m in group.memberships),
    )


@router.post("/{group_id}/import", response_model=DeckListImportResponse)
async def import_deck_list(
    group_id: int,
    request: DeckListImportRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    library: Annotated[CardLibrary, Depends(get_card_library)],
) -> DeckListImportResponse:
    """
    Import a pasted deck list into a group.

    Lines are processed in order. On the first failed lookup the import
    stops; earlier lines stay imported and the error detail reports
    progress and the failing card.
    """
    if not request.text.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Deck list cannot be empty",
        )

    group = await load_group_or_404(session, group_id)

    try:
        imported = await library.import_deck_list(session, group, request.text)
    except BatchImportError as e:
        # Keep the completed part of the batch
        await session.commit()
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=batch_error_detail(e),
        ) from e

    return DeckListImportResponse(
        group=group_to_response(group),
        imported=[
            ImportedLine(
                card_id=item.card.id,
                name=item.card.name,
                requested=item.requested,
                in_group=item.in_group,
                was_owned=item.was_owned,
            )
            for item in imported
        ],
    )
