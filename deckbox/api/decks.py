"""
Deck API endpoints.

Decks are format-validated card lists. Validation reports every rule the
deck breaks; it never blocks saving the deck.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from deckbox.db import add_deck_entry, create_deck, delete_deck, get_card, get_deck
from deckbox.db.database import get_session
from deckbox.models.db import DeckDB
from deckbox.models.deck import Board, DeckFormat, parse_deck_format
from deckbox.services.deck_validator import (
    card_legality,
    commander_count,
    mainboard_count,
    sideboard_count,
    validate_deck,
)

router = APIRouter(prefix="/decks", tags=["decks"])


class DeckCreateRequest(BaseModel):
    name: str | None = Field(default=None, examples=["Mono Red"])
    format: DeckFormat = DeckFormat.STANDARD


class DeckEntryRequest(BaseModel):
    card_id: int
    quantity: int = Field(default=1, ge=1)
    board: Board = Board.MAIN
    is_commander: bool = False


class DeckEntryResponse(BaseModel):
    card_id: int
    name: str
    quantity: int
    board: Board
    is_commander: bool


class DeckResponse(BaseModel):
    """Response model for a deck."""

    id: int
    name: str | None = None
    format: DeckFormat
    entries: list[DeckEntryResponse] = Field(default_factory=list)
    mainboard_count: int = 0
    sideboard_count: int = 0
    commander_count: int = 0


class ViolationResponse(BaseModel):
    kind: str
    message: str


class ValidationResponse(BaseModel):
    deck_id: int
    format: DeckFormat
    valid: bool
    violations: list[ViolationResponse] = Field(default_factory=list)


class DeleteResponse(BaseModel):
    id: int
    deleted: bool


def deck_to_response(deck: DeckDB) -> DeckResponse:
    return DeckResponse(
        id=deck.id,
        name=deck.name,
        format=parse_deck_format(deck.format),
        entries=[
            DeckEntryResponse(
                card_id=entry.card.id,
                name=entry.card.name,
                quantity=entry.quantity,
                board=Board(entry.board),
                is_commander=entry.is_commander,
            )
            for entry in deck.entries
        ],
        mainboard_count=mainboard_count(deck),
        sideboard_count=sideboard_count(deck),
        commander_count=commander_count(deck),
    )


async def _load_deck_or_404(session: AsyncSession, deck_id: int) -> DeckDB:
    deck = await get_deck(session, deck_id)
    if deck is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Deck {deck_id} not found",
        )
    return deck


@router.post("", response_model=DeckResponse, status_code=status.HTTP_201_CREATED)
async def add_deck(
    request: DeckCreateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DeckResponse:
    deck = await create_deck(session, request.name, request.format)
    return deck_to_response(deck)


@router.get("/{deck_id}", response_model=DeckResponse)
async def get_deck_detail(
    deck_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DeckResponse:
    deck = await _load_deck_or_404(session, deck_id)
    return deck_to_response(deck)


@router.post("/{deck_id}/entries", response_model=DeckResponse, status_code=status.HTTP_201_CREATED)
async def add_entry(
    deck_id: int,
    request: DeckEntryRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DeckResponse:
    """Add a card line to a deck. Rule violations do not block the addition."""
    deck = await _load_deck_or_404(session, deck_id)
    card = await get_card(session, request.card_id)
    if card is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Card {request.card_id} not found",
        )

    await add_deck_entry(
        session,
        deck,
        card,
        quantity=request.quantity,
        board=request.board,
        is_commander=request.is_commander,
    )
    return deck_to_response(deck)


@router.get("/{deck_id}/validation", response_model=ValidationResponse)
async def validate(
    deck_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
    check_legality: Annotated[
        bool, Query(description="Also check each mainboard card's format legality")
    ] = False,
) -> ValidationResponse:
    """
    Validate a deck against its format's construction rules.

    Returns all violations at once; an empty list means the deck is legal.
    """
    deck = await _load_deck_or_404(session, deck_id)
    violations = validate_deck(deck, is_card_legal=card_legality if check_legality else None)

    return ValidationResponse(
        deck_id=deck.id,
        format=parse_deck_format(deck.format),
        valid=not violations,
        violations=[ViolationResponse(kind=v.kind.value, message=v.message) for v in violations],
    )


@router.delete("/{deck_id}", response_model=DeleteResponse)
async def remove_deck(
    deck_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DeleteResponse:
    deleted = await delete_deck(session, deck_id)
    return DeleteResponse(id=deck_id, deleted=deleted)
