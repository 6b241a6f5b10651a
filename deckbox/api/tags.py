"""
Tag API endpoints.

Tags are listed grouped by category, with uncategorized tags in their own
bucket. Creation rejects names that collide case-insensitively.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from deckbox.api.cards import CardResponse, TagSummary, card_to_response
from deckbox.api.dependencies import get_card_library
from deckbox.db import TagNameConflictError, create_tag, delete_tag, get_card, list_tags
from deckbox.db.database import get_session
from deckbox.models.db import TagDB
from deckbox.models.tag import (
    DEFAULT_TAG_COLOR,
    TAG_PALETTE,
    group_tags_by_category,
    is_palette_color,
)
from deckbox.services.card_library import CardLibrary
from deckbox.services.tag_assigner import attach_tag

router = APIRouter(prefix="/tags", tags=["tags"])


class TagListResponse(BaseModel):
    categories: dict[str, list[TagSummary]] = Field(
        default_factory=dict,
        description="Tags grouped by category; uncategorized tags under 'Uncategorized'",
    )
    total: int = 0


class TagCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, examples=["Foil"])
    color: str = Field(default=DEFAULT_TAG_COLOR, description="Palette color name")
    category: str | None = Field(default=None, examples=["Condition"])


class DeleteResponse(BaseModel):
    id: int
    deleted: bool


def _summary(tag: TagDB) -> TagSummary:
    return TagSummary(id=tag.id, name=tag.name, color=tag.color, category=tag.category)


async def _load_tag_or_404(session: AsyncSession, tag_id: int) -> TagDB:
    result = await session.execute(select(TagDB).where(TagDB.id == tag_id))
    tag = result.scalar_one_or_none()
    if tag is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Tag {tag_id} not found",
        )
    return tag


@router.get("", response_model=TagListResponse)
async def get_tags(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> TagListResponse:
    tags = await list_tags(session)
    grouped = group_tags_by_category(tags)
    return TagListResponse(
        categories={
            category: [_summary(tag) for tag in members] for category, members in grouped.items()
        },
        total=len(tags),
    )


@router.post("", response_model=TagSummary, status_code=status.HTTP_201_CREATED)
async def add_tag(
    request: TagCreateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> TagSummary:
    """Create a tag. Returns 409 if the name exists in any casing."""
    name = request.name.strip()
    if not name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Tag name cannot be empty",
        )
    if not is_palette_color(request.color):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown color '{request.color}'. Valid: {sorted(TAG_PALETTE)}",
        )

    category = request.category.strip() if request.category else None
    try:
        tag = await create_tag(session, name, request.color, category or None)
    except TagNameConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    return _summary(tag)


@router.delete("/{tag_id}", response_model=DeleteResponse)
async def remove_tag(
    tag_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
    library: Annotated[CardLibrary, Depends(get_card_library)],
) -> DeleteResponse:
    """Delete a tag. Cards that carried it are not deleted."""
    async with library.write_lock:
        deleted = await delete_tag(session, tag_id)
    return DeleteResponse(id=tag_id, deleted=deleted)


@router.put("/{tag_id}/cards/{card_id}", response_model=CardResponse)
async def tag_card(
    tag_id: int,
    card_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
    library: Annotated[CardLibrary, Depends(get_card_library)],
) -> CardResponse:
    """Attach a tag to a card. Attaching a tag the card already has is a no-op."""
    tag = await _load_tag_or_404(session, tag_id)
    card = await get_card(session, card_id)
    if card is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Card {card_id} not found",
        )

    async with library.write_lock:
        attach_tag(card, tag)
        await session.flush()
    return card_to_response(card)


@router.delete("/{tag_id}/cards/{card_id}", response_model=CardResponse)
async def untag_card(
    tag_id: int,
    card_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
    library: Annotated[CardLibrary, Depends(get_card_library)],
) -> CardResponse:
    """Remove a tag from a card."""
    card = await get_card(session, card_id)
    if card is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Card {card_id} not found",
        )

    async with library.write_lock:
        card.tags[:] = [tag for tag in card.tags if tag.id != tag_id]
        await session.flush()
    return card_to_response(card)
