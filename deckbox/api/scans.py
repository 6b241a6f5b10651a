"""
Scanner endpoint.

The device-side scanner recognizes a card title and posts the text here.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from deckbox.api.cards import CardResponse, card_to_response, load_group_or_404
from deckbox.api.dependencies import get_card_library, lookup_error_to_http
from deckbox.db.database import get_session
from deckbox.services.card_library import CardLibrary
from deckbox.services.scryfall_client import CardLookupError

router = APIRouter(prefix="/scans", tags=["scans"])


class ScanRequest(BaseModel):
    text: str = Field(..., description="Recognized card title", examples=["Lightning Bolt"])
    group_id: int | None = Field(
        default=None,
        description="Scan straight into this group",
    )


@router.post("", response_model=CardResponse, status_code=status.HTTP_201_CREATED)
async def submit_scan(
    request: ScanRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    library: Annotated[CardLibrary, Depends(get_card_library)],
) -> CardResponse:
    """
    Add a scanned card.

    Scanning into a group a card the library already owns only adds a copy
    to the group. Otherwise the card is looked up and one copy is added to
    the library (and to the group, if given).
    """
    group = await load_group_or_404(session, request.group_id) if request.group_id else None

    try:
        card = await library.add_scanned_text(session, request.text, group)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except CardLookupError as e:
        raise lookup_error_to_http(e) from e

    return card_to_response(card)
