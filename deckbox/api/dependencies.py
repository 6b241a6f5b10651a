"""
Shared FastAPI dependencies and error mapping.
"""

from fastapi import HTTPException, Request, status

from deckbox.services.card_library import CardLibrary
from deckbox.services.scryfall_client import (
    CardLookupError,
    CardNotFoundError,
    RateLimitedError,
)


def get_card_library(request: Request) -> CardLibrary:
    """
    The application-scoped CardLibrary created in the lifespan handler.

    Usage in FastAPI:
        @router.post("/cards")
        async def add(library: CardLibrary = Depends(get_card_library)):
            ...
    """
    library: CardLibrary = request.app.state.card_library
    return library


def lookup_error_to_http(error: CardLookupError) -> HTTPException:
    """Map a provider lookup failure to the HTTP error the client sees."""
    if isinstance(error, CardNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.reason)
    if isinstance(error, RateLimitedError):
        return HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Card lookups are being rate limited. Try again shortly.",
        )
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(error))
