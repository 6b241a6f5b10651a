from deckbox.api.cards import router as cards_router
from deckbox.api.decks import router as decks_router
from deckbox.api.groups import router as groups_router
from deckbox.api.health import router as health_router
from deckbox.api.scans import router as scans_router
from deckbox.api.tags import router as tags_router

__all__ = [
    "cards_router",
    "decks_router",
    "groups_router",
    "health_router",
    "scans_router",
    "tags_router",
]
