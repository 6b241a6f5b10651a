"""
DeckBox services.

Card ingestion, deduplication, group quantities and deck validation.
"""

from deckbox.services.card_library import (
    BatchImportError,
    CardLibrary,
    DeckListLine,
    ImportedCard,
    ImportProgress,
    parse_deck_list,
)
from deckbox.services.card_normalizer import (
    IMAGE_SIZE_PREFERENCE,
    apply_resolved_data,
    normalize_record,
    resolve_image_url,
    sync_faces,
)
from deckbox.services.deck_validator import card_legality, validate_deck
from deckbox.services.group_membership import add_quantity, get_quantity, set_quantity
from deckbox.services.library_merger import (
    MergePlan,
    consolidate_cards,
    plan_merge,
    upsert_card,
)
from deckbox.services.scryfall_client import (
    CardLookupError,
    CardNetworkError,
    CardNotFoundError,
    RateLimitedError,
    RateLimiter,
    ScryfallClient,
)
from deckbox.services.tag_assigner import assign_automatic_tags

__all__ = [
    # Provider lookup
    "CardLookupError",
    "CardNetworkError",
    "CardNotFoundError",
    "RateLimitedError",
    "RateLimiter",
    "ScryfallClient",
    # Normalization
    "IMAGE_SIZE_PREFERENCE",
    "apply_resolved_data",
    "normalize_record",
    "resolve_image_url",
    "sync_faces",
    # Tags
    "assign_automatic_tags",
    # Merging
    "MergePlan",
    "consolidate_cards",
    "plan_merge",
    "upsert_card",
    # Groups
    "add_quantity",
    "get_quantity",
    "set_quantity",
    # Validation
    "card_legality",
    "validate_deck",
    # Orchestration
    "BatchImportError",
    "CardLibrary",
    "DeckListLine",
    "ImportProgress",
    "ImportedCard",
    "parse_deck_list",
]
