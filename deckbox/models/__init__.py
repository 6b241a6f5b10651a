from deckbox.models.card_record import CardFaceRecord, CardRecord
from deckbox.models.deck import (
    FORMAT_RULES,
    Board,
    DeckFormat,
    DeckRules,
    parse_deck_format,
    rules_for,
)
from deckbox.models.deck_validation import (
    CommanderCountOutOfRange,
    CommanderNotAllowed,
    DeckRuleViolation,
    IllegalCard,
    MainboardTooLarge,
    MainboardTooSmall,
    SideboardNotAllowed,
    SideboardTooLarge,
    TooManyCopies,
    ViolationKind,
)
from deckbox.models.resolved_card import ResolvedCardData, ResolvedFace
from deckbox.models.tag import (
    RARITY_COLORS,
    RESERVED_LIST_TAG,
    TAG_PALETTE,
    UNCATEGORIZED,
    group_tags_by_category,
)

__all__ = [
    "Board",
    "CardFaceRecord",
    "CardRecord",
    "CommanderCountOutOfRange",
    "CommanderNotAllowed",
    "DeckFormat",
    "DeckRuleViolation",
    "DeckRules",
    "FORMAT_RULES",
    "IllegalCard",
    "MainboardTooLarge",
    "MainboardTooSmall",
    "RARITY_COLORS",
    "RESERVED_LIST_TAG",
    "ResolvedCardData",
    "ResolvedFace",
    "SideboardNotAllowed",
    "SideboardTooLarge",
    "TAG_PALETTE",
    "TooManyCopies",
    "UNCATEGORIZED",
    "ViolationKind",
    "group_tags_by_category",
    "parse_deck_format",
    "rules_for",
]
