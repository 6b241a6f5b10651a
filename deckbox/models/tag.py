"""
Tag palette and the names of tags the library assigns automatically.

Tag colors are stored as palette names, never raw hex, so clients can
theme them. Unknown names render as the default color.
"""

from collections.abc import Iterable
from typing import Protocol, TypeVar

# Palette name -> hex
TAG_PALETTE: dict[str, str] = {
    "mtgWhite": "#F9FAF4",
    "mtgBlue": "#0E68AB",
    "mtgBlack": "#150B00",
    "mtgRed": "#D3202A",
    "mtgGreen": "#00733D",
    "azorius": "#8CC1E7",
    "dimir": "#0B61A4",
    "rakdos": "#8B1B1B",
    "gruul": "#BE4D00",
    "selesnya": "#94B053",
    "orzhov": "#4B3B62",
    "izzet": "#BA3B3B",
    "golgari": "#275133",
    "boros": "#B65A21",
    "simic": "#109B89",
    "artifact": "#C0C0C0",
    "gold": "#D4AF37",
    "colorless": "#A8A8A8",
    "land": "#8B7355",
}

DEFAULT_TAG_COLOR = "mtgBlue"

RESERVED_LIST_TAG = "Reserved List"
RESERVED_LIST_CATEGORY = "Special"
RESERVED_LIST_COLOR = "orzhov"

RARITY_CATEGORY = "Rarity"
RARITY_COLORS: dict[str, str] = {
    "common": "mtgBlack",
    "uncommon": "artifact",
    "rare": "gold",
    "mythic": "boros",
}

UNCATEGORIZED = "Uncategorized"


def is_palette_color(color: str) -> bool:
    return color in TAG_PALETTE


def rarity_tag_name(rarity: str) -> str:
    """Display name for a rarity tag ("mythic" -> "Mythic")."""
    return rarity.strip().title()


def rarity_color(rarity: str) -> str:
    """Palette color for a rarity; unrecognized rarities use the uncommon color."""
    return RARITY_COLORS.get(rarity.strip().lower(), RARITY_COLORS["uncommon"])


class _Categorized(Protocol):
    name: str
    category: str | None


T = TypeVar("T", bound=_Categorized)


def group_tags_by_category(tags: Iterable[T]) -> dict[str, list[T]]:
    """
    Group tags by category for display.

    Categories are sorted alphabetically with the uncategorized bucket last;
    tags within a category are sorted by name.
    """
    buckets: dict[str, list[T]] = {}
    for tag in tags:
        buckets.setdefault(tag.category or UNCATEGORIZED, []).append(tag)

    ordered = sorted(
        buckets,
        key=lambda category: (category == UNCATEGORIZED, category.lower()),
    )
    return {
        category: sorted(buckets[category], key=lambda tag: tag.name.lower())
        for category in ordered
    }
