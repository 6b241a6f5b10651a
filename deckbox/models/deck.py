from dataclasses import dataclass
from enum import Enum


class DeckFormat(str, Enum):
    """Constructed formats a deck can be validated against."""

    STANDARD = "standard"
    PIONEER = "pioneer"
    MODERN = "modern"
    LEGACY = "legacy"
    VINTAGE = "vintage"
    PAUPER = "pauper"
    COMMANDER = "commander"
    GENERIC = "generic"


class Board(str, Enum):
    """Which part of a deck an entry belongs to."""

    MAIN = "main"
    SIDE = "side"


@dataclass(frozen=True)
class DeckRules:
    """
    Construction rules for a format.

    Attributes:
        min_main: Minimum mainboard size
        max_main: Maximum mainboard size (None = unbounded)
        max_copies: Max copies of one card in the mainboard (None = unbounded)
        sideboard_max: Max sideboard size (0 = no sideboard, None = unbounded)
        allow_commander: Whether entries may be flagged as commander
        commander_range: Inclusive (low, high) commander count when allowed
            (high None = unbounded)
    """

    min_main: int
    max_main: int | None
    max_copies: int | None
    sideboard_max: int | None
    allow_commander: bool
    commander_range: tuple[int, int | None] = (0, 0)

    def commander_count_allowed(self, count: int) -> bool:
        low, high = self.commander_range
        return count >= low and (high is None or count <= high)


_CONSTRUCTED_60 = DeckRules(
    min_main=60,
    max_main=None,
    max_copies=4,
    sideboard_max=15,
    allow_commander=False,
)

FORMAT_RULES: dict[DeckFormat, DeckRules] = {
    DeckFormat.STANDARD: _CONSTRUCTED_60,
    DeckFormat.PIONEER: _CONSTRUCTED_60,
    DeckFormat.MODERN: _CONSTRUCTED_60,
    DeckFormat.LEGACY: _CONSTRUCTED_60,
    DeckFormat.VINTAGE: _CONSTRUCTED_60,
    DeckFormat.PAUPER: _CONSTRUCTED_60,
    # 100-card singleton, no sideboard, one commander or a partner pair
    DeckFormat.COMMANDER: DeckRules(
        min_main=100,
        max_main=100,
        max_copies=1,
        sideboard_max=0,
        allow_commander=True,
        commander_range=(1, 2),
    ),
    DeckFormat.GENERIC: DeckRules(
        min_main=0,
        max_main=None,
        max_copies=None,
        sideboard_max=None,
        allow_commander=True,
        commander_range=(0, None),
    ),
}


def rules_for(deck_format: DeckFormat | str) -> DeckRules:
    """Get the construction rules for a format (accepts enum or raw value)."""
    return FORMAT_RULES[DeckFormat(deck_format)]


def parse_deck_format(value: str) -> DeckFormat:
    """Read a stored format value. Unknown values fall back to the generic format."""
    try:
        return DeckFormat(value)
    except ValueError:
        return DeckFormat.GENERIC
