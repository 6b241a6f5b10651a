"""
Deck rule violations.

Violations are data, not exceptions: the validator returns every one it
finds so callers can render them all at once. Each variant is a frozen
dataclass so tests and callers can compare them by value.
"""

from dataclasses import dataclass
from enum import Enum

from deckbox.models.deck import DeckFormat


class ViolationKind(str, Enum):
    """Tag identifying each violation variant."""

    MAINBOARD_TOO_SMALL = "mainboard_too_small"
    MAINBOARD_TOO_LARGE = "mainboard_too_large"
    SIDEBOARD_TOO_LARGE = "sideboard_too_large"
    SIDEBOARD_NOT_ALLOWED = "sideboard_not_allowed"
    TOO_MANY_COPIES = "too_many_copies"
    COMMANDER_NOT_ALLOWED = "commander_not_allowed"
    COMMANDER_COUNT_OUT_OF_RANGE = "commander_count_out_of_range"
    ILLEGAL_CARD = "illegal_card"


class DeckRuleViolation:
    """Base for all violation variants."""

    kind: ViolationKind

    @property
    def message(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class MainboardTooSmall(DeckRuleViolation):
    minimum: int
    actual: int
    kind = ViolationKind.MAINBOARD_TOO_SMALL

    @property
    def message(self) -> str:
        return f"Mainboard has {self.actual} cards; minimum is {self.minimum}."


@dataclass(frozen=True)
class MainboardTooLarge(DeckRuleViolation):
    maximum: int
    actual: int
    kind = ViolationKind.MAINBOARD_TOO_LARGE

    @property
    def message(self) -> str:
        return f"Mainboard has {self.actual} cards; maximum is {self.maximum}."


@dataclass(frozen=True)
class SideboardTooLarge(DeckRuleViolation):
    maximum: int
    actual: int
    kind = ViolationKind.SIDEBOARD_TOO_LARGE

    @property
    def message(self) -> str:
        return f"Sideboard has {self.actual} cards; maximum is {self.maximum}."


@dataclass(frozen=True)
class SideboardNotAllowed(DeckRuleViolation):
    actual: int
    kind = ViolationKind.SIDEBOARD_NOT_ALLOWED

    @property
    def message(self) -> str:
        return (
            "This format does not allow sideboards, "
            f"but you have {self.actual} cards in sideboard."
        )


@dataclass(frozen=True)
class TooManyCopies(DeckRuleViolation):
    max_allowed: int
    card_name: str
    actual: int
    kind = ViolationKind.TOO_MANY_COPIES

    @property
    def message(self) -> str:
        return f"Too many copies of {self.card_name}: {self.actual} (max {self.max_allowed})."


@dataclass(frozen=True)
class CommanderNotAllowed(DeckRuleViolation):
    kind = ViolationKind.COMMANDER_NOT_ALLOWED

    @property
    def message(self) -> str:
        return "This format does not use a commander."


@dataclass(frozen=True)
class CommanderCountOutOfRange(DeckRuleViolation):
    expected: tuple[int, int | None]
    actual: int
    kind = ViolationKind.COMMANDER_COUNT_OUT_OF_RANGE

    @property
    def message(self) -> str:
        low, high = self.expected
        allowed = f"{low}...{high}" if high is not None else f"{low}..."
        return f"Commander count {self.actual} is not in allowed range {allowed}."


@dataclass(frozen=True)
class IllegalCard(DeckRuleViolation):
    card_name: str
    format: DeckFormat
    kind = ViolationKind.ILLEGAL_CARD

    @property
    def message(self) -> str:
        return f"{self.card_name} is not legal in {self.format.value.capitalize()}."
