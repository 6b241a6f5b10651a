"""
Deck construction validation.

Checks a deck's entries against its format's rules and reports every
violation found. Validation is pure inspection: it never mutates the deck
and never raises for rule failures.
"""

from collections.abc import Callable, Iterable
from typing import Protocol

from deckbox.models.db import CardDB
from deckbox.models.deck import Board, DeckFormat, parse_deck_format, rules_for
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
)

# Statuses under which a card may be played in a format
PLAYABLE_STATUSES = frozenset({"legal", "restricted"})


class EntryLike(Protocol):
    card: CardDB
    quantity: int
    board: str
    is_commander: bool


class DeckLike(Protocol):
    format: str

    @property
    def entries(self) -> Iterable[EntryLike]: ...


LegalityCheck = Callable[[CardDB, DeckFormat], bool]
DisplayName = Callable[[CardDB], str]


def card_legality(card: CardDB, deck_format: DeckFormat) -> bool:
    """
    Legality predicate backed by the card's stored provider legalities.

    The generic format accepts everything. Cards with no recorded status
    for the format are treated as not legal.
    """
    if deck_format is DeckFormat.GENERIC:
        return True
    return (card.legalities or {}).get(deck_format.value) in PLAYABLE_STATUSES


def _card_key(card: CardDB) -> int:
    return card.id if card.id is not None else id(card)


def mainboard_count(deck: DeckLike) -> int:
    return sum(e.quantity for e in deck.entries if e.board == Board.MAIN.value)


def sideboard_count(deck: DeckLike) -> int:
    return sum(e.quantity for e in deck.entries if e.board == Board.SIDE.value)


def commander_count(deck: DeckLike) -> int:
    """Entries flagged as commander, on either board."""
    return sum(1 for e in deck.entries if e.is_commander)


def validate_deck(
    deck: DeckLike,
    is_card_legal: LegalityCheck | None = None,
    display_name: DisplayName | None = None,
) -> list[DeckRuleViolation]:
    """
    Validate a deck against its format rules.

    Every check runs independently; all applicable violations are returned.

    Args:
        deck: Deck with a format and entries
        is_card_legal: Optional legality predicate, applied to mainboard cards
        display_name: How to name a card in violations (defaults to card.name)

    Returns:
        Violations found, empty when the deck is valid
    """
    deck_format = parse_deck_format(deck.format)
    rules = rules_for(deck_format)
    name_of = display_name or (lambda card: card.name)
    entries = list(deck.entries)
    mainboard = [e for e in entries if e.board == Board.MAIN.value]

    violations: list[DeckRuleViolation] = []

    main_total = mainboard_count(deck)
    if main_total < rules.min_main:
        violations.append(MainboardTooSmall(minimum=rules.min_main, actual=main_total))
    if rules.max_main is not None and main_total > rules.max_main:
        violations.append(MainboardTooLarge(maximum=rules.max_main, actual=main_total))

    side_total = sideboard_count(deck)
    if rules.sideboard_max == 0:
        if side_total > 0:
            violations.append(SideboardNotAllowed(actual=side_total))
    elif rules.sideboard_max is not None and side_total > rules.sideboard_max:
        violations.append(SideboardTooLarge(maximum=rules.sideboard_max, actual=side_total))

    commanders = commander_count(deck)
    if not rules.allow_commander and commanders > 0:
        violations.append(CommanderNotAllowed())
    if rules.allow_commander and not rules.commander_count_allowed(commanders):
        violations.append(
            CommanderCountOutOfRange(expected=rules.commander_range, actual=commanders)
        )

    if rules.max_copies is not None:
        totals: dict[int, int] = {}
        for entry in mainboard:
            key = _card_key(entry.card)
            totals[key] = totals.get(key, 0) + entry.quantity

        reported: set[int] = set()
        for entry in mainboard:
            key = _card_key(entry.card)
            if key in reported or totals[key] <= rules.max_copies:
                continue
            reported.add(key)
            violations.append(
                TooManyCopies(
                    max_allowed=rules.max_copies,
                    card_name=name_of(entry.card),
                    actual=totals[key],
                )
            )

    if is_card_legal is not None:
        for entry in mainboard:
            if not is_card_legal(entry.card, deck_format):
                violations.append(IllegalCard(card_name=name_of(entry.card), format=deck_format))

    return violations
