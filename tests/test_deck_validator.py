"""Tests for deck construction validation."""

from deckbox.models.db import CardDB, DeckDB, DeckEntryDB
from deckbox.models.deck import DeckFormat
from deckbox.models.deck_validation import (
    CommanderCountOutOfRange,
    CommanderNotAllowed,
    IllegalCard,
    MainboardTooLarge,
    MainboardTooSmall,
    SideboardNotAllowed,
    SideboardTooLarge,
    TooManyCopies,
)
from deckbox.services.deck_validator import (
    card_legality,
    commander_count,
    mainboard_count,
    sideboard_count,
    validate_deck,
)


def _card(name: str, **legalities: str) -> CardDB:
    return CardDB.new(name=name, legalities=legalities)


def _entry(
    card: CardDB, quantity: int, board: str = "main", is_commander: bool = False
) -> DeckEntryDB:
    return DeckEntryDB(card=card, quantity=quantity, board=board, is_commander=is_commander)


def _deck(deck_format: DeckFormat, *entries: DeckEntryDB) -> DeckDB:
    return DeckDB(name="Test", format=deck_format.value, entries=list(entries))


def _basics(count: int) -> list[DeckEntryDB]:
    """`count` distinct singleton cards."""
    return [_entry(_card(f"Card {i}"), 1) for i in range(count)]


class TestCounts:
    def test_board_and_commander_counts(self) -> None:
        deck = _deck(
            DeckFormat.GENERIC,
            _entry(_card("Mountain"), 20),
            _entry(_card("Abrade"), 2, board="side"),
            _entry(_card("Krenko"), 1, is_commander=True),
        )

        assert mainboard_count(deck) == 21
        assert sideboard_count(deck) == 2
        assert commander_count(deck) == 1


class TestStandard:
    def test_small_deck_reports_only_size(self) -> None:
        deck = _deck(DeckFormat.STANDARD, *_basics(45))

        assert validate_deck(deck) == [MainboardTooSmall(minimum=60, actual=45)]

    def test_legal_sixty(self) -> None:
        deck = _deck(
            DeckFormat.STANDARD,
            *(_entry(_card(f"Spell {i}"), 4) for i in range(15)),
        )

        assert validate_deck(deck) == []

    def test_basic_lands_are_not_exempt(self) -> None:
        """Copy limits apply to every card."""
        mountain = _card("Mountain")
        deck = _deck(DeckFormat.MODERN, _entry(mountain, 60))

        assert validate_deck(deck) == [
            TooManyCopies(max_allowed=4, card_name="Mountain", actual=60)
        ]

    def test_copies_summed_and_reported_once(self) -> None:
        bolt = _card("Lightning Bolt")
        deck = _deck(
            DeckFormat.MODERN,
            _entry(bolt, 3),
            _entry(bolt, 3),
            *_basics(54),
        )

        violations = validate_deck(deck)

        assert violations == [TooManyCopies(max_allowed=4, card_name="Lightning Bolt", actual=6)]

    def test_sideboard_copies_do_not_count(self) -> None:
        bolt = _card("Lightning Bolt")
        deck = _deck(
            DeckFormat.MODERN,
            _entry(bolt, 4),
            _entry(bolt, 2, board="side"),
            *_basics(56),
        )

        assert validate_deck(deck) == []

    def test_sideboard_too_large(self) -> None:
        deck = _deck(
            DeckFormat.LEGACY,
            *_basics(60),
            _entry(_card("Pyroblast"), 16, board="side"),
        )

        assert validate_deck(deck) == [SideboardTooLarge(maximum=15, actual=16)]

    def test_commander_flag_not_allowed(self) -> None:
        deck = _deck(
            DeckFormat.PIONEER,
            *_basics(59),
            _entry(_card("Krenko"), 1, is_commander=True),
        )

        assert validate_deck(deck) == [CommanderNotAllowed()]

    def test_independent_checks_all_reported(self) -> None:
        bolt = _card("Lightning Bolt")
        deck = _deck(
            DeckFormat.STANDARD,
            _entry(bolt, 5, is_commander=True),
            _entry(_card("Duress"), 16, board="side"),
        )

        violations = validate_deck(deck)

        assert violations == [
            MainboardTooSmall(minimum=60, actual=5),
            SideboardTooLarge(maximum=15, actual=16),
            CommanderNotAllowed(),
            TooManyCopies(max_allowed=4, card_name="Lightning Bolt", actual=5),
        ]


class TestCommander:
    def _commander_deck(self, commanders: int, sideboard: int = 0) -> DeckDB:
        entries = _basics(100 - commanders)
        entries += [
            _entry(_card(f"Commander {i}"), 1, is_commander=True) for i in range(commanders)
        ]
        if sideboard:
            entries.append(_entry(_card("Maybeboard"), sideboard, board="side"))
        return _deck(DeckFormat.COMMANDER, *entries)

    def test_partner_pair_is_valid(self) -> None:
        assert validate_deck(self._commander_deck(2)) == []

    def test_single_commander_is_valid(self) -> None:
        assert validate_deck(self._commander_deck(1)) == []

    def test_three_commanders(self) -> None:
        violations = validate_deck(self._commander_deck(3))

        assert violations == [CommanderCountOutOfRange(expected=(1, 2), actual=3)]
        assert violations[0].message == "Commander count 3 is not in allowed range 1...2."

    def test_missing_commander(self) -> None:
        assert validate_deck(self._commander_deck(0)) == [
            CommanderCountOutOfRange(expected=(1, 2), actual=0)
        ]

    def test_sideboard_not_allowed(self) -> None:
        assert validate_deck(self._commander_deck(1, sideboard=3)) == [
            SideboardNotAllowed(actual=3)
        ]

    def test_too_large(self) -> None:
        deck = _deck(
            DeckFormat.COMMANDER,
            *_basics(100),
            _entry(_card("Commander"), 1, is_commander=True),
        )

        assert validate_deck(deck) == [MainboardTooLarge(maximum=100, actual=101)]

    def test_singleton(self) -> None:
        deck = _deck(
            DeckFormat.COMMANDER,
            *_basics(97),
            _entry(_card("Sol Ring"), 2),
            _entry(_card("Commander"), 1, is_commander=True),
        )

        assert validate_deck(deck) == [
            TooManyCopies(max_allowed=1, card_name="Sol Ring", actual=2)
        ]


class TestGeneric:
    def test_anything_goes(self) -> None:
        deck = _deck(
            DeckFormat.GENERIC,
            _entry(_card("Relentless Rats"), 40),
            _entry(_card("Sideboard Card"), 30, board="side"),
            _entry(_card("A"), 1, is_commander=True),
            _entry(_card("B"), 1, is_commander=True),
            _entry(_card("C"), 1, is_commander=True),
        )

        assert validate_deck(deck) == []

    def test_empty_deck(self) -> None:
        assert validate_deck(_deck(DeckFormat.GENERIC)) == []

    def test_unknown_stored_format_validates_as_generic(self) -> None:
        deck = DeckDB(
            name="Old",
            format="oathbreaker",
            entries=[
                _entry(_card("Relentless Rats"), 40),
                _entry(_card("Extra"), 30, board="side"),
            ],
        )

        assert validate_deck(deck, is_card_legal=card_legality) == []


class TestLegality:
    def test_card_legality_statuses(self) -> None:
        lotus = _card("Black Lotus", vintage="restricted", legacy="banned")

        assert card_legality(lotus, DeckFormat.VINTAGE)
        assert not card_legality(lotus, DeckFormat.LEGACY)
        assert not card_legality(lotus, DeckFormat.MODERN)
        assert card_legality(lotus, DeckFormat.GENERIC)

    def test_illegal_mainboard_card(self) -> None:
        lotus = _card("Black Lotus", vintage="restricted", modern="not_legal")
        deck = _deck(DeckFormat.MODERN, _entry(lotus, 1), *_basics(59))

        violations = validate_deck(
            deck, is_card_legal=lambda card, fmt: card.name != "Black Lotus"
        )

        assert violations == [IllegalCard(card_name="Black Lotus", format=DeckFormat.MODERN)]

    def test_sideboard_not_checked(self) -> None:
        lotus = _card("Black Lotus")
        deck = _deck(DeckFormat.MODERN, *_basics(60), _entry(lotus, 1, board="side"))

        violations = validate_deck(
            deck, is_card_legal=lambda card, fmt: card.name != "Black Lotus"
        )

        assert violations == []

    def test_legality_skipped_without_predicate(self) -> None:
        deck = _deck(DeckFormat.MODERN, *_basics(60))

        assert validate_deck(deck) == []

    def test_display_name_override(self) -> None:
        bolt = _card("Lightning Bolt")
        deck = _deck(DeckFormat.MODERN, _entry(bolt, 5), *_basics(55))

        violations = validate_deck(deck, display_name=lambda card: card.name.upper())

        assert violations == [
            TooManyCopies(max_allowed=4, card_name="LIGHTNING BOLT", actual=5)
        ]
