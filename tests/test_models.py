"""Tests for tag palette helpers, deck rules and violation messages."""

from dataclasses import dataclass

import pytest

from deckbox.models.card_record import CardRecord
from deckbox.models.deck import FORMAT_RULES, DeckFormat, parse_deck_format, rules_for
from deckbox.models.deck_validation import (
    CommanderCountOutOfRange,
    IllegalCard,
    MainboardTooSmall,
    SideboardNotAllowed,
    TooManyCopies,
    ViolationKind,
)
from deckbox.models.tag import (
    TAG_PALETTE,
    UNCATEGORIZED,
    group_tags_by_category,
    is_palette_color,
    rarity_color,
    rarity_tag_name,
)


@dataclass
class FakeTag:
    name: str
    category: str | None = None


class TestTagHelpers:
    def test_rarity_tag_name(self) -> None:
        assert rarity_tag_name("mythic") == "Mythic"
        assert rarity_tag_name(" common ") == "Common"
        assert rarity_tag_name("") == ""

    def test_rarity_colors_are_palette_names(self) -> None:
        for rarity in ("common", "uncommon", "rare", "mythic", "bonus"):
            assert rarity_color(rarity) in TAG_PALETTE

    def test_is_palette_color(self) -> None:
        assert is_palette_color("izzet")
        assert not is_palette_color("#FF0000")

    def test_group_by_category(self) -> None:
        tags = [
            FakeTag("Rare", "Rarity"),
            FakeTag("foil"),
            FakeTag("Common", "Rarity"),
            FakeTag("Reserved List", "Special"),
            FakeTag("Binder"),
        ]

        grouped = group_tags_by_category(tags)

        assert list(grouped) == ["Rarity", "Special", UNCATEGORIZED]
        assert [t.name for t in grouped["Rarity"]] == ["Common", "Rare"]
        assert [t.name for t in grouped[UNCATEGORIZED]] == ["Binder", "foil"]

    def test_group_empty(self) -> None:
        assert group_tags_by_category([]) == {}


class TestDeckRules:
    def test_every_format_has_rules(self) -> None:
        assert set(FORMAT_RULES) == set(DeckFormat)

    def test_sixty_card_formats(self) -> None:
        rules = rules_for("modern")

        assert rules.min_main == 60
        assert rules.max_copies == 4
        assert rules.sideboard_max == 15
        assert rules.allow_commander is False

    def test_commander(self) -> None:
        rules = rules_for(DeckFormat.COMMANDER)

        assert (rules.min_main, rules.max_main, rules.max_copies) == (100, 100, 1)
        assert rules.sideboard_max == 0
        assert rules.commander_count_allowed(1)
        assert rules.commander_count_allowed(2)
        assert not rules.commander_count_allowed(0)
        assert not rules.commander_count_allowed(3)

    def test_generic_is_unbounded(self) -> None:
        rules = rules_for(DeckFormat.GENERIC)

        assert rules.min_main == 0
        assert rules.max_copies is None
        assert rules.commander_count_allowed(0)
        assert rules.commander_count_allowed(7)

    def test_unknown_format(self) -> None:
        with pytest.raises(ValueError):
            rules_for("brawl")

    def test_parse_stored_format(self) -> None:
        assert parse_deck_format("modern") is DeckFormat.MODERN
        assert parse_deck_format("brawl") is DeckFormat.GENERIC


class TestViolationMessages:
    def test_violations_compare_by_value(self) -> None:
        assert MainboardTooSmall(minimum=60, actual=45) == MainboardTooSmall(60, 45)
        assert MainboardTooSmall(60, 45).kind is ViolationKind.MAINBOARD_TOO_SMALL

    def test_messages(self) -> None:
        assert MainboardTooSmall(60, 45).message == "Mainboard has 45 cards; minimum is 60."
        assert (
            TooManyCopies(4, "Lightning Bolt", 5).message
            == "Too many copies of Lightning Bolt: 5 (max 4)."
        )
        assert (
            CommanderCountOutOfRange((1, 2), 3).message
            == "Commander count 3 is not in allowed range 1...2."
        )
        assert "2 cards in sideboard" in SideboardNotAllowed(2).message
        assert (
            IllegalCard("Black Lotus", DeckFormat.MODERN).message
            == "Black Lotus is not legal in Modern."
        )


class TestCardRecord:
    def test_multi_faced(self, delver_json) -> None:
        record = CardRecord.model_validate(delver_json)

        assert record.card_faces is not None
        assert len(record.card_faces) == 2
        assert record.card_faces[1].name == "Insectile Aberration"

    def test_single_faced(self, make_record) -> None:
        assert make_record().card_faces is None
