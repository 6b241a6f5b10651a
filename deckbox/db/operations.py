"""
Database CRUD operations.

Provides the async store functions the card library is built on: lookups by
name, tag upkeep, group and deck creation, and relationship-safe deletion.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from deckbox.models.db import (
    CardDB,
    CardGroupDB,
    DeckDB,
    DeckEntryDB,
    GroupMembershipDB,
    GroupTypeDB,
    TagDB,
)
from deckbox.models.deck import Board, DeckFormat
from deckbox.models.tag import DEFAULT_TAG_COLOR


class TagNameConflictError(Exception):
    """Raised when a new tag name collides (case-insensitively) with an existing tag."""

    def __init__(self, name: str, existing: str):
        self.name = name
        self.existing = existing
        super().__init__(f"Tag '{name}' conflicts with existing tag '{existing}'")


# Built-in group types seeded on startup: (name, icon)
BUILT_IN_GROUP_TYPES = (
    ("Decks", "rectangle.on.rectangle"),
    ("Cubes", "square.stack.3d.up"),
)


# Eager loads for both sides of every membership and deck entry reachable
# from the loaded entity.
CARD_GRAPH = (
    selectinload(CardDB.memberships)
    .selectinload(GroupMembershipDB.group)
    .selectinload(CardGroupDB.memberships)
    .selectinload(GroupMembershipDB.card),
    selectinload(CardDB.deck_entries)
    .selectinload(DeckEntryDB.deck)
    .selectinload(DeckDB.entries)
    .selectinload(DeckEntryDB.card),
)

GROUP_GRAPH = (
    selectinload(CardGroupDB.memberships)
    .selectinload(GroupMembershipDB.card)
    .selectinload(CardDB.memberships),
)

DECK_GRAPH = (
    selectinload(DeckDB.entries).selectinload(DeckEntryDB.card).selectinload(CardDB.deck_entries),
)


# --- Card Operations ---


async def get_cards_named(session: AsyncSession, name: str) -> list[CardDB]:
    """
    Get all cards with exactly this name (case-sensitive).

    Ordered oldest first (created_at, then id). The first card is the
    primary when duplicates are merged.
    """
    result = await session.execute(
        select(CardDB)
        .where(CardDB.name == name)
        .options(*CARD_GRAPH)
        .order_by(CardDB.created_at, CardDB.id)
    )
    return list(result.scalars().all())


async def find_cards_named_ci(session: AsyncSession, name: str) -> list[CardDB]:
    """Get all cards whose name matches case-insensitively, oldest first."""
    result = await session.execute(
        select(CardDB)
        .where(func.lower(CardDB.name) == name.lower())
        .options(*CARD_GRAPH)
        .order_by(CardDB.created_at, CardDB.id)
    )
    return list(result.scalars().all())


async def get_card(session: AsyncSession, card_id: int) -> CardDB | None:
    """Get a card by id. Returns None if it doesn't exist."""
    result = await session.execute(
        select(CardDB).where(CardDB.id == card_id).options(*CARD_GRAPH)
    )
    return result.scalar_one_or_none()


async def list_cards(session: AsyncSession) -> list[CardDB]:
    """Get the whole library ordered by name."""
    result = await session.execute(select(CardDB).order_by(CardDB.name, CardDB.id))
    return list(result.scalars().all())


def detach_card(card: CardDB) -> None:
    """
    Remove a card from every tag and group it belongs to.

    Membership rows are removed from both sides so no loaded group keeps a
    reference to the card.
    """
    card.tags.clear()
    for membership in list(card.memberships):
        membership.group.memberships.remove(membership)
    card.memberships.clear()


async def delete_card(session: AsyncSession, card_id: int) -> bool:
    """
    Delete a card along with its faces, tag links, memberships and deck entries.

    Returns True if deleted, False if not found.
    """
    card = await get_card(session, card_id)
    if card is None:
        return False

    detach_card(card)
    for entry in list(card.deck_entries):
        entry.deck.entries.remove(entry)
    await session.delete(card)
    await session.flush()
    return True


# --- Tag Operations ---


async def get_tag_by_name(session: AsyncSession, name: str) -> TagDB | None:
    """Get a tag by its exact (case-sensitive) name."""
    result = await session.execute(select(TagDB).where(TagDB.name == name))
    return result.scalar_one_or_none()


async def find_tag_case_insensitive(session: AsyncSession, name: str) -> TagDB | None:
    """Get the oldest tag whose name matches case-insensitively."""
    result = await session.execute(
        select(TagDB)
        .where(func.lower(TagDB.name) == name.lower())
        .order_by(TagDB.created_at, TagDB.id)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def create_tag(
    session: AsyncSession,
    name: str,
    color: str = DEFAULT_TAG_COLOR,
    category: str | None = None,
) -> TagDB:
    """
    Create a new tag.

    Raises TagNameConflictError if a tag with the same name in any casing
    already exists.
    """
    existing = await find_tag_case_insensitive(session, name)
    if existing is not None:
        raise TagNameConflictError(name, existing.name)

    tag = TagDB(name=name, color=color, category=category or None)
    session.add(tag)
    await session.flush()
    return tag


async def get_or_create_tag(
    session: AsyncSession,
    name: str,
    color: str = DEFAULT_TAG_COLOR,
    category: str | None = None,
) -> tuple[TagDB, bool]:
    """
    Get an existing tag or create a new one.

    Lookup order: exact name, then case-insensitive collision. Only when
    neither exists is a tag created with the given color and category.

    Returns:
        Tuple of (tag, created) where created is True if new.
    """
    tag = await get_tag_by_name(session, name)
    if tag is None:
        tag = await find_tag_case_insensitive(session, name)
    if tag is not None:
        return tag, False

    return await create_tag(session, name, color, category), True


async def list_tags(session: AsyncSession) -> list[TagDB]:
    """Get all tags ordered by name."""
    result = await session.execute(select(TagDB).order_by(TagDB.name))
    return list(result.scalars().all())


async def delete_tag(session: AsyncSession, tag_id: int) -> bool:
    """
    Delete a tag. Cards that carried it are kept; only the links go.

    Returns True if deleted, False if not found.
    """
    result = await session.execute(select(TagDB).where(TagDB.id == tag_id))
    tag = result.scalar_one_or_none()
    if tag is None:
        return False

    tagged = await session.execute(select(CardDB).join(CardDB.tags).where(TagDB.id == tag_id))
    for card in tagged.scalars().all():
        card.tags.remove(tag)
    await session.flush()

    await session.delete(tag)
    await session.flush()
    return True


# --- Group Operations ---


async def ensure_built_in_group_types(session: AsyncSession) -> list[GroupTypeDB]:
    """Create the built-in group types that don't exist yet. Returns all built-ins."""
    types: list[GroupTypeDB] = []
    for name, icon in BUILT_IN_GROUP_TYPES:
        group_type = await get_group_type_by_name(session, name)
        if group_type is None:
            group_type = GroupTypeDB(name=name, icon_name=icon, is_built_in=True, groups=[])
            session.add(group_type)
        types.append(group_type)

    await session.flush()
    return types


async def get_group_type_by_name(session: AsyncSession, name: str) -> GroupTypeDB | None:
    result = await session.execute(select(GroupTypeDB).where(GroupTypeDB.name == name))
    return result.scalar_one_or_none()


async def list_group_types(session: AsyncSession) -> list[GroupTypeDB]:
    result = await session.execute(select(GroupTypeDB).order_by(GroupTypeDB.id))
    return list(result.scalars().all())


async def delete_group_type(session: AsyncSession, group_type_id: int) -> bool:
    """
    Delete a group type and every group of that type.

    Returns True if deleted, False if not found.
    """
    result = await session.execute(
        select(GroupTypeDB)
        .where(GroupTypeDB.id == group_type_id)
        .options(selectinload(GroupTypeDB.groups).options(*GROUP_GRAPH))
    )
    group_type = result.scalar_one_or_none()
    if group_type is None:
        return False

    for group in group_type.groups:
        _detach_group(group)
    await session.delete(group_type)
    await session.flush()
    return True


async def create_group(
    session: AsyncSession,
    name: str,
    group_type: GroupTypeDB,
    deck_format: DeckFormat | None = None,
) -> CardGroupDB:
    """Create an empty group of the given type."""
    group = CardGroupDB(
        name=name,
        group_type=group_type,
        deck_format=deck_format.value if deck_format else None,
        memberships=[],
    )
    session.add(group)
    await session.flush()
    return group


async def get_group(session: AsyncSession, group_id: int) -> CardGroupDB | None:
    """Get a group with its memberships. Returns None if it doesn't exist."""
    result = await session.execute(
        select(CardGroupDB).where(CardGroupDB.id == group_id).options(*GROUP_GRAPH)
    )
    return result.scalar_one_or_none()


async def get_group_by_name(session: AsyncSession, name: str) -> CardGroupDB | None:
    """Get the oldest group with this exact name."""
    result = await session.execute(
        select(CardGroupDB)
        .where(CardGroupDB.name == name)
        .options(*GROUP_GRAPH)
        .order_by(CardGroupDB.id)
        .limit(1)
    )
    return result.scalar_one_or_none()


def _detach_group(group: CardGroupDB) -> None:
    for membership in list(group.memberships):
        membership.card.memberships.remove(membership)
    group.memberships.clear()


async def delete_group(session: AsyncSession, group_id: int) -> bool:
    """
    Delete a group. Its cards stay in the library.

    Returns True if deleted, False if not found.
    """
    group = await get_group(session, group_id)
    if group is None:
        return False

    _detach_group(group)
    await session.delete(group)
    await session.flush()
    return True


# --- Deck Operations ---


async def create_deck(
    session: AsyncSession,
    name: str | None = None,
    deck_format: DeckFormat = DeckFormat.STANDARD,
) -> DeckDB:
    """Create an empty deck."""
    deck = DeckDB(name=name, format=deck_format.value, entries=[])
    session.add(deck)
    await session.flush()
    return deck


async def get_deck(session: AsyncSession, deck_id: int) -> DeckDB | None:
    """Get a deck with its entries and their cards."""
    result = await session.execute(
        select(DeckDB).where(DeckDB.id == deck_id).options(*DECK_GRAPH)
    )
    return result.scalar_one_or_none()


async def add_deck_entry(
    session: AsyncSession,
    deck: DeckDB,
    card: CardDB,
    quantity: int = 1,
    board: Board = Board.MAIN,
    is_commander: bool = False,
) -> DeckEntryDB:
    """
    Add a card line to a deck.

    Raises ValueError if quantity is below 1.
    """
    if quantity < 1:
        raise ValueError(f"Deck entry quantity must be at least 1, got {quantity}")

    entry = DeckEntryDB(
        card=card,
        quantity=quantity,
        board=board.value,
        is_commander=is_commander,
    )
    deck.entries.append(entry)
    await session.flush()
    return entry


async def delete_deck(session: AsyncSession, deck_id: int) -> bool:
    """
    Delete a deck and its entries.

    Returns True if deleted, False if not found.
    """
    deck = await get_deck(session, deck_id)
    if deck is None:
        return False

    for entry in list(deck.entries):
        entry.card.deck_entries.remove(entry)
    await session.delete(deck)
    await session.flush()
    return True
