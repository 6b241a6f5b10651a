"""
Library deduplication.

Repeated additions of the same card can leave several rows sharing a name.
Merging collapses them into one primary card: quantities are summed, tags
and group memberships move to the primary, deck entries are repointed, and
the duplicates are deleted.

Primary selection is explicit: the oldest card (created_at, then id).

Merges are staged. A MergePlan is computed from the loaded entities before
anything is mutated, then applied in one pass and flushed once. A failing
flush propagates to the session owner, which rolls the whole unit back, so
a duplicate is never left half unlinked.

Callers must serialize calls (see CardLibrary's write lock): a merge reads
and writes several related entities.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from deckbox.db.operations import detach_card, get_cards_named
from deckbox.models.card_record import CardRecord
from deckbox.models.db import CardDB, CardGroupDB, GroupMembershipDB, TagDB, utcnow
from deckbox.services.card_normalizer import apply_resolved_data, normalize_record
from deckbox.services.tag_assigner import assign_automatic_tags

logger = logging.getLogger(__name__)


@dataclass
class MergePlan:
    """
    Everything a merge will change, computed before any mutation.

    Attributes:
        primary: Surviving card
        duplicates: Cards to absorb and delete
        total_quantity: Summed owned quantity of primary and duplicates
        tags_to_attach: Duplicate tags the primary doesn't have yet
        group_quantities: Group -> primary's quantity-in-group after merge,
            for every group any duplicate belongs to
    """

    primary: CardDB
    duplicates: list[CardDB]
    total_quantity: int
    tags_to_attach: list[TagDB] = field(default_factory=list)
    group_quantities: list[tuple[CardGroupDB, int]] = field(default_factory=list)

    @property
    def has_duplicates(self) -> bool:
        return bool(self.duplicates)


def plan_merge(cards: list[CardDB]) -> MergePlan:
    """
    Stage a merge of same-named cards into the first one.

    Group quantities add up: if the primary already belongs to a group a
    duplicate is in, the duplicate's quantity is added to the primary's.

    Raises ValueError if cards is empty.
    """
    if not cards:
        raise ValueError("Cannot plan a merge of zero cards")

    primary, duplicates = cards[0], cards[1:]

    tag_ids = {tag.id for tag in primary.tags}
    tags_to_attach: list[TagDB] = []

    group_totals: dict[int, int] = {}
    groups: dict[int, CardGroupDB] = {}
    for membership in primary.memberships:
        group_totals[id(membership.group)] = membership.quantity
        groups[id(membership.group)] = membership.group

    touched: list[int] = []
    for duplicate in duplicates:
        for tag in duplicate.tags:
            if tag.id not in tag_ids:
                tag_ids.add(tag.id)
                tags_to_attach.append(tag)

        for membership in duplicate.memberships:
            key = id(membership.group)
            groups[key] = membership.group
            group_totals[key] = group_totals.get(key, 0) + membership.quantity
            if key not in touched:
                touched.append(key)

    return MergePlan(
        primary=primary,
        duplicates=list(duplicates),
        total_quantity=sum(card.quantity for card in cards),
        tags_to_attach=tags_to_attach,
        group_quantities=[(groups[key], group_totals[key]) for key in touched],
    )


def apply_merge(plan: MergePlan) -> None:
    """
    Apply a staged merge to the loaded entities.

    Group quantities are written directly: the primary owns the summed
    quantity, so no clamp applies.
    """
    primary = plan.primary
    primary.quantity = plan.total_quantity
    primary.tags.extend(plan.tags_to_attach)

    for group, quantity in plan.group_quantities:
        membership = next((m for m in group.memberships if m.card is primary), None)
        if membership is None:
            group.memberships.append(GroupMembershipDB(card=primary, quantity=quantity))
        else:
            membership.quantity = quantity

    for duplicate in plan.duplicates:
        for entry in list(duplicate.deck_entries):
            entry.card = primary
        detach_card(duplicate)


async def _collapse(session: AsyncSession, cards: list[CardDB]) -> CardDB:
    plan = plan_merge(cards)
    apply_merge(plan)
    for duplicate in plan.duplicates:
        await session.delete(duplicate)

    if plan.has_duplicates:
        logger.info(
            "Merged %d duplicate(s) of %s into card %s (quantity %d)",
            len(plan.duplicates),
            plan.primary.name,
            plan.primary.id,
            plan.total_quantity,
        )
    return plan.primary


async def upsert_card(session: AsyncSession, record: CardRecord) -> CardDB:
    """
    Add one copy of a fetched card to the library.

    If no card has the record's exact name, a new card with quantity 1 is
    created. Otherwise all same-named cards are merged into the primary,
    one copy is added, and the primary's descriptive fields are overwritten
    from the record (the latest fetch wins).

    Automatic tags are assigned either way and last_updated is stamped.
    """
    matches = await get_cards_named(session, record.name)
    resolved = normalize_record(record)

    if not matches:
        card = CardDB.new(game="MTG", name=record.name, quantity=1)
        apply_resolved_data(resolved, card)
        session.add(card)
        await assign_automatic_tags(session, card, record)
        await session.flush()
        logger.info("Added new card %s", card.name)
        return card

    primary = await _collapse(session, matches)
    primary.quantity += 1
    apply_resolved_data(resolved, primary)
    await assign_automatic_tags(session, primary, record)
    primary.last_updated = utcnow()
    await session.flush()
    return primary


async def consolidate_cards(session: AsyncSession, name: str) -> CardDB | None:
    """
    Collapse all cards with exactly this name into one, without adding a copy.

    Descriptive fields are left as stored. If the primary has no image it
    borrows its first face's image.

    Returns:
        The surviving card, or None if no card has this name. A name with a
        single card returns that card unchanged apart from last_updated.
    """
    matches = await get_cards_named(session, name)
    if not matches:
        return None

    primary = await _collapse(session, matches)
    if primary.image_url is None and primary.faces:
        primary.image_url = primary.faces[0].image_url
    primary.last_updated = utcnow()
    await session.flush()
    return primary
