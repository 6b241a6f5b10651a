"""
Card quantities inside groups.

A group never records more copies of a card than the user owns at the time
of writing: requests above the owned quantity are clamped without error.
A recorded quantity can go stale if the owned quantity later drops; it is
corrected the next time that card's quantity in the group is set.
"""

import logging

from deckbox.models.db import CardDB, CardGroupDB, GroupMembershipDB

logger = logging.getLogger(__name__)


def find_membership(group: CardGroupDB, card: CardDB) -> GroupMembershipDB | None:
    for membership in group.memberships:
        if membership.card is card or (card.id is not None and membership.card_id == card.id):
            return membership
    return None


def get_quantity(group: CardGroupDB, card: CardDB) -> int:
    """Quantity of a card in a group (0 if the card isn't a member)."""
    membership = find_membership(group, card)
    return membership.quantity if membership else 0


def contains(group: CardGroupDB, card: CardDB) -> bool:
    return find_membership(group, card) is not None


def set_quantity(group: CardGroupDB, card: CardDB, quantity: int) -> int:
    """
    Set a card's quantity in a group.

    A quantity of 0 or less removes the card from the group. Anything else
    is clamped to the card's owned quantity and the card becomes a member if
    it wasn't already.

    Returns:
        The quantity actually stored (0 when removed)
    """
    membership = find_membership(group, card)

    if quantity <= 0:
        if membership is not None:
            group.memberships.remove(membership)
            card.memberships.remove(membership)
        return 0

    stored = min(quantity, card.quantity)
    if stored < quantity:
        logger.debug(
            "Clamped %s in group %s from %d to owned %d", card.name, group.name, quantity, stored
        )

    if membership is None:
        group.memberships.append(GroupMembershipDB(card=card, quantity=stored))
    else:
        membership.quantity = stored
    return stored


def add_quantity(group: CardGroupDB, card: CardDB, quantity: int) -> int:
    """Add copies of a card to a group, subject to the same clamp as set_quantity."""
    return set_quantity(group, card, get_quantity(group, card) + quantity)
