"""
Automatic tag assignment.

Every card carries a rarity tag, and Reserved List cards additionally carry
the "Reserved List" tag. Existing tags are reused; a tag is only created
when neither an exact nor a case-insensitive match exists.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from deckbox.db.operations import get_or_create_tag
from deckbox.models.card_record import CardRecord
from deckbox.models.db import CardDB, TagDB
from deckbox.models.tag import (
    RARITY_CATEGORY,
    RESERVED_LIST_CATEGORY,
    RESERVED_LIST_COLOR,
    RESERVED_LIST_TAG,
    rarity_color,
    rarity_tag_name,
)

logger = logging.getLogger(__name__)


def attach_tag(card: CardDB, tag: TagDB) -> bool:
    """
    Attach a tag to a card unless a tag with the same id is already there.

    Returns True if the tag was attached.
    """
    if any(existing.id == tag.id for existing in card.tags):
        return False
    card.tags.append(tag)
    return True


async def assign_automatic_tags(
    session: AsyncSession,
    card: CardDB,
    record: CardRecord,
) -> list[TagDB]:
    """
    Attach the rarity and Reserved List tags a record calls for.

    Idempotent: calling twice with the same record leaves the tag set
    unchanged the second time. Blank rarities produce no rarity tag.

    Returns:
        Tags newly attached by this call
    """
    attached: list[TagDB] = []

    if record.reserved:
        tag, _ = await get_or_create_tag(
            session,
            RESERVED_LIST_TAG,
            color=RESERVED_LIST_COLOR,
            category=RESERVED_LIST_CATEGORY,
        )
        if attach_tag(card, tag):
            attached.append(tag)

    name = rarity_tag_name(record.rarity)
    if name:
        tag, created = await get_or_create_tag(
            session,
            name,
            color=rarity_color(record.rarity),
            category=RARITY_CATEGORY,
        )
        if created:
            logger.debug("Created rarity tag %s", name)
        if attach_tag(card, tag):
            attached.append(tag)

    return attached
