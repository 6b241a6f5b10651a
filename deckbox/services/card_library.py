"""
Card library orchestration.

Entry points for the flows that add cards: a typed name, scanner output,
a pasted deck list, or a list of names. Provider fetches run outside the
write lock; every store mutation (merge, quantity change) runs inside it,
so concurrent requests never interleave relationship updates.

Batch flows are sequential. A failed item aborts the rest of the batch and
raises BatchImportError with partial progress; items already merged stay
merged.
"""

import asyncio
import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from deckbox.db.operations import find_cards_named_ci
from deckbox.models.db import CardDB, CardGroupDB
from deckbox.services.group_membership import add_quantity, set_quantity
from deckbox.services.library_merger import consolidate_cards, upsert_card
from deckbox.services.scryfall_client import CardLookupError, ScryfallClient

logger = logging.getLogger(__name__)

# Pattern: "4 Lightning Bolt" or "4x Lightning Bolt" or "4X Lightning Bolt"
# Groups: (quantity, card_name)
DECK_LIST_PATTERN = re.compile(r"^(\d+)x?\s+(.+)$", re.IGNORECASE)


@dataclass(frozen=True)
class DeckListLine:
    name: str
    quantity: int


@dataclass(frozen=True)
class ImportProgress:
    """
    How far a batch got.

    Attributes:
        completed: Items fully processed
        total: Items in the batch
        current: Name of the last item processed (or the failing one)
    """

    completed: int
    total: int
    current: str | None = None


@dataclass(frozen=True)
class ImportedCard:
    """Result of one deck list line."""

    card: CardDB
    requested: int
    in_group: int
    was_owned: bool


class BatchImportError(Exception):
    """
    Raised when one item of a batch fails.

    Items before the failing one have already been applied. The provider
    error is available as ``__cause__``.
    """

    def __init__(self, progress: ImportProgress, failed_name: str, reason: str):
        self.progress = progress
        self.failed_name = failed_name
        self.reason = reason
        super().__init__(
            f"Failed to import {failed_name} after {progress.completed} of "
            f"{progress.total}: {reason}"
        )


ProgressCallback = Callable[[ImportProgress], None]


def parse_deck_list(text: str) -> list[DeckListLine]:
    """
    Parse a pasted deck list.

    Accepts "2 Lightning Bolt" and "2x Lightning Bolt". Lines without a
    positive leading quantity are skipped. Repeated names stay separate
    lines, in input order.
    """
    lines: list[DeckListLine] = []

    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue

        match = DECK_LIST_PATTERN.match(line)
        if not match:
            continue

        quantity = int(match.group(1))
        name = match.group(2).strip()
        if quantity > 0 and name:
            lines.append(DeckListLine(name=name, quantity=quantity))

    return lines


class CardLibrary:
    """
    Adds cards to the library through the provider and the merger.

    One instance (and one write lock) should serve the whole application so
    that all writers share the same single-writer discipline.
    """

    def __init__(self, client: ScryfallClient, write_lock: asyncio.Lock | None = None):
        self.client = client
        self.write_lock = write_lock or asyncio.Lock()

    async def add_card(
        self,
        session: AsyncSession,
        name: str,
        group: CardGroupDB | None = None,
    ) -> CardDB:
        """
        Fetch a card by fuzzy name and add one copy to the library.

        When a group is given the new copy is also added to it (clamped to
        the owned quantity).

        Raises:
            CardLookupError: Provider lookup failed; nothing was written
        """
        record = await self.client.fetch_card(name)

        async with self.write_lock:
            card = await upsert_card(session, record)
            if group is not None:
                add_quantity(group, card, 1)
                await session.flush()
        return card

    async def consolidate(self, session: AsyncSession, name: str) -> CardDB | None:
        """Merge same-named duplicates under the write lock."""
        async with self.write_lock:
            return await consolidate_cards(session, name)

    async def set_group_quantity(
        self,
        session: AsyncSession,
        group: CardGroupDB,
        card: CardDB,
        quantity: int,
    ) -> int:
        """Set a card's quantity in a group under the write lock. Returns the stored value."""
        async with self.write_lock:
            stored = set_quantity(group, card, quantity)
            await session.flush()
        return stored

    async def add_scanned_text(
        self,
        session: AsyncSession,
        text: str,
        group: CardGroupDB | None = None,
    ) -> CardDB:
        """
        Handle one recognized string from the scanner.

        Scanning into a group a card the library already has (exact name)
        consolidates its rows and adds one copy to the group, without a
        provider fetch and without changing the owned quantity. Any other
        scan goes through add_card.

        Raises:
            ValueError: The scanned text is blank
            CardLookupError: Provider lookup failed
        """
        name = " ".join(text.split())
        if not name:
            raise ValueError("Scanned text is empty")

        if group is not None:
            async with self.write_lock:
                card = await consolidate_cards(session, name)
                if card is not None:
                    add_quantity(group, card, 1)
                    await session.flush()
                    logger.info("Scanned %s into group %s", card.name, group.name)
                    return card

        return await self.add_card(session, name, group)

    async def import_deck_list(
        self,
        session: AsyncSession,
        group: CardGroupDB,
        text: str,
        on_progress: ProgressCallback | None = None,
    ) -> list[ImportedCard]:
        """
        Import a pasted deck list into a group, one line at a time.

        Cards already in the library (case-insensitive name) are consolidated
        and their group quantity raised by the line's quantity. Unknown cards
        are fetched, added to the library, and set to the line's quantity in
        the group. Group quantities are clamped to owned quantities.

        Raises:
            BatchImportError: A line failed; earlier lines stay applied
        """
        lines = parse_deck_list(text)
        total = len(lines)
        imported: list[ImportedCard] = []

        for index, line in enumerate(lines):
            try:
                imported.append(await self._import_line(session, group, line))
            except CardLookupError as e:
                progress = ImportProgress(completed=index, total=total, current=line.name)
                logger.warning(
                    "Deck list import stopped at %s (%d/%d): %s", line.name, index, total, e
                )
                raise BatchImportError(progress, line.name, str(e)) from e

            if on_progress is not None:
                on_progress(ImportProgress(completed=index + 1, total=total, current=line.name))

        logger.info("Imported %d deck list lines into %s", total, group.name)
        return imported

    async def _import_line(
        self,
        session: AsyncSession,
        group: CardGroupDB,
        line: DeckListLine,
    ) -> ImportedCard:
        existing = await find_cards_named_ci(session, line.name)
        if existing:
            async with self.write_lock:
                card = await consolidate_cards(session, existing[0].name)
                if card is None:
                    raise RuntimeError(f"Card '{line.name}' disappeared during import")
                stored = add_quantity(group, card, line.quantity)
                await session.flush()
            return ImportedCard(
                card=card, requested=line.quantity, in_group=stored, was_owned=card.quantity > 0
            )

        record = await self.client.fetch_card(line.name)
        async with self.write_lock:
            card = await upsert_card(session, record)
            stored = set_quantity(group, card, line.quantity)
            await session.flush()
        return ImportedCard(card=card, requested=line.quantity, in_group=stored, was_owned=False)

    async def bulk_add_cards(
        self,
        session: AsyncSession,
        names: Sequence[str],
        on_progress: ProgressCallback | None = None,
    ) -> list[CardDB]:
        """
        Add one copy of each named card, one name at a time.

        Blank names are skipped.

        Raises:
            BatchImportError: A lookup failed; earlier names stay added
        """
        cleaned = [name.strip() for name in names if name.strip()]
        total = len(cleaned)
        added: list[CardDB] = []

        for index, name in enumerate(cleaned):
            try:
                added.append(await self.add_card(session, name))
            except CardLookupError as e:
                progress = ImportProgress(completed=index, total=total, current=name)
                logger.warning("Bulk add stopped at %s (%d/%d): %s", name, index, total, e)
                raise BatchImportError(progress, name, str(e)) from e

            if on_progress is not None:
                on_progress(ImportProgress(completed=index + 1, total=total, current=name))

        return added
