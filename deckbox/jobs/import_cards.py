"""
Import a deck list file into a group.

Reads "4 Lightning Bolt" / "4x Lightning Bolt" lines from a file and runs
them through the same sequential import the API uses. The group is created
when it doesn't exist yet.

Usage:
    python -m deckbox.jobs.import_cards decklist.txt --group "Mono Red"
"""

import argparse
import asyncio
import logging
from pathlib import Path

from deckbox.config import settings
from deckbox.db.database import init_db, session_scope
from deckbox.db.operations import (
    create_group,
    ensure_built_in_group_types,
    get_group_by_name,
    get_group_type_by_name,
)
from deckbox.services.card_library import BatchImportError, CardLibrary, ImportProgress
from deckbox.services.scryfall_client import RateLimiter, ScryfallClient

logger = logging.getLogger(__name__)


def _log_progress(progress: ImportProgress) -> None:
    logger.info("[%d/%d] %s", progress.completed, progress.total, progress.current)


async def run_import(path: Path, group_name: str, type_name: str = "Decks") -> int:
    """
    Import the deck list at ``path`` into the named group.

    Runs as one unit of work. Lines imported before a failed lookup are
    committed before the error is re-raised.

    Returns:
        Number of lines imported
    """
    text = path.read_text(encoding="utf-8")
    await init_db()

    async with (
        ScryfallClient(
            RateLimiter(settings.min_request_interval),
            base_url=settings.scryfall_base_url,
            user_agent=settings.user_agent,
            timeout=settings.request_timeout,
            max_retries=settings.max_rate_limit_retries,
        ) as client,
        session_scope() as session,
    ):
        await ensure_built_in_group_types(session)

        group = await get_group_by_name(session, group_name)
        if group is None:
            group_type = await get_group_type_by_name(session, type_name)
            if group_type is None:
                raise ValueError(f"Unknown group type '{type_name}'")
            group = await create_group(session, group_name, group_type)
            logger.info("Created %s group %s", type_name, group_name)

        library = CardLibrary(client)
        try:
            imported = await library.import_deck_list(
                session, group, text, on_progress=_log_progress
            )
        except BatchImportError as e:
            await session.commit()
            logger.error(
                "Import stopped at %s after %d of %d lines: %s",
                e.failed_name,
                e.progress.completed,
                e.progress.total,
                e.reason,
            )
            raise

    logger.info("Imported %d lines into %s", len(imported), group_name)
    return len(imported)


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Import a deck list file into a group")
    parser.add_argument("file", type=Path, help="Deck list file, one card per line")
    parser.add_argument("--group", default=None, help="Target group (default: file name)")
    parser.add_argument("--type", dest="type_name", default="Decks", help="Group type")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_import(args.file, args.group or args.file.stem, args.type_name))


if __name__ == "__main__":
    main()
