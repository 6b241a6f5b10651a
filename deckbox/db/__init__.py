from deckbox.db.database import get_session, init_db, session_scope
from deckbox.db.operations import (
    TagNameConflictError,
    add_deck_entry,
    create_deck,
    create_group,
    create_tag,
    delete_card,
    delete_deck,
    delete_group,
    delete_group_type,
    delete_tag,
    ensure_built_in_group_types,
    find_cards_named_ci,
    find_tag_case_insensitive,
    get_card,
    get_cards_named,
    get_deck,
    get_group,
    get_group_by_name,
    get_group_type_by_name,
    get_or_create_tag,
    get_tag_by_name,
    list_cards,
    list_group_types,
    list_tags,
)

__all__ = [
    "TagNameConflictError",
    "add_deck_entry",
    "create_deck",
    "create_group",
    "create_tag",
    "delete_card",
    "delete_deck",
    "delete_group",
    "delete_group_type",
    "delete_tag",
    "ensure_built_in_group_types",
    "find_cards_named_ci",
    "find_tag_case_insensitive",
    "get_card",
    "get_cards_named",
    "get_deck",
    "get_group",
    "get_group_by_name",
    "get_group_type_by_name",
    "get_or_create_tag",
    "get_session",
    "get_tag_by_name",
    "init_db",
    "list_cards",
    "list_group_types",
    "list_tags",
    "session_scope",
]
