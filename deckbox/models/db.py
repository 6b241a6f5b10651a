"""
SQLAlchemy ORM models for the card library.

Cards are the owned entities; faces, tag links, group memberships and deck
entries all hang off them. Relationships load with ``selectin`` so entities
returned from a query can be walked without further IO.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


card_tags = Table(
    "card_tags",
    Base.metadata,
    Column("card_id", ForeignKey("cards.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class CardDB(Base):
    """
    A card owned by the user.

    Names are not unique: repeated additions can create duplicate rows,
    which the library merger collapses into a single primary card.
    """

    __tablename__ = "cards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    game: Mapped[str] = mapped_column(String(32), default="MTG")
    name: Mapped[str] = mapped_column(String(255), index=True)
    set_code: Mapped[str | None] = mapped_column(String(16), nullable=True)
    set_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    collector_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    mana_cost: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cmc: Mapped[float] = mapped_column(Float, default=0.0)
    type_line: Mapped[str] = mapped_column(String(255), default="")
    oracle_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    flavor_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Not always numeric ("*", "1+*", "X")
    power: Mapped[str | None] = mapped_column(String(16), nullable=True)
    toughness: Mapped[str | None] = mapped_column(String(16), nullable=True)
    loyalty: Mapped[str | None] = mapped_column(String(16), nullable=True)

    rarity: Mapped[str] = mapped_column(String(32), default="")
    is_reserved: Mapped[bool] = mapped_column(Boolean, default=False)
    artist: Mapped[str | None] = mapped_column(String(255), nullable=True)
    color_identity: Mapped[list[str]] = mapped_column(JSON, default=list)
    colors: Mapped[list[str]] = mapped_column(JSON, default=list)
    keywords: Mapped[list[str]] = mapped_column(JSON, default=list)
    legalities: Mapped[dict[str, str]] = mapped_column(JSON, default=dict)
    layout: Mapped[str] = mapped_column(String(64), default="normal")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    faces: Mapped[list["CardFaceDB"]] = relationship(
        back_populates="card",
        cascade="all, delete-orphan",
        order_by="CardFaceDB.position",
        collection_class=ordering_list("position"),
        lazy="selectin",
    )
    tags: Mapped[list["TagDB"]] = relationship(
        secondary=card_tags, back_populates="cards", lazy="selectin"
    )
    memberships: Mapped[list["GroupMembershipDB"]] = relationship(
        back_populates="card", cascade="all, delete-orphan", lazy="selectin"
    )
    deck_entries: Mapped[list["DeckEntryDB"]] = relationship(
        back_populates="card", cascade="all, delete-orphan", lazy="selectin"
    )

    @classmethod
    def new(cls, **fields: Any) -> "CardDB":
        """
        Build a transient card with empty, already-loaded relationship lists.

        Async sessions cannot lazy load, so collections must exist in the
        instance state before the card is flushed.
        """
        now = utcnow()
        fields.setdefault("quantity", 1)
        fields.setdefault("created_at", now)
        fields.setdefault("last_updated", now)
        return cls(faces=[], tags=[], memberships=[], deck_entries=[], **fields)

    @property
    def groups(self) -> list["CardGroupDB"]:
        """Groups this card belongs to."""
        return [membership.group for membership in self.memberships]

    def __repr__(self) -> str:
        return f"<CardDB(id={self.id}, name={self.name}, qty={self.quantity})>"


class CardFaceDB(Base):
    """One printed face of a multi-faced card, ordered by position."""

    __tablename__ = "card_faces"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    card_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cards.id", ondelete="CASCADE"), index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)

    name: Mapped[str] = mapped_column(String(255))
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    mana_cost: Mapped[str | None] = mapped_column(String(255), nullable=True)
    type_line: Mapped[str] = mapped_column(String(255), default="")
    oracle_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    flavor_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    power: Mapped[str | None] = mapped_column(String(16), nullable=True)
    toughness: Mapped[str | None] = mapped_column(String(16), nullable=True)
    loyalty: Mapped[str | None] = mapped_column(String(16), nullable=True)
    artist: Mapped[str | None] = mapped_column(String(255), nullable=True)
    colors: Mapped[list[str]] = mapped_column(JSON, default=list)

    card: Mapped["CardDB"] = relationship(back_populates="faces")

    def __repr__(self) -> str:
        return f"<CardFaceDB(card_id={self.card_id}, position={self.position}, name={self.name})>"


class TagDB(Base):
    """
    A label attached to cards.

    Names are unique (case-sensitive). A missing category means the tag is
    uncategorized. Deleting a tag only removes its card links.
    """

    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    color: Mapped[str] = mapped_column(String(32), default="mtgBlue")
    category: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    cards: Mapped[list["CardDB"]] = relationship(secondary=card_tags, back_populates="tags")

    def __repr__(self) -> str:
        return f"<TagDB(name={self.name}, category={self.category})>"


class GroupTypeDB(Base):
    """A kind of group (e.g. "Decks", "Cubes"). Deleting a type deletes its groups."""

    __tablename__ = "group_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True)
    icon_name: Mapped[str] = mapped_column(String(64), default="")
    is_built_in: Mapped[bool] = mapped_column(Boolean, default=False)
    metadata_: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, default=dict)

    groups: Mapped[list["CardGroupDB"]] = relationship(
        back_populates="group_type", cascade="all, delete-orphan", lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<GroupTypeDB(name={self.name})>"


class CardGroupDB(Base):
    """
    A named subset of the library (deck, cube, ...) with per-card quantities.

    Membership rows are the group's card set; each row's quantity is the
    quantity-in-group and never exceeds the owned quantity when written.
    """

    __tablename__ = "card_groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255))
    group_type_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("group_types.id", ondelete="CASCADE"), index=True
    )
    deck_format: Mapped[str | None] = mapped_column(String(32), nullable=True)

    group_type: Mapped["GroupTypeDB"] = relationship(back_populates="groups", lazy="selectin")
    memberships: Mapped[list["GroupMembershipDB"]] = relationship(
        back_populates="group", cascade="all, delete-orphan", lazy="selectin"
    )

    @property
    def cards(self) -> list["CardDB"]:
        """Cards that are members of this group."""
        return [membership.card for membership in self.memberships]

    @property
    def card_quantities(self) -> dict[int, int]:
        """Map of card id to quantity-in-group."""
        return {membership.card_id: membership.quantity for membership in self.memberships}

    def __repr__(self) -> str:
        return f"<CardGroupDB(id={self.id}, name={self.name})>"


class GroupMembershipDB(Base):
    """Quantity of one card inside one group."""

    __tablename__ = "group_memberships"
    __table_args__ = (UniqueConstraint("group_id", "card_id", name="uq_group_card"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("card_groups.id", ondelete="CASCADE"), index=True
    )
    card_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cards.id", ondelete="CASCADE"), index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, default=1)

    group: Mapped["CardGroupDB"] = relationship(back_populates="memberships", lazy="selectin")
    card: Mapped["CardDB"] = relationship(back_populates="memberships", lazy="selectin")

    def __repr__(self) -> str:
        return (
            f"<GroupMembershipDB(group_id={self.group_id}, card_id={self.card_id}, "
            f"qty={self.quantity})>"
        )


class DeckDB(Base):
    """A format-validated card list, separate from groups."""

    __tablename__ = "decks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    format: Mapped[str] = mapped_column(String(32), default="standard")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    entries: Mapped[list["DeckEntryDB"]] = relationship(
        back_populates="deck", cascade="all, delete-orphan", lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<DeckDB(id={self.id}, name={self.name}, format={self.format})>"


class DeckEntryDB(Base):
    """One line of a deck: a card, how many, which board, and commander flag."""

    __tablename__ = "deck_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    deck_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("decks.id", ondelete="CASCADE"), index=True
    )
    card_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cards.id", ondelete="CASCADE"), index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    board: Mapped[str] = mapped_column(String(8), default="main")
    is_commander: Mapped[bool] = mapped_column(Boolean, default=False)

    deck: Mapped["DeckDB"] = relationship(back_populates="entries", lazy="selectin")
    card: Mapped["CardDB"] = relationship(back_populates="deck_entries", lazy="selectin")

    def __repr__(self) -> str:
        return (
            f"<DeckEntryDB(card_id={self.card_id}, qty={self.quantity}, board={self.board})>"
        )
