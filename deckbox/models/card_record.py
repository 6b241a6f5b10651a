"""
Provider records: the card JSON returned by Scryfall's /cards/named endpoint.

Only the fields the library stores are modelled; everything else in the
payload is ignored. Image maps are kept as plain strings so any size key
the provider adds later still round-trips.
"""

from pydantic import BaseModel, ConfigDict, Field


class CardFaceRecord(BaseModel):
    """One entry of a record's ``card_faces`` list."""

    model_config = ConfigDict(extra="ignore")

    name: str
    image_uris: dict[str, str] | None = None
    mana_cost: str | None = None
    type_line: str = ""
    oracle_text: str | None = None
    flavor_text: str | None = None
    power: str | None = None
    toughness: str | None = None
    loyalty: str | None = None
    artist: str | None = None
    colors: list[str] | None = None


class CardRecord(BaseModel):
    """A full provider card record, possibly multi-faced."""

    model_config = ConfigDict(extra="ignore")

    name: str
    set: str
    collector_number: str
    image_uris: dict[str, str] | None = None
    mana_cost: str | None = None
    cmc: float = 0.0
    type_line: str = ""
    oracle_text: str | None = None
    flavor_text: str | None = None
    power: str | None = None
    toughness: str | None = None
    loyalty: str | None = None
    rarity: str = ""
    set_name: str = ""
    reserved: bool = False
    artist: str | None = None
    color_identity: list[str] = Field(default_factory=list)
    colors: list[str] | None = None
    keywords: list[str] = Field(default_factory=list)
    legalities: dict[str, str] = Field(default_factory=dict)
    card_faces: list[CardFaceRecord] | None = None
    layout: str = "normal"
