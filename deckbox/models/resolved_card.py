from dataclasses import dataclass, field


@dataclass(frozen=True)
class ResolvedFace:
    """
    A face after image resolution, ready to be stored as a CardFaceDB.

    Attributes:
        name: Face name (e.g. "Delver of Secrets")
        image_url: Best available image, or the card-level image as fallback
    """

    name: str
    image_url: str | None = None
    mana_cost: str | None = None
    type_line: str = ""
    oracle_text: str | None = None
    flavor_text: str | None = None
    power: str | None = None
    toughness: str | None = None
    loyalty: str | None = None
    artist: str | None = None
    colors: tuple[str, ...] = ()


@dataclass(frozen=True)
class ResolvedCardData:
    """
    Canonical card data derived from a provider record.

    Display fields (mana cost through colors) come from the primary face
    when the record is multi-faced, so consumers can read them off the card
    without looking at faces.
    """

    name: str
    set_code: str
    set_name: str
    collector_number: str
    image_url: str | None
    mana_cost: str | None
    cmc: float
    type_line: str
    oracle_text: str | None
    flavor_text: str | None
    power: str | None
    toughness: str | None
    loyalty: str | None
    rarity: str
    is_reserved: bool
    artist: str | None
    layout: str
    colors: tuple[str, ...] = ()
    color_identity: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    legalities: dict[str, str] = field(default_factory=dict)
    faces: tuple[ResolvedFace, ...] = ()
