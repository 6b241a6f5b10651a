"""
Card record normalization.

Turns a provider record, single- or multi-faced, into ResolvedCardData and
writes resolved data onto stored cards. Normalization itself is pure;
``apply_resolved_data`` is the only function that touches ORM objects.
"""

from collections.abc import Mapping, Sequence

from deckbox.models.card_record import CardFaceRecord, CardRecord
from deckbox.models.db import CardDB, CardFaceDB
from deckbox.models.resolved_card import ResolvedCardData, ResolvedFace

# First key present wins
IMAGE_SIZE_PREFERENCE = ("normal", "large", "png", "border_crop", "art_crop", "small")


def resolve_image_url(image_uris: Mapping[str, str] | None) -> str | None:
    """Pick the best available image URL from a provider image map."""
    if not image_uris:
        return None
    for size in IMAGE_SIZE_PREFERENCE:
        url = image_uris.get(size)
        if url:
            return url
    return None


def _resolve_face(face: CardFaceRecord, fallback_image: str | None) -> ResolvedFace:
    return ResolvedFace(
        name=face.name,
        image_url=resolve_image_url(face.image_uris) or fallback_image,
        mana_cost=face.mana_cost,
        type_line=face.type_line,
        oracle_text=face.oracle_text,
        flavor_text=face.flavor_text,
        power=face.power,
        toughness=face.toughness,
        loyalty=face.loyalty,
        artist=face.artist,
        colors=tuple(face.colors or ()),
    )


def normalize_record(record: CardRecord) -> ResolvedCardData:
    """
    Convert a provider record into canonical card data.

    Card image: the record's own image map, else the primary face's image.
    Face images: the face's own image map, else the card image.
    Display fields: taken from the primary face when faces exist, falling
    back to the record's top-level value for anything the face omits.
    """
    face_records = record.card_faces or []
    card_image = resolve_image_url(record.image_uris)
    if card_image is None and face_records:
        card_image = resolve_image_url(face_records[0].image_uris)

    faces = tuple(_resolve_face(face, card_image) for face in face_records)

    mana_cost = record.mana_cost
    type_line = record.type_line
    oracle_text = record.oracle_text
    flavor_text = record.flavor_text
    power = record.power
    toughness = record.toughness
    loyalty = record.loyalty
    artist = record.artist
    colors = tuple(record.colors or ())

    if face_records:
        primary = face_records[0]
        mana_cost = primary.mana_cost if primary.mana_cost is not None else mana_cost
        type_line = primary.type_line or type_line
        oracle_text = primary.oracle_text if primary.oracle_text is not None else oracle_text
        flavor_text = primary.flavor_text if primary.flavor_text is not None else flavor_text
        power = primary.power if primary.power is not None else power
        toughness = primary.toughness if primary.toughness is not None else toughness
        loyalty = primary.loyalty if primary.loyalty is not None else loyalty
        artist = primary.artist if primary.artist is not None else artist
        if primary.colors is not None:
            colors = tuple(primary.colors)

    return ResolvedCardData(
        name=record.name,
        set_code=record.set,
        set_name=record.set_name,
        collector_number=record.collector_number,
        image_url=card_image,
        mana_cost=mana_cost,
        cmc=record.cmc,
        type_line=type_line,
        oracle_text=oracle_text,
        flavor_text=flavor_text,
        power=power,
        toughness=toughness,
        loyalty=loyalty,
        rarity=record.rarity,
        is_reserved=record.reserved,
        artist=artist,
        layout=record.layout,
        colors=colors,
        color_identity=tuple(record.color_identity),
        keywords=tuple(record.keywords),
        legalities=dict(record.legalities),
        faces=faces,
    )


def _write_face(face: CardFaceDB, resolved: ResolvedFace) -> None:
    face.name = resolved.name
    face.image_url = resolved.image_url
    face.mana_cost = resolved.mana_cost
    face.type_line = resolved.type_line
    face.oracle_text = resolved.oracle_text
    face.flavor_text = resolved.flavor_text
    face.power = resolved.power
    face.toughness = resolved.toughness
    face.loyalty = resolved.loyalty
    face.artist = resolved.artist
    face.colors = list(resolved.colors)


def sync_faces(card: CardDB, faces: Sequence[ResolvedFace]) -> None:
    """
    Reconcile a card's stored faces with a freshly resolved face list.

    Faces are matched by position: shared positions are updated in place,
    stored faces past the end of the new list are deleted, and new faces
    past the end of the stored list are appended. Face ids survive refreshes.
    """
    stored = card.faces
    for index, resolved in enumerate(faces):
        if index < len(stored):
            _write_face(stored[index], resolved)
        else:
            face = CardFaceDB(name=resolved.name)
            _write_face(face, resolved)
            stored.append(face)

    # delete-orphan cascade removes the trailing rows on flush
    del stored[len(faces) :]


def apply_resolved_data(resolved: ResolvedCardData, card: CardDB) -> None:
    """Overwrite a card's descriptive fields and faces from resolved data."""
    card.name = resolved.name
    card.set_code = resolved.set_code
    card.set_name = resolved.set_name
    card.collector_number = resolved.collector_number
    card.image_url = resolved.image_url
    card.mana_cost = resolved.mana_cost
    card.cmc = resolved.cmc
    card.type_line = resolved.type_line
    card.oracle_text = resolved.oracle_text
    card.flavor_text = resolved.flavor_text
    card.power = resolved.power
    card.toughness = resolved.toughness
    card.loyalty = resolved.loyalty
    card.rarity = resolved.rarity
    card.is_reserved = resolved.is_reserved
    card.artist = resolved.artist
    card.layout = resolved.layout
    card.colors = list(resolved.colors)
    card.color_identity = list(resolved.color_identity)
    card.keywords = list(resolved.keywords)
    card.legalities = dict(resolved.legalities)

    sync_faces(card, resolved.faces)
