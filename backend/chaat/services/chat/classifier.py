"""Turn one complete bubble of model output into a typed payload."""

import math
from collections.abc import Iterable
from typing import Union

from chaat.models.payload import (
    ImagePayload,
    LocationPayload,
    Payload,
    StickerPayload,
    TextPayload,
    TransferPayload,
)
from chaat.services.chat.stickers import StickerSet
from chaat.services.chat.tags import (
    IMAGE_PATTERN,
    LOCATION_PATTERN,
    STICKER_PATTERN,
    TRANSFER_PATTERN,
)


def _parse_amount(text: str) -> float | None:
    try:
        amount = float(text.strip())
    except ValueError:
        return None
    if not math.isfinite(amount):
        return None
    return amount


def classify(segment: str, stickers: Union[StickerSet, Iterable[str], None] = ()) -> Payload:
    """Classify a delimiter-free segment. Never raises.

    The segment must *be* a tag to become a rich payload; a tag surrounded by
    other text stays plain text. Anything that does not parse, including an
    unknown sticker name or a non-numeric transfer amount, falls back to a text
    payload holding the trimmed segment.
    """
    text = segment.strip()

    match = TRANSFER_PATTERN.fullmatch(text)
    if match:
        amount = _parse_amount(match.group(1))
        if amount is not None:
            notes = (match.group(2) or "").strip() or None
            return TransferPayload(amount=amount, notes=notes)
        return TextPayload(content=text)

    match = STICKER_PATTERN.fullmatch(text)
    if match:
        sticker_id = StickerSet.coerce(stickers).id_for(match.group(1).strip())
        if sticker_id is not None:
            return StickerPayload(sticker_id=sticker_id)
        return TextPayload(content=text)

    match = IMAGE_PATTERN.fullmatch(text)
    if match:
        return ImagePayload(description=match.group(1).strip())

    match = LOCATION_PATTERN.fullmatch(text)
    if match:
        return LocationPayload(name=match.group(1).strip())

    return TextPayload(content=text)
