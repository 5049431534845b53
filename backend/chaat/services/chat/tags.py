"""Bracket-tag mini-language the model uses to send rich content.

The model splits a reply into separate bubbles with ``SEPARATOR`` and may make a
bubble rich by replying with exactly one tag:

    [sticker:NAME]
    [transfer:AMOUNT:NOTES]     (NOTES optional)
    [image:DESCRIPTION]
    [location:NAME]

A tag only counts when it is the whole bubble. The same keywords are quoted in
the system instruction, so both sides of the contract come from this module.
"""

import re

from chaat.models.payload import (
    ImagePayload,
    LocationPayload,
    Payload,
    StickerPayload,
    TextPayload,
    TransferPayload,
)
from chaat.services.chat.stickers import StickerSet

SEPARATOR = "|||"

STICKER = "sticker"
TRANSFER = "transfer"
IMAGE = "image"
LOCATION = "location"

STICKER_PATTERN = re.compile(r"\[sticker:([^\]]*?)\]")
TRANSFER_PATTERN = re.compile(r"\[transfer:([^:\]]*?)(?::([^\]]*?))?\]")
IMAGE_PATTERN = re.compile(r"\[image:([^\]]*?)\]")
LOCATION_PATTERN = re.compile(r"\[location:([^\]]*?)\]")


def format_tag(keyword: str, *fields: str) -> str:
    return "[" + ":".join([keyword, *fields]) + "]"


def format_amount(amount: float) -> str:
    """Shortest text that parses back to the same float."""
    if amount.is_integer():
        return str(int(amount))
    return repr(amount)


def encode_as_tag(payload: Payload, stickers: StickerSet | None = None) -> str:
    """Render a payload the way the model would write it.

    Text payloads come back as their content. Sticker ids are turned back into
    names through ``stickers`` when it knows them.
    """
    if isinstance(payload, StickerPayload):
        name = stickers.name_for(payload.sticker_id) if stickers else None
        return format_tag(STICKER, name or payload.sticker_id)
    if isinstance(payload, TransferPayload):
        if payload.notes:
            return format_tag(TRANSFER, format_amount(payload.amount), payload.notes)
        return format_tag(TRANSFER, format_amount(payload.amount))
    if isinstance(payload, ImagePayload):
        return format_tag(IMAGE, payload.description)
    if isinstance(payload, LocationPayload):
        return format_tag(LOCATION, payload.name)
    if isinstance(payload, TextPayload):
        return payload.content
    raise TypeError(f"Unknown payload type: {type(payload).__name__}")
