"""Replay stored messages as a plain role/text transcript for the model."""

from collections.abc import Iterable
from dataclasses import dataclass

from chaat.models.chat import ChatMessage
from chaat.models.payload import (
    ImagePayload,
    LocationPayload,
    Payload,
    StickerPayload,
    TextPayload,
    TransferPayload,
)
from chaat.services.chat.stickers import StickerSet

USER_ROLE = "user"
MODEL_ROLE = "model"
USER_NAME = "User"


@dataclass(frozen=True)
class Turn:
    role: str  # "user" | "model"
    text: str


def describe_payload(
    payload: Payload,
    role: str,
    character_name: str,
    stickers: StickerSet | None = None,
    user_name: str = USER_NAME,
) -> str:
    """Text the model sees in place of a payload it cannot look at."""
    speaker = user_name if role == USER_ROLE else character_name

    if isinstance(payload, TextPayload):
        return payload.content
    if isinstance(payload, StickerPayload):
        name = stickers.name_for(payload.sticker_id) if stickers else None
        return f"[{speaker} sent a sticker: {name or 'sticker'}]"
    if isinstance(payload, TransferPayload):
        direction = "sent you a transfer" if role == USER_ROLE else "received a transfer"
        return f"[{speaker} {direction} of ¥{payload.amount:.2f}]"
    if isinstance(payload, ImagePayload):
        return f"[{speaker} sent an image: {payload.description}]"
    if isinstance(payload, LocationPayload):
        return f"[{speaker} sent a location: {payload.name}]"
    raise TypeError(f"Unknown payload type: {type(payload).__name__}")


def encode_history(
    messages: Iterable[ChatMessage],
    character_name: str,
    stickers: StickerSet | None = None,
    user_name: str = USER_NAME,
) -> list[Turn]:
    """Encode messages in order, dropping any that come out blank."""
    turns = []
    for message in messages:
        role = USER_ROLE if message.role == USER_ROLE else MODEL_ROLE
        text = describe_payload(message.content(), role, character_name, stickers, user_name)
        if text.strip():
            turns.append(Turn(role=role, text=text))
    return turns
