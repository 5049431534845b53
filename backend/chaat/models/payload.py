"""Typed message payloads. A stored message carries exactly one of these."""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class TextPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    content: str


class StickerPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["sticker"] = "sticker"
    sticker_id: str


class TransferPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["transfer"] = "transfer"
    amount: float
    notes: Optional[str] = None


class ImagePayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["image"] = "image"
    description: str


class LocationPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["location"] = "location"
    name: str


Payload = Annotated[
    Union[TextPayload, StickerPayload, TransferPayload, ImagePayload, LocationPayload],
    Field(discriminator="type"),
]

payload_adapter: TypeAdapter[Payload] = TypeAdapter(Payload)


def is_blank(payload: Payload) -> bool:
    """True for a text payload with nothing but whitespace in it."""
    return isinstance(payload, TextPayload) and not payload.content.strip()
