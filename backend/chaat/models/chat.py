"""Characters, stickers and chat message models for conversation persistence."""

from typing import Any, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from chaat.models.payload import Payload, payload_adapter


class Character(SQLModel, table=True):
    id: str = Field(primary_key=True)
    name: str
    avatar_url: str = Field(default="")
    system_instruction: str = Field(default="")
    nickname_for_user: Optional[str] = None
    auto_reply_delay: int = Field(default=0)  # minutes, 0 disables


class CustomSticker(SQLModel, table=True):
    id: str = Field(primary_key=True)
    name: str = Field(index=True)
    image_url: str = Field(default="")


class ChatMessage(SQLModel, table=True):
    id: str = Field(primary_key=True)
    character_id: str = Field(index=True)
    role: str  # "user" | "model"
    payload: dict[str, Any] = Field(sa_column=Column(JSON, nullable=False))
    timestamp: int = Field(index=True)  # epoch milliseconds
    edited: bool = Field(default=False)

    @classmethod
    def build(
        cls,
        id: str,
        character_id: str,
        role: str,
        payload: Payload,
        timestamp: int,
        edited: bool = False,
    ) -> "ChatMessage":
        return cls(
            id=id,
            character_id=character_id,
            role=role,
            payload=payload.model_dump(),
            timestamp=timestamp,
            edited=edited,
        )

    def content(self) -> Payload:
        """The stored payload as its typed variant."""
        return payload_adapter.validate_python(self.payload)
