"""REST API for characters and their conversation history."""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlmodel import Session, select

from chaat.api.messages import serialize_message
from chaat.core.database import get_session
from chaat.models.chat import Character, ChatMessage
from chaat.models.payload import TextPayload
from chaat.services.chat.store import MessageStore, get_message_store

router = APIRouter()
logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 30
PREVIEW_LABELS = {
    "image": "[Image]",
    "sticker": "[Sticker]",
    "transfer": "[Transfer]",
    "location": "[Location]",
}


class CharacterCreate(BaseModel):
    name: str
    avatar_url: str = ""
    system_instruction: str = ""
    nickname_for_user: str | None = None
    auto_reply_delay: int = Field(default=0, ge=0)


class CharacterUpdate(BaseModel):
    name: str | None = None
    avatar_url: str | None = None
    system_instruction: str | None = None
    nickname_for_user: str | None = None
    auto_reply_delay: int | None = Field(default=None, ge=0)


def preview(message: ChatMessage | None) -> str:
    """One-line summary of a message for the conversation list."""
    if message is None:
        return "No messages yet."
    payload = message.content()
    if isinstance(payload, TextPayload):
        if len(payload.content) > PREVIEW_LENGTH:
            return f"{payload.content[:PREVIEW_LENGTH]}..."
        return payload.content
    return PREVIEW_LABELS.get(payload.type, "...")


def _serialize_character(character: Character) -> dict:
    return {
        "id": character.id,
        "name": character.name,
        "avatar_url": character.avatar_url,
        "system_instruction": character.system_instruction,
        "nickname_for_user": character.nickname_for_user,
        "auto_reply_delay": character.auto_reply_delay,
    }


@router.get("/")
async def list_characters(
    session: Session = Depends(get_session),
    store: MessageStore = Depends(get_message_store),
):
    characters = session.exec(select(Character).order_by(Character.name)).all()
    result = []
    for c in characters:
        latest = store.latest(c.id)
        result.append(
            {
                **_serialize_character(c),
                "last_message": preview(latest),
                "last_timestamp": latest.timestamp if latest else None,
            }
        )
    return result


@router.post("/")
async def create_character(body: CharacterCreate, session: Session = Depends(get_session)):
    character = Character(id=f"char_{uuid.uuid4().hex[:12]}", **body.model_dump())
    session.add(character)
    session.commit()
    session.refresh(character)
    return {"id": character.id, "status": "created"}


@router.get("/{character_id}")
async def get_character(character_id: str, session: Session = Depends(get_session)):
    character = session.get(Character, character_id)
    if not character:
        logger.debug(f"Character {character_id} not found")
        raise HTTPException(status_code=404, detail="Character not found")
    return _serialize_character(character)


@router.patch("/{character_id}")
async def update_character(
    character_id: str, body: CharacterUpdate, session: Session = Depends(get_session)
):
    character = session.get(Character, character_id)
    if not character:
        raise HTTPException(status_code=404, detail="Character not found")

    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(character, field, value)

    session.add(character)
    session.commit()
    return {"id": character.id, "status": "updated"}


@router.delete("/{character_id}")
async def delete_character(
    character_id: str,
    session: Session = Depends(get_session),
    store: MessageStore = Depends(get_message_store),
):
    character = session.get(Character, character_id)
    if not character:
        logger.debug(f"Delete: character {character_id} not found")
        raise HTTPException(status_code=404, detail="Character not found")

    # Delete messages first
    removed = store.delete_for_character(character_id)
    session.delete(character)
    session.commit()
    logger.debug(f"Deleted character {character_id} and {removed} message(s)")
    return {"status": "deleted"}


@router.get("/{character_id}/messages")
async def list_messages(
    character_id: str,
    session: Session = Depends(get_session),
    store: MessageStore = Depends(get_message_store),
):
    if not session.get(Character, character_id):
        raise HTTPException(status_code=404, detail="Character not found")
    return [serialize_message(m) for m in store.list_for_character(character_id)]
