"""REST API for editing and deleting individual chat messages."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from chaat.models.chat import ChatMessage
from chaat.services.chat.store import (
    MessageNotFoundError,
    MessageStore,
    NotEditableError,
    get_message_store,
)

router = APIRouter()
logger = logging.getLogger(__name__)


class MessageEdit(BaseModel):
    content: str


def serialize_message(message: ChatMessage) -> dict:
    return {
        "id": message.id,
        "character_id": message.character_id,
        "role": message.role,
        "payload": message.payload,
        "timestamp": message.timestamp,
        "edited": message.edited,
    }


@router.patch("/{message_id}")
async def edit_message(
    message_id: str, body: MessageEdit, store: MessageStore = Depends(get_message_store)
):
    try:
        message = store.edit_text(message_id, body.content)
    except MessageNotFoundError:
        raise HTTPException(status_code=404, detail="Message not found")
    except NotEditableError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return serialize_message(message)


@router.delete("/{message_id}")
async def delete_message(message_id: str, store: MessageStore = Depends(get_message_store)):
    if not store.delete(message_id):
        logger.debug(f"Delete: message {message_id} not found")
        raise HTTPException(status_code=404, detail="Message not found")
    return {"status": "deleted"}
