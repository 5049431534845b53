"""WebSocket chat: one user message in, one streamed and split model turn out.

Server events (JSON):
    {"type": "user", "message": {...}}                 user message persisted
    {"type": "placeholder", "message": {...}}          pending bubble shown
    {"type": "started", "id": "..."}                   first chunk arrived
    {"type": "final", "placeholder_id": "...", "messages": [...]}
    {"type": "failed", "placeholder_id": "...", "message": {...}}
    {"type": "discarded", "placeholder_id": "..."}
    {"type": "busy"}                                   a turn is already running
    {"type": "error", "detail": "..."}                 request rejected, no turn
    {"type": "end"}
"""

import asyncio
import json
import logging
from collections.abc import Sequence

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from sqlmodel import Session, select

from chaat.api.messages import serialize_message
from chaat.core.database import engine
from chaat.models.chat import Character, ChatMessage, CustomSticker
from chaat.models.payload import Payload, TextPayload, is_blank, payload_adapter
from chaat.services.chat.assembler import MessageAssembler
from chaat.services.chat.errors import ConfigurationError, TurnInProgressError, describe_error
from chaat.services.chat.history import USER_ROLE
from chaat.services.chat.listener import TurnListener
from chaat.services.chat.stickers import StickerSet
from chaat.services.chat.store import MessageStore, get_message_store, new_message_id
from chaat.services.chat.turns import turn_guard
from chaat.services.llm import get_llm_provider

router = APIRouter()
logger = logging.getLogger(__name__)


class WebSocketTurnListener(TurnListener):
    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    async def placeholder(self, message: ChatMessage) -> None:
        await self.websocket.send_json({"type": "placeholder", "message": serialize_message(message)})

    async def started(self, message: ChatMessage) -> None:
        await self.websocket.send_json({"type": "started", "id": message.id})

    async def finalized(self, placeholder_id: str, batch: Sequence[ChatMessage]) -> None:
        await self.websocket.send_json({
            "type": "final",
            "placeholder_id": placeholder_id,
            "messages": [serialize_message(m) for m in batch],
        })

    async def failed(self, placeholder_id: str, message: ChatMessage) -> None:
        await self.websocket.send_json({
            "type": "failed",
            "placeholder_id": placeholder_id,
            "message": serialize_message(message),
        })

    async def discarded(self, placeholder_id: str) -> None:
        await self.websocket.send_json({"type": "discarded", "placeholder_id": placeholder_id})


@router.websocket("/ws/{character_id}")
async def chat_websocket(websocket: WebSocket, character_id: str):
    await websocket.accept()
    store = get_message_store()

    try:
        while True:
            raw = await websocket.receive_text()

            try:
                payload = _parse_payload(raw)
            except (ValidationError, ValueError) as e:
                logger.debug(f"Rejected payload: {e}")
                await websocket.send_json({"type": "error", "detail": "Invalid message payload"})
                continue
            if is_blank(payload):
                await websocket.send_json({"type": "error", "detail": "Message is empty"})
                continue

            character, stickers = _load_context(character_id)
            if character is None:
                await websocket.send_json({"type": "error", "detail": "Character not found"})
                continue

            # Without a key no turn is started and nothing is persisted
            try:
                provider = get_llm_provider()
            except ConfigurationError as e:
                await websocket.send_json({"type": "error", "detail": describe_error(e)})
                continue

            try:
                with turn_guard.hold(character_id):
                    user_message = _save_user_message(store, character_id, payload)
                    await websocket.send_json(
                        {"type": "user", "message": serialize_message(user_message)}
                    )
                    assembler = MessageAssembler(
                        store, provider, listener=WebSocketTurnListener(websocket)
                    )
                    await _run_until_disconnect(
                        websocket, assembler.run_turn(character, stickers)
                    )
            except TurnInProgressError:
                await websocket.send_json({"type": "busy"})
                continue

            await websocket.send_json({"type": "end"})

    except WebSocketDisconnect:
        pass


async def _run_until_disconnect(websocket: WebSocket, turn_coro) -> None:
    """Run a turn while watching the socket; a disconnect cancels the turn.

    Messages that arrive while the turn is streaming are answered with a
    ``busy`` event and otherwise ignored.
    """
    turn = asyncio.create_task(turn_coro)
    try:
        while not turn.done():
            receiver = asyncio.create_task(websocket.receive_text())
            done, _ = await asyncio.wait({turn, receiver}, return_when=asyncio.FIRST_COMPLETED)
            if receiver not in done:
                receiver.cancel()
                break
            receiver.result()  # raises WebSocketDisconnect
            await websocket.send_json({"type": "busy"})
    except (WebSocketDisconnect, asyncio.CancelledError):
        logger.info("Client disconnected mid-turn, cancelling")
        turn.cancel()
        try:
            await turn
        except asyncio.CancelledError:
            pass
        raise
    await turn


def _parse_payload(raw: str) -> Payload:
    """Accept a payload object, ``{"content": ...}`` or bare text."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return TextPayload(content=raw)

    if isinstance(data, dict):
        if "type" in data:
            return payload_adapter.validate_python(data)
        if "content" in data:
            return TextPayload(content=str(data["content"]))
        raise ValueError("Expected a payload object")
    return TextPayload(content=raw)


def _load_context(character_id: str) -> tuple[Character | None, StickerSet]:
    with Session(engine) as session:
        character = session.get(Character, character_id)
        stickers = StickerSet.from_stickers(session.exec(select(CustomSticker)).all())
        return character, stickers


def _save_user_message(store: MessageStore, character_id: str, payload: Payload) -> ChatMessage:
    timestamp = store.next_timestamp(character_id)
    return store.add(
        ChatMessage.build(
            id=new_message_id(timestamp),
            character_id=character_id,
            role=USER_ROLE,
            payload=payload,
            timestamp=timestamp,
        )
    )
