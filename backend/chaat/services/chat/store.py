"""Message persistence. Each method is a single session and commit."""

import logging
import secrets
import time
from collections.abc import Sequence

from sqlalchemy import Engine
from sqlmodel import Session, col, func, select

from chaat.models.chat import ChatMessage
from chaat.models.payload import Payload, TextPayload

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


def new_message_id(timestamp: int) -> str:
    """Ids sort by creation time; the random suffix keeps them unique."""
    return f"msg_{timestamp:013d}_{secrets.token_hex(4)}"


class MessageNotFoundError(LookupError):
    pass


class NotEditableError(ValueError):
    pass


class MessageStore:
    def __init__(self, engine: Engine):
        self.engine = engine

    def list_for_character(self, character_id: str) -> list[ChatMessage]:
        with Session(self.engine) as session:
            return list(
                session.exec(
                    select(ChatMessage)
                    .where(ChatMessage.character_id == character_id)
                    .order_by(col(ChatMessage.timestamp), col(ChatMessage.id))
                ).all()
            )

    def get(self, message_id: str) -> ChatMessage | None:
        with Session(self.engine) as session:
            return session.get(ChatMessage, message_id)

    def latest(self, character_id: str) -> ChatMessage | None:
        with Session(self.engine) as session:
            return session.exec(
                select(ChatMessage)
                .where(ChatMessage.character_id == character_id)
                .order_by(col(ChatMessage.timestamp).desc(), col(ChatMessage.id).desc())
            ).first()

    def next_timestamp(self, character_id: str, now: int | None = None) -> int:
        """A timestamp later than every message already in the conversation."""
        now = now_ms() if now is None else now
        with Session(self.engine) as session:
            latest = session.exec(
                select(func.max(ChatMessage.timestamp)).where(
                    ChatMessage.character_id == character_id
                )
            ).one()
        if latest is None:
            return now
        return max(now, latest + 1)

    def add(self, message: ChatMessage) -> ChatMessage:
        with Session(self.engine) as session:
            session.add(message)
            session.commit()
            session.refresh(message)
            return message

    def replace(self, message_id: str, batch: Sequence[ChatMessage]) -> list[ChatMessage]:
        """Swap one message for an ordered batch in a single transaction.

        An empty batch simply removes the message.
        """
        with Session(self.engine) as session:
            old = session.get(ChatMessage, message_id)
            if old is not None:
                session.delete(old)
            for message in batch:
                session.add(message)
            session.commit()
            for message in batch:
                session.refresh(message)
        logger.debug(f"Replaced {message_id} with {len(batch)} message(s)")
        return list(batch)

    def delete(self, message_id: str) -> bool:
        with Session(self.engine) as session:
            message = session.get(ChatMessage, message_id)
            if message is None:
                return False
            session.delete(message)
            session.commit()
            return True

    def delete_for_character(self, character_id: str) -> int:
        with Session(self.engine) as session:
            messages = session.exec(
                select(ChatMessage).where(ChatMessage.character_id == character_id)
            ).all()
            for message in messages:
                session.delete(message)
            session.commit()
            return len(messages)

    def set_payload(self, message_id: str, payload: Payload) -> ChatMessage:
        """Overwrite a message's payload, keeping its id, role and timestamp."""
        with Session(self.engine) as session:
            message = session.get(ChatMessage, message_id)
            if message is None:
                raise MessageNotFoundError(message_id)
            message.payload = payload.model_dump()
            session.add(message)
            session.commit()
            session.refresh(message)
            return message

    def edit_text(self, message_id: str, content: str) -> ChatMessage:
        """Rewrite a text message's content and mark it edited."""
        with Session(self.engine) as session:
            message = session.get(ChatMessage, message_id)
            if message is None:
                raise MessageNotFoundError(message_id)
            if not isinstance(message.content(), TextPayload):
                raise NotEditableError("Only text messages can be edited")
            message.payload = TextPayload(content=content).model_dump()
            message.edited = True
            session.add(message)
            session.commit()
            session.refresh(message)
            return message


def get_message_store() -> MessageStore:
    from chaat.core import database

    return MessageStore(database.engine)
