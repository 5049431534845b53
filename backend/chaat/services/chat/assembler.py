"""One conversational turn: stream the model reply, split it, classify it, persist it."""

import asyncio
import logging
from collections.abc import Callable, Iterable
from typing import AsyncIterator, Union

from chaat.core.config import settings
from chaat.models.chat import Character, ChatMessage
from chaat.models.payload import TextPayload, is_blank
from chaat.services.chat.classifier import classify
from chaat.services.chat.errors import describe_error
from chaat.services.chat.history import MODEL_ROLE, USER_ROLE, Turn, encode_history
from chaat.services.chat.listener import TurnListener
from chaat.services.chat.prompts import build_system_instruction
from chaat.services.chat.segmenter import iter_segments
from chaat.services.chat.stickers import StickerSet
from chaat.services.chat.store import MessageStore, new_message_id, now_ms
from chaat.services.llm.base import BaseLLMProvider, ModelRequest

logger = logging.getLogger(__name__)


class ModelStreamError(Exception):
    """A fault raised by the provider while the reply was streaming."""

    def __init__(self, error: Exception):
        super().__init__(str(error))
        self.error = error


class MessageAssembler:
    """Drives a single turn for one character.

    Segments are held in memory until the stream ends and are then written as
    one batch that replaces the pending placeholder. If the stream fails, the
    buffered segments are dropped and the placeholder turns into a single
    error message. Callers must not run two turns for the same character at
    once (see ``TurnGuard``).
    """

    def __init__(
        self,
        store: MessageStore,
        provider: BaseLLMProvider,
        listener: TurnListener | None = None,
        clock: Callable[[], int] | None = None,
        separator: str | None = None,
    ):
        self.store = store
        self.provider = provider
        self.listener = listener or TurnListener()
        self.clock = clock or now_ms
        self.separator = separator or settings.message_separator

    def build_request(
        self, character: Character, stickers: StickerSet, prompt: str | None = None
    ) -> ModelRequest:
        history = encode_history(
            self.store.list_for_character(character.id),
            character.name,
            stickers,
            user_name=settings.user_name,
        )
        if prompt:
            history.append(Turn(role=USER_ROLE, text=prompt))
        return ModelRequest(
            model=settings.gemini_model,
            temperature=settings.temperature,
            system_instruction=build_system_instruction(
                character, stickers, settings.user_name, self.separator
            ),
            history=history,
        )

    async def run_turn(
        self,
        character: Character,
        stickers: Union[StickerSet, Iterable[str], None] = None,
        *,
        prompt: str | None = None,
        report_errors: bool = True,
    ) -> list[ChatMessage]:
        """Run the turn and return the messages it left in the store.

        ``prompt`` is sent as an extra trailing user turn without being
        persisted. With ``report_errors=False`` a failed turn leaves nothing
        behind instead of an error bubble.
        """
        stickers = StickerSet.coerce(stickers)
        request = self.build_request(character, stickers, prompt)

        timestamp = self.store.next_timestamp(character.id, self.clock())
        placeholder = self.store.add(
            ChatMessage.build(
                id=new_message_id(timestamp),
                character_id=character.id,
                role=MODEL_ROLE,
                payload=TextPayload(content=""),
                timestamp=timestamp,
            )
        )
        logger.info(f"Turn started for {character.id} ({len(request.history)} turns of context)")

        try:
            await self.listener.placeholder(placeholder)
            chunks = self._stream(request, placeholder)
            segments = [s async for s in iter_segments(chunks, self.separator)]
        except ModelStreamError as e:
            logger.error(f"Turn for {character.id} failed: {e.error}")
            return await self._fail(placeholder, e.error, report_errors)
        except asyncio.CancelledError:
            logger.info(f"Turn for {character.id} cancelled, dropping placeholder")
            self.store.delete(placeholder.id)
            raise
        except Exception as e:
            # Raised by the listener, not the model; no error bubble
            logger.warning(f"Turn for {character.id} aborted by listener: {e}")
            self.store.delete(placeholder.id)
            raise

        return await self._finalize(character.id, placeholder, segments, stickers)

    async def _stream(self, request: ModelRequest, placeholder: ChatMessage) -> AsyncIterator[str]:
        """Provider chunks, with provider faults wrapped in ``ModelStreamError``.

        The listener hears ``started`` once, on the first chunk.
        """
        chunks = self.provider.generate_stream(request).__aiter__()
        started = False
        while True:
            try:
                chunk = await chunks.__anext__()
            except StopAsyncIteration:
                return
            except Exception as e:
                raise ModelStreamError(e) from e
            if not started:
                started = True
                await self.listener.started(placeholder)
            yield chunk

    async def _finalize(
        self,
        character_id: str,
        placeholder: ChatMessage,
        segments: list[str],
        stickers: StickerSet,
    ) -> list[ChatMessage]:
        payloads = [p for p in (classify(s, stickers) for s in segments) if not is_blank(p)]
        if not payloads:
            logger.info(f"Empty reply for {character_id}, dropping placeholder")
            self.store.delete(placeholder.id)
            await self.listener.discarded(placeholder.id)
            return []

        base = self.store.next_timestamp(character_id, self.clock())
        batch = [
            ChatMessage.build(
                id=new_message_id(base + index),
                character_id=character_id,
                role=MODEL_ROLE,
                payload=payload,
                timestamp=base + index,
            )
            for index, payload in enumerate(payloads)
        ]
        self.store.replace(placeholder.id, batch)
        await self.listener.finalized(placeholder.id, batch)
        logger.info(f"Turn for {character_id} finished with {len(batch)} message(s)")
        return batch

    async def _fail(
        self, placeholder: ChatMessage, error: Exception, report_errors: bool
    ) -> list[ChatMessage]:
        if not report_errors:
            self.store.delete(placeholder.id)
            await self.listener.discarded(placeholder.id)
            return []

        message = self.store.set_payload(placeholder.id, TextPayload(content=describe_error(error)))
        await self.listener.failed(placeholder.id, message)
        return [message]
