"""Background loop that nudges idle conversations with an in-character follow-up."""

import asyncio
import logging

from sqlmodel import Session, select

from chaat.core.config import settings
from chaat.core.database import engine
from chaat.models.chat import Character, CustomSticker
from chaat.services.chat.assembler import MessageAssembler
from chaat.services.chat.errors import ConfigurationError, TurnInProgressError
from chaat.services.chat.history import MODEL_ROLE
from chaat.services.chat.prompts import AUTO_REPLY_PROMPT
from chaat.services.chat.stickers import StickerSet
from chaat.services.chat.store import MessageStore, now_ms
from chaat.services.chat.turns import TurnGuard, turn_guard
from chaat.services.llm import get_llm_provider

logger = logging.getLogger(__name__)


def find_idle_characters(store: MessageStore, characters: list[Character], now: int) -> list[Character]:
    """Characters with auto-reply on whose last message is an old model reply."""
    idle = []
    for character in characters:
        if character.auto_reply_delay <= 0:
            continue
        latest = store.latest(character.id)
        if latest is None or latest.role != MODEL_ROLE:
            continue
        if now - latest.timestamp > character.auto_reply_delay * 60 * 1000:
            idle.append(character)
    return idle


async def run_auto_reply(
    character: Character,
    stickers: StickerSet,
    store: MessageStore,
    guard: TurnGuard = turn_guard,
) -> None:
    """Send one follow-up; failures leave no trace in the conversation."""
    try:
        provider = get_llm_provider()
    except ConfigurationError:
        logger.debug("No API key configured, skipping auto-reply")
        return

    try:
        with guard.hold(character.id):
            logger.info(f"Sending auto-reply for {character.name}")
            assembler = MessageAssembler(store, provider)
            await assembler.run_turn(
                character, stickers, prompt=AUTO_REPLY_PROMPT, report_errors=False
            )
    except TurnInProgressError:
        logger.debug(f"Turn already running for {character.id}, skipping auto-reply")


async def check_idle_conversations(store: MessageStore) -> int:
    with Session(engine) as session:
        characters = list(session.exec(select(Character)).all())
        stickers = StickerSet.from_stickers(session.exec(select(CustomSticker)).all())

    idle = find_idle_characters(store, characters, now_ms())
    for character in idle:
        await run_auto_reply(character, stickers, store)
    return len(idle)


async def auto_reply_loop() -> None:
    """Main auto-reply loop. Checks every ``auto_reply_interval`` seconds."""
    logger.info("Auto-reply loop started")
    store = MessageStore(engine)

    while True:
        try:
            await check_idle_conversations(store)
        except Exception as e:
            logger.error(f"Auto-reply error: {e}")

        await asyncio.sleep(settings.auto_reply_interval)
