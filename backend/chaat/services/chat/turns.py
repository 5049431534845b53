"""At-most-one streaming turn per character."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from chaat.services.chat.errors import TurnInProgressError

logger = logging.getLogger(__name__)


class TurnGuard:
    def __init__(self):
        self._active: set[str] = set()

    def is_active(self, character_id: str) -> bool:
        return character_id in self._active

    @contextmanager
    def hold(self, character_id: str) -> Iterator[None]:
        if character_id in self._active:
            raise TurnInProgressError(f"A reply is already streaming for {character_id}")
        self._active.add(character_id)
        try:
            yield
        finally:
            self._active.discard(character_id)


# Shared by the WebSocket endpoint and the auto-reply loop
turn_guard = TurnGuard()
