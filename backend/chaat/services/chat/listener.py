"""Callbacks a turn uses to keep the visible conversation in step with the store."""

from collections.abc import Sequence

from chaat.models.chat import ChatMessage


class TurnListener:
    """No-op base; override the events you care about."""

    async def placeholder(self, message: ChatMessage) -> None:
        """The empty pending bubble was persisted."""

    async def started(self, message: ChatMessage) -> None:
        """The first chunk arrived. Liveness only, carries no content."""

    async def finalized(self, placeholder_id: str, batch: Sequence[ChatMessage]) -> None:
        """The pending bubble was replaced by the whole batch at once."""

    async def failed(self, placeholder_id: str, message: ChatMessage) -> None:
        """The pending bubble now holds the error text."""

    async def discarded(self, placeholder_id: str) -> None:
        """The pending bubble was removed without a replacement."""
