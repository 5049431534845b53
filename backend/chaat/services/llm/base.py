"""Abstract LLM provider interface. All providers must implement this."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import AsyncIterator

from chaat.services.chat.history import Turn


@dataclass
class ModelRequest:
    model: str
    temperature: float
    system_instruction: str
    history: list[Turn] = field(default_factory=list)


class BaseLLMProvider(ABC):
    @abstractmethod
    async def generate(self, request: ModelRequest) -> str:
        """Send the transcript and return the whole completion."""
        ...

    @abstractmethod
    def generate_stream(self, request: ModelRequest) -> AsyncIterator[str]:
        """Stream the completion chunk by chunk.

        Faults surface as ``ModelServiceError`` subclasses, either when the
        stream is opened or while it is being consumed.
        """
        ...
