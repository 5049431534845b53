"""Google Gemini LLM provider."""

import logging
from typing import AsyncIterator

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from chaat.core.config import settings
from chaat.services.chat.errors import (
    ConfigurationError,
    CredentialError,
    ModelServiceError,
    RateLimitError,
    TransportError,
)
from chaat.services.llm.base import BaseLLMProvider, ModelRequest

logger = logging.getLogger(__name__)


def translate_error(exc: Exception) -> ModelServiceError:
    """Map an SDK or network exception onto the chat error taxonomy."""
    if isinstance(exc, genai_errors.APIError):
        if exc.code in (401, 403) or "API key not valid" in str(exc):
            return CredentialError(str(exc))
        if exc.code == 429:
            return RateLimitError(str(exc))
        return TransportError(str(exc))
    return TransportError(str(exc))


class GeminiProvider(BaseLLMProvider):
    def __init__(self, api_key: str | None = None):
        key = settings.gemini_api_key if api_key is None else api_key
        if not key:
            raise ConfigurationError("Gemini API key not set. Set CHAAT_GEMINI_API_KEY.")
        self.client = genai.Client(api_key=key)

    @staticmethod
    def _contents(request: ModelRequest) -> list[dict]:
        return [{"role": t.role, "parts": [{"text": t.text}]} for t in request.history]

    @staticmethod
    def _config(request: ModelRequest) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            system_instruction=request.system_instruction,
            temperature=request.temperature,
        )

    async def generate(self, request: ModelRequest) -> str:
        try:
            response = await self.client.aio.models.generate_content(
                model=request.model,
                contents=self._contents(request),
                config=self._config(request),
            )
        except (genai_errors.APIError, httpx.HTTPError) as e:
            raise translate_error(e) from e
        return response.text or ""

    async def generate_stream(self, request: ModelRequest) -> AsyncIterator[str]:
        logger.debug(f"Opening {request.model} stream with {len(request.history)} turns")
        try:
            stream = await self.client.aio.models.generate_content_stream(
                model=request.model,
                contents=self._contents(request),
                config=self._config(request),
            )
            async for chunk in stream:
                if chunk.text:
                    yield chunk.text
        except (genai_errors.APIError, httpx.HTTPError) as e:
            raise translate_error(e) from e
