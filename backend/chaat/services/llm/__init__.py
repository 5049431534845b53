"""LLM provider factory."""

from chaat.services.llm.base import BaseLLMProvider, ModelRequest

__all__ = ["BaseLLMProvider", "ModelRequest", "get_llm_provider"]


def get_llm_provider() -> BaseLLMProvider:
    """Factory function that returns the configured LLM provider.

    Raises ``ConfigurationError`` when no API key is configured.
    """
    from chaat.services.llm.gemini import GeminiProvider
    return GeminiProvider()
