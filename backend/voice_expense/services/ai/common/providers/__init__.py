"""Provider factory — returns the right provider instance or falls back to mock."""

from __future__ import annotations

import logging

from voice_expense.core.config import get_settings

from .base import BaseProvider, ProviderResponseError, ProviderResult
from .mock import MockProvider

logger = logging.getLogger(__name__)

__all__ = [
    "get_provider",
    "BaseProvider",
    "ProviderResponseError",
    "ProviderResult",
    "MockProvider",
]

# provider name -> (settings attribute holding the key, env var name for logs)
_KEYED_PROVIDERS: dict[str, tuple[str, str]] = {
    "claude": ("anthropic_api_key", "ANTHROPIC_API_KEY"),
    "openai": ("openai_api_key", "OPENAI_API_KEY"),
    "groq": ("groq_api_key", "GROQ_API_KEY"),
    "gemini": ("gemini_api_key", "GEMINI_API_KEY"),
}


def get_provider(provider_name: str) -> BaseProvider:
    """Return a provider instance for *provider_name*.

    If the requested provider is not in the allowlist, has no API key,
    or is unknown, we fall back to ``MockProvider`` and log a warning.
    """
    settings = get_settings()
    name = provider_name.lower().strip()

    if name not in settings.ai_allowed_providers:
        logger.warning("Provider %r not in allowlist - falling back to mock", name)
        return MockProvider()

    if name == "mock":
        return MockProvider()

    if name not in _KEYED_PROVIDERS:
        logger.warning("Unknown provider %r - falling back to mock", name)
        return MockProvider()

    key_attr, env_name = _KEYED_PROVIDERS[name]
    api_key = getattr(settings, key_attr)
    if not api_key:
        logger.warning("%s not set - falling back to mock", env_name)
        return MockProvider()

    if name == "claude":
        from .claude import ClaudeProvider

        return ClaudeProvider(api_key=api_key)

    if name == "openai":
        from .openai import OpenAIProvider

        return OpenAIProvider(api_key=api_key)

    if name == "groq":
        from .groq import GroqProvider

        return GroqProvider(api_key=api_key)

    from .gemini import GeminiProvider

    return GeminiProvider(api_key=api_key)
