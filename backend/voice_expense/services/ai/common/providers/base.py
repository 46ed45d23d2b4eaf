"""Abstract base for all AI providers."""

from __future__ import annotations

import abc
from dataclasses import dataclass


class ProviderResponseError(Exception):
    """The provider answered, but not with the envelope its API documents."""


@dataclass(frozen=True)
class ProviderResult:
    """Immutable result returned by every provider."""

    raw_text: str
    model: str
    provider: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    latency_ms: float = 0.0


class BaseProvider(abc.ABC):
    """Contract that every AI provider must implement.

    Implementations raise ``httpx.HTTPError`` subclasses for transport and
    status failures and ``ProviderResponseError`` for unexpected envelopes.
    They never interpret ``raw_text``; that is the caller's job.
    """

    name: str = "base"

    @abc.abstractmethod
    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        model: str = "",
        temperature: float = 0.1,
        max_tokens: int = 512,
        timeout_seconds: float = 15.0,
    ) -> ProviderResult:
        """Send *prompt* and return a ``ProviderResult``."""
