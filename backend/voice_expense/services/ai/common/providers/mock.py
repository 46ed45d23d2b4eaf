"""Mock provider — deterministic responses for tests and offline fallback."""

from __future__ import annotations

import time

from .base import BaseProvider, ProviderResult

# A well-formed reply that carries no amount, so the pipeline always falls
# through to the numeric fallback when no real provider is configured.
DEFAULT_MOCK_RESPONSE = (
    '{"amount": null, "category": "other", "merchant": null, '
    '"description": "", "confidence": 0.0}'
)


class MockProvider(BaseProvider):
    name = "mock"

    def __init__(self, response_text: str = DEFAULT_MOCK_RESPONSE) -> None:
        self._response_text = response_text

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
        t0 = time.monotonic()
        text = self._response_text
        elapsed = (time.monotonic() - t0) * 1000
        prompt_words = len(prompt.split()) + len((system_prompt or "").split())
        return ProviderResult(
            raw_text=text,
            model=model or "mock-v1",
            provider=self.name,
            prompt_tokens=prompt_words,
            completion_tokens=len(text.split()),
            latency_ms=round(elapsed, 2),
        )
