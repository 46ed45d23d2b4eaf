"""Known-merchant lookup."""

from __future__ import annotations

from .lexicon import Lexicon


def detect_merchant(text: str, lexicon: Lexicon) -> str | None:
    """Return the first lexicon merchant mentioned in *text*, title-cased."""
    normalized = text.lower()
    for merchant in lexicon.merchants:
        if merchant in normalized:
            return merchant.title()
    return None
