"""Expense extract scope contracts — the JSON object the provider must return."""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, field_validator

from voice_expense.services.expense.contracts import normalize_category

_NULL_STRINGS = frozenset({"", "null", "none", "n/a", "unknown"})


def _clean_number(value: str) -> str:
    return value.replace(",", "").replace("₹", "").strip()


class AIExpenseExtractResult(BaseModel):
    """Provider reply, after lenient coercion.

    Providers are not trusted to honour the schema: numbers may arrive as
    strings, ``merchant`` as ``"null"``, and ``category`` outside the closed
    set (collapsed to ``other``). Only a non-numeric ``amount`` is an error.
    """

    model_config = ConfigDict(extra="ignore")

    amount: float | None = None
    category: str = "other"
    merchant: str | None = None
    description: str = ""
    confidence: float | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def amount_number(cls, v: object) -> object:
        if isinstance(v, bool):
            msg = "amount must be a number, got a boolean"
            raise ValueError(msg)
        if isinstance(v, str):
            cleaned = _clean_number(v)
            return None if cleaned.lower() in _NULL_STRINGS else cleaned
        return v

    @field_validator("amount")
    @classmethod
    def amount_is_finite(cls, v: float | None) -> float | None:
        if v is not None and not math.isfinite(v):
            msg = "amount must be finite"
            raise ValueError(msg)
        return v

    @field_validator("confidence", mode="before")
    @classmethod
    def confidence_number(cls, v: object) -> float | None:
        # A garbled self-reported confidence falls back to the default.
        if v is None or isinstance(v, bool):
            return None
        try:
            value = float(_clean_number(v) if isinstance(v, str) else v)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(value):
            return None
        return min(max(value, 0.0), 1.0)

    @field_validator("category", mode="before")
    @classmethod
    def category_in_closed_set(cls, v: object) -> str:
        return normalize_category(v)

    @field_validator("merchant", mode="before")
    @classmethod
    def merchant_or_none(cls, v: object) -> str | None:
        if v is None:
            return None
        text = str(v).strip()
        return None if text.lower() in _NULL_STRINGS else text

    @field_validator("description", mode="before")
    @classmethod
    def description_text(cls, v: object) -> str:
        return "" if v is None else str(v).strip()
