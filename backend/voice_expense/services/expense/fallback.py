"""Last-resort extraction: take the first number anywhere in the text."""

from __future__ import annotations

import logging
import re

from .context import ExtractionContext
from .contracts import (
    ErrorKind,
    ExpenseCandidate,
    ExtractionMethod,
    StageResult,
    is_amount_in_bounds,
)

logger = logging.getLogger(__name__)

STAGE = "fallback"

# Grouped digits are one token: 150,000 / 1,50,000.
_NUMBER_RE = re.compile(r"\d+(?:,\d{2,3})*(?:\.\d+)?")


def extract_with_fallback(text: str, ctx: ExtractionContext) -> StageResult:
    match = _NUMBER_RE.search(text)
    if match is None:
        return StageResult.fail(STAGE, ErrorKind.NO_AMOUNT_FOUND, "Could not extract valid amount")

    amount = float(match.group(0).replace(",", ""))
    if not is_amount_in_bounds(amount, ctx.max_amount):
        return StageResult.fail(
            STAGE,
            ErrorKind.AMOUNT_OUT_OF_BOUNDS,
            f"Amount {amount:g} outside (0, {ctx.max_amount:g}]",
        )

    candidate = ExpenseCandidate(
        amount=amount,
        category=ctx.categorize(text),
        merchant=ctx.merchant(text),
        description=text.strip(),
        original_text=text,
        confidence=ctx.fallback_confidence,
        extraction_method=ExtractionMethod.FALLBACK,
    )
    logger.debug("Fallback stage took first number %.2f", amount)
    return StageResult.ok(STAGE, candidate)
