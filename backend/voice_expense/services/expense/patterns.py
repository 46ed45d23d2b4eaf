"""Rule-based amount extraction (numeral words first, then ordered regexes)."""

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
from .numerals import parse_hindi_number

logger = logging.getLogger(__name__)

STAGE = "rule"

# 1,000 / 1,00,000 / 499.50
_AMOUNT = r"(\d+(?:,\d{2,3})*(?:\.\d{1,2})?)"

# Order matters: the first pattern that matches decides the amount.
AMOUNT_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        # ₹500, rs. 500, rupees 500
        rf"(?:₹|(?<![a-z])rs\.?|(?<![a-z])rupees?)\s*{_AMOUNT}",
        # 500 ₹, 500 rs, 500 rupees, 500 रुपए
        rf"{_AMOUNT}\s*(?:₹|rs\.?(?![a-z])|rupees?|रुपए|रुपये)",
        # 200 का / 200 ka dosa / 45 spend kiya / 300 खर्च
        r"(\d+)\s*(?:का|की|के|(?:ka|ki|ke)(?![a-z])|spend|spent|खर्च)",
        # bought shoes of 200 rupees / spent on petrol 500 rs
        r"(?:bought|spent|paid|cost)\s+.*?(?:of|for)?\s*(\d+)\s*(?:rupees?|rs\.?|₹)",
        # 500 for lunch / 45 on metro
        r"(\d+)\s*(?:rupees?|rs\.?|₹)?\s*(?:for|on|in)",
        r"(\d+)\s*rupees?",
        r"of\s+(\d+)\s*rupees?",
    )
)


def find_amount(text: str, ctx: ExtractionContext) -> float | None:
    """Spelled-out numerals win; otherwise the first matching pattern."""
    spelled = parse_hindi_number(text, ctx.lexicon)
    if spelled:
        return float(spelled)

    for pattern in AMOUNT_PATTERNS:
        match = pattern.search(text)
        if match:
            return float(match.group(1).replace(",", ""))
    return None


def extract_with_rules(text: str, ctx: ExtractionContext) -> StageResult:
    amount = find_amount(text, ctx)
    if amount is None:
        return StageResult.fail(STAGE, ErrorKind.NO_AMOUNT_FOUND, "No amount found")

    if not is_amount_in_bounds(amount, ctx.max_amount):
        logger.info("Rule stage amount %.2f outside (0, %.2f]", amount, ctx.max_amount)
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
        confidence=ctx.rule_confidence,
        extraction_method=ExtractionMethod.RULE_BASED,
    )
    return StageResult.ok(STAGE, candidate)
