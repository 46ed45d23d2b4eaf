"""AI expense extraction — used only when the rule stage is not confident.

Failures never raise: they come back as a failed ``StageResult`` so the
pipeline can fall through to the numeric fallback.
"""

from __future__ import annotations

import asyncio
import logging

import httpx
from pydantic import ValidationError

from voice_expense.services.expense.context import ExtractionContext
from voice_expense.services.expense.contracts import (
    VALID_CATEGORIES,
    ErrorKind,
    ExpenseCandidate,
    ExtractionMethod,
    StageResult,
    is_amount_in_bounds,
)
from voice_expense.services.expense.lexicon import Lexicon
from voice_expense.services.expense.numerals import has_numeral_evidence

from ..common import router as ai_router
from ..common.audit import log_ai_run
from ..common.json_tools import extract_json_object
from ..common.providers.base import ProviderResponseError, ProviderResult
from .contracts import AIExpenseExtractResult

logger = logging.getLogger(__name__)

STAGE = "ai"
SCOPE = "expense_extract"
MAX_INPUT_CHARS = 1000
_CUES_PER_CATEGORY = 10

EXPENSE_PROMPT_HEADER = (
    "You are an expense extractor for Indian users who speak Hindi, English "
    "and Hinglish. Read one spoken expense and return it as JSON."
)

EXPENSE_PROMPT_NUMERALS = (
    "HINDI NUMBER WORDS:\n"
    "- Spelled-out amounts must be converted to digits.\n"
    "{numerals}\n"
    '- Examples: "हजार रुपए" = 1000, "पचास रुपए" = 50, "दो सौ" = 200, "पचास हजार" = 50000'
)

EXPENSE_PROMPT_EXAMPLES = """EXAMPLES:
"bought new shoes of 200 rupees" -> {"amount": 200, "category": "shopping", "merchant": null, "description": "New shoes", "confidence": 0.95}
"spent 500 on petrol" -> {"amount": 500, "category": "transport", "merchant": null, "description": "Petrol", "confidence": 0.95}
"200 ka dosa khaya" -> {"amount": 200, "category": "food", "merchant": null, "description": "Dosa", "confidence": 0.95}
"Metro में 45 spend kiya" -> {"amount": 45, "category": "transport", "merchant": null, "description": "Metro travel", "confidence": 0.9}
"Swiggy से biryani order 350 ka" -> {"amount": 350, "category": "food", "merchant": "Swiggy", "description": "Biryani from Swiggy", "confidence": 0.95}
"पचास रुपए की चाय पी" -> {"amount": 50, "category": "food", "merchant": null, "description": "Tea", "confidence": 0.9}"""

EXPENSE_PROMPT_FOOTER = (
    "Return ONLY one JSON object, no markdown and no extra text:\n"
    '{{"amount": number in rupees or null if no amount was said, '
    '"category": {categories}, '
    '"merchant": string or null, '
    '"description": short English description, '
    '"confidence": number between 0.0 and 1.0}}'
)


def build_expense_prompt(lexicon: Lexicon) -> str:
    """System prompt: category cues from the lexicon, numerals, examples, schema."""
    rules = []
    for index, (name, definition) in enumerate(lexicon.categories.items(), start=1):
        keywords = ", ".join(definition.keywords[:_CUES_PER_CATEGORY])
        verbs = ", ".join(definition.action_verbs[:_CUES_PER_CATEGORY])
        rules.append(f"{index}. {name}\n   - Keywords: {keywords}\n   - Actions: {verbs}")
    rules.append(f"{len(rules) + 1}. other\n   - Anything that fits none of the above")

    numerals = "\n".join(f"- {word} = {value}" for word, value in lexicon.numerals.items())
    categories = " | ".join(f'"{c}"' for c in VALID_CATEGORIES)

    return "\n\n".join(
        [
            EXPENSE_PROMPT_HEADER,
            "CATEGORIES (use exactly one of these names):\n" + "\n".join(rules),
            EXPENSE_PROMPT_NUMERALS.format(numerals=numerals),
            EXPENSE_PROMPT_EXAMPLES,
            EXPENSE_PROMPT_FOOTER.format(categories=categories),
        ]
    )


def build_user_prompt(text: str) -> str:
    return f'Extract the expense from: "{text[:MAX_INPUT_CHARS]}"'


def candidate_from_ai(text: str, extracted: AIExpenseExtractResult, ctx: ExtractionContext) -> StageResult:
    """Validate a parsed provider reply against the transcript and bounds."""
    if not extracted.amount:
        return StageResult.fail(STAGE, ErrorKind.NO_AMOUNT_FOUND, "AI found no amount")

    # A provider may invent an amount; without a digit or numeral word in the
    # transcript there is nothing it could have read.
    if not has_numeral_evidence(text, ctx.lexicon):
        logger.info("Discarding AI amount %.2f: transcript has no numeral", extracted.amount)
        return StageResult.fail(STAGE, ErrorKind.NO_AMOUNT_FOUND, "AI amount not present in transcript")

    if not is_amount_in_bounds(extracted.amount, ctx.max_amount):
        return StageResult.fail(
            STAGE,
            ErrorKind.AMOUNT_OUT_OF_BOUNDS,
            f"Amount {extracted.amount:g} outside (0, {ctx.max_amount:g}]",
        )

    confidence = ctx.ai_default_confidence if extracted.confidence is None else extracted.confidence
    candidate = ExpenseCandidate(
        amount=extracted.amount,
        category=extracted.category,
        merchant=extracted.merchant,
        description=extracted.description or text.strip(),
        original_text=text,
        confidence=confidence,
        extraction_method=ExtractionMethod.AI_POWERED,
    )
    return StageResult.ok(STAGE, candidate)


def parse_provider_reply(raw_text: str) -> AIExpenseExtractResult | None:
    parsed = extract_json_object(raw_text)
    if parsed is None:
        return None

    raw_category = parsed.get("category")
    if raw_category is not None and str(raw_category).strip().lower() not in VALID_CATEGORIES:
        logger.info("AI returned unknown category %r - using 'other'", raw_category)

    try:
        return AIExpenseExtractResult.model_validate(parsed)
    except ValidationError as exc:
        logger.warning("AI reply failed validation: %s", exc.errors()[:3])
        return None


async def extract_with_ai(
    text: str,
    ctx: ExtractionContext,
    *,
    config: ai_router.ResolvedConfig | None = None,
    override_provider: str | None = None,
    override_model: str | None = None,
) -> StageResult:
    """Ask the configured provider to extract the expense from *text*.

    The provider call is bounded by ``config.timeout_seconds`` both at the
    HTTP client and as a wall-clock cap around the whole call.
    """
    if config is None:
        config = ai_router.resolve(
            SCOPE,
            override_provider=override_provider,
            override_model=override_model,
        )

    system_prompt = build_expense_prompt(ctx.lexicon)
    prompt = build_user_prompt(text)
    timeout = config.timeout_seconds

    try:
        result: ProviderResult = await asyncio.wait_for(
            config.provider.generate(
                prompt,
                system_prompt=system_prompt,
                model=config.model,
                temperature=config.temperature,
                max_tokens=config.max_tokens,
                timeout_seconds=timeout,
            ),
            timeout=timeout,
        )
    except (asyncio.TimeoutError, httpx.TimeoutException):
        logger.warning("AI provider %s timed out after %.1fs", config.provider.name, timeout)
        return StageResult.fail(STAGE, ErrorKind.PROVIDER_TIMEOUT, f"AI provider timed out after {timeout:g}s")
    except ProviderResponseError as exc:
        logger.warning("AI provider %s sent an unexpected envelope: %s", config.provider.name, exc)
        return StageResult.fail(STAGE, ErrorKind.MALFORMED_PROVIDER_RESPONSE, str(exc))
    except httpx.HTTPError as exc:
        logger.warning("AI provider %s unavailable: %s", config.provider.name, exc)
        return StageResult.fail(STAGE, ErrorKind.PROVIDER_UNAVAILABLE, f"AI provider unavailable: {exc}")
    except Exception as exc:
        logger.exception("AI expense extraction failed")
        return StageResult.fail(STAGE, ErrorKind.PROVIDER_UNAVAILABLE, f"AI processing failed: {exc}")

    extracted = parse_provider_reply(result.raw_text)
    log_ai_run(
        scope=SCOPE,
        provider_result=result,
        prompt_text=f"{system_prompt}\n\n{prompt}",
        parsed_output=extracted.model_dump() if extracted else None,
        extra_meta={"input_chars": len(text)},
    )

    if extracted is None:
        logger.warning("AI returned no usable JSON: %s", result.raw_text[:200])
        return StageResult.fail(
            STAGE,
            ErrorKind.MALFORMED_PROVIDER_RESPONSE,
            "No valid JSON object in AI response",
        )

    return candidate_from_ai(text, extracted, ctx)
