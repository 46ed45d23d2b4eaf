"""Voice expense pipeline — rule stage, AI stage, numeric fallback.

The control flow is an explicit state machine::

    START -> RULE_ATTEMPTED -> ACCEPTED
                            -> AI_ATTEMPTED -> ACCEPTED
                                            -> RETRY_SUGGESTED
                                            -> FALLBACK_ATTEMPTED -> ACCEPTED
                                                                  -> REJECTED

Each non-terminal state has one handler that runs the next stage and
returns the following state. Nothing here raises to the caller: every path
ends in a ``PipelineResult``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from pydantic import ValidationError

from voice_expense.core.config import Settings, get_settings
from voice_expense.services.ai.common.router import ResolvedConfig
from voice_expense.services.ai.expense_extract.service import extract_with_ai

from .context import ExtractionContext
from .contracts import (
    MAX_TRANSCRIPT_CHARS,
    NO_AMOUNT_MESSAGE,
    OUT_OF_BOUNDS_MESSAGE,
    RETRY_MESSAGE,
    ErrorKind,
    PipelineResult,
    PipelineState,
    PipelineStatus,
    StageError,
    StageResult,
    TranscriptInput,
)
from .fallback import extract_with_fallback
from .patterns import extract_with_rules

logger = logging.getLogger(__name__)

TERMINAL_STATES = frozenset(
    {PipelineState.ACCEPTED, PipelineState.RETRY_SUGGESTED, PipelineState.REJECTED}
)


@dataclass(frozen=True)
class PipelinePolicy:
    accept_threshold: float = 0.8
    retry_threshold: float = 0.6
    max_retries: int = 2
    ai_enabled: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> PipelinePolicy:
        return cls(
            accept_threshold=settings.expense_accept_threshold,
            retry_threshold=settings.expense_retry_threshold,
            max_retries=settings.expense_max_retries,
            ai_enabled=settings.enable_ai_expense_extract,
        )


@dataclass
class PipelineRun:
    """Mutable bookkeeping for a single invocation; never shared."""

    transcript: TranscriptInput
    ctx: ExtractionContext
    policy: PipelinePolicy
    ai_config: ResolvedConfig | None = None
    override_provider: str | None = None
    override_model: str | None = None
    trail: list[PipelineState] = field(default_factory=list)
    stage_errors: list[StageError] = field(default_factory=list)
    rule_result: StageResult | None = None
    ai_result: StageResult | None = None
    fallback_result: StageResult | None = None
    accepted: StageResult | None = None

    @property
    def text(self) -> str:
        return self.transcript.text

    def record(self, result: StageResult) -> StageResult:
        if not result.success and result.error_kind is not None:
            self.stage_errors.append(
                StageError(stage=result.stage, error_code=result.error_kind, message=result.error or "")
            )
        return result


def _guarded(stage: str, kind: ErrorKind, fn: Callable[[], StageResult]) -> StageResult:
    try:
        return fn()
    except Exception as exc:
        logger.exception("Stage %s crashed", stage)
        return StageResult.fail(stage, kind, f"{stage} stage failed: {exc}")


def run_rule_stage(run: PipelineRun) -> StageResult:
    """Rule stage on the transcript, then on ranked alternatives if needed.

    Alternatives only feed the cheap rule stage; the returned candidate keeps
    the primary transcript as ``original_text``.
    """
    result = _guarded(
        "rule", ErrorKind.NO_AMOUNT_FOUND, lambda: extract_with_rules(run.text, run.ctx)
    )
    if result.success and result.confidence >= run.policy.accept_threshold:
        return result

    for alternative in run.transcript.alternatives:
        alt_result = _guarded(
            "rule", ErrorKind.NO_AMOUNT_FOUND, lambda alt=alternative: extract_with_rules(alt, run.ctx)
        )
        if alt_result.success and alt_result.confidence >= run.policy.accept_threshold:
            logger.info("Rule stage matched alternative transcript")
            candidate = alt_result.candidate.model_copy(update={"original_text": run.text})
            return StageResult.ok(alt_result.stage, candidate)

    return result


async def run_ai_stage(run: PipelineRun) -> StageResult:
    if not run.policy.ai_enabled:
        return StageResult.fail("ai", ErrorKind.PROVIDER_UNAVAILABLE, "AI extraction disabled")
    try:
        return await extract_with_ai(
            run.text,
            run.ctx,
            config=run.ai_config,
            override_provider=run.override_provider,
            override_model=run.override_model,
        )
    except Exception as exc:
        logger.exception("AI stage crashed")
        return StageResult.fail("ai", ErrorKind.PROVIDER_UNAVAILABLE, f"AI stage failed: {exc}")


def run_fallback_stage(run: PipelineRun) -> StageResult:
    return _guarded(
        "fallback", ErrorKind.NO_AMOUNT_FOUND, lambda: extract_with_fallback(run.text, run.ctx)
    )


async def _on_start(run: PipelineRun) -> PipelineState:
    run.rule_result = run.record(run_rule_stage(run))
    return PipelineState.RULE_ATTEMPTED


async def _on_rule_attempted(run: PipelineRun) -> PipelineState:
    rule = run.rule_result
    if rule is not None and rule.success and rule.confidence >= run.policy.accept_threshold:
        run.accepted = rule
        return PipelineState.ACCEPTED

    run.ai_result = run.record(await run_ai_stage(run))
    return PipelineState.AI_ATTEMPTED


async def _on_ai_attempted(run: PipelineRun) -> PipelineState:
    ai = run.ai_result
    if ai is not None and ai.success:
        run.accepted = ai
        if ai.confidence < run.policy.retry_threshold and run.transcript.attempt < run.policy.max_retries:
            return PipelineState.RETRY_SUGGESTED
        return PipelineState.ACCEPTED

    run.fallback_result = run.record(run_fallback_stage(run))
    return PipelineState.FALLBACK_ATTEMPTED


async def _on_fallback_attempted(run: PipelineRun) -> PipelineState:
    fallback = run.fallback_result
    if fallback is not None and fallback.success:
        run.accepted = fallback
        return PipelineState.ACCEPTED
    return PipelineState.REJECTED


TRANSITIONS: dict[PipelineState, Callable[[PipelineRun], Awaitable[PipelineState]]] = {
    PipelineState.START: _on_start,
    PipelineState.RULE_ATTEMPTED: _on_rule_attempted,
    PipelineState.AI_ATTEMPTED: _on_ai_attempted,
    PipelineState.FALLBACK_ATTEMPTED: _on_fallback_attempted,
}


def _build_result(run: PipelineRun, state: PipelineState) -> PipelineResult:
    common = {
        "attempt": run.transcript.attempt,
        "trail": list(run.trail),
        "stage_errors": list(run.stage_errors),
    }

    if state == PipelineState.ACCEPTED and run.accepted is not None:
        return PipelineResult(
            success=True,
            status=PipelineStatus.ACCEPTED,
            confidence=run.accepted.confidence,
            data=run.accepted.candidate,
            **common,
        )

    if state == PipelineState.RETRY_SUGGESTED and run.accepted is not None:
        return PipelineResult(
            success=False,
            status=PipelineStatus.RETRY_SUGGESTED,
            confidence=run.accepted.confidence,
            data=run.accepted.candidate,
            error=RETRY_MESSAGE,
            error_code=ErrorKind.LOW_CONFIDENCE_RETRY_SUGGESTED,
            **common,
        )

    kind = ErrorKind.NO_AMOUNT_FOUND
    if run.fallback_result is not None and run.fallback_result.error_kind is not None:
        kind = run.fallback_result.error_kind
    message = OUT_OF_BOUNDS_MESSAGE if kind == ErrorKind.AMOUNT_OUT_OF_BOUNDS else NO_AMOUNT_MESSAGE
    return PipelineResult(
        success=False,
        status=PipelineStatus.REJECTED,
        confidence=0.0,
        error=message,
        error_code=kind,
        **common,
    )


async def process_transcript(
    transcript: TranscriptInput | str,
    *,
    settings: Settings | None = None,
    ctx: ExtractionContext | None = None,
    ai_config: ResolvedConfig | None = None,
    override_provider: str | None = None,
    override_model: str | None = None,
) -> PipelineResult:
    """Turn one transcript into an accepted, retry-suggested or rejected result.

    *ctx* and *ai_config* default to values built from settings; pass them to
    pin the lexicon, the hour or the provider (tests, batch replays).
    A plain string is cut to ``MAX_TRANSCRIPT_CHARS``; a blank one is rejected
    as ``no_amount_found``.
    """
    settings = settings or get_settings()
    if isinstance(transcript, str):
        try:
            transcript = TranscriptInput(text=transcript[:MAX_TRANSCRIPT_CHARS])
        except ValidationError:
            logger.info("Voice expense rejected: empty transcript")
            return PipelineResult(
                success=False,
                status=PipelineStatus.REJECTED,
                error=NO_AMOUNT_MESSAGE,
                error_code=ErrorKind.NO_AMOUNT_FOUND,
                trail=[PipelineState.START, PipelineState.REJECTED],
            )

    run = PipelineRun(
        transcript=transcript,
        ctx=ctx or ExtractionContext.from_settings(settings),
        policy=PipelinePolicy.from_settings(settings),
        ai_config=ai_config,
        override_provider=override_provider,
        override_model=override_model,
    )

    state = PipelineState.START
    run.trail.append(state)
    while state not in TERMINAL_STATES:
        state = await TRANSITIONS[state](run)
        run.trail.append(state)

    result = _build_result(run, state)
    if result.data is not None:
        logger.info(
            "Voice expense %s via %s (confidence=%.2f, attempt=%d, quality=%s)",
            result.status.value,
            result.data.extraction_method.value,
            result.confidence,
            transcript.attempt,
            transcript.audio_quality_hint or "unknown",
        )
    else:
        logger.info(
            "Voice expense rejected: %s (stages=%s)",
            result.error_code.value if result.error_code else "unknown",
            [e.error_code.value for e in result.stage_errors],
        )
    return result


def process_transcript_sync(transcript: TranscriptInput | str, **kwargs) -> PipelineResult:
    """Blocking wrapper for callers without an event loop (scripts, workers)."""
    return asyncio.run(process_transcript(transcript, **kwargs))
