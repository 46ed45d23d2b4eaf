"""Voice expense contracts — ExpenseCandidate, stage and pipeline results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

VALID_CATEGORIES: tuple[str, ...] = (
    "food",
    "transport",
    "entertainment",
    "shopping",
    "healthcare",
    "utilities",
    "other",
)

NO_AMOUNT_MESSAGE = "No amount found. Please enter the expense manually."
OUT_OF_BOUNDS_MESSAGE = "The amount does not look like a single expense. Please enter it manually."
RETRY_MESSAGE = "Not sure I heard that right. Please say it again."

MAX_TRANSCRIPT_CHARS = 2000


class ExtractionMethod(str, Enum):
    RULE_BASED = "rule-based"
    AI_POWERED = "ai-powered"
    FALLBACK = "fallback-extraction"


class ErrorKind(str, Enum):
    NO_AMOUNT_FOUND = "no_amount_found"
    AMOUNT_OUT_OF_BOUNDS = "amount_out_of_bounds"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    PROVIDER_TIMEOUT = "provider_timeout"
    MALFORMED_PROVIDER_RESPONSE = "malformed_provider_response"
    INVALID_CATEGORY = "invalid_category"
    LOW_CONFIDENCE_RETRY_SUGGESTED = "low_confidence_retry_suggested"


class PipelineState(str, Enum):
    START = "START"
    RULE_ATTEMPTED = "RULE_ATTEMPTED"
    AI_ATTEMPTED = "AI_ATTEMPTED"
    FALLBACK_ATTEMPTED = "FALLBACK_ATTEMPTED"
    ACCEPTED = "ACCEPTED"
    RETRY_SUGGESTED = "RETRY_SUGGESTED"
    REJECTED = "REJECTED"


class PipelineStatus(str, Enum):
    ACCEPTED = "accepted"
    RETRY_SUGGESTED = "retry_suggested"
    REJECTED = "rejected"


def normalize_category(value: object) -> str:
    """Collapse anything outside the closed category set to ``other``."""
    if isinstance(value, str):
        candidate = value.strip().lower()
        if candidate in VALID_CATEGORIES:
            return candidate
    return "other"


def is_amount_in_bounds(amount: float, max_amount: float) -> bool:
    return 0 < amount <= max_amount


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TranscriptInput(_CamelModel):
    """What the speech-to-text side hands over."""

    text: str = Field(..., min_length=1, max_length=MAX_TRANSCRIPT_CHARS)
    alternatives: list[str] = Field(default_factory=list, max_length=10)
    audio_quality_hint: Literal["good", "moderate", "poor"] | None = None
    attempt: int = Field(default=0, ge=0)

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        if not v.strip():
            msg = "Transcript text is empty"
            raise ValueError(msg)
        return v

    @field_validator("alternatives")
    @classmethod
    def drop_blank_alternatives(cls, v: list[str]) -> list[str]:
        return [alt for alt in v if alt.strip()]


class ExpenseCandidate(_CamelModel):
    """One structured expense produced by a pipeline stage."""

    amount: float = Field(gt=0)
    category: str = "other"
    merchant: str | None = None
    description: str = ""
    original_text: str
    confidence: float
    extraction_method: ExtractionMethod

    @field_validator("category", mode="before")
    @classmethod
    def category_in_closed_set(cls, v: object) -> str:
        return normalize_category(v)

    @field_validator("confidence")
    @classmethod
    def confidence_range(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            msg = f"Confidence must be 0.0-1.0, got {v}"
            raise ValueError(msg)
        return round(v, 4)


@dataclass(frozen=True)
class StageResult:
    """Outcome of one extraction stage. Exactly one of candidate/error_kind is set."""

    stage: str
    success: bool
    confidence: float
    candidate: ExpenseCandidate | None = None
    error_kind: ErrorKind | None = None
    error: str | None = None

    @classmethod
    def ok(cls, stage: str, candidate: ExpenseCandidate) -> StageResult:
        return cls(stage=stage, success=True, confidence=candidate.confidence, candidate=candidate)

    @classmethod
    def fail(cls, stage: str, kind: ErrorKind, error: str) -> StageResult:
        return cls(stage=stage, success=False, confidence=0.0, error_kind=kind, error=error)


class StageError(_CamelModel):
    stage: str
    error_code: ErrorKind
    message: str


class PipelineResult(_CamelModel):
    """Terminal result handed back to the caller."""

    success: bool
    status: PipelineStatus
    confidence: float = 0.0
    data: ExpenseCandidate | None = None
    error: str | None = None
    error_code: ErrorKind | None = None
    attempt: int = 0
    trail: list[PipelineState] = Field(default_factory=list)
    stage_errors: list[StageError] = Field(default_factory=list)

    @property
    def retry_suggested(self) -> bool:
        return self.status == PipelineStatus.RETRY_SUGGESTED
