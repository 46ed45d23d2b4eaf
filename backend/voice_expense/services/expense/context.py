"""Per-invocation extraction context shared by every pipeline stage."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from voice_expense.core.config import Settings, get_settings

from .category_scorer import ScoringWeights, detect_category
from .lexicon import Lexicon, get_lexicon
from .merchants import detect_merchant


@dataclass(frozen=True)
class ExtractionContext:
    """Immutable snapshot of configuration for one pipeline run.

    ``hour`` is sampled once so every stage of a run sees the same
    time-of-day nudge.
    """

    lexicon: Lexicon
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    hour: int = field(default_factory=lambda: datetime.now().hour)
    max_amount: float = 100000.0
    rule_confidence: float = 0.9
    fallback_confidence: float = 0.6
    ai_default_confidence: float = 0.7

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        lexicon: Lexicon | None = None,
        hour: int | None = None,
    ) -> ExtractionContext:
        settings = settings or get_settings()
        return cls(
            lexicon=lexicon or get_lexicon(),
            weights=ScoringWeights.from_settings(settings),
            hour=datetime.now().hour if hour is None else hour,
            max_amount=settings.expense_max_amount,
            rule_confidence=settings.expense_rule_confidence,
            fallback_confidence=settings.expense_fallback_confidence,
            ai_default_confidence=settings.expense_ai_default_confidence,
        )

    def categorize(self, text: str) -> str:
        return detect_category(text, self.lexicon, weights=self.weights, hour=self.hour)

    def merchant(self, text: str) -> str | None:
        return detect_merchant(text, self.lexicon)
