"""Weighted category scoring over keyword, action-verb and bigram signals."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from voice_expense.core.config import Settings

from .lexicon import Lexicon

# Inclusive local-hour windows for breakfast, lunch and dinner.
MEAL_HOURS: tuple[tuple[int, int], ...] = ((7, 10), (12, 14), (19, 22))


@dataclass(frozen=True)
class ScoringWeights:
    keyword: float = 1.0
    action_verb: float = 1.5
    bigram_bonus: float = 2.0
    meal_time_bonus: float = 0.3
    min_score: float = 0.5

    @classmethod
    def from_settings(cls, settings: Settings) -> ScoringWeights:
        return cls(
            keyword=settings.expense_keyword_weight,
            action_verb=settings.expense_action_verb_weight,
            bigram_bonus=settings.expense_bigram_bonus,
            meal_time_bonus=settings.expense_meal_time_bonus,
            min_score=settings.expense_category_min_score,
        )


def is_meal_hour(hour: int) -> bool:
    return any(start <= hour <= end for start, end in MEAL_HOURS)


def score_categories(
    text: str,
    lexicon: Lexicon,
    *,
    weights: ScoringWeights | None = None,
    hour: int | None = None,
) -> dict[str, float]:
    """Score every lexicon category against *text*.

    * each keyword found as a substring adds ``weights.keyword``;
    * each action verb found adds ``weights.action_verb``;
    * each two-word window holding a keyword *and* a verb of the same
      category adds ``weights.bigram_bonus`` ("dosa khaya");
    * ``food`` gets ``weights.meal_time_bonus`` during meal hours.

    Pass *hour* to make the result replayable; otherwise the current
    local hour is used.
    """
    weights = weights or ScoringWeights()
    if hour is None:
        hour = datetime.now().hour

    normalized = text.lower()
    scores = {name: 0.0 for name in lexicon.category_names()}

    for name, definition in lexicon.categories.items():
        for keyword in definition.keywords:
            if keyword in normalized:
                scores[name] += weights.keyword
        for verb in definition.action_verbs:
            if verb in normalized:
                scores[name] += weights.action_verb

    words = normalized.split()
    for first, second in zip(words, words[1:]):
        bigram = f"{first} {second} "
        for name, definition in lexicon.categories.items():
            has_keyword = any(k in bigram for k in definition.keywords)
            has_verb = any(v in bigram for v in definition.action_verbs)
            if has_keyword and has_verb:
                scores[name] += weights.bigram_bonus

    if "food" in scores and is_meal_hour(hour):
        scores["food"] += weights.meal_time_bonus

    return scores


def pick_category(scores: dict[str, float], min_score: float) -> tuple[str, float]:
    """Highest score wins; ties go to the category scanned first."""
    best_category = "other"
    best_score = 0.0
    for name, score in scores.items():
        if score > best_score:
            best_category = name
            best_score = score
    if best_score < min_score:
        return "other", best_score
    return best_category, best_score


def detect_category(
    text: str,
    lexicon: Lexicon,
    *,
    weights: ScoringWeights | None = None,
    hour: int | None = None,
) -> str:
    weights = weights or ScoringWeights()
    scores = score_categories(text, lexicon, weights=weights, hour=hour)
    category, _ = pick_category(scores, weights.min_score)
    return category
