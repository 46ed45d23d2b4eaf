"""Typo-tolerant word matching based on Levenshtein edit distance."""

from __future__ import annotations

from collections.abc import Iterable

from rapidfuzz.distance import Levenshtein

DEFAULT_THRESHOLD = 0.7


def levenshtein_distance(a: str, b: str) -> int:
    return Levenshtein.distance(a, b)


def calculate_similarity(a: str, b: str) -> float:
    """``(max_len - edit_distance) / max_len``; two empty strings are identical."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - levenshtein_distance(a, b)) / longest


def fuzzy_match(word: str, targets: Iterable[str], threshold: float = DEFAULT_THRESHOLD) -> str | None:
    """Return the first target at least *threshold* similar to *word*.

    Comparison is case-insensitive; the target is returned as given.
    """
    word = word.lower()
    for target in targets:
        if calculate_similarity(word, target.lower()) >= threshold:
            return target
    return None
