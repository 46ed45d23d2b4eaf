"""Locale lexicon — category keywords, action verbs, merchants and numeral words.

The lexicon is reference data: loaded from JSON, validated once and never
mutated afterwards. ``get_lexicon()`` re-reads the file when its mtime
changes, so a locale pack can be swapped on a running process.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from voice_expense.core.config import get_settings

from .contracts import VALID_CATEGORIES

logger = logging.getLogger(__name__)

DEFAULT_LEXICON_PATH = Path(__file__).resolve().parents[2] / "data" / "lexicon_hi_en.json"


class LexiconError(ValueError):
    """The lexicon file is missing, unreadable or fails validation."""


def _lowered(values: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(v.strip().lower() for v in values if v.strip())


class CategoryDefinition(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    keywords: tuple[str, ...] = ()
    action_verbs: tuple[str, ...] = ()

    @field_validator("keywords", "action_verbs")
    @classmethod
    def _normalize(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return _lowered(v)


class CategoryLabel(BaseModel):
    model_config = ConfigDict(frozen=True)

    emoji: str = ""
    english_name: str
    hindi_name: str = ""


class Lexicon(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    locale: str = ""
    languages: tuple[str, ...] = ()
    categories: dict[str, CategoryDefinition]
    merchants: tuple[str, ...] = ()
    numerals: dict[str, int] = {}
    # Latin-script number words (english and romanized hindi) that show an
    # amount was spoken even when no table numeral parses.
    numeral_evidence_words: tuple[str, ...] = ()
    magnitudes: tuple[str, ...] = ()
    one_word: str = ""
    thousand_word: str = ""
    currency_units: tuple[str, ...] = ()
    postpositions: tuple[str, ...] = ()
    category_labels: dict[str, CategoryLabel] = {}
    example_phrases: tuple[str, ...] = ()

    @field_validator("categories")
    @classmethod
    def _known_categories(cls, v: dict[str, CategoryDefinition]) -> dict[str, CategoryDefinition]:
        unknown = [name for name in v if name not in VALID_CATEGORIES or name == "other"]
        if unknown:
            msg = f"Unknown categories {unknown}; valid: {list(VALID_CATEGORIES[:-1])}"
            raise ValueError(msg)
        return v

    @field_validator("merchants", "numeral_evidence_words")
    @classmethod
    def _lowercase_terms(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return _lowered(v)

    @model_validator(mode="after")
    def _numeral_words_resolve(self) -> Lexicon:
        for word in (*self.magnitudes, self.one_word, self.thousand_word):
            if word and word not in self.numerals:
                msg = f"Numeral word {word!r} has no value in 'numerals'"
                raise ValueError(msg)
        return self

    def category_names(self) -> tuple[str, ...]:
        """Scan order used for tie-breaking; it is the order of the file."""
        return tuple(self.categories)

    def label_for(self, category: str) -> CategoryLabel:
        label = self.category_labels.get(category) or self.category_labels.get("other")
        if label is None:
            return CategoryLabel(english_name=category.title())
        return label


def load_lexicon(path: str | Path) -> Lexicon:
    """Read and validate a lexicon JSON file."""
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise LexiconError(f"Lexicon file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise LexiconError(f"Lexicon file {path} is not valid JSON: {exc}") from exc

    try:
        lexicon = Lexicon.model_validate(raw)
    except ValidationError as exc:
        raise LexiconError(f"Lexicon file {path} failed validation: {exc}") from exc

    logger.info(
        "Loaded lexicon %s (%d categories, %d merchants, %d numerals)",
        path.name,
        len(lexicon.categories),
        len(lexicon.merchants),
        len(lexicon.numerals),
    )
    return lexicon


def lexicon_path() -> Path:
    configured = get_settings().expense_lexicon_path.strip()
    return Path(configured) if configured else DEFAULT_LEXICON_PATH


@lru_cache(maxsize=4)
def _load_cached(path: str, mtime_ns: int) -> Lexicon:
    return load_lexicon(path)


def get_lexicon() -> Lexicon:
    path = lexicon_path()
    try:
        mtime_ns = path.stat().st_mtime_ns
    except FileNotFoundError as exc:
        raise LexiconError(f"Lexicon file not found: {path}") from exc
    return _load_cached(str(path), mtime_ns)


def reload_lexicon() -> Lexicon:
    _load_cached.cache_clear()
    return get_lexicon()


def get_category_info(category: str, lexicon: Lexicon | None = None) -> CategoryLabel:
    return (lexicon or get_lexicon()).label_for(category)
