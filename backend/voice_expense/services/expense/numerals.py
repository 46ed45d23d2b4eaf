"""Spelled-out numeral parsing (Devanagari number words -> integer amounts)."""

from __future__ import annotations

import re

from .lexicon import Lexicon

_DIGIT_RE = re.compile(r"\d")


def _alternation(words) -> str:
    # Longest first so a word never loses to one of its own prefixes.
    return "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True) if w)


def parse_hindi_number(text: str, lexicon: Lexicon) -> int | None:
    """Resolve a spelled-out amount such as ``पचास रुपए`` or ``पचास हजार``.

    Three forms are tried in order and a later match overrides an earlier one:

    1. a single numeral word followed by a currency unit or postposition
       (``पचास रुपए`` -> 50, ``सौ का`` -> 100); the first table entry wins;
    2. the thousand idiom, with or without the leading "one"
       (``एक हजार रुपए`` / ``हजार रुपए`` -> 1000);
    3. ``<numeral> <magnitude>`` compounds (``पचास हजार`` -> 50000,
       ``दो सौ`` -> 200).

    Returns ``None`` when the text holds no numeral phrase.
    """
    normalized = text.lower()
    numerals = lexicon.numerals
    amount: int | None = None

    markers = _alternation((*lexicon.currency_units, *lexicon.postpositions))
    if markers:
        for word, value in numerals.items():
            if re.search(rf"{re.escape(word)}\s*(?:{markers})", normalized):
                amount = value
                break

    units = _alternation(lexicon.currency_units)
    if lexicon.thousand_word and units:
        one = rf"(?:{re.escape(lexicon.one_word)}\s*)?" if lexicon.one_word else ""
        if re.search(rf"{one}{re.escape(lexicon.thousand_word)}\s*(?:{units})", normalized):
            amount = numerals[lexicon.thousand_word]

    magnitudes = _alternation(lexicon.magnitudes)
    words = _alternation(numerals)
    if magnitudes and words:
        match = re.search(rf"({words})\s*({magnitudes})", normalized)
        if match:
            amount = numerals[match.group(1)] * numerals[match.group(2)]

    return amount


def has_numeral_evidence(text: str, lexicon: Lexicon) -> bool:
    """True when *text* contains a digit or any known numeral word.

    Devanagari numerals match anywhere; Latin-script words (``fifty``,
    ``pachas``) only as whole words, so ``today`` never counts as ``do``.
    """
    if _DIGIT_RE.search(text):
        return True
    normalized = text.lower()
    if any(word in normalized for word in lexicon.numerals):
        return True
    words = _alternation(lexicon.numeral_evidence_words)
    return bool(words) and re.search(rf"(?<![a-z])(?:{words})(?![a-z])", normalized) is not None
