"""Tests for the locale lexicon loader and environment-driven settings."""

import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from pydantic import ValidationError

from voice_expense.core.config import Settings, get_settings
from voice_expense.services.expense.lexicon import (
    DEFAULT_LEXICON_PATH,
    Lexicon,
    LexiconError,
    get_category_info,
    get_lexicon,
    load_lexicon,
    reload_lexicon,
)


def _minimal_lexicon(**overrides):
    data = {
        "categories": {
            "food": {"keywords": ["Dosa"], "action_verbs": ["Khaya"]},
            "transport": {"keywords": ["metro"], "action_verbs": []},
        },
        "merchants": ["Swiggy"],
        "numerals": {"एक": 1, "हजार": 1000},
        "magnitudes": ["हजार"],
        "one_word": "एक",
        "thousand_word": "हजार",
        "currency_units": ["रुपए"],
    }
    data.update(overrides)
    return data


class BundledLexiconTests(unittest.TestCase):
    def test_default_file_loads(self):
        lexicon = get_lexicon()

        self.assertEqual(lexicon.locale, "hi-IN")
        self.assertEqual(
            lexicon.category_names(),
            ("food", "transport", "entertainment", "shopping", "healthcare", "utilities"),
        )
        self.assertIn("swiggy", lexicon.merchants)
        self.assertEqual(lexicon.numerals["पचास"], 50)

    def test_get_lexicon_is_cached(self):
        self.assertIs(get_lexicon(), get_lexicon())

    def test_reload_returns_fresh_instance(self):
        first = get_lexicon()
        self.assertIsNot(reload_lexicon(), first)

    def test_category_labels(self):
        food = get_category_info("food")
        self.assertEqual(food.english_name, "Food & Dining")
        self.assertEqual(food.hindi_name, "खाना-पीना")

    def test_unknown_category_uses_other_label(self):
        self.assertEqual(get_category_info("groceries").english_name, "Other")

    def test_lexicon_is_immutable(self):
        lexicon = get_lexicon()
        with self.assertRaises(ValidationError):
            lexicon.locale = "en-US"


class LexiconValidationTests(unittest.TestCase):
    def test_terms_are_lowercased(self):
        lexicon = Lexicon.model_validate(_minimal_lexicon(numeral_evidence_words=["Fifty"]))

        self.assertEqual(lexicon.categories["food"].keywords, ("dosa",))
        self.assertEqual(lexicon.categories["food"].action_verbs, ("khaya",))
        self.assertEqual(lexicon.merchants, ("swiggy",))
        self.assertEqual(lexicon.numeral_evidence_words, ("fifty",))

    def test_unknown_category_rejected(self):
        data = _minimal_lexicon(categories={"groceries": {"keywords": ["atta"]}})
        with self.assertRaises(ValidationError):
            Lexicon.model_validate(data)

    def test_other_cannot_carry_keywords(self):
        data = _minimal_lexicon(categories={"other": {"keywords": ["misc"]}})
        with self.assertRaises(ValidationError):
            Lexicon.model_validate(data)

    def test_magnitude_must_have_a_value(self):
        data = _minimal_lexicon(magnitudes=["लाख"])
        with self.assertRaises(ValidationError):
            Lexicon.model_validate(data)

    def test_missing_file(self):
        with self.assertRaises(LexiconError):
            load_lexicon("/nonexistent/lexicon.json")

    def test_invalid_json_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "broken.json"
            path.write_text("{not json", encoding="utf-8")
            with self.assertRaises(LexiconError):
                load_lexicon(path)

    def test_invalid_content_is_lexicon_error(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "bad.json"
            path.write_text(json.dumps({"categories": {"groceries": {}}}), encoding="utf-8")
            with self.assertRaises(LexiconError):
                load_lexicon(path)


class LexiconHotReloadTests(unittest.TestCase):
    def test_configured_path_reloads_on_change(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "lexicon.json"
            path.write_text(json.dumps(_minimal_lexicon()), encoding="utf-8")

            with patch.dict(os.environ, {"EXPENSE_LEXICON_PATH": str(path)}, clear=False):
                get_settings.cache_clear()
                self.assertEqual(get_lexicon().merchants, ("swiggy",))

                path.write_text(json.dumps(_minimal_lexicon(merchants=["Zepto"])), encoding="utf-8")
                stat = path.stat()
                bumped = stat.st_mtime_ns + 1_000_000_000
                os.utime(path, ns=(bumped, bumped))

                self.assertEqual(get_lexicon().merchants, ("zepto",))

    def test_missing_configured_path_raises(self):
        with patch.dict(os.environ, {"EXPENSE_LEXICON_PATH": "/nonexistent/lexicon.json"}, clear=False):
            get_settings.cache_clear()
            with self.assertRaises(LexiconError):
                get_lexicon()

    def test_default_path_points_at_bundled_data(self):
        self.assertTrue(DEFAULT_LEXICON_PATH.is_file())
        self.assertEqual(DEFAULT_LEXICON_PATH.name, "lexicon_hi_en.json")


class SettingsTests(unittest.TestCase):
    def test_defaults(self):
        s = Settings()

        self.assertEqual(s.expense_accept_threshold, 0.8)
        self.assertEqual(s.expense_retry_threshold, 0.6)
        self.assertEqual(s.expense_max_retries, 2)
        self.assertEqual(s.expense_max_amount, 100000.0)
        self.assertEqual(s.expense_category_min_score, 0.5)
        self.assertEqual(s.expense_rule_confidence, 0.9)
        self.assertEqual(s.expense_fallback_confidence, 0.6)
        self.assertEqual(s.expense_ai_default_confidence, 0.7)

    @patch.dict(os.environ, {"EXPENSE_ACCEPT_THRESHOLD": "0.75", "EXPENSE_MAX_AMOUNT": "50000"}, clear=False)
    def test_env_overrides(self):
        s = Settings()

        self.assertEqual(s.expense_accept_threshold, 0.75)
        self.assertEqual(s.expense_max_amount, 50000.0)

    @patch.dict(os.environ, {"EXPENSE_ACCEPT_THRESHOLD": "1.5"}, clear=False)
    def test_threshold_outside_unit_interval_rejected(self):
        with self.assertRaises(ValidationError):
            Settings()

    @patch.dict(os.environ, {"EXPENSE_MAX_AMOUNT": "0"}, clear=False)
    def test_non_positive_cap_rejected(self):
        with self.assertRaises(ValidationError):
            Settings()

    @patch.dict(os.environ, {"AI_TIMEOUT_SECONDS": "0"}, clear=False)
    def test_non_positive_timeout_rejected(self):
        with self.assertRaises(ValidationError):
            Settings()

    @patch.dict(os.environ, {"AI_ALLOWED_PROVIDERS": "Groq, Claude"}, clear=False)
    def test_allowed_providers_csv(self):
        self.assertEqual(Settings().ai_allowed_providers, ["groq", "claude"])

    @patch.dict(
        os.environ,
        {"AI_ALLOWED_MODELS": '{"groq": ["llama-3.1-8b-instant", "llama-3.1-70b"], "Claude": "claude-3-5-haiku-20241022"}'},
        clear=False,
    )
    def test_allowed_models_json(self):
        models = Settings().ai_allowed_models

        self.assertEqual(models["groq"], ["llama-3.1-8b-instant", "llama-3.1-70b"])
        self.assertEqual(models["claude"], ["claude-3-5-haiku-20241022"])

    @patch.dict(os.environ, {"AI_ALLOWED_MODELS": "not json"}, clear=False)
    def test_allowed_models_garbage_is_empty(self):
        self.assertEqual(Settings().ai_allowed_models, {})

    @patch.dict(os.environ, {"CORS_ALLOW_ORIGINS": "https://a.example, https://b.example"}, clear=False)
    def test_cors_origins_csv(self):
        self.assertEqual(Settings().cors_allow_origins, ["https://a.example", "https://b.example"])

    @patch.dict(os.environ, {"GOOGLE_API_KEY": "g-key"}, clear=False)
    def test_gemini_key_alias(self):
        self.assertEqual(Settings().gemini_api_key, "g-key")
