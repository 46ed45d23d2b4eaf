"""Tests for spelled-out Hindi numeral parsing."""

import unittest

from voice_expense.services.expense.lexicon import get_lexicon
from voice_expense.services.expense.numerals import has_numeral_evidence, parse_hindi_number


class ParseHindiNumberTests(unittest.TestCase):
    def setUp(self):
        self.lexicon = get_lexicon()

    def parse(self, text):
        return parse_hindi_number(text, self.lexicon)

    def test_single_word_with_currency_unit(self):
        self.assertEqual(self.parse("पचास रुपए"), 50)
        self.assertEqual(self.parse("बीस रुपये की चाय"), 20)

    def test_single_word_with_postposition(self):
        self.assertEqual(self.parse("दस का समोसा"), 10)

    def test_thousand_idiom_without_one(self):
        self.assertEqual(self.parse("हजार रुपए"), 1000)

    def test_thousand_idiom_with_one(self):
        self.assertEqual(self.parse("एक हजार रुपए"), 1000)

    def test_numeral_times_magnitude(self):
        self.assertEqual(self.parse("दो सौ"), 200)
        self.assertEqual(self.parse("दो सौ रुपए"), 200)
        self.assertEqual(self.parse("पचास हजार"), 50000)
        self.assertEqual(self.parse("एक लाख रुपए"), 100000)

    def test_compound_overrides_single_word(self):
        # "सौ रुपए" alone would be 100; the compound form wins.
        self.assertEqual(self.parse("तीन सौ रुपए"), 300)

    def test_no_numeral_returns_none(self):
        self.assertIsNone(self.parse("कुछ नहीं"))
        self.assertIsNone(self.parse("500 rupees"))
        self.assertIsNone(self.parse(""))


class NumeralEvidenceTests(unittest.TestCase):
    def setUp(self):
        self.lexicon = get_lexicon()

    def test_digit_counts_as_evidence(self):
        self.assertTrue(has_numeral_evidence("chai 20", self.lexicon))

    def test_numeral_word_counts_as_evidence(self):
        self.assertTrue(has_numeral_evidence("पचास की चाय", self.lexicon))

    def test_plain_sentence_has_no_evidence(self):
        self.assertFalse(has_numeral_evidence("had a great meal today", self.lexicon))

    def test_english_number_word_counts_as_evidence(self):
        self.assertTrue(has_numeral_evidence("spent fifty rupees on chai", self.lexicon))
        self.assertTrue(has_numeral_evidence("Two Hundred for the auto", self.lexicon))

    def test_romanized_hindi_number_word_counts_as_evidence(self):
        self.assertTrue(has_numeral_evidence("pachas ki chai pi", self.lexicon))
        self.assertTrue(has_numeral_evidence("ek hazaar ka recharge", self.lexicon))

    def test_latin_number_words_match_whole_words_only(self):
        # "today" contains "do" and "often" contains "ten".
        self.assertFalse(has_numeral_evidence("ate out often today", self.lexicon))
