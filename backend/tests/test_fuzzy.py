"""Tests for Levenshtein-based fuzzy matching."""

import unittest

from voice_expense.services.expense.fuzzy import (
    calculate_similarity,
    fuzzy_match,
    levenshtein_distance,
)


class FuzzyMatchTests(unittest.TestCase):
    def test_levenshtein_distance(self):
        self.assertEqual(levenshtein_distance("kitten", "sitting"), 3)
        self.assertEqual(levenshtein_distance("", "abc"), 3)
        self.assertEqual(levenshtein_distance("swiggy", "swiggy"), 0)

    def test_similarity(self):
        self.assertAlmostEqual(calculate_similarity("kitten", "sitting"), 4 / 7)
        self.assertEqual(calculate_similarity("", ""), 1.0)
        self.assertEqual(calculate_similarity("abc", "xyz"), 0.0)

    def test_match_tolerates_typo(self):
        self.assertEqual(fuzzy_match("swigy", ["zomato", "swiggy"]), "swiggy")

    def test_match_is_case_insensitive_and_returns_target(self):
        self.assertEqual(fuzzy_match("SWIGGY", ["Swiggy"]), "Swiggy")

    def test_threshold_is_inclusive(self):
        self.assertEqual(fuzzy_match("abcd", ["abce"], threshold=0.75), "abce")
        self.assertIsNone(fuzzy_match("abcd", ["abce"], threshold=0.76))

    def test_no_match(self):
        self.assertIsNone(fuzzy_match("xyz", ["swiggy", "zomato"]))
        self.assertIsNone(fuzzy_match("swiggy", []))
