"""Tests for the text similarity primitives."""

import pytest

from hackfeed.dedup.similarity import (
    body_similarity,
    jaccard_word_similarity,
    levenshtein_distance,
    title_similarity,
)


class TestLevenshtein:
    def test_identical(self):
        assert levenshtein_distance("kitten", "kitten") == 0

    def test_classic_example(self):
        assert levenshtein_distance("kitten", "sitting") == 3

    def test_empty(self):
        assert levenshtein_distance("", "abc") == 3
        assert levenshtein_distance("abc", "") == 3
        assert levenshtein_distance("", "") == 0

    def test_symmetric(self):
        assert levenshtein_distance("flaw", "lawn") == levenshtein_distance("lawn", "flaw")

    def test_none_rejected(self):
        with pytest.raises(TypeError):
            levenshtein_distance(None, "abc")  # type: ignore[arg-type]


class TestTitleSimilarity:
    def test_case_and_whitespace_insensitive(self):
        assert title_similarity("Save Money Fast", "  save money fast ") == 1.0

    def test_substring(self):
        score = title_similarity("Save Money", "Save Money Fast")
        assert score == pytest.approx(0.8 * len("save money") / len("save money fast"))

    def test_edit_distance(self):
        score = title_similarity("morning routine", "evening routine")
        expected = 1 - levenshtein_distance("morning routine", "evening routine") / 15
        assert score == pytest.approx(expected)

    def test_unrelated_is_low(self):
        assert title_similarity("Drink water", "Budget weekly") < 0.5

    def test_range(self):
        score = title_similarity("abc", "xyz")
        assert 0.0 <= score <= 1.0


class TestBodySimilarity:
    def test_identical(self):
        body = "First step.\nSecond step.\nThird step."
        assert body_similarity(body, body) == pytest.approx(1.0)

    def test_empty_side(self):
        assert body_similarity("", "Something") == 0.0
        assert body_similarity("\n\n", "Something") == 0.0

    def test_paragraph_count_ratio(self):
        a = "Same line.\nExtra line."
        b = "Same line."
        assert body_similarity(a, b) == pytest.approx(0.5)

    def test_only_first_three_lines_compared(self):
        head = "Alpha one.\nBeta two.\nGamma three."
        assert body_similarity(head + "\nDelta four.", head + "\nTotally different.") == (
            pytest.approx(1.0)
        )


class TestJaccard:
    def test_identical(self):
        assert jaccard_word_similarity("drink more water daily", "drink more water daily") == 1.0

    def test_short_words_ignored(self):
        # Only "stretch" and "routine" qualify.
        assert jaccard_word_similarity("a 5 min stretch routine", "stretch routine") == 1.0

    def test_no_qualifying_words(self):
        assert jaccard_word_similarity("a b c", "a b c") == 0.0

    def test_partial_overlap(self):
        # {save, money, fast} vs {save, money, slow}: 2 / 4
        assert jaccard_word_similarity("save money fast", "save money slow") == pytest.approx(0.5)

    def test_case_sensitive(self):
        assert jaccard_word_similarity("Money", "money") == 0.0
