"""Tests for the approximate edit-distance estimator."""

import pytest

from booksearch.search.distance import MAX_DISTANCE, approximate_distance


class TestApproximateDistance:
    """Test the one-edit decision procedure."""

    @pytest.mark.parametrize(
        "matched,query,expected",
        [
            ("the", "the", 0),
            ("THE", "the", 0),
            ("teh", "the", 1),
            ("cat", "cot", 1),
            ("color", "colour", 1),
            ("colour", "color", 1),
            ("cat", "dog", 2),
        ],
    )
    def test_reference_pairs(self, matched, query, expected):
        assert approximate_distance(matched, query) == expected

    def test_transposition_at_boundaries(self):
        assert approximate_distance("ab", "ba") == 1
        assert approximate_distance("hte", "the") == 1
        assert approximate_distance("thisi", "this") == 1
        assert approximate_distance("thsi", "this") == 1

    def test_two_substitutions_saturate(self):
        assert approximate_distance("cart", "cold") == MAX_DISTANCE

    def test_reversal_is_not_one_transposition(self):
        assert approximate_distance("abc", "cba") == 2

    def test_insertion_and_deletion(self):
        assert approximate_distance("olde", "old") == 1
        assert approximate_distance("old", "olde") == 1
        assert approximate_distance("xold", "old") == 1
        assert approximate_distance("oxd", "olde") == 2

    def test_length_difference_of_two_is_maximal(self):
        assert approximate_distance("old", "older") == 2
        assert approximate_distance("colours", "color") == 2

    def test_empty_words(self):
        assert approximate_distance("", "") == 0
        assert approximate_distance("", "a") == 1
        assert approximate_distance("ab", "") == 2

    def test_mixed_case_edit(self):
        assert approximate_distance("Colour", "COLOR") == 1
