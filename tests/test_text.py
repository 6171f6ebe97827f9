"""Tests for query normalization and suggestion ranking helpers."""

from __future__ import annotations

from recipe_search.utils.text import levenshtein, normalize_query, rank_suggestions


def test_normalize_query_collapses_whitespace():
    assert normalize_query("  green \t curry\n ") == "green curry"
    assert normalize_query(None) == ""


def test_levenshtein():
    assert levenshtein("kitten", "sitting") == 3
    assert levenshtein("", "abc") == 3


def test_rank_suggestions_prefers_exact_then_prefix_then_substring():
    ranked = rank_suggestions(
        "pasta",
        ["Baked pasta", "Pasta salad", "pasta", "PASTA", "Pizza"],
        max_suggestions=3,
    )

    assert ranked == [("pasta", 1.0), ("Pasta salad", 0.8), ("Baked pasta", 0.6)]


def test_rank_suggestions_fuzzy_toggle():
    assert rank_suggestions("psta", ["pasta"]) == [("pasta", 0.8)]
    assert rank_suggestions("psta", ["pasta"], fuzzy=False) == []
    assert rank_suggestions("", ["pasta"]) == []
