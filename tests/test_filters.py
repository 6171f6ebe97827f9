"""Tests for the filter value model and FilterState normalization."""

from __future__ import annotations

import pytest

from recipe_search.domain.models import ALL, FilterState, SortKey, parse_count
from recipe_search.search.filters import FilterModel, merge_filters
from recipe_search.services.exceptions import InvalidFilterValue


def test_defaults_are_sentinels():
    state = FilterState()

    assert state.category == ALL
    assert state.difficulty == ALL
    assert state.max_time == 0
    assert state.servings == 0
    assert state.tags == frozenset()
    assert state.sort_by is SortKey.NEWEST
    assert state.page == 1
    assert state.is_default
    assert not state.has_active_filters


def test_filter_change_resets_page():
    model = FilterModel(FilterState(page=4))

    state = model.set(category="dessert")

    assert state.page == 1
    assert state.category == "dessert"


def test_page_only_change_keeps_other_fields():
    model = FilterModel(FilterState(query="soup", servings=2))

    state = model.set(page=3)

    assert state.page == 3
    assert state.query == "soup"
    assert state.servings == 2


def test_explicit_page_applies_after_reset():
    state = merge_filters(FilterState(page=2), query="stew", page=5)

    assert state.page == 5
    assert state.query == "stew"


def test_set_page_then_query_resets_page():
    model = FilterModel()
    model.set(page=7)

    assert model.set(query="pie").page == 1


def test_negative_numbers_are_clamped():
    state = merge_filters(FilterState(), max_time=-15, servings="-2")

    assert state.max_time == 0
    assert state.servings == 0


def test_garbage_values_fall_back_to_sentinels():
    state = FilterState.model_validate(
        {"difficulty": "impossible", "max_time": "soon", "sort_by": "random", "page": "x"}
    )

    assert state.difficulty == ALL
    assert state.max_time == 0
    assert state.sort_by is SortKey.NEWEST
    assert state.page == 1


def test_parse_count_rejects_non_integers():
    with pytest.raises(InvalidFilterValue) as exc_info:
        parse_count("ten", "servings")

    assert exc_info.value.field == "servings"
    assert parse_count("12", "servings") == 12


def test_unknown_field_is_rejected():
    with pytest.raises(TypeError):
        merge_filters(FilterState(), cuisine="thai")


def test_toggle_tag_adds_and_removes():
    model = FilterModel(FilterState(tags={"vegan"}))

    assert model.toggle_tag("italian").tags == {"vegan", "italian"}
    assert model.toggle_tag("italian").tags == {"vegan"}
    assert model.toggle_tag("  ").tags == {"vegan"}


def test_clear_filters_keeps_query_and_sort():
    model = FilterModel(
        FilterState(query="curry", category="dinner", tags={"spicy"}, sort_by="title", page=3)
    )

    state = model.clear_filters()

    assert state.query == "curry"
    assert state.sort_by is SortKey.TITLE
    assert not state.has_active_filters
    assert state.page == 1


def test_query_whitespace_is_normalized():
    state = FilterState(query="  chocolate   cake ")

    assert state.query == "chocolate cake"
    assert state.has_search_query


def test_same_search_ignores_page():
    assert FilterState(query="a", page=1).same_search(FilterState(query="a", page=3))
    assert not FilterState(query="a").same_search(FilterState(query="b"))
