"""Tests for translating FilterState to request descriptors and URLs."""

from __future__ import annotations

import pytest

from recipe_search.domain.models import FilterState, SortKey
from recipe_search.search.composer import (
    RequestDescriptor,
    build_url,
    from_query_string,
    from_request,
    store_params,
    to_params,
    to_query_string,
    to_request,
)


def test_default_state_has_empty_query_string():
    assert to_query_string(FilterState()) == ""
    assert to_params(to_request(FilterState())) == {}


def test_sentinels_are_omitted():
    state = FilterState(query="pasta", category="all", max_time=0, tags=set())

    assert to_params(to_request(state)) == {"q": "pasta"}


def test_wire_keys_and_sorted_tags():
    state = FilterState(
        query="pasta",
        category="dinner",
        difficulty="easy",
        max_time=30,
        servings=4,
        tags={"vegan", "italian"},
        sort_by=SortKey.TIME,
        page=2,
    )

    assert to_params(to_request(state)) == {
        "q": "pasta",
        "category": "dinner",
        "difficulty": "easy",
        "maxTime": "30",
        "servings": "4",
        "tags": "italian,vegan",
        "sort": "time",
        "page": "2",
    }


ROUND_TRIP_STATES = [
    FilterState(),
    FilterState(query="mac & cheese"),
    FilterState(category="Main Course"),
    FilterState(difficulty="HARD"),
    FilterState(max_time=45),
    FilterState(servings=2),
    FilterState(tags={"  vegan ", "gluten free"}),
    FilterState(sort_by=SortKey.TITLE),
    FilterState(page=5),
    FilterState(query="  crème   brûlée ", category="ALL", max_time=0, tags=set(), page=1),
    FilterState(category="all", difficulty="easy", servings=0, sort_by=SortKey.NEWEST),
    FilterState(
        query="chili con carne",
        category="Main course",
        difficulty="hard",
        max_time=90,
        servings=6,
        tags={"spicy", "beef"},
        sort_by=SortKey.OLDEST,
        page=3,
    ),
]


@pytest.mark.parametrize("state", ROUND_TRIP_STATES)
def test_round_trip_through_query_string(state):
    assert from_query_string(to_query_string(state)) == state
    assert from_request(to_request(state)) == state
    assert from_query_string(build_url("/recipes", state)) == state


def test_store_params_drop_page():
    state = FilterState(query="soup", page=4)

    assert store_params(to_request(state)) == {"q": "soup"}


def test_lenient_parsing_of_untrusted_input():
    state = from_query_string(
        "?q=%20stew%20&maxTime=abc&servings=-3&difficulty=extreme&sort=bogus&page=0&utm_source=x"
    )

    assert state == FilterState(query="stew")


def test_full_url_and_fragment_are_accepted():
    state = from_query_string("https://example.com/recipes?q=pie&tags=apple,cinnamon#results")

    assert state.query == "pie"
    assert state.tags == {"apple", "cinnamon"}


def test_repeated_keys_take_first_value():
    descriptor = RequestDescriptor.model_validate({"q": ["first", "second"], "page": ["2"]})

    assert descriptor.query == "first"
    assert descriptor.page == 2


def test_build_url():
    assert build_url("/recipes", FilterState()) == "/recipes"
    assert build_url("/recipes", FilterState(query="tacos")) == "/recipes?q=tacos"
