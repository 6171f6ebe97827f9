"""Tests for the in-process recipe store."""

from __future__ import annotations

import pytest

from recipe_search.search.composer import RequestDescriptor
from recipe_search.services.memory_store import InMemoryRecipeStore

RECIPES = [
    {
        "id": 1,
        "title": "Spaghetti Carbonara",
        "description": "Creamy Roman pasta",
        "category": "dinner",
        "difficulty": "medium",
        "totalTime": 25,
        "servings": 2,
        "tags": [{"name": "italian"}, {"name": "pasta"}],
        "createdAt": "2024-03-01T00:00:00Z",
    },
    {
        "id": 2,
        "title": "Chocolate Lava Cake",
        "description": "Molten center",
        "category": "dessert",
        "difficulty": "hard",
        "totalTime": 40,
        "servings": 4,
        "tags": ["chocolate"],
        "createdAt": "2024-01-15T00:00:00Z",
    },
    {
        "id": 3,
        "title": "Avocado Toast",
        "description": "Quick breakfast with chili flakes",
        "category": "breakfast",
        "difficulty": "easy",
        "totalTime": 5,
        "servings": 1,
        "tags": ["vegan"],
        "createdAt": "2024-02-10T00:00:00Z",
    },
    {
        "id": 4,
        "title": "Secret Pasta Draft",
        "category": "dinner",
        "difficulty": "easy",
        "totalTime": 10,
        "servings": 2,
        "published": False,
    },
]


async def _ids(store, page_size=10, page=1, **params):
    result = await store.search(RequestDescriptor.model_validate(params), page, page_size)
    return [item.id for item in result.items]


@pytest.mark.asyncio
async def test_default_search_returns_published_newest_first():
    store = InMemoryRecipeStore(RECIPES)

    assert await _ids(store) == ["1", "3", "2"]


@pytest.mark.asyncio
async def test_text_query_matches_title_and_description():
    store = InMemoryRecipeStore(RECIPES)

    assert await _ids(store, q="PASTA") == ["1"]
    assert await _ids(store, q="chili") == ["3"]


@pytest.mark.asyncio
async def test_facets_combine():
    store = InMemoryRecipeStore(RECIPES)

    assert await _ids(store, category="Dinner") == ["1"]
    assert await _ids(store, difficulty="hard") == ["2"]
    assert await _ids(store, maxTime="25") == ["1", "3"]
    assert await _ids(store, servings="3") == ["2"]
    assert await _ids(store, tags="vegan,italian") == ["1", "3"]
    assert await _ids(store, category="dinner", maxTime="20") == []


@pytest.mark.asyncio
async def test_sort_orders():
    store = InMemoryRecipeStore(RECIPES)

    assert await _ids(store, sort="oldest") == ["2", "3", "1"]
    assert await _ids(store, sort="title") == ["3", "2", "1"]
    assert await _ids(store, sort="time") == ["3", "1", "2"]
    assert await _ids(store, sort="difficulty") == ["3", "1", "2"]


@pytest.mark.asyncio
async def test_pagination_totals(make_recipes):
    store = InMemoryRecipeStore(make_recipes(25))

    last = await store.search(RequestDescriptor(), 3, 10)
    beyond = await store.search(RequestDescriptor(), 4, 10)

    assert len(last.items) == 5
    assert last.total_count == 25
    assert last.total_pages == 3
    assert not last.has_more
    assert beyond.items == []


@pytest.mark.asyncio
async def test_suggestions_rank_titles_and_tags():
    store = InMemoryRecipeStore(RECIPES)

    suggestions = await store.suggest("choc", 5)

    assert suggestions[:2] == ["Chocolate Lava Cake", "chocolate"]
    assert "Secret Pasta Draft" not in await store.suggest("secret", 5)
