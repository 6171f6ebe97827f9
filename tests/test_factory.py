"""Tests for orchestrator wiring and the SQL-backed persistence port."""

from __future__ import annotations

import pytest

from recipe_search.config import DatabaseSettings, HistorySettings, PaginationSettings, SearchSettings
from recipe_search.db.session import Database
from recipe_search.factory import build_orchestrator
from recipe_search.search.history import HistoryStore
from recipe_search.services.memory_store import InMemoryRecipeStore
from recipe_search.storage.kv import SqlKeyValueStore


def _settings(**overrides) -> SearchSettings:
    return SearchSettings(_env_file=None, **overrides)


@pytest.mark.asyncio
async def test_build_orchestrator_applies_settings(storage, make_recipes):
    settings = _settings(
        pagination=PaginationSettings(page_size=4),
        history=HistorySettings(namespace="myHistory", max_entries=2),
    )
    store = InMemoryRecipeStore(make_recipes(9))
    orchestrator = build_orchestrator(store, storage, settings=settings, query_string="q=Recipe")

    await orchestrator.start()
    for query in ("Recipe 1", "Recipe 2", "Recipe 3"):
        await orchestrator.set_query(query)

    assert orchestrator.page_size == 4
    assert [entry.query for entry in orchestrator.history] == ["Recipe 3", "Recipe 2"]
    assert "myHistory" in storage.data


@pytest.mark.asyncio
async def test_bookmark_query_string_initializes_state(storage, make_recipes):
    orchestrator = build_orchestrator(
        InMemoryRecipeStore(make_recipes(9)),
        storage,
        settings=_settings(pagination=PaginationSettings(page_size=4)),
        query_string="?q=Recipe&sort=oldest&page=3",
    )

    await orchestrator.start()

    view = orchestrator.state
    assert view.current_page == 3
    assert len(view.results) == 9
    assert view.results[0].id == "1"


@pytest.mark.asyncio
async def test_database_backs_sql_store(tmp_path):
    dsn = f"sqlite+aiosqlite:///{tmp_path / 'history.db'}"
    database = Database(settings=_settings(database=DatabaseSettings(dsn=dsn)))
    await database.create_schema()
    try:
        storage = SqlKeyValueStore(database.session)
        await HistoryStore(storage).record("lasagna")
        await storage.set("other", "value")

        reloaded = HistoryStore(storage)
        await reloaded.load()
        assert reloaded.queries() == ["lasagna"]
        assert await storage.get("other") == "value"

        await storage.delete("other")
        assert await storage.get("other") is None
    finally:
        await database.dispose()
