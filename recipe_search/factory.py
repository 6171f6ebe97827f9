"""Wiring: build a ready-to-use search orchestrator from settings."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from recipe_search.config import SearchSettings, get_settings
from recipe_search.db.session import Database
from recipe_search.i18n import I18nService
from recipe_search.logging import logger
from recipe_search.search.history import HistoryStore, RecentSearchStore
from recipe_search.search.orchestrator import SearchOrchestrator
from recipe_search.search.suggestions import SuggestionProvider
from recipe_search.services.recipe_store import HttpRecipeStore, RecipeStore
from recipe_search.storage.kv import KeyValueStore, SqlKeyValueStore


def build_orchestrator(
    store: RecipeStore,
    storage: KeyValueStore,
    *,
    settings: SearchSettings | None = None,
    query_string: str | None = None,
    locale: str | None = None,
) -> SearchOrchestrator:
    settings = settings or get_settings()
    history = HistoryStore(
        storage,
        key=settings.history.namespace,
        max_entries=settings.history.max_entries,
    )
    recent = RecentSearchStore(
        storage,
        key=settings.history.recent_namespace,
        max_entries=settings.history.max_recent,
    )
    suggestions = SuggestionProvider(
        store.suggest,
        debounce_seconds=settings.suggestions.debounce_seconds,
        min_query_length=settings.suggestions.min_query_length,
        default_limit=settings.suggestions.limit,
    )
    options = dict(
        history=history,
        recent=recent,
        suggestions=suggestions,
        page_size=settings.pagination.page_size,
        i18n=I18nService(default_locale=settings.default_locale),
        locale=locale,
    )
    if query_string:
        return SearchOrchestrator.from_query_string(store, query_string, **options)
    return SearchOrchestrator(store, **options)


@asynccontextmanager
async def open_search_session(
    *,
    settings: SearchSettings | None = None,
    query_string: str | None = None,
    locale: str | None = None,
) -> AsyncIterator[SearchOrchestrator]:
    """HTTP store plus SQL-backed history; everything is closed on exit."""

    settings = settings or get_settings()
    database = Database(settings=settings)
    await database.create_schema()
    async with httpx.AsyncClient() as client:
        store = HttpRecipeStore(client, settings=settings.store)
        orchestrator = build_orchestrator(
            store,
            SqlKeyValueStore(database.session),
            settings=settings,
            query_string=query_string,
            locale=locale,
        )
        logger.info("search_session_opening", environment=settings.environment)
        try:
            await orchestrator.start()
            yield orchestrator
        finally:
            await orchestrator.close()
            await database.dispose()


__all__ = ["build_orchestrator", "open_search_session"]
