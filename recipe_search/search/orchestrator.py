"""Search orchestrator: the single entry point presentation code talks to."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from recipe_search.domain.models import (
    FilterState,
    HistoryEntry,
    SearchErrorInfo,
    SearchView,
    SortKey,
    SuggestionItem,
    coerce_page,
)
from recipe_search.i18n import I18nService
from recipe_search.logging import logger
from recipe_search.search import composer
from recipe_search.search.filters import FilterModel
from recipe_search.search.history import HistoryStore, RecentSearchStore
from recipe_search.search.observable import Observable
from recipe_search.search.paginator import PaginatorStatus, ResultPaginator
from recipe_search.search.pills import active_filter_pills, removal_for
from recipe_search.search.suggestions import SuggestionProvider
from recipe_search.search.summary import describe_results

if TYPE_CHECKING:
    from recipe_search.domain.models import ResultPage
    from recipe_search.search.composer import RequestDescriptor
    from recipe_search.services.recipe_store import RecipeStore

DEFAULT_PAGE_SIZE = 10


class SearchOrchestrator:
    """Keeps filters, accumulated results and history consistent.

    Every filter-affecting mutator updates the filter model, discards the current
    result session and fetches page 1. Only a page-1 response that is still
    current when it lands may record the query in history. ``set_page`` only ever
    loads further pages.

    Listeners registered through :meth:`subscribe` receive a fresh
    :class:`SearchView` after every transition.
    """

    def __init__(
        self,
        store: "RecipeStore",
        *,
        history: HistoryStore | None = None,
        recent: RecentSearchStore | None = None,
        suggestions: SuggestionProvider | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        initial: FilterState | None = None,
        i18n: I18nService | None = None,
        locale: str | None = None,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self._store = store
        self._history = history
        self._recent = recent
        self._suggestions = suggestions or SuggestionProvider(store.suggest)
        self._page_size = page_size
        self._i18n = i18n
        self._locale = locale
        self._filters = FilterModel(initial)
        self._paginator = ResultPaginator(self._fetch_page, on_change=self._publish)
        self._observable: Observable[SearchView] = Observable("search_view")
        self._pending_page = 1
        self._closed = False
        self._view = self._build_view()

    @classmethod
    def from_query_string(
        cls, store: "RecipeStore", query_string: str | None, **kwargs: Any
    ) -> "SearchOrchestrator":
        """Build an orchestrator initialized from a shareable URL or query string."""

        return cls(store, initial=composer.from_query_string(query_string), **kwargs)

    @property
    def state(self) -> SearchView:
        return self._view

    @property
    def filters(self) -> FilterState:
        return self._filters.state

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def suggestions(self) -> SuggestionProvider:
        return self._suggestions

    @property
    def history(self) -> list[HistoryEntry]:
        return self._history.list() if self._history is not None else []

    @property
    def query_string(self) -> str:
        return composer.to_query_string(self._filters.state)

    def subscribe(self, listener: Callable[[SearchView], object]) -> Callable[[], None]:
        return self._observable.subscribe(listener)

    # lifecycle

    async def start(self) -> bool:
        """Load persisted history and fetch the initial state, bookmarked page included."""

        if self._closed:
            return False
        if self._history is not None and not self._history.loaded:
            await self._history.load()
        if self._recent is not None and not self._recent.loaded:
            await self._recent.load()
        logger.info("search_session_started", query_string=self.query_string)
        return await self._commit()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._paginator.cancel()
        self._suggestions.cancel()
        logger.info("search_session_closed")
        self._publish()

    # filter-affecting mutators

    async def set_query(self, query: str) -> bool:
        return await self._update(query=query)

    async def set_filters(
        self, changes: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> bool:
        """Merge a partial update; a lone ``page`` is handled as :meth:`set_page`."""

        merged = {**(changes or {}), **kwargs}
        if set(merged) == {"page"}:
            return await self.set_page(merged["page"])
        return await self._update(**merged)

    async def set_sort_by(self, sort_by: SortKey | str) -> bool:
        return await self._update(sort_by=sort_by)

    async def toggle_tag(self, tag: str) -> bool:
        if self._closed:
            return False
        before = self._filters.state
        if self._filters.toggle_tag(tag) == before:
            return False
        return await self._commit()

    async def remove_filter(self, pill_id: str) -> bool:
        changes = removal_for(pill_id, self._filters.state)
        if changes is None:
            logger.debug("filter_pill_unknown", pill_id=pill_id)
            return False
        return await self._update(**changes)

    async def clear_filters(self) -> bool:
        """Reset every facet; query and sort order stay."""

        if self._closed:
            return False
        before = self._filters.state
        if self._filters.clear_filters() == before:
            return False
        return await self._commit()

    async def clear_search(self) -> bool:
        """Drop the text query; facets stay."""

        if self._closed:
            return False
        before = self._filters.state
        self._suggestions.clear()
        if self._filters.clear_query() == before:
            return False
        return await self._commit()

    async def reset(self) -> bool:
        if self._closed:
            return False
        self._suggestions.clear()
        self._filters.reset()
        return await self._commit()

    # pagination

    async def set_page(self, page: int | str) -> bool:
        """Advance to ``page`` by loading the missing pages one after another.

        Pages at or below the current one are a no-op. While a fetch is in flight
        the target is remembered and reached once that fetch lands; the call
        itself returns False.
        """

        if self._closed:
            return False
        target = coerce_page(page)
        status = self._paginator.status
        if status is PaginatorStatus.IDLE:
            self._filters.set(page=target)
            self._publish()
            return False
        if status in (PaginatorStatus.LOADING, PaginatorStatus.LOADING_MORE):
            self._pending_page = max(self._pending_page, target)
            logger.debug("page_request_deferred", page=target, status=status.value)
            return False
        if target <= self._paginator.page:
            return False
        return await self._advance_to(target)

    async def load_more(self) -> bool:
        if self._closed:
            return False
        return await self._advance_to(self._paginator.page + 1)

    async def retry(self) -> bool:
        """Re-issue the failed page with the same request."""

        if self._closed or self._paginator.status is not PaginatorStatus.ERROR:
            return False
        failed_page = self._paginator.failed_page
        generation = self._paginator.generation
        applied = await self._paginator.retry()
        if applied:
            self._sync_page(generation)
            if failed_page == 1:
                await self._record(generation)
            if self._pending_page > self._paginator.page:
                return await self._advance_to(self._pending_page)
        return applied

    # suggestions and history

    async def suggest(self, partial_query: str, limit: int | None = None) -> list[SuggestionItem]:
        if self._closed:
            return []
        return await self._suggestions.fetch(partial_query, limit)

    async def remove_history(self, query: str) -> None:
        if self._history is not None:
            await self._history.remove(query)
            self._publish()

    async def clear_history(self) -> None:
        if self._history is not None:
            await self._history.clear()
        if self._recent is not None:
            await self._recent.clear()
        self._publish()

    # internals

    async def _update(self, **changes: Any) -> bool:
        if self._closed:
            return False
        before = self._filters.state
        after = self._filters.set(**changes)
        if after == before and self._paginator.status is not PaginatorStatus.IDLE:
            return False
        return await self._commit()

    async def _commit(self) -> bool:
        state = self._filters.state
        target = state.page
        self._pending_page = 1
        request = composer.to_request(state.model_copy(update={"page": 1}))
        if target > 1:
            self._filters.set(page=1)
        logger.info(
            "search_committed",
            query=state.query,
            filters=state.facets.to_payload(),
            sort_by=state.sort_by.value,
            target_page=target,
        )
        applied = await self._paginator.load_first(request)
        if not applied:
            return False
        generation = self._paginator.generation
        await self._record(generation)
        target = max(target, self._pending_page)
        if target > 1:
            return await self._advance_to(target)
        return True

    async def _advance_to(self, target: int) -> bool:
        generation = self._paginator.generation
        try:
            while True:
                target = max(target, self._pending_page)
                if self._paginator.page >= target or not self._paginator.has_more:
                    break
                if not await self._paginator.load_more():
                    return False
                if not self._sync_page(generation):
                    return False
        finally:
            if generation == self._paginator.generation:
                self._pending_page = 1
        return self._paginator.page >= target

    async def _fetch_page(self, request: "RequestDescriptor", page: int) -> "ResultPage":
        return await self._store.search(request, page, self._page_size)

    async def _record(self, generation: int) -> None:
        if generation != self._paginator.generation:
            return
        state = self._filters.state
        if self._history is not None and state.query:
            await self._history.record(state.query)
        if self._recent is not None:
            await self._recent.record(state.query, state.facets)
        self._publish()

    def _sync_page(self, generation: int) -> bool:
        if generation != self._paginator.generation:
            return False
        page = max(1, self._paginator.page)
        if self._filters.state.page != page:
            self._filters.set(page=page)
            self._publish()
        return True

    def _build_view(self) -> SearchView:
        state = self._filters.state
        paginator = self._paginator
        results = paginator.items
        is_loading = paginator.is_loading
        error = None
        if paginator.error is not None:
            error = SearchErrorInfo(message=str(paginator.error), page=paginator.error.page)
        total_results = paginator.total_count
        return SearchView(
            query=state.query,
            filters=state.facets,
            sort_by=state.sort_by,
            results=results,
            total_results=total_results,
            current_page=max(1, paginator.page) if paginator.page else state.page,
            total_pages=paginator.total_pages,
            has_more=paginator.has_more,
            is_loading=is_loading,
            is_loading_more=paginator.is_loading_more,
            error=error,
            has_active_filters=state.has_active_filters,
            has_search_query=state.has_search_query,
            is_empty=not is_loading and len(results) == 0,
            search_summary=describe_results(
                total_results=total_results,
                query=state.query,
                has_active_filters=state.has_active_filters,
                is_loading=is_loading,
                i18n=self._i18n,
                locale=self._locale,
            ),
            query_string=composer.to_query_string(state),
            active_filters=tuple(active_filter_pills(state)),
        )

    def _publish(self) -> None:
        self._view = self._build_view()
        self._observable.publish(self._view)


__all__ = ["DEFAULT_PAGE_SIZE", "SearchOrchestrator"]
