"""Page-by-page retrieval with accumulation for load-more / infinite scroll."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from enum import Enum
from typing import Any

from recipe_search.domain.models import RecipeSummary, ResultPage
from recipe_search.logging import logger
from recipe_search.search.composer import RequestDescriptor
from recipe_search.services.exceptions import PageFetchFailed

FetchPage = Callable[[RequestDescriptor, int], Awaitable[ResultPage | Mapping[str, Any]]]


class PaginatorStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    LOADING_MORE = "loading_more"
    ERROR = "error"


class ResultPaginator:
    """Accumulates result pages for one request at a time.

    ``load_first`` starts a new generation; completions belonging to an older
    generation are discarded, so a reset always wins over a pending load-more.
    """

    def __init__(
        self,
        fetch_page: FetchPage,
        *,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._fetch_page = fetch_page
        self._on_change = on_change
        self._generation = 0
        self._inflight: set[asyncio.Task] = set()
        self._request: RequestDescriptor | None = None
        self._status = PaginatorStatus.IDLE
        self._items: list[RecipeSummary] = []
        self._ids: set[str] = set()
        self._page = 0
        self._total_pages = 0
        self._total_count = 0
        self._error: PageFetchFailed | None = None
        self._failed_page: int | None = None

    @property
    def status(self) -> PaginatorStatus:
        return self._status

    @property
    def request(self) -> RequestDescriptor | None:
        return self._request

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def items(self) -> tuple[RecipeSummary, ...]:
        return tuple(self._items)

    @property
    def page(self) -> int:
        return self._page

    @property
    def total_pages(self) -> int:
        return self._total_pages

    @property
    def total_count(self) -> int:
        return self._total_count

    @property
    def has_more(self) -> bool:
        return self._page < self._total_pages

    @property
    def error(self) -> PageFetchFailed | None:
        return self._error

    @property
    def failed_page(self) -> int | None:
        return self._failed_page

    @property
    def is_loading(self) -> bool:
        return self._status is PaginatorStatus.LOADING

    @property
    def is_loading_more(self) -> bool:
        return self._status is PaginatorStatus.LOADING_MORE

    async def load_first(self, request: RequestDescriptor) -> bool:
        """Replace the session with page 1 of ``request``.

        Returns True when the response was applied, False when it failed or was
        superseded.
        """

        self._generation += 1
        self._cancel_inflight()
        self._request = request
        self._items = []
        self._ids = set()
        self._page = 0
        self._total_pages = 0
        self._total_count = 0
        self._clear_error()
        self._set_status(PaginatorStatus.LOADING)
        return await self._run(self._generation, 1)

    async def load_more(self) -> bool:
        if self._status is not PaginatorStatus.LOADED or not self.has_more:
            return False
        self._set_status(PaginatorStatus.LOADING_MORE)
        return await self._run(self._generation, self._page + 1)

    async def retry(self) -> bool:
        """Re-issue the page that failed, with the same request."""

        if self._status is not PaginatorStatus.ERROR or self._failed_page is None:
            return False
        page = self._failed_page
        self._clear_error()
        self._set_status(PaginatorStatus.LOADING if page == 1 else PaginatorStatus.LOADING_MORE)
        return await self._run(self._generation, page)

    def cancel(self) -> None:
        """Drop every in-flight fetch without touching the accumulated items."""

        self._generation += 1
        self._cancel_inflight()
        if self._status in (PaginatorStatus.LOADING, PaginatorStatus.LOADING_MORE):
            self._status = PaginatorStatus.LOADED if self._page else PaginatorStatus.IDLE

    async def _run(self, generation: int, page: int) -> bool:
        request = self._request
        assert request is not None

        task = asyncio.create_task(self._call(request, page))
        self._inflight.add(task)
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            self._inflight.discard(task)

        if generation != self._generation or task.cancelled():
            logger.debug(
                "search_page_discarded",
                page=page,
                generation=generation,
                latest=self._generation,
            )
            return False

        exc = task.exception()
        if exc is not None:
            self._error = PageFetchFailed(page, str(exc) or exc.__class__.__name__)
            self._failed_page = page
            logger.warning(
                "page_fetch_failed",
                page=page,
                error=str(exc),
                exception_type=exc.__class__.__name__,
            )
            self._set_status(PaginatorStatus.ERROR)
            return False

        self._absorb(task.result(), page)
        return True

    async def _call(self, request: RequestDescriptor, page: int) -> ResultPage:
        result = await self._fetch_page(request, page)
        if isinstance(result, ResultPage):
            return result
        return ResultPage.model_validate(result)

    def _absorb(self, result: ResultPage, page: int) -> None:
        if page == 1:
            self._items = []
            self._ids = set()
        appended = 0
        for item in result.items:
            if item.id in self._ids:
                continue
            self._ids.add(item.id)
            self._items.append(item)
            appended += 1

        self._page = page
        self._total_pages = result.total_pages
        self._total_count = result.total_count
        logger.debug(
            "search_page_fetched",
            page=page,
            received=len(result.items),
            appended=appended,
            total_count=result.total_count,
            total_pages=result.total_pages,
        )
        self._set_status(PaginatorStatus.LOADED)

    def _clear_error(self) -> None:
        self._error = None
        self._failed_page = None

    def _cancel_inflight(self) -> None:
        for task in list(self._inflight):
            if not task.done():
                task.cancel()
        self._inflight.clear()

    def _set_status(self, status: PaginatorStatus) -> None:
        self._status = status
        if self._on_change is not None:
            self._on_change()


__all__ = ["FetchPage", "PaginatorStatus", "ResultPaginator"]
