"""Debounced, last-call-wins search suggestions."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence

from recipe_search.domain.models import SuggestionItem
from recipe_search.logging import logger
from recipe_search.search.observable import Observable
from recipe_search.services.exceptions import SuggestionFetchFailed
from recipe_search.utils.text import normalize_query

SuggestFn = Callable[[str, int], Awaitable[Sequence[str]]]

DEFAULT_DEBOUNCE_SECONDS = 0.3
DEFAULT_MIN_QUERY_LENGTH = 2
DEFAULT_LIMIT = 5


class SuggestionProvider:
    """Fetches completions for a partial query.

    Every call to :meth:`suggest` takes a new sequence number. A call only updates
    the visible suggestions (and only yields items) if its number is still the
    latest once its fetch completes, so responses that arrive out of order are
    dropped. A newer call also cancels the fetch task of the previous one.
    """

    def __init__(
        self,
        fetch: SuggestFn,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        min_query_length: int = DEFAULT_MIN_QUERY_LENGTH,
        default_limit: int = DEFAULT_LIMIT,
    ) -> None:
        self._fetch = fetch
        self._debounce_seconds = max(0.0, debounce_seconds)
        self._min_query_length = max(1, min_query_length)
        self._default_limit = default_limit
        self._sequence = 0
        self._inflight: asyncio.Task | None = None
        self._suggestions: tuple[SuggestionItem, ...] = ()
        self._is_loading = False
        self._observable: Observable[tuple[SuggestionItem, ...]] = Observable("suggestions")

    @property
    def suggestions(self) -> tuple[SuggestionItem, ...]:
        return self._suggestions

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def sequence(self) -> int:
        return self._sequence

    def subscribe(self, listener: Callable[[tuple[SuggestionItem, ...]], object]) -> Callable[[], None]:
        return self._observable.subscribe(listener)

    async def suggest(
        self, partial_query: str, limit: int | None = None
    ) -> AsyncIterator[SuggestionItem]:
        query = normalize_query(partial_query)
        limit = self._default_limit if limit is None else limit

        self._sequence += 1
        sequence = self._sequence
        self._cancel_inflight()

        if len(query) < self._min_query_length or limit <= 0:
            self._apply((), sequence)
            return

        self._is_loading = True
        if self._debounce_seconds:
            await asyncio.sleep(self._debounce_seconds)
            if sequence != self._sequence:
                return

        async def _call() -> Sequence[str]:
            return await self._fetch(query, limit)

        task = asyncio.create_task(_call())
        self._inflight = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            if self._inflight is task:
                self._inflight = None

        if sequence != self._sequence:
            logger.debug(
                "suggestions_discarded",
                query=query,
                sequence=sequence,
                latest=self._sequence,
            )
            return

        texts: Sequence[str] = ()
        if task.cancelled():
            texts = ()
        elif task.exception() is not None:
            error = SuggestionFetchFailed(str(task.exception()))
            logger.warning("suggestion_fetch_failed", query=query, error=str(error))
        else:
            texts = task.result() or ()

        items = self._to_items(texts, limit)
        self._apply(items, sequence)
        for item in items:
            yield item

    async def fetch(self, partial_query: str, limit: int | None = None) -> list[SuggestionItem]:
        """Drain :meth:`suggest` into a list."""

        return [item async for item in self.suggest(partial_query, limit)]

    def cancel(self) -> None:
        """Invalidate every outstanding call."""

        self._sequence += 1
        self._cancel_inflight()
        self._is_loading = False

    def clear(self) -> None:
        self.cancel()
        self._apply((), self._sequence)

    def _cancel_inflight(self) -> None:
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self._inflight = None

    def _apply(self, items: tuple[SuggestionItem, ...], sequence: int) -> None:
        if sequence != self._sequence:
            return
        self._is_loading = False
        changed = items != self._suggestions
        self._suggestions = items
        if changed:
            self._observable.publish(items)

    @staticmethod
    def _to_items(texts: Sequence[str], limit: int) -> tuple[SuggestionItem, ...]:
        seen: set[str] = set()
        items: list[SuggestionItem] = []
        for text in texts:
            if not isinstance(text, str):
                continue
            text = normalize_query(text)
            key = text.casefold()
            if not text or key in seen:
                continue
            seen.add(key)
            items.append(SuggestionItem(text=text))
            if len(items) >= limit:
                break
        return tuple(items)


__all__ = ["SuggestFn", "SuggestionProvider"]
