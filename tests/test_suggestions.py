"""Tests for debounced, last-call-wins suggestions."""

from __future__ import annotations

import asyncio

import pytest

from recipe_search.domain.models import SuggestionItem
from recipe_search.search.suggestions import SuggestionProvider


async def _settle(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


class GatedSuggest:
    """Each query blocks until the test opens its gate."""

    def __init__(self):
        self.calls: list[str] = []
        self.gates: dict[str, asyncio.Event] = {}

    def gate(self, query: str) -> asyncio.Event:
        return self.gates.setdefault(query, asyncio.Event())

    async def __call__(self, query: str, limit: int):
        self.calls.append(query)
        await self.gate(query).wait()
        return [f"{query} result"]


class StubbornSuggest(GatedSuggest):
    """Swallows cancellation and answers anyway once its gate opens."""

    def __init__(self):
        super().__init__()
        self.ignored_cancels: list[str] = []

    async def __call__(self, query: str, limit: int):
        self.calls.append(query)
        while True:
            try:
                await self.gate(query).wait()
            except asyncio.CancelledError:
                self.ignored_cancels.append(query)
                continue
            return [f"{query} result"]


class StaticSuggest:
    def __init__(self, texts):
        self.texts = texts
        self.calls: list[tuple[str, int]] = []

    async def __call__(self, query: str, limit: int):
        self.calls.append((query, limit))
        return list(self.texts)


@pytest.mark.asyncio
async def test_latest_query_wins_when_responses_arrive_out_of_order():
    fetch = GatedSuggest()
    provider = SuggestionProvider(fetch, debounce_seconds=0, min_query_length=1)

    first = asyncio.create_task(provider.fetch("p"))
    await _settle()
    second = asyncio.create_task(provider.fetch("pa"))
    await _settle()
    third = asyncio.create_task(provider.fetch("pas"))
    await _settle()

    fetch.gate("pas").set()
    await _settle()
    fetch.gate("p").set()
    fetch.gate("pa").set()

    assert await first == []
    assert await second == []
    assert await third == [SuggestionItem(text="pas result")]
    assert provider.suggestions == (SuggestionItem(text="pas result"),)
    assert not provider.is_loading


@pytest.mark.asyncio
async def test_stale_responses_are_discarded_even_when_fetch_ignores_cancel():
    fetch = StubbornSuggest()
    provider = SuggestionProvider(fetch, debounce_seconds=0, min_query_length=1)

    first = asyncio.create_task(provider.fetch("p"))
    await _settle()
    second = asyncio.create_task(provider.fetch("pa"))
    await _settle()
    third = asyncio.create_task(provider.fetch("pas"))
    await _settle()
    assert fetch.ignored_cancels == ["p", "pa"]

    fetch.gate("p").set()
    assert await first == []
    assert provider.suggestions == ()
    assert provider.is_loading

    fetch.gate("pas").set()
    assert await third == [SuggestionItem(text="pas result")]

    fetch.gate("pa").set()
    assert await second == []
    assert provider.suggestions == (SuggestionItem(text="pas result"),)
    assert not provider.is_loading


@pytest.mark.asyncio
async def test_short_query_clears_without_fetching():
    fetch = StaticSuggest(["Pasta"])
    provider = SuggestionProvider(fetch, debounce_seconds=0)

    assert await provider.fetch("pa") == [SuggestionItem(text="Pasta")]
    assert await provider.fetch("p") == []
    assert provider.suggestions == ()
    assert fetch.calls == [("pa", 5)]


@pytest.mark.asyncio
async def test_debounce_only_fetches_the_last_keystroke():
    fetch = StaticSuggest(["Pasta"])
    provider = SuggestionProvider(fetch, debounce_seconds=0.05)

    first = asyncio.create_task(provider.fetch("pa"))
    await _settle()
    second = asyncio.create_task(provider.fetch("pas"))

    assert await first == []
    assert await second == [SuggestionItem(text="Pasta")]
    assert fetch.calls == [("pas", 5)]


@pytest.mark.asyncio
async def test_fetch_failure_degrades_to_empty():
    async def broken(query, limit):
        raise RuntimeError("suggestions offline")

    provider = SuggestionProvider(broken, debounce_seconds=0)

    assert await provider.fetch("pasta") == []
    assert provider.suggestions == ()
    assert not provider.is_loading


@pytest.mark.asyncio
async def test_results_are_deduplicated_and_limited():
    fetch = StaticSuggest(["Pasta", "pasta", " Pasta   bake ", "", "Pesto"])
    provider = SuggestionProvider(fetch, debounce_seconds=0)

    items = await provider.fetch("pa", limit=2)

    assert [item.text for item in items] == ["Pasta", "Pasta bake"]


@pytest.mark.asyncio
async def test_subscribers_see_changes_and_clear():
    provider = SuggestionProvider(StaticSuggest(["Pasta"]), debounce_seconds=0)
    seen = []
    unsubscribe = provider.subscribe(seen.append)

    await provider.fetch("pa")
    provider.clear()
    unsubscribe()
    await provider.fetch("pa")

    assert seen == [(SuggestionItem(text="Pasta"),), ()]
