"""Persisted search history: a bounded, deduplicated, most-recent-first list."""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from pydantic import ValidationError

from recipe_search.domain.models import FacetFilters, HistoryEntry, RecentSearch
from recipe_search.logging import logger
from recipe_search.services.exceptions import HistoryPersistenceCorrupt
from recipe_search.storage.kv import KeyValueStore
from recipe_search.utils.datetime import parse_iso, utc_now
from recipe_search.utils.text import normalize_query

DEFAULT_HISTORY_KEY = "recipeSearchHistory"
DEFAULT_RECENT_KEY = "recentRecipeSearches"
DEFAULT_MAX_HISTORY = 8
DEFAULT_MAX_RECENT = 5

Clock = Callable[[], datetime]
EntryT = TypeVar("EntryT", HistoryEntry, RecentSearch)


def _load_array(raw: str) -> list[Any]:
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise HistoryPersistenceCorrupt(f"History payload is not JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise HistoryPersistenceCorrupt("History payload must be a JSON array.")
    return payload


def _committed_at(item: dict[str, Any], fallback: datetime) -> datetime:
    value = item.get("committedAt")
    if value is None:
        return fallback
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # epoch milliseconds, as written by browser clients
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    return parse_iso(value)


def decode_history(raw: str, *, now: datetime | None = None) -> list[HistoryEntry]:
    """Decode the persisted JSON array.

    Plain strings (the legacy format) are accepted with ``now`` as their timestamp.
    Individual malformed items are skipped; a payload that is not a JSON array
    raises ``HistoryPersistenceCorrupt``.
    """

    now = now or utc_now()
    entries: list[HistoryEntry] = []
    for item in _load_array(raw):
        if isinstance(item, str):
            query = normalize_query(item)
            committed_at = now
        elif isinstance(item, dict) and isinstance(item.get("query"), str):
            query = normalize_query(item["query"])
            try:
                committed_at = _committed_at(item, now)
            except (ValueError, OverflowError, OSError):
                continue
        else:
            continue
        if query:
            entries.append(HistoryEntry(query=query, committed_at=committed_at))
    return entries


def decode_recent(raw: str) -> list[RecentSearch]:
    entries: list[RecentSearch] = []
    now = utc_now()
    for item in _load_array(raw):
        if not isinstance(item, dict) or not isinstance(item.get("query"), str):
            continue
        try:
            filters = FacetFilters.model_validate(
                _facets_from_payload(item.get("filters") or {})
            )
            committed_at = _committed_at(item, now)
        except (ValidationError, ValueError, OverflowError, OSError):
            continue
        entries.append(
            RecentSearch(
                query=normalize_query(item["query"]),
                filters=filters,
                committed_at=committed_at,
            )
        )
    return entries


def _facets_from_payload(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValueError("filters must be an object")
    return {
        "category": payload.get("category"),
        "difficulty": payload.get("difficulty"),
        "max_time": payload.get("maxTime", payload.get("max_time")),
        "servings": payload.get("servings"),
        "tags": payload.get("tags"),
    }


class _PersistedList(Generic[EntryT]):
    """Keeps a capped list in memory and mirrors every change to one storage key."""

    def __init__(
        self,
        storage: KeyValueStore,
        *,
        key: str,
        max_entries: int,
        clock: Clock = utc_now,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._storage = storage
        self._key = key
        self._max_entries = max_entries
        self._clock = clock
        self._entries: list[EntryT] = []
        self._loaded = False

    @property
    def key(self) -> str:
        return self._key

    @property
    def max_entries(self) -> int:
        return self._max_entries

    @property
    def loaded(self) -> bool:
        return self._loaded

    def list(self) -> list[EntryT]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    async def load(self) -> list[EntryT]:
        try:
            raw = await self._storage.get(self._key)
        except Exception:
            logger.exception("history_load_failed", key=self._key)
            raw = None

        entries: list[EntryT] = []
        if raw is not None:
            try:
                entries = self._decode(raw)
            except HistoryPersistenceCorrupt as exc:
                logger.warning("history_persistence_corrupt", key=self._key, error=str(exc))
                entries = []
        self._entries = self._dedupe(entries)[: self._max_entries]
        self._loaded = True
        return self.list()

    async def clear(self) -> None:
        self._entries = []
        try:
            await self._storage.delete(self._key)
        except Exception:
            logger.exception("history_persist_failed", key=self._key)

    async def _push(self, entry: EntryT) -> None:
        await self._ensure_loaded()
        identity = self._identity(entry)
        remaining = [item for item in self._entries if self._identity(item) != identity]
        self._entries = [entry, *remaining][: self._max_entries]
        await self._persist()

    async def _ensure_loaded(self) -> None:
        # Writes replace the whole stored array, so merge with it first.
        if not self._loaded:
            await self.load()

    async def _persist(self) -> None:
        payload = json.dumps([entry.to_payload() for entry in self._entries], ensure_ascii=False)
        try:
            await self._storage.set(self._key, payload)
        except Exception:
            logger.exception("history_persist_failed", key=self._key)

    def _dedupe(self, entries: list[EntryT]) -> list[EntryT]:
        seen: set[Any] = set()
        unique: list[EntryT] = []
        for entry in entries:
            identity = self._identity(entry)
            if identity in seen:
                continue
            seen.add(identity)
            unique.append(entry)
        return unique

    def _decode(self, raw: str) -> list[EntryT]:
        raise NotImplementedError

    def _identity(self, entry: EntryT) -> Any:
        raise NotImplementedError


class HistoryStore(_PersistedList[HistoryEntry]):
    """Past committed queries, newest first, unique case-insensitively."""

    def __init__(
        self,
        storage: KeyValueStore,
        *,
        key: str = DEFAULT_HISTORY_KEY,
        max_entries: int = DEFAULT_MAX_HISTORY,
        clock: Clock = utc_now,
    ) -> None:
        super().__init__(storage, key=key, max_entries=max_entries, clock=clock)

    def queries(self) -> list[str]:
        return [entry.query for entry in self._entries]

    def matching(self, text: str, *, limit: int | None = None) -> list[HistoryEntry]:
        """Entries containing ``text``; prefix matches come first."""

        needle = normalize_query(text).casefold()
        if not needle:
            matches = self.list()
        else:
            prefix = [e for e in self._entries if e.query.casefold().startswith(needle)]
            inner = [
                e
                for e in self._entries
                if needle in e.query.casefold() and not e.query.casefold().startswith(needle)
            ]
            matches = prefix + inner
        return matches[:limit] if limit is not None else matches

    async def record(self, query: str) -> None:
        query = normalize_query(query)
        if not query:
            return
        await self._push(HistoryEntry(query=query, committed_at=self._clock()))

    async def remove(self, query: str) -> None:
        await self._ensure_loaded()
        identity = normalize_query(query).casefold()
        remaining = [entry for entry in self._entries if self._identity(entry) != identity]
        if len(remaining) == len(self._entries):
            return
        self._entries = remaining
        await self._persist()

    def _decode(self, raw: str) -> list[HistoryEntry]:
        return decode_history(raw, now=self._clock())

    def _identity(self, entry: HistoryEntry) -> str:
        return entry.query.casefold()


class RecentSearchStore(_PersistedList[RecentSearch]):
    """Query + facet combinations the user ran recently."""

    def __init__(
        self,
        storage: KeyValueStore,
        *,
        key: str = DEFAULT_RECENT_KEY,
        max_entries: int = DEFAULT_MAX_RECENT,
        clock: Clock = utc_now,
    ) -> None:
        super().__init__(storage, key=key, max_entries=max_entries, clock=clock)

    async def record(self, query: str, filters: FacetFilters) -> None:
        query = normalize_query(query)
        if not query and not filters.is_active:
            return
        await self._push(RecentSearch(query=query, filters=filters, committed_at=self._clock()))

    def _decode(self, raw: str) -> list[RecentSearch]:
        return decode_recent(raw)

    def _identity(self, entry: RecentSearch) -> tuple[str, FacetFilters]:
        return entry.query.casefold(), entry.filters


__all__ = [
    "DEFAULT_HISTORY_KEY",
    "DEFAULT_MAX_HISTORY",
    "DEFAULT_RECENT_KEY",
    "HistoryStore",
    "RecentSearchStore",
    "decode_history",
    "decode_recent",
]
