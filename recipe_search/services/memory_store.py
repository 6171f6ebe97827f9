"""Recipe store over an in-process list of recipe records."""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping

from recipe_search.domain.models import DIFFICULTIES, RecipeSummary, ResultPage, SortKey, coerce_sort
from recipe_search.search.composer import RequestDescriptor
from recipe_search.utils.text import rank_suggestions

_DIFFICULTY_RANK = {name: rank for rank, name in enumerate(DIFFICULTIES)}


def _field(record: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if name in record and record[name] is not None:
            return record[name]
    return None


def _tag_names(record: Mapping[str, Any]) -> list[str]:
    names: list[str] = []
    for item in record.get("tags") or []:
        if isinstance(item, Mapping):
            item = item.get("name")
        if isinstance(item, str) and item:
            names.append(item)
    return names


def _as_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def matches(record: Mapping[str, Any], request: RequestDescriptor) -> bool:
    """Apply the request's facets to one record. Facets absent from the request pass."""

    if record.get("published") is False:
        return False
    if request.query:
        needle = request.query.casefold()
        haystacks = (record.get("title") or "", record.get("description") or "")
        if not any(needle in str(text).casefold() for text in haystacks):
            return False
    if request.category:
        if str(record.get("category") or "").casefold() != request.category.casefold():
            return False
    if request.difficulty:
        if str(record.get("difficulty") or "").casefold() != request.difficulty:
            return False
    if request.max_time:
        total_time = _as_int(_field(record, "totalTime", "total_time"))
        if total_time is None or total_time > request.max_time:
            return False
    if request.servings:
        servings = _as_int(record.get("servings"))
        if servings is None or servings < request.servings:
            return False
    if request.tags:
        wanted = {tag.casefold() for tag in request.tag_list}
        if not wanted.intersection(tag.casefold() for tag in _tag_names(record)):
            return False
    return True


def sort_records(
    records: list[tuple[int, Mapping[str, Any]]], sort: SortKey
) -> list[tuple[int, Mapping[str, Any]]]:
    # Records without a creation date keep insertion order, later means newer.
    def created(entry: tuple[int, Mapping[str, Any]]) -> tuple[str, int]:
        position, record = entry
        return str(_field(record, "createdAt", "created_at") or ""), position

    if sort is SortKey.NEWEST:
        return sorted(records, key=created, reverse=True)
    if sort is SortKey.OLDEST:
        return sorted(records, key=created)
    if sort is SortKey.TITLE:
        return sorted(records, key=lambda e: (str(e[1].get("title") or "").casefold(), e[0]))
    if sort is SortKey.TIME:
        return sorted(
            records,
            key=lambda e: (_as_int(_field(e[1], "totalTime", "total_time")) or 0, e[0]),
        )
    return sorted(
        records,
        key=lambda e: (
            _DIFFICULTY_RANK.get(str(e[1].get("difficulty") or "").lower(), len(DIFFICULTIES)),
            e[0],
        ),
    )


class InMemoryRecipeStore:
    """Serves searches and suggestions from a fixed list of recipe dicts."""

    def __init__(self, recipes: Iterable[Mapping[str, Any]] = ()) -> None:
        self._recipes: list[Mapping[str, Any]] = [dict(recipe) for recipe in recipes]

    def add(self, recipe: Mapping[str, Any]) -> None:
        self._recipes.append(dict(recipe))

    def __len__(self) -> int:
        return len(self._recipes)

    async def search(
        self, request: RequestDescriptor, page: int, page_size: int
    ) -> ResultPage:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        page = max(1, page)
        hits = [
            (position, record)
            for position, record in enumerate(self._recipes)
            if matches(record, request)
        ]
        ordered = sort_records(hits, coerce_sort(request.sort))
        start = (page - 1) * page_size
        window = ordered[start : start + page_size]
        total = len(ordered)
        return ResultPage(
            items=[RecipeSummary.model_validate(record) for _, record in window],
            page=page,
            total_pages=math.ceil(total / page_size),
            total_count=total,
        )

    async def suggest(self, partial_query: str, limit: int) -> list[str]:
        candidates: list[str] = []
        for record in self._recipes:
            if record.get("published") is False:
                continue
            title = record.get("title")
            if isinstance(title, str):
                candidates.append(title)
            candidates.extend(_tag_names(record))
        ranked = rank_suggestions(partial_query, candidates, max_suggestions=limit)
        return [text for text, _ in ranked]


__all__ = ["InMemoryRecipeStore", "matches", "sort_records"]
