"""Filter value model: the single mutable holder of the active ``FilterState``."""

from __future__ import annotations

from typing import Any

from recipe_search.domain.models import FacetFilters, FilterState

FILTER_FIELDS = frozenset(
    {"query", "category", "difficulty", "max_time", "servings", "tags", "sort_by"}
)
STATE_FIELDS = FILTER_FIELDS | {"page"}


def merge_filters(state: FilterState, **changes: Any) -> FilterState:
    """Return ``state`` with ``changes`` merged in.

    Any filter-affecting field resets ``page`` to 1; an explicit ``page`` in the
    same call is applied after that reset.
    """

    unknown = set(changes) - STATE_FIELDS
    if unknown:
        raise TypeError(f"Unknown filter fields: {', '.join(sorted(unknown))}")

    payload = state.model_dump()
    payload.update(changes)
    if FILTER_FIELDS.intersection(changes) and "page" not in changes:
        payload["page"] = 1
    return FilterState.model_validate(payload)


class FilterModel:
    def __init__(self, initial: FilterState | None = None) -> None:
        self._state = initial or FilterState()

    @property
    def state(self) -> FilterState:
        return self._state

    def set(self, **changes: Any) -> FilterState:
        self._state = merge_filters(self._state, **changes)
        return self._state

    def toggle_tag(self, tag: str) -> FilterState:
        tag = (tag or "").strip()
        if not tag:
            return self._state
        tags = set(self._state.tags)
        if tag in tags:
            tags.remove(tag)
        else:
            tags.add(tag)
        return self.set(tags=frozenset(tags))

    def clear_filters(self) -> FilterState:
        defaults = FacetFilters()
        return self.set(**defaults.model_dump())

    def clear_query(self) -> FilterState:
        return self.set(query="")

    def reset(self) -> FilterState:
        self._state = FilterState()
        return self._state

    def replace(self, state: FilterState) -> FilterState:
        self._state = state
        return self._state


__all__ = ["FILTER_FIELDS", "FilterModel", "merge_filters"]
