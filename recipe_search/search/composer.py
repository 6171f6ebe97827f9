"""Translate ``FilterState`` to request descriptors / query strings and back.

Sentinel values never reach the wire: a default state encodes to an empty query
string, which keeps shareable URLs minimal.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from recipe_search.domain.models import (
    ALL,
    DEFAULT_SORT,
    FilterState,
    coerce_sort,
    coerce_tags,
    parse_count,
)
from recipe_search.services.exceptions import InvalidFilterValue
from recipe_search.utils.text import normalize_query

MULTI_VALUE_FIELDS = frozenset({"tags"})


def _positive_or_none(value: Any, field: str) -> int | None:
    try:
        parsed = parse_count(value, field)
    except InvalidFilterValue:
        return None
    return parsed or None


class RequestDescriptor(BaseModel):
    """Closed, flat request shape understood by the store and the URL surface."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    query: str | None = Field(default=None, alias="q")
    category: str | None = None
    difficulty: str | None = None
    max_time: int | None = Field(default=None, alias="maxTime")
    servings: int | None = None
    tags: str | None = None
    sort: str | None = None
    page: int | None = None

    @model_validator(mode="before")
    @classmethod
    def _flatten(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        flat: dict[str, Any] = {}
        for key, value in data.items():
            if isinstance(value, (list, tuple)) and key not in MULTI_VALUE_FIELDS:
                value = value[0] if value else None
            flat[key] = value
        return flat

    @field_validator("query", mode="before")
    @classmethod
    def _query(cls, value: Any) -> str | None:
        if not isinstance(value, str):
            return None
        return normalize_query(value) or None

    @field_validator("category", "difficulty", mode="before")
    @classmethod
    def _facet(cls, value: Any) -> str | None:
        if not isinstance(value, str):
            return None
        text = value.strip()
        if not text or text.lower() == ALL:
            return None
        return text

    @field_validator("difficulty")
    @classmethod
    def _known_difficulty(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.lower()
        return value if value in ("easy", "medium", "hard") else None

    @field_validator("max_time", mode="before")
    @classmethod
    def _max_time(cls, value: Any) -> int | None:
        return _positive_or_none(value, "maxTime")

    @field_validator("servings", mode="before")
    @classmethod
    def _servings(cls, value: Any) -> int | None:
        return _positive_or_none(value, "servings")

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, value: Any) -> str | None:
        tags = coerce_tags(value)
        return ",".join(sorted(tags)) if tags else None

    @field_validator("sort", mode="before")
    @classmethod
    def _sort(cls, value: Any) -> str | None:
        if value is None:
            return None
        key = coerce_sort(value)
        return None if key == DEFAULT_SORT else key.value

    @field_validator("page", mode="before")
    @classmethod
    def _page(cls, value: Any) -> int | None:
        page = _positive_or_none(value, "page")
        return page if page and page > 1 else None

    @property
    def tag_list(self) -> list[str]:
        if not self.tags:
            return []
        return [segment for segment in self.tags.split(",") if segment]


def to_request(state: FilterState) -> RequestDescriptor:
    return RequestDescriptor(
        query=state.query,
        category=state.category,
        difficulty=state.difficulty,
        max_time=state.max_time,
        servings=state.servings,
        tags=state.tags,
        sort=state.sort_by.value,
        page=state.page,
    )


def parse_request(data: RequestDescriptor | Mapping[str, Any] | None) -> RequestDescriptor:
    if isinstance(data, RequestDescriptor):
        return data
    return RequestDescriptor.model_validate(dict(data or {}))


def from_request(data: RequestDescriptor | Mapping[str, Any] | None) -> FilterState:
    """Rebuild a ``FilterState``; untrusted input degrades to sentinels."""

    descriptor = parse_request(data)
    return FilterState(
        query=descriptor.query or "",
        category=descriptor.category or ALL,
        difficulty=descriptor.difficulty or ALL,
        max_time=descriptor.max_time or 0,
        servings=descriptor.servings or 0,
        tags=descriptor.tag_list,
        sort_by=descriptor.sort or DEFAULT_SORT,
        page=descriptor.page or 1,
    )


def to_params(descriptor: RequestDescriptor) -> dict[str, str]:
    """Wire form (``q``, ``maxTime`` ...) with every value as a string."""

    payload = descriptor.model_dump(by_alias=True, exclude_none=True)
    return {key: str(value) for key, value in payload.items()}


def store_params(descriptor: RequestDescriptor) -> dict[str, str]:
    params = to_params(descriptor)
    params.pop("page", None)
    return params


def to_query_string(state: FilterState) -> str:
    return str(httpx.QueryParams(to_params(to_request(state))))


def from_query_string(query_string: str | None) -> FilterState:
    text = (query_string or "").strip()
    if "?" in text:
        text = text.split("?", 1)[1]
    text = text.split("#", 1)[0]
    params = httpx.QueryParams(text)
    return from_request({key: params.get(key) for key in params.keys()})


def build_url(path: str, state: FilterState) -> str:
    query_string = to_query_string(state)
    return f"{path}?{query_string}" if query_string else path


__all__ = [
    "RequestDescriptor",
    "build_url",
    "from_query_string",
    "from_request",
    "parse_request",
    "store_params",
    "to_params",
    "to_query_string",
    "to_request",
]
