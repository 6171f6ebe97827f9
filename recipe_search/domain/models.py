"""Pydantic models shared across the search engine layers."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from recipe_search.logging import logger
from recipe_search.services.exceptions import InvalidFilterValue
from recipe_search.utils.datetime import to_iso, utc_now
from recipe_search.utils.text import normalize_query

ALL = "all"
DIFFICULTIES = ("easy", "medium", "hard")


class SortKey(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    TITLE = "title"
    TIME = "time"
    DIFFICULTY = "difficulty"


DEFAULT_SORT = SortKey.NEWEST


def parse_count(value: Any, field: str) -> int:
    """Parse a non-negative integer facet value.

    Raises ``InvalidFilterValue`` when ``value`` is not an integer at all; negative
    numbers are clamped to ``0``.
    """

    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise InvalidFilterValue(field, value)
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            raise InvalidFilterValue(field, value)
        value = int(value)
    elif isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError as exc:
            raise InvalidFilterValue(field, value) from exc
    elif not isinstance(value, int):
        raise InvalidFilterValue(field, value)
    if value < 0:
        logger.debug("filter_value_clamped", field=field, value=value)
        return 0
    return value


def coerce_count(value: Any, field: str) -> int:
    try:
        return parse_count(value, field)
    except InvalidFilterValue:
        logger.debug("filter_value_reset", field=field, value=repr(value))
        return 0


def coerce_page(value: Any) -> int:
    return max(1, coerce_count(value, "page"))


def coerce_category(value: Any) -> str:
    if not isinstance(value, str):
        return ALL
    text = value.strip()
    if not text or text.lower() == ALL:
        return ALL
    return text


def coerce_difficulty(value: Any) -> str:
    if not isinstance(value, str):
        return ALL
    text = value.strip().lower()
    return text if text in DIFFICULTIES else ALL


def coerce_sort(value: Any) -> SortKey:
    if isinstance(value, SortKey):
        return value
    try:
        return SortKey(str(value).strip().lower())
    except ValueError:
        return DEFAULT_SORT


def coerce_tags(value: Any) -> frozenset[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        value = [value]
    tags = set()
    for item in value:
        if not isinstance(item, str):
            continue
        # commas delimit tags on the wire, so they cannot be part of one
        for segment in item.split(","):
            tag = segment.strip()
            if tag:
                tags.add(tag)
    return frozenset(tags)


class FacetFilters(BaseModel):
    """The facet dimensions of a search, without query, sort and page."""

    model_config = ConfigDict(frozen=True)

    category: str = ALL
    difficulty: str = ALL
    max_time: int = 0
    servings: int = 0
    tags: frozenset[str] = frozenset()

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, value: Any) -> str:
        return coerce_category(value)

    @field_validator("difficulty", mode="before")
    @classmethod
    def _difficulty(cls, value: Any) -> str:
        return coerce_difficulty(value)

    @field_validator("max_time", "servings", mode="before")
    @classmethod
    def _counts(cls, value: Any, info: ValidationInfo) -> int:
        return coerce_count(value, info.field_name)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, value: Any) -> frozenset[str]:
        return coerce_tags(value)

    @property
    def is_active(self) -> bool:
        return (
            self.category != ALL
            or self.difficulty != ALL
            or self.max_time > 0
            or self.servings > 0
            or bool(self.tags)
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "difficulty": self.difficulty,
            "maxTime": self.max_time,
            "servings": self.servings,
            "tags": sorted(self.tags),
        }


class FilterState(FacetFilters):
    """Immutable description of the active search."""

    query: str = ""
    sort_by: SortKey = DEFAULT_SORT
    page: int = 1

    @field_validator("query", mode="before")
    @classmethod
    def _query(cls, value: Any) -> str:
        return normalize_query(value) if isinstance(value, str) else ""

    @field_validator("sort_by", mode="before")
    @classmethod
    def _sort(cls, value: Any) -> SortKey:
        return coerce_sort(value)

    @field_validator("page", mode="before")
    @classmethod
    def _page(cls, value: Any) -> int:
        return coerce_page(value)

    @property
    def facets(self) -> FacetFilters:
        return FacetFilters(
            category=self.category,
            difficulty=self.difficulty,
            max_time=self.max_time,
            servings=self.servings,
            tags=self.tags,
        )

    @property
    def has_active_filters(self) -> bool:
        return self.is_active

    @property
    def has_search_query(self) -> bool:
        return bool(self.query)

    @property
    def is_default(self) -> bool:
        return self == FilterState()

    def same_search(self, other: "FilterState") -> bool:
        """True when both states describe the same result set, ignoring page."""

        return self.model_copy(update={"page": 1}) == other.model_copy(update={"page": 1})


class SuggestionItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str


class HistoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    query: str
    committed_at: datetime = Field(default_factory=utc_now)

    def to_payload(self) -> dict[str, str]:
        return {"query": self.query, "committedAt": to_iso(self.committed_at)}


class RecentSearch(BaseModel):
    model_config = ConfigDict(frozen=True)

    query: str
    filters: FacetFilters = Field(default_factory=FacetFilters)
    committed_at: datetime = Field(default_factory=utc_now)

    def to_payload(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "filters": self.filters.to_payload(),
            "committedAt": to_iso(self.committed_at),
        }


class RecipeSummary(BaseModel):
    """Card-level view of a recipe; only ``id`` matters to the engine."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    title: str | None = None
    slug: str | None = None
    description: str | None = None
    category: str | None = None
    difficulty: str | None = None
    total_time: int | None = Field(default=None, alias="totalTime")
    servings: int | None = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("tags", mode="before")
    @classmethod
    def _tag_names(cls, value: Any) -> list[str]:
        if not value:
            return []
        names: list[str] = []
        for item in value:
            if isinstance(item, dict):
                item = item.get("name")
            if isinstance(item, str) and item:
                names.append(item)
        return names


class ResultPage(BaseModel):
    items: list[RecipeSummary] = Field(default_factory=list)
    page: int = Field(default=1, ge=1)
    total_pages: int = Field(default=0, ge=0)
    total_count: int = Field(default=0, ge=0)

    @property
    def has_more(self) -> bool:
        return self.page < self.total_pages


class FilterPill(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    value: str
    kind: Literal["category", "difficulty", "time", "servings", "tag"]


class SearchErrorInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    page: int
    retryable: bool = True


class SearchView(BaseModel):
    """Read model published to presentation components."""

    model_config = ConfigDict(frozen=True)

    query: str
    filters: FacetFilters
    sort_by: SortKey
    results: tuple[RecipeSummary, ...] = ()
    total_results: int = 0
    current_page: int = 1
    total_pages: int = 0
    has_more: bool = False
    is_loading: bool = False
    is_loading_more: bool = False
    error: SearchErrorInfo | None = None
    has_active_filters: bool = False
    has_search_query: bool = False
    is_empty: bool = True
    search_summary: str = ""
    query_string: str = ""
    active_filters: tuple[FilterPill, ...] = ()


__all__ = [
    "ALL",
    "DEFAULT_SORT",
    "DIFFICULTIES",
    "FacetFilters",
    "FilterPill",
    "FilterState",
    "HistoryEntry",
    "RecentSearch",
    "RecipeSummary",
    "ResultPage",
    "SearchErrorInfo",
    "SearchView",
    "SortKey",
    "SuggestionItem",
    "coerce_count",
    "coerce_page",
    "coerce_sort",
    "coerce_tags",
    "parse_count",
]
