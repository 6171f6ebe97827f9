"""Error taxonomy of the search engine.

Only ``RecipeStoreError`` is meant to leave a collaborator; the remaining errors are
caught inside the engine and surface as data (``SearchView.error``, empty
suggestions, empty history).
"""

from __future__ import annotations


class SearchError(Exception):
    pass


class RecipeStoreError(SearchError):
    """Raised when the recipe store cannot be reached or answers with garbage."""


class SuggestionFetchFailed(SearchError):
    pass


class PageFetchFailed(SearchError):
    def __init__(self, page: int, message: str | None = None) -> None:
        self.page = page
        super().__init__(message or f"Failed to load page {page}.")


class HistoryPersistenceCorrupt(SearchError):
    pass


class InvalidFilterValue(SearchError, ValueError):
    def __init__(self, field: str, value: object) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Invalid value for {field}: {value!r}")


__all__ = [
    "SearchError",
    "RecipeStoreError",
    "SuggestionFetchFailed",
    "PageFetchFailed",
    "HistoryPersistenceCorrupt",
    "InvalidFilterValue",
]
