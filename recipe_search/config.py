"""Runtime configuration based on environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import AnyHttpUrl, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreSettings(BaseModel):
    base_url: AnyHttpUrl = Field(
        default="http://localhost:3000",
        description="Origin of the site exposing the recipe search API.",
    )
    search_path: str = "/api/recipes/search"
    suggestions_path: str = "/api/recipes/suggestions"
    request_timeout_seconds: int = Field(default=10, ge=1, le=60)
    max_attempts: int = Field(default=3, ge=1, le=10)
    retry_base_delay: float = Field(default=0.5, ge=0)

    @field_validator("search_path", "suggestions_path")
    @classmethod
    def _ensure_leading_slash(cls, value: str) -> str:
        value = value.strip()
        return value if value.startswith("/") else f"/{value}"


class PaginationSettings(BaseModel):
    page_size: int = Field(default=10, ge=1, le=100)


class SuggestionSettings(BaseModel):
    debounce_ms: int = Field(default=300, ge=0, le=5000)
    min_query_length: int = Field(default=2, ge=1)
    limit: int = Field(default=5, ge=1, le=50)

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000


class HistorySettings(BaseModel):
    namespace: str = Field(default="recipeSearchHistory", min_length=1)
    max_entries: int = Field(default=8, ge=1, le=100)
    recent_namespace: str = Field(default="recentRecipeSearches", min_length=1)
    max_recent: int = Field(default=5, ge=1, le=50)


class DatabaseSettings(BaseModel):
    dsn: str = Field(
        default="sqlite+aiosqlite:///./recipe_search.db",
        description="SQLAlchemy async DSN for the key/value table backing search history.",
    )
    echo: bool = False


class SearchSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RECIPE_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    environment: str = "dev"
    default_locale: str = "en"

    store: StoreSettings = Field(default_factory=StoreSettings)
    pagination: PaginationSettings = Field(default_factory=PaginationSettings)
    suggestions: SuggestionSettings = Field(default_factory=SuggestionSettings)
    history: HistorySettings = Field(default_factory=HistorySettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)


@lru_cache
def get_settings() -> SearchSettings:
    """Return cached settings instance."""

    return SearchSettings()


__all__ = [
    "DatabaseSettings",
    "HistorySettings",
    "PaginationSettings",
    "SearchSettings",
    "StoreSettings",
    "SuggestionSettings",
    "get_settings",
]
