"""Recipe store contract and its HTTP implementation."""

from __future__ import annotations

import math
from typing import Any, Awaitable, Callable, Mapping, Protocol, Sequence, TypeVar

import httpx
from pydantic import ValidationError

from recipe_search.config import StoreSettings
from recipe_search.domain.models import ResultPage
from recipe_search.logging import logger
from recipe_search.search.composer import RequestDescriptor, store_params
from recipe_search.services.exceptions import RecipeStoreError
from recipe_search.utils.retry import retry_async

T = TypeVar("T")


class RecipeStore(Protocol):
    async def search(
        self, request: RequestDescriptor, page: int, page_size: int
    ) -> ResultPage: ...

    async def suggest(self, partial_query: str, limit: int) -> Sequence[str]: ...


def parse_search_response(data: Any, *, page: int, page_size: int) -> ResultPage:
    """Normalize the response shapes served by the recipes API into a ResultPage."""

    if not isinstance(data, Mapping):
        raise RecipeStoreError("Search response must be a JSON object.")

    if isinstance(data.get("pagination"), Mapping):
        pagination = data["pagination"]
        items = data.get("data") or data.get("recipes") or []
        total = pagination.get("total", len(items))
        total_pages = pagination.get("totalPages")
        page = pagination.get("page", page)
    elif "recipes" in data:
        items = data.get("recipes") or []
        total = data.get("total", len(items))
        total_pages = data.get("totalPages")
    elif "items" in data:
        items = data.get("items") or []
        total = data.get("total_count", data.get("totalCount", data.get("total", len(items))))
        total_pages = data.get("total_pages", data.get("totalPages"))
        page = data.get("page", page)
    else:
        raise RecipeStoreError("Search response has no recognizable result list.")

    try:
        total = int(total or 0)
        if total_pages is None:
            total_pages = math.ceil(total / page_size) if page_size > 0 else 0
        return ResultPage(
            items=items,
            page=int(page),
            total_pages=int(total_pages),
            total_count=total,
        )
    except (TypeError, ValueError, ValidationError) as exc:
        raise RecipeStoreError(f"Search response is malformed: {exc}") from exc


def parse_suggestions(data: Any) -> list[str]:
    if isinstance(data, Mapping):
        data = data.get("suggestions")
    if not isinstance(data, list):
        raise RecipeStoreError("Suggestion response must contain a list.")
    texts: list[str] = []
    for item in data:
        if isinstance(item, Mapping):
            item = item.get("text")
        if isinstance(item, str) and item.strip():
            texts.append(item)
    return texts


class HttpRecipeStore:
    """Talks to the site's ``/api/recipes`` endpoints."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: StoreSettings | None = None,
    ) -> None:
        self._client = http_client
        self._settings = settings or StoreSettings()

    async def search(
        self, request: RequestDescriptor, page: int, page_size: int
    ) -> ResultPage:
        params = store_params(request)
        params["page"] = str(page)
        params["limit"] = str(page_size)
        response = await self._get("recipe_search_request", self._settings.search_path, params)
        return parse_search_response(self._json(response), page=page, page_size=page_size)

    async def suggest(self, partial_query: str, limit: int) -> list[str]:
        query = (partial_query or "").strip()
        if not query:
            return []
        params = {"q": query, "limit": str(limit)}
        response = await self._get(
            "recipe_suggestions_request", self._settings.suggestions_path, params
        )
        return parse_suggestions(self._json(response))[:limit]

    async def _get(self, name: str, path: str, params: dict[str, str]) -> httpx.Response:
        url = self._url(path)

        async def _request():
            response = await self._client.get(
                url,
                params=params,
                timeout=self._settings.request_timeout_seconds,
            )
            response.raise_for_status()
            return response

        try:
            return await self._retry_http(name, _request)
        except httpx.HTTPStatusError as exc:
            detail = exc.response.text[:500] if exc.response is not None else str(exc)
            status_code = exc.response.status_code if exc.response is not None else "unknown"
            raise RecipeStoreError(f"Recipe API request failed ({status_code}): {detail}") from exc
        except httpx.RequestError as exc:
            raise RecipeStoreError(f"Failed to contact recipe API: {exc}") from exc

    async def _retry_http(self, name: str, operation: Callable[[], Awaitable[T]]) -> T:
        return await retry_async(
            operation,
            max_attempts=self._settings.max_attempts,
            base_delay=self._settings.retry_base_delay,
            retry_on=(httpx.HTTPError,),
            logger=logger,
            operation_name=name,
        )

    def _url(self, path: str) -> str:
        return f"{str(self._settings.base_url).rstrip('/')}{path}"

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise RecipeStoreError("Recipe API response is not valid JSON.") from exc


__all__ = [
    "HttpRecipeStore",
    "RecipeStore",
    "RecipeStoreError",
    "parse_search_response",
    "parse_suggestions",
]
