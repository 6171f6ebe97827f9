"""Persistence ports for small client-side state (search history)."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from contextlib import AbstractAsyncContextManager
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from recipe_search.db.models import KeyValueEntry
from recipe_search.utils.datetime import utc_now

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class KeyValueStore(Protocol):
    """Durable string store. ``set`` replaces the whole value in one write."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)


class SqlKeyValueStore:
    """Key/value rows in the ``kv_entries`` table, one transaction per call."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def get(self, key: str) -> str | None:
        async with self._session_factory() as session:
            entry = await self._find(session, key)
            return entry.value if entry is not None else None

    async def set(self, key: str, value: str) -> None:
        async with self._session_factory() as session:
            entry = await self._find(session, key)
            if entry is None:
                session.add(KeyValueEntry(key=key, value=value, updated_at=utc_now()))
            else:
                entry.value = value
                entry.updated_at = utc_now()
            await session.commit()

    async def delete(self, key: str) -> None:
        async with self._session_factory() as session:
            await session.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
            await session.commit()

    @staticmethod
    async def _find(session: AsyncSession, key: str) -> KeyValueEntry | None:
        stmt = select(KeyValueEntry).where(KeyValueEntry.key == key)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()


__all__ = ["InMemoryKeyValueStore", "KeyValueStore", "SessionFactory", "SqlKeyValueStore"]
