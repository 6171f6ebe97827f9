"""Shared pytest fixtures for the search engine tests."""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from recipe_search.db.base import Base
from recipe_search.storage.kv import InMemoryKeyValueStore


class _AsyncSessionWrapper:
    def __init__(self, sync_session) -> None:
        self._sync = sync_session

    async def execute(self, *args, **kwargs):
        return self._sync.execute(*args, **kwargs)

    def add(self, obj) -> None:
        self._sync.add(obj)

    async def flush(self) -> None:
        self._sync.flush()

    async def commit(self) -> None:
        self._sync.commit()

    async def rollback(self) -> None:
        self._sync.rollback()

    async def close(self) -> None:
        self._sync.close()


class _SessionContext:
    def __init__(self, session) -> None:
        self.session = session

    async def __aenter__(self):
        return self.session

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is not None:
            await self.session.rollback()


@pytest_asyncio.fixture
async def session():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    sync_session = SessionLocal()
    try:
        yield _AsyncSessionWrapper(sync_session)
    finally:
        sync_session.close()
        engine.dispose()


@pytest.fixture
def session_factory(session):
    return lambda: _SessionContext(session)


@pytest.fixture
def storage():
    return InMemoryKeyValueStore()


@pytest.fixture
def no_sleep(monkeypatch):
    async def _noop_sleep(delay):
        return None

    monkeypatch.setattr("recipe_search.utils.retry.asyncio.sleep", _noop_sleep)


@pytest.fixture
def make_recipes():
    def _make(count: int, **overrides):
        return [
            {
                "id": index,
                "title": f"Recipe {index}",
                "slug": f"recipe-{index}",
                "category": "dinner",
                "difficulty": "easy",
                "totalTime": 30,
                "servings": 4,
                "tags": [],
                "createdAt": f"2024-01-{index:02d}T00:00:00Z",
                **overrides,
            }
            for index in range(1, count + 1)
        ]

    return _make
