"""Minimal publish/subscribe container for engine state."""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

from recipe_search.logging import logger

T = TypeVar("T")
Listener = Callable[[T], object]


class Observable(Generic[T]):
    def __init__(self, name: str) -> None:
        self._name = name
        self._listeners: list[Listener[T]] = []

    def subscribe(self, listener: Listener[T]) -> Callable[[], None]:
        """Register ``listener``; the returned callable unregisters it."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def publish(self, value: T) -> None:
        # Listener failures belong to the presentation layer; they must not break
        # the engine's state transitions.
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:
                logger.exception("state_listener_failed", source=self._name)

    def __len__(self) -> int:
        return len(self._listeners)


__all__ = ["Listener", "Observable"]
