from __future__ import annotations

import logging
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

E = TypeVar("E")

Listener = Callable[[E], None]
Unsubscribe = Callable[[], None]


class Observable(Generic[E]):
    """Minimal subscribe/notify mixin for the state holders."""

    def __init__(self) -> None:
        self._listeners: list[Listener[E]] = []

    def subscribe(self, listener: Listener[E]) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: E) -> None:
        # Iterate over a copy: listeners may unsubscribe while being notified.
        for listener in list(self._listeners):
            listener(event)
