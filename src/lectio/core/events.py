"""Listener registry used for reader notifications."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, List, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")
Listener = Callable[[T], None]


class EventHandler(Generic[T]):
    """Ordered set of listeners invoked synchronously with one argument.

    A failing listener is logged and does not prevent the remaining ones
    from running.
    """

    def __init__(self, name: str = "event") -> None:
        self._name = name
        self._listeners: List[Listener[T]] = []
        self._lock = threading.Lock()

    def add_listener(self, listener: Listener[T]) -> bool:
        with self._lock:
            if listener in self._listeners:
                return False
            self._listeners.append(listener)
            return True

    def remove_listener(self, listener: Listener[T]) -> bool:
        with self._lock:
            if listener not in self._listeners:
                return False
            self._listeners.remove(listener)
            return True

    def clear(self) -> None:
        with self._lock:
            self._listeners.clear()

    def __len__(self) -> int:
        return len(self._listeners)

    def invoke(self, arg: T) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(arg)
            except Exception:  # pylint: disable=broad-except
                logger.exception("Listener for %s failed", self._name)


__all__ = ["EventHandler", "Listener"]
