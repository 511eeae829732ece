"""Scoped key-value persistence for reader session state.

State written here has to survive the host tearing the reader down and
building it again, so every write goes straight to the backing store.
"""

from __future__ import annotations

import copy
import logging
import os
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Optional, Protocol, TypeVar

import yaml

from lectio.core.events import EventHandler


logger = logging.getLogger(__name__)

T = TypeVar("T")


class ValueStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryValueStore:
    """In-process store; contents live as long as the object."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._values: Dict[str, Any] = copy.deepcopy(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            if key not in self._values:
                return default
            return copy.deepcopy(self._values[key])

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._values[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._values)


class YamlValueStore(MemoryValueStore):
    """Store persisted to a YAML file, rewritten on every change."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        super().__init__(self._read())

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as file:
            payload = yaml.safe_load(file) or {}
        if not isinstance(payload, dict):
            logger.warning("Ignoring malformed state file %s", self.path)
            return {}
        return payload

    def _write(self, values: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as file:
            yaml.safe_dump(values, file, allow_unicode=True, sort_keys=True)
        os.replace(tmp_path, self.path)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._values[key] = copy.deepcopy(value)
            self._write(self._values)

    def delete(self, key: str) -> None:
        with self._lock:
            if key in self._values:
                del self._values[key]
                self._write(self._values)


class StoredValue(Generic[T]):
    """One typed value in a `ValueStore`, with change listeners."""

    def __init__(
        self,
        store: ValueStore,
        key: str,
        default: T,
        *,
        encode: Callable[[T], Any] | None = None,
        decode: Callable[[Any], T] | None = None,
    ) -> None:
        self._store = store
        self.key = key
        self._default = default
        self._encode = encode or (lambda value: value)
        self._decode = decode or (lambda raw: raw)
        self.changed: EventHandler[T] = EventHandler(key)

    def get(self) -> T:
        raw = self._store.get(self.key)
        if raw is None:
            return self._default
        try:
            return self._decode(raw)
        except (TypeError, ValueError) as exc:
            logger.warning("Discarding unreadable value for %s: %s", self.key, exc)
            return self._default

    def set(self, value: T) -> None:
        self._store.set(self.key, self._encode(value))
        self.changed.invoke(value)

    def update(self, update_fn: Callable[[T], T]) -> T:
        value = update_fn(self.get())
        self.set(value)
        return value

    def clear(self) -> None:
        self._store.delete(self.key)
        self.changed.invoke(self._default)


__all__ = [
    "MemoryValueStore",
    "StoredValue",
    "ValueStore",
    "YamlValueStore",
]
