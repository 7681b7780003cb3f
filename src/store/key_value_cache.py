"""Pluggable key/value cache implementations.

Clients receive a cache at construction and only rely on the
``KeyValueCache`` protocol. The in-memory implementations do no locking
and suit a single event loop.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Protocol

from core.errors import GeoCatalogConfigError


class KeyValueCache(Protocol):
    """Minimal cache contract used by cache repositories."""

    def get(self, key: str) -> str | None:
        """Return the stored value or None."""
        ...

    def put(self, key: str, value: str) -> bool:
        """Store a value and return whether it was stored."""
        ...


class InMemoryKeyValueCache:
    """Unbounded dictionary-backed cache. Later writes overwrite earlier ones."""

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._entries.get(key)

    def put(self, key: str, value: str) -> bool:
        self._entries[key] = value
        return True

    def remove(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def __len__(self) -> int:
        return len(self._entries)


class LruKeyValueCache:
    """Bounded cache evicting the least recently used entry."""

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise GeoCatalogConfigError(
                f"Invalid cache capacity {capacity}: capacity must be at least 1."
            )
        self._capacity = capacity
        self._entries: OrderedDict[str, str] = OrderedDict()

    def get(self, key: str) -> str | None:
        value = self._entries.get(key)
        if value is not None:
            self._entries.move_to_end(key)
        return value

    def put(self, key: str, value: str) -> bool:
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self._capacity:
            self._entries.popitem(last=False)
        return True

    def remove(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def __len__(self) -> int:
        return len(self._entries)
