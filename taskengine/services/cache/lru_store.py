"""
Bounded LRU store with per-entry TTL.

Reading an entry refreshes its recency (protects it from LRU eviction) but
never extends its expiry. Entries leave the store on whichever comes first:
capacity eviction of the least recently used key, or TTL expiry.
"""

import time
from collections import OrderedDict
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

V = TypeVar("V")


@dataclass(slots=True)
class _Entry(Generic[V]):
    value: V
    inserted_at: float
    ttl: float | None

    def is_expired(self, now: float) -> bool:
        return self.ttl is not None and now - self.inserted_at >= self.ttl


class LRUTTLStore(Generic[V]):
    """
    In-memory key/value store with LRU eviction and TTL expiry.

    Not thread-safe; every operation completes without yielding, so it is
    safe to share between coroutines on one event loop.

    Example:
        >>> store = LRUTTLStore[int](max_size=2, default_ttl=60)
        >>> store.set("a", 1)
        >>> store.get("a")
        1
    """

    def __init__(
        self,
        max_size: int,
        default_ttl: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize store.

        Args:
            max_size: Maximum number of entries before LRU eviction
            default_ttl: Entry lifetime in clock units (None = no expiry)
            clock: Monotonic time source
        """
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self.max_size = max_size
        self.default_ttl = default_ttl
        self._clock = clock
        self._data: OrderedDict[str, _Entry[V]] = OrderedDict()

    def get(self, key: str, default: Any = None) -> V | Any:
        """
        Get value and mark it most recently used.

        Expired entries are removed and reported as missing.
        """
        entry = self._data.get(key)
        if entry is None:
            return default
        if entry.is_expired(self._clock()):
            del self._data[key]
            return default
        self._data.move_to_end(key)
        return entry.value

    def peek(self, key: str, default: Any = None) -> V | Any:
        """Get value without touching recency."""
        entry = self._data.get(key)
        if entry is None or entry.is_expired(self._clock()):
            return default
        return entry.value

    def set(self, key: str, value: V, ttl: float | None = None) -> None:
        """
        Insert or replace a value, restarting its TTL.

        Args:
            key: Entry key
            value: Value to store
            ttl: Lifetime override for this entry
        """
        entry_ttl = ttl if ttl is not None else self.default_ttl
        self._data[key] = _Entry(value=value, inserted_at=self._clock(), ttl=entry_ttl)
        self._data.move_to_end(key)
        while len(self._data) > self.max_size:
            self._data.popitem(last=False)

    def delete(self, key: str) -> bool:
        """Remove key, returning True if it was present."""
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        """Snapshot of live keys, least recently used first."""
        now = self._clock()
        return [k for k, entry in self._data.items() if not entry.is_expired(now)]

    def purge_expired(self) -> int:
        """Drop all expired entries, returning how many were removed."""
        now = self._clock()
        expired = [k for k, entry in self._data.items() if entry.is_expired(now)]
        for key in expired:
            del self._data[key]
        return len(expired)

    def clear(self) -> None:
        """Remove every entry."""
        self._data.clear()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.peek(key, _MISSING) is not _MISSING

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())


_MISSING = object()
