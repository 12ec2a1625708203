"""Run-scoped, write-once cache of resolved version sets."""

from __future__ import annotations

from typing import Dict, Generic, Hashable, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class RunCache(Generic[K, V]):
    """Write-once-per-key, read-many store that lives for one invocation.

    There is no eviction: the cache is created with the resolver and dropped
    when the process exits.
    """

    def __init__(self) -> None:
        self._entries: Dict[K, V] = {}

    def get(self, key: K) -> Optional[V]:
        """Return the cached value or None."""
        return self._entries.get(key)

    def set(self, key: K, value: V) -> None:
        """Store a value; a key can only be written once.

        Raises:
            KeyError: The key already holds a value.
        """
        if key in self._entries:
            raise KeyError(f"{key!r} is already cached")
        self._entries[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
