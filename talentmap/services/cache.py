"""
Query Cache

Read-through cache with an explicit invalidate-then-refetch contract. Reads are
keyed by tuples such as ``("allocations", "employee", 7)``; a successful mutation
invalidates every key under the affected prefixes and the next read reloads from
the store. There is no transactional link between a write and other readers.
"""
import logging
from typing import Any, Callable, Dict, Hashable, Tuple

logger = logging.getLogger(__name__)

Key = Tuple[Hashable, ...]


class QueryCache:
    def __init__(self):
        self._entries: Dict[Key, Any] = {}

    def get_or_load(self, key: Key, loader: Callable[[], Any]) -> Any:
        if key not in self._entries:
            self._entries[key] = loader()
        return self._entries[key]

    def is_cached(self, key: Key) -> bool:
        return key in self._entries

    def invalidate(self, *prefixes: Key) -> int:
        """Drop every entry whose key starts with one of ``prefixes``; returns how many."""
        stale = [
            key for key in self._entries
            if any(key[:len(prefix)] == prefix for prefix in prefixes)
        ]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug("Invalidated %d cached queries under %s", len(stale), prefixes)
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
