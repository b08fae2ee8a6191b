# ABAP ADT MCP Server
# File: cache.py
# Version: v1

"""In-process TTL store for GetObjectsList results.

Best-effort only: unsynchronized, lost on restart, and never consulted by
the request layer. GetObjectNodeFromCache reads nodes back from it and
GetObjectsList/GetProgFullCode fill it.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Optional, Tuple


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    sets: int = 0
    evictions: int = 0
    expirations: int = 0


class ObjectsListCache:
    """TTL + LRU-ish store of objects-list payloads.

    Keys are ``(parent_type, parent_name)``; values are the JSON-ready dicts
    produced by GetObjectsList, whose ``objects`` entries are node dicts with
    upper-case ADT field names.
    """

    def __init__(self, ttl_seconds: int = 600, max_entries: int = 32) -> None:
        self.ttl_seconds = int(ttl_seconds)
        self.max_entries = int(max_entries)
        self._store: "OrderedDict[Hashable, Tuple[float, Dict[str, Any]]]" = OrderedDict()
        self._stats = CacheStats()

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0 and self.max_entries > 0

    @staticmethod
    def make_key(parent_type: str, parent_name: str) -> Tuple[str, str]:
        return (parent_type.upper(), parent_name.upper())

    def set(self, key: Hashable, value: Dict[str, Any]) -> None:
        if not self.enabled:
            return

        if key in self._store:
            self._store.move_to_end(key)
        self._store[key] = (time.time() + float(self.ttl_seconds), value)
        self._stats.sets += 1

        while len(self._store) > self.max_entries:
            self._store.popitem(last=False)
            self._stats.evictions += 1

    def find_node(
        self, object_type: str, object_name: str, tech_name: str
    ) -> Optional[Dict[str, Any]]:
        """Most recently cached node matching all three fields (case-insensitive)."""
        self.purge_expired()
        wanted = (object_type.upper(), object_name.upper(), tech_name.upper())
        for _, payload in reversed(list(self._store.values())):
            for node in payload.get("objects") or []:
                candidate = (
                    str(node.get("OBJECT_TYPE") or "").upper(),
                    str(node.get("OBJECT_NAME") or "").upper(),
                    str(node.get("TECH_NAME") or "").upper(),
                )
                if candidate == wanted:
                    self._stats.hits += 1
                    return node
        self._stats.misses += 1
        return None

    def update_node(
        self,
        object_type: str,
        object_name: str,
        tech_name: str,
        updates: Dict[str, Any],
    ) -> bool:
        """Merge ``updates`` into a cached node in place; False if not cached."""
        node = self.find_node(object_type, object_name, tech_name)
        if node is None:
            return False
        node.update(updates)
        return True

    def purge_expired(self) -> int:
        """Remove expired entries and return count removed."""
        if not self._store:
            return 0

        now = time.time()
        expired = [k for k, (exp, _) in self._store.items() if exp < now]
        for k in expired:
            self._store.pop(k, None)
        self._stats.expirations += len(expired)
        return len(expired)

    def stats(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "ttl_seconds": self.ttl_seconds,
            "max_entries": self.max_entries,
            "size": len(self._store),
            "hits": self._stats.hits,
            "misses": self._stats.misses,
            "sets": self._stats.sets,
            "evictions": self._stats.evictions,
            "expirations": self._stats.expirations,
        }
