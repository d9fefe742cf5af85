"""
TTL cache - per-provider store of adapted windows and reference lists.
An entry is valid while `now - stored_at < ttl`; a ttl of None never expires.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional


@dataclass
class CacheEntry:
    payload: Any
    stored_at: float

    def is_valid(self, now: float, ttl: Optional[float]) -> bool:
        if ttl is None:
            return True
        return now - self.stored_at < ttl


class TTLCache:
    """Keyed by entity id. Private to the owning provider instance."""

    def __init__(self, ttl: Optional[float], clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        """Return the entry if it is still valid. Stale entries are dropped."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_valid(self._clock(), self.ttl):
            del self._entries[key]
            return None
        return entry

    def get(self, key: str) -> Optional[Any]:
        entry = self.get_entry(key)
        return entry.payload if entry else None

    def set(self, key: str, payload: Any) -> CacheEntry:
        entry = CacheEntry(payload=payload, stored_at=self._clock())
        self._entries[key] = entry
        return entry

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def has_valid_entries(self) -> bool:
        now = self._clock()
        return any(entry.is_valid(now, self.ttl) for entry in self._entries.values())

    def keys(self) -> List[str]:
        return list(self._entries.keys())

    def info(self) -> Dict[str, Any]:
        now = self._clock()
        return {
            "size": len(self._entries),
            "valid": sum(1 for e in self._entries.values() if e.is_valid(now, self.ttl)),
            "keys": self.keys(),
            "ttl_sec": self.ttl
        }

    def __len__(self) -> int:
        return len(self._entries)
