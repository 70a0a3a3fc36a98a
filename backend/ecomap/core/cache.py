# backend/ecomap/core/cache.py
import logging
from collections import OrderedDict
from typing import Any, Hashable, Optional

logger = logging.getLogger(__name__)


def location_key(lat: float, lon: float, extra: Any = None) -> str:
    """Cache key by location rounded to 4 decimals (~11 m)."""
    suffix = "latest" if extra is None else str(extra)
    return f"{lat:.4f},{lon:.4f},{suffix}"


class NeverEvict:
    """Default policy: the cache only grows. Lifetime = the owning object."""

    def select_victims(self, entries: "OrderedDict") -> list:
        return []


class BoundedEviction:
    """Drops the oldest inserted entries once the cache exceeds max_entries."""

    def __init__(self, max_entries: int):
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries

    def select_victims(self, entries: "OrderedDict") -> list:
        overflow = len(entries) - self.max_entries
        if overflow <= 0:
            return []
        return list(entries.keys())[:overflow]


class ResultCache:
    """
    In-memory key -> value map injected into the services that need it.
    Nothing is shared between instances, so each orchestrator (and each test)
    gets its own lifetime.
    """

    def __init__(self, policy=None, name: str = "cache"):
        self.policy = policy or NeverEvict()
        self.name = name
        self._entries: "OrderedDict[Hashable, Any]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    @classmethod
    def from_max_entries(cls, max_entries: int, name: str = "cache") -> "ResultCache":
        policy = BoundedEviction(max_entries) if max_entries > 0 else NeverEvict()
        return cls(policy=policy, name=name)

    def get(self, key: Hashable) -> Optional[Any]:
        if key in self._entries:
            self.hits += 1
            return self._entries[key]
        self.misses += 1
        return None

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = value
        for victim in self.policy.select_victims(self._entries):
            del self._entries[victim]
            logger.debug(f"[{self.name}] evicted {victim}")

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0
