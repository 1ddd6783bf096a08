import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional


@dataclass
class CacheEntry:
    value: Any
    timestamp: float


class TTLCache:
    """In-memory cache with a fixed TTL per instance and a bounded LRU size.

    Each gateway owns one instance; the plugin shares it for the life of the
    process. An entry is trusted only while ``now - timestamp < ttl``.
    """

    def __init__(
        self,
        ttl: float = 300,
        max_size: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.max_size = max_size
        self._clock = clock
        self._cache: Dict[str, CacheEntry] = {}
        self._access_order: List[str] = []
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[Any]:
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            if self._clock() - entry.timestamp >= self.ttl:
                return None

            # Update access order for LRU
            if key in self._access_order:
                self._access_order.remove(key)
            self._access_order.append(key)

            return entry.value

    async def set(self, key: str, value: Any) -> None:
        async with self._lock:
            self._cache[key] = CacheEntry(value=value, timestamp=self._clock())

            if key in self._access_order:
                self._access_order.remove(key)
            self._access_order.append(key)

            while len(self._cache) > self.max_size:
                oldest_key = self._access_order.pop(0)
                self._cache.pop(oldest_key, None)

    async def clear(self) -> None:
        async with self._lock:
            self._cache.clear()
            self._access_order.clear()

    def size(self) -> int:
        return len(self._cache)
