"""
In-memory TTL cache.

Used when CACHE_BACKEND=memory (single-process deployments, tests). Entries
past their expiry are treated as absent and dropped on access.
"""

import json
import time
from typing import Callable, Dict, Optional, Tuple

from src.app.services.cache_service import ICacheService


class InMemoryCacheService(ICacheService):
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        # key -> (serialized value, expires_at monotonic)
        self._entries: Dict[str, Tuple[str, float]] = {}

    def _live(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        raw, expires_at = entry
        if self.clock() >= expires_at:
            del self._entries[key]
            return None
        return raw

    async def set(self, key: str, value: dict, ttl_seconds: int) -> None:
        self._entries[key] = (json.dumps(value), self.clock() + max(1, int(ttl_seconds)))

    async def get(self, key: str) -> Optional[dict]:
        raw = self._live(key)
        return json.loads(raw) if raw is not None else None

    async def exists(self, key: str) -> bool:
        return self._live(key) is not None

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
