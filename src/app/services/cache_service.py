from abc import ABC, abstractmethod
from typing import Optional


class CacheUnavailableError(Exception):
    """Raised by cache backends when the cache cannot answer (timeout, connection loss)"""


class ICacheService(ABC):
    """
    Key/value cache with per-key TTL - application layer.

    Values are JSON-serialisable dicts. Per-key operations are atomic at the
    cache layer; backends raise CacheUnavailableError on transport failures.
    """

    @abstractmethod
    async def set(self, key: str, value: dict, ttl_seconds: int) -> None:
        """Store value under key, expiring after ttl_seconds"""
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[dict]:
        """Get value for key, or None if absent or expired"""
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check whether key is present and not expired"""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key; removing an absent key is not an error"""
        pass
