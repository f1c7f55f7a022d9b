import json
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.app.services.cache_service import CacheUnavailableError, ICacheService


class RedisCacheService(ICacheService):
    """Thin Redis wrapper; every command is bounded by the socket timeout"""

    DEFAULT_OPERATION_TIMEOUT = 5.0

    def __init__(
        self,
        redis_url: str,
        *,
        socket_timeout: float = DEFAULT_OPERATION_TIMEOUT,
        client: Optional[aioredis.Redis] = None,
    ):
        self.redis_url = redis_url
        self.client = client or aioredis.from_url(
            redis_url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )

    async def set(self, key: str, value: dict, ttl_seconds: int) -> None:
        try:
            # Redis rejects non-positive expiries
            await self.client.set(key, json.dumps(value), ex=max(1, int(ttl_seconds)))
        except RedisError as exc:
            raise CacheUnavailableError(f"Redis SET failed for {key}") from exc

    async def get(self, key: str) -> Optional[dict]:
        try:
            raw = await self.client.get(key)
        except RedisError as exc:
            raise CacheUnavailableError(f"Redis GET failed for {key}") from exc
        if raw is None:
            return None
        return json.loads(raw)

    async def exists(self, key: str) -> bool:
        try:
            return bool(await self.client.exists(key))
        except RedisError as exc:
            raise CacheUnavailableError(f"Redis EXISTS failed for {key}") from exc

    async def delete(self, key: str) -> None:
        try:
            await self.client.delete(key)
        except RedisError as exc:
            raise CacheUnavailableError(f"Redis DEL failed for {key}") from exc

    async def close(self) -> None:
        await self.client.aclose()
