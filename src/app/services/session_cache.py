"""
Session cache policy.

The presence of ``auth:session:{session_id}`` is the fast signal that a
session's access tokens are still usable. Entries live exactly as long as the
access token they were written for; deleting one revokes every outstanding
access token of that session before its natural expiry.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from src.app.services.cache_service import ICacheService
from src.domain.base import utc_now


class SessionCacheEntry(BaseModel):
    """Value stored for an active session"""

    user_id: str
    active: bool = True


class SessionCache:
    KEY_PREFIX = "auth:session:"

    def __init__(self, cache: ICacheService):
        self.cache = cache

    @classmethod
    def key(cls, session_id: str) -> str:
        return f"{cls.KEY_PREFIX}{session_id}"

    @staticmethod
    def ttl_seconds(expires_at: datetime, now: Optional[datetime] = None) -> int:
        """Seconds until expires_at, clamped to at least 1"""
        now = now or utc_now()
        return max(1, int((expires_at - now).total_seconds()))

    async def activate(
        self, session_id: str, user_id: str, access_expires_at: datetime
    ) -> None:
        entry = SessionCacheEntry(user_id=str(user_id))
        await self.cache.set(
            self.key(session_id),
            entry.model_dump(),
            self.ttl_seconds(access_expires_at),
        )

    async def is_active(self, session_id: str) -> bool:
        return await self.cache.exists(self.key(session_id))

    async def evict(self, session_id: str) -> None:
        await self.cache.delete(self.key(session_id))
