from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.domain.entities import Session


class ISessionRepository(ABC):
    """Session repository interface - application layer"""

    @abstractmethod
    async def create(self, session: Session) -> Session:
        """Create a new session"""
        pass

    @abstractmethod
    async def get_by_id(self, pk: UUID) -> Optional[Session]:
        """Get session by storage key"""
        pass

    @abstractmethod
    async def get_by_session_id(self, session_id: str) -> Optional[Session]:
        """Get session by its opaque session identifier, whatever its state"""
        pass

    @abstractmethod
    async def get_active_by_user_id(self, user_id: UUID) -> List[Session]:
        """Get all non-revoked, non-expired sessions for a user"""
        pass

    @abstractmethod
    async def record_activity(
        self,
        pk: UUID,
        ip_address: str,
        device_info: str,
        last_active: datetime,
        expires_at: datetime,
    ) -> bool:
        """
        Update activity fields iff the session is still active.

        Returns False if the session was revoked or expired meanwhile.
        """
        pass

    @abstractmethod
    async def revoke(self, session_id: str, reason: str) -> bool:
        """Revoke a session iff not already revoked. Returns True if this call revoked it."""
        pass

    @abstractmethod
    async def revoke_all_by_user_id(self, user_id: UUID, reason: str) -> int:
        """Revoke all non-revoked sessions for a user. Returns count of revoked sessions."""
        pass
