from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from src.domain.entities import RefreshToken


class IRefreshTokenRepository(ABC):
    """RefreshToken repository interface - application layer"""

    @abstractmethod
    async def create(self, token: RefreshToken) -> RefreshToken:
        """Create a new refresh token"""
        pass

    @abstractmethod
    async def get_by_token(self, token: str) -> Optional[RefreshToken]:
        """Get refresh token by its opaque value (looked up by hash)"""
        pass

    @abstractmethod
    async def revoke_if_valid(
        self, token_id: UUID, reason: str, replaced_by_token: Optional[str] = None
    ) -> bool:
        """
        Atomically revoke a token iff it is neither revoked nor expired.

        Returns True only for the single caller that won the transition;
        concurrent callers presenting the same token get False.
        """
        pass

    @abstractmethod
    async def revoke(self, token_id: UUID, reason: str) -> bool:
        """Revoke a token iff not already revoked"""
        pass

    @abstractmethod
    async def revoke_all_by_session(self, session_pk: UUID, reason: str) -> int:
        """Revoke every non-revoked token of a session. Returns count."""
        pass

    @abstractmethod
    async def revoke_all_by_user_id(self, user_id: UUID, reason: str) -> int:
        """Revoke every non-revoked token of every session of a user. Returns count."""
        pass
