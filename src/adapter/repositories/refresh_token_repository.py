from typing import Optional
from uuid import UUID

from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.refresh_token_repository import IRefreshTokenRepository
from src.domain.base import hash_token, utc_now
from src.domain.entities import RefreshToken, Session


class RefreshTokenRepository(IRefreshTokenRepository):
    """RefreshToken repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, token: RefreshToken) -> RefreshToken:
        """Create a new refresh token"""
        self.session.add(token)
        await self.session.flush()
        await self.session.refresh(token)
        return token

    async def get_by_token(self, token: str) -> Optional[RefreshToken]:
        """
        Get refresh token by value.

        Revoked and expired rows are returned too; the caller decides which
        outcome to report.
        """
        stmt = select(RefreshToken).where(RefreshToken.token_hash == hash_token(token))
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def revoke_if_valid(
        self, token_id: UUID, reason: str, replaced_by_token: Optional[str] = None
    ) -> bool:
        """
        Conditional UPDATE: the row only matches while still valid, so exactly
        one concurrent transaction sees rowcount == 1.
        """
        now = utc_now()
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.id == token_id,
                RefreshToken.revoked == False,
                RefreshToken.expires_at > now,
            )
            .values(
                revoked=True,
                revoked_reason=reason,
                replaced_by_token=replaced_by_token,
                revoked_at=now,
            )
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount == 1

    async def revoke(self, token_id: UUID, reason: str) -> bool:
        """Revoke a token by ID"""
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.id == token_id, RefreshToken.revoked == False)
            .values(revoked=True, revoked_reason=reason, revoked_at=utc_now())
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def revoke_all_by_session(self, session_pk: UUID, reason: str) -> int:
        """Revoke all non-revoked tokens of a session"""
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.session_pk == session_pk, RefreshToken.revoked == False)
            .values(revoked=True, revoked_reason=reason, revoked_at=utc_now())
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def revoke_all_by_user_id(self, user_id: UUID, reason: str) -> int:
        """Revoke all non-revoked tokens across a user's sessions"""
        user_sessions = select(Session.id).where(Session.user_id == user_id)
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.session_pk.in_(user_sessions),
                RefreshToken.revoked == False,
            )
            .values(revoked=True, revoked_reason=reason, revoked_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
