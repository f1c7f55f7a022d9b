from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.session_repository import ISessionRepository
from src.domain.base import utc_now
from src.domain.entities import Session


class SessionRepository(ISessionRepository):
    """Session repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, session_obj: Session) -> Session:
        """Create a new session"""
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def get_by_id(self, pk: UUID) -> Optional[Session]:
        """Get session by storage key"""
        stmt = select(Session).where(Session.id == pk)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_session_id(self, session_id: str) -> Optional[Session]:
        """Get session by opaque session identifier"""
        stmt = select(Session).where(Session.session_id == session_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_active_by_user_id(self, user_id: UUID) -> List[Session]:
        """Get all active (non-revoked, non-expired) sessions for a user"""
        stmt = select(Session).where(
            Session.user_id == user_id,
            Session.revoked == False,
            Session.expires_at > utc_now(),
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def record_activity(
        self,
        pk: UUID,
        ip_address: str,
        device_info: str,
        last_active: datetime,
        expires_at: datetime,
    ) -> bool:
        """Update activity fields of a still-active session"""
        stmt = (
            update(Session)
            .where(
                Session.id == pk,
                Session.revoked == False,
                Session.expires_at > last_active,
            )
            .values(
                ip_address=ip_address,
                device_info=device_info,
                last_active=last_active,
                expires_at=expires_at,
                updated_at=last_active,
            )
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount == 1

    async def revoke(self, session_id: str, reason: str) -> bool:
        """Revoke a specific session by its opaque identifier"""
        now = utc_now()
        stmt = (
            update(Session)
            .where(Session.session_id == session_id, Session.revoked == False)
            .values(revoked=True, revoked_reason=reason, revoked_at=now, updated_at=now)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def revoke_all_by_user_id(self, user_id: UUID, reason: str) -> int:
        """Revoke all non-revoked sessions for a user"""
        now = utc_now()
        stmt = (
            update(Session)
            .where(Session.user_id == user_id, Session.revoked == False)
            .values(revoked=True, revoked_reason=reason, revoked_at=now, updated_at=now)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
