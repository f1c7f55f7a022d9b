from typing import Callable, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories.memory import (
    InMemoryDatabase,
    InMemoryRefreshTokenRepository,
    InMemorySessionRepository,
    InMemoryUserRepository,
    UndoLog,
)
from src.adapter.repositories.refresh_token_repository import RefreshTokenRepository
from src.adapter.repositories.session_repository import SessionRepository
from src.adapter.repositories.user_repository import UserRepository
from src.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """
    SQLAlchemy implementation of UnitOfWork pattern.

    Each unit of work opens its own AsyncSession so concurrent requests never
    share a transaction.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self.session_factory = session_factory
        self.session: Optional[AsyncSession] = None

    async def __aenter__(self):
        self.session = self.session_factory()
        # Initialize all repositories with the session
        self.users = UserRepository(self.session)
        self.sessions = SessionRepository(self.session)
        self.refresh_tokens = RefreshTokenRepository(self.session)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        # close() discards any uncommitted work without expiring loaded rows
        try:
            if exc_type is not None:
                await self.rollback()
        finally:
            await self.session.close()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()


class InMemoryUnitOfWork(UnitOfWork):
    """
    In-memory implementation of UnitOfWork.

    Writes apply to the shared rows as they happen and are recorded in an
    UndoLog. Leaving the block without commit() undoes them, like closing an
    SQL session with an open transaction.
    """

    def __init__(self, db: InMemoryDatabase):
        self.db = db
        self.undo_log = UndoLog()

    async def __aenter__(self):
        self.undo_log = UndoLog()
        self.users = InMemoryUserRepository(self.db, self.undo_log)
        self.sessions = InMemorySessionRepository(self.db, self.undo_log)
        self.refresh_tokens = InMemoryRefreshTokenRepository(self.db, self.undo_log)
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        self.undo_log.clear()

    async def rollback(self):
        self.undo_log.undo()
