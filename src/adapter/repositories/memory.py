"""
In-memory repositories.

Backing store for STORE_BACKEND=memory and for tests that need real store
semantics (rotation races) without a database. Every method body runs without
an intervening await, so each call is atomic with respect to other coroutines
on the same event loop.

Writes apply to the shared rows immediately and are recorded in an UndoLog;
rolling back replays the log in reverse. Reads hand out copies, so callers
change stored rows only through repository methods.
"""

from datetime import datetime
from typing import Callable, Dict, List, Optional, TypeVar
from uuid import UUID

from sqlmodel import SQLModel

from src.app.repositories.refresh_token_repository import IRefreshTokenRepository
from src.app.repositories.session_repository import ISessionRepository
from src.app.repositories.user_repository import IUserRepository
from src.domain.base import hash_token, utc_now
from src.domain.entities import RefreshToken, Session, User

RowT = TypeVar("RowT", bound=SQLModel)


class DuplicateKeyError(Exception):
    """Raised when an insert violates a uniqueness constraint"""


class InMemoryDatabase:
    """Row storage shared by every in-memory unit of work"""

    def __init__(self):
        self.users: Dict[UUID, User] = {}
        self.sessions: Dict[UUID, Session] = {}
        self.refresh_tokens: Dict[UUID, RefreshToken] = {}


class UndoLog:
    """Reverse operations for uncommitted writes of one unit of work"""

    def __init__(self):
        self._entries: List[Callable[[], None]] = []

    def inserted(self, table: Dict[UUID, RowT], key: UUID) -> None:
        self._entries.append(lambda: table.pop(key, None))

    def replaced(self, table: Dict[UUID, RowT], key: UUID, previous: RowT) -> None:
        def restore():
            table[key] = previous

        self._entries.append(restore)

    def modified(self, row: SQLModel) -> None:
        values = row.model_dump()

        def restore():
            for name, value in values.items():
                setattr(row, name, value)

        self._entries.append(restore)

    def undo(self) -> None:
        while self._entries:
            self._entries.pop()()

    def clear(self) -> None:
        self._entries.clear()


def _copy(row: Optional[RowT]) -> Optional[RowT]:
    if row is None:
        return None
    return type(row)(**row.model_dump())


class InMemoryUserRepository(IUserRepository):
    def __init__(self, db: InMemoryDatabase, undo_log: UndoLog):
        self.db = db
        self.undo_log = undo_log

    async def get_by_email(self, email: str) -> Optional[User]:
        for user in self.db.users.values():
            if user.email == email:
                return _copy(user)
        return None

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        return _copy(self.db.users.get(user_id))

    async def update(self, user: User) -> User:
        previous = self.db.users.get(user.id)
        if previous is None:
            self.undo_log.inserted(self.db.users, user.id)
        else:
            self.undo_log.replaced(self.db.users, user.id, previous)
        self.db.users[user.id] = _copy(user)
        return user


class InMemorySessionRepository(ISessionRepository):
    def __init__(self, db: InMemoryDatabase, undo_log: UndoLog):
        self.db = db
        self.undo_log = undo_log

    async def create(self, session: Session) -> Session:
        if any(s.session_id == session.session_id for s in self.db.sessions.values()):
            raise DuplicateKeyError(f"sessions.session_id: {session.session_id}")
        self.db.sessions[session.id] = _copy(session)
        self.undo_log.inserted(self.db.sessions, session.id)
        return session

    async def get_by_id(self, pk: UUID) -> Optional[Session]:
        return _copy(self.db.sessions.get(pk))

    async def get_by_session_id(self, session_id: str) -> Optional[Session]:
        for session in self.db.sessions.values():
            if session.session_id == session_id:
                return _copy(session)
        return None

    async def get_active_by_user_id(self, user_id: UUID) -> List[Session]:
        return [
            _copy(s)
            for s in self.db.sessions.values()
            if s.user_id == user_id and s.is_active
        ]

    async def record_activity(
        self,
        pk: UUID,
        ip_address: str,
        device_info: str,
        last_active: datetime,
        expires_at: datetime,
    ) -> bool:
        session = self.db.sessions.get(pk)
        if session is None or session.revoked or session.expires_at <= last_active:
            return False
        self.undo_log.modified(session)
        session.ip_address = ip_address
        session.device_info = device_info
        session.last_active = last_active
        session.expires_at = expires_at
        session.updated_at = last_active
        return True

    async def revoke(self, session_id: str, reason: str) -> bool:
        for session in self.db.sessions.values():
            if session.session_id == session_id and not session.revoked:
                self.undo_log.modified(session)
                _revoke_session(session, reason)
                return True
        return False

    async def revoke_all_by_user_id(self, user_id: UUID, reason: str) -> int:
        count = 0
        for session in self.db.sessions.values():
            if session.user_id == user_id and not session.revoked:
                self.undo_log.modified(session)
                _revoke_session(session, reason)
                count += 1
        return count


class InMemoryRefreshTokenRepository(IRefreshTokenRepository):
    def __init__(self, db: InMemoryDatabase, undo_log: UndoLog):
        self.db = db
        self.undo_log = undo_log

    async def create(self, token: RefreshToken) -> RefreshToken:
        if any(t.token_hash == token.token_hash for t in self.db.refresh_tokens.values()):
            raise DuplicateKeyError("refresh_tokens.token_hash")
        self.db.refresh_tokens[token.id] = _copy(token)
        self.undo_log.inserted(self.db.refresh_tokens, token.id)
        return token

    async def get_by_token(self, token: str) -> Optional[RefreshToken]:
        token_hash = hash_token(token)
        for row in self.db.refresh_tokens.values():
            if row.token_hash == token_hash:
                return _copy(row)
        return None

    async def revoke_if_valid(
        self, token_id: UUID, reason: str, replaced_by_token: Optional[str] = None
    ) -> bool:
        token = self.db.refresh_tokens.get(token_id)
        if token is None or not token.is_valid:
            return False
        self.undo_log.modified(token)
        _revoke_token(token, reason)
        token.replaced_by_token = replaced_by_token
        return True

    async def revoke(self, token_id: UUID, reason: str) -> bool:
        token = self.db.refresh_tokens.get(token_id)
        if token is None or token.revoked:
            return False
        self.undo_log.modified(token)
        _revoke_token(token, reason)
        return True

    async def revoke_all_by_session(self, session_pk: UUID, reason: str) -> int:
        count = 0
        for token in self.db.refresh_tokens.values():
            if token.session_pk == session_pk and not token.revoked:
                self.undo_log.modified(token)
                _revoke_token(token, reason)
                count += 1
        return count

    async def revoke_all_by_user_id(self, user_id: UUID, reason: str) -> int:
        session_pks = {s.id for s in self.db.sessions.values() if s.user_id == user_id}
        count = 0
        for token in self.db.refresh_tokens.values():
            if token.session_pk in session_pks and not token.revoked:
                self.undo_log.modified(token)
                _revoke_token(token, reason)
                count += 1
        return count


def _revoke_session(session: Session, reason: str) -> None:
    now = utc_now()
    session.revoked = True
    session.revoked_reason = reason
    session.revoked_at = now
    session.updated_at = now


def _revoke_token(token: RefreshToken, reason: str) -> None:
    token.revoked = True
    token.revoked_reason = reason
    token.revoked_at = utc_now()
