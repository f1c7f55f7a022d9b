"""
Session Orchestrator

Owns every state transition of sessions, refresh tokens and session cache
entries: login, refresh (rotation), logout, revoke-one and revoke-all.
"""

import asyncio
import logging
from typing import Callable, Iterable
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.identity_provider import IIdentityProvider
from src.app.services.session_cache import SessionCache
from src.app.services.token_codec import IssuedTokens, TokenCodec
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import generate_uuid, hash_token, utc_now
from src.domain.entities import (
    AuthErrorCode,
    RefreshToken,
    RevocationReason,
    Session,
    User,
)
from .dtos import (
    AuthBundle,
    LogoutResponse,
    RevokeAllSessionsResponse,
    RevokeSessionResponse,
)

logger = logging.getLogger(__name__)

INTERNAL_ERROR = Error(AuthErrorCode.INTERNAL_ERROR, "Internal server error")
TOKEN_INVALID_OR_EXPIRED = Error(
    AuthErrorCode.TOKEN_INVALID_OR_EXPIRED, "Refresh token is invalid or expired"
)
SESSION_INVALID = Error(AuthErrorCode.SESSION_INVALID, "Session is invalid or expired")
USER_INVALID = Error(AuthErrorCode.USER_INVALID, "User is invalid or inactive")


class SessionOrchestrator:
    """
    Session lifecycle state machine.

    Business Rules:
    - One Session per login; a user may hold many concurrent sessions
    - Refresh tokens are single-use: rotation revokes the consumed token
      (compare-and-swap) in the same transaction that inserts its successor
    - Revocation removes the session cache entry, which makes outstanding
      access tokens unusable before their natural expiry
    - Logout and revoke on an already-revoked session succeed without change
    - Business failures are returned as Result errors; unexpected faults are
      logged and returned as a generic INTERNAL_ERROR

    Durable commits and cache writes are sequential, not transactional: a
    failure after commit leaves the session durably active without a cache
    entry until the next refresh writes one.
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        session_cache: SessionCache,
        codec: TokenCodec,
        identity: IIdentityProvider,
    ):
        self.uow_factory = uow_factory
        self.session_cache = session_cache
        self.codec = codec
        self.identity = identity

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    async def login(
        self, email: str, password: str, ip_address: str, device_info: str
    ) -> Result[AuthBundle]:
        """
        Authenticate and open a new session.

        Args:
            email: User email
            password: Plain text password
            ip_address: Client IP address
            device_info: Free-form device description (User-Agent)

        Returns:
            Result with AuthBundle, or Error INVALID_CREDENTIALS /
            ACCOUNT_INACTIVE / INTERNAL_ERROR
        """
        try:
            return await self._login(email, password, ip_address, device_info)
        except Exception:
            logger.exception(f"Unexpected error during login for {email}")
            return Return.err(INTERNAL_ERROR)

    async def _login(
        self, email: str, password: str, ip_address: str, device_info: str
    ) -> Result[AuthBundle]:
        authenticated = await self.identity.authenticate(email, password)
        if authenticated.is_err():
            return authenticated
        user = authenticated.value

        session_id = generate_uuid()
        issued = self.codec.issue(user.id, session_id)

        async with self.uow_factory() as uow:
            now = utc_now()
            session = await uow.sessions.create(
                Session(
                    session_id=session_id,
                    user_id=user.id,
                    ip_address=ip_address,
                    device_info=device_info,
                    last_active=now,
                    expires_at=issued.refresh_token_expires_at,
                )
            )
            await uow.refresh_tokens.create(
                RefreshToken(
                    token_hash=hash_token(issued.refresh_token),
                    session_pk=session.id,
                    expires_at=issued.refresh_token_expires_at,
                )
            )

            stored_user = await uow.users.get_by_id(user.id)
            if stored_user is not None:
                stored_user.last_login_at = now
                await uow.users.update(stored_user)

            await uow.commit()

        await self.session_cache.activate(
            session_id, str(user.id), issued.access_token_expires_at
        )
        logger.info(f"Session {session_id} opened for user {user.id}")

        return Return.ok(self._bundle(user, session_id, issued))

    # ------------------------------------------------------------------
    # Refresh (rotation)
    # ------------------------------------------------------------------

    async def refresh(
        self, refresh_token: str, ip_address: str, device_info: str
    ) -> Result[AuthBundle]:
        """
        Exchange a refresh token for a new token pair.

        Args:
            refresh_token: Opaque refresh token presented by the client
            ip_address: Client IP address
            device_info: Free-form device description (User-Agent)

        Returns:
            Result with AuthBundle, or Error TOKEN_INVALID_OR_EXPIRED /
            SESSION_INVALID / USER_INVALID / INTERNAL_ERROR
        """
        try:
            return await self._refresh(refresh_token, ip_address, device_info)
        except Exception:
            logger.exception("Unexpected error during token refresh")
            return Return.err(INTERNAL_ERROR)

    async def _refresh(
        self, refresh_token: str, ip_address: str, device_info: str
    ) -> Result[AuthBundle]:
        async with self.uow_factory() as uow:
            stored = await uow.refresh_tokens.get_by_token(refresh_token)
            if stored is None or not stored.is_valid:
                if stored is not None and stored.replaced_by_token:
                    logger.warning(
                        f"Rotated refresh token {stored.id} presented again "
                        f"(session pk {stored.session_pk})"
                    )
                return Return.err(TOKEN_INVALID_OR_EXPIRED)

            session = await uow.sessions.get_by_id(stored.session_pk)
            if session is None or not session.is_active:
                await uow.refresh_tokens.revoke(
                    stored.id, RevocationReason.session_invalid.value
                )
                await uow.commit()
                return Return.err(SESSION_INVALID)

            user = await uow.users.get_by_id(session.user_id)
            if user is None or not user.is_active:
                await uow.refresh_tokens.revoke(
                    stored.id, RevocationReason.user_invalid.value
                )
                await uow.commit()
                return Return.err(USER_INVALID)

            session_id = session.session_id
            issued = self.codec.issue(user.id, session_id)

            won = await uow.refresh_tokens.revoke_if_valid(
                stored.id,
                RevocationReason.rotation.value,
                replaced_by_token=hash_token(issued.refresh_token),
            )
            if not won:
                # A concurrent refresh consumed the token first
                await uow.rollback()
                return Return.err(TOKEN_INVALID_OR_EXPIRED)

            still_active = await uow.sessions.record_activity(
                session.id,
                ip_address,
                device_info,
                utc_now(),
                issued.refresh_token_expires_at,
            )
            if not still_active:
                await uow.rollback()
                return Return.err(SESSION_INVALID)

            await uow.refresh_tokens.create(
                RefreshToken(
                    token_hash=hash_token(issued.refresh_token),
                    session_pk=session.id,
                    expires_at=issued.refresh_token_expires_at,
                )
            )
            await uow.commit()

        await self.session_cache.activate(
            session_id, str(user.id), issued.access_token_expires_at
        )
        logger.info(f"Session {session_id} rotated its refresh token")

        return Return.ok(self._bundle(user, session_id, issued))

    # ------------------------------------------------------------------
    # Logout / revocation
    # ------------------------------------------------------------------

    async def logout(self, session_id: str) -> Result[LogoutResponse]:
        """
        End a session. Idempotent: logging out a revoked or unknown session
        succeeds with revoked=False and changes nothing.
        """
        try:
            return await self._logout(session_id)
        except Exception:
            logger.exception(f"Unexpected error during logout of session {session_id}")
            return Return.err(INTERNAL_ERROR)

    async def _logout(self, session_id: str) -> Result[LogoutResponse]:
        revoked = False
        async with self.uow_factory() as uow:
            session = await uow.sessions.get_by_session_id(session_id)
            if session is not None and not session.revoked:
                await self.session_cache.evict(session_id)
                await uow.refresh_tokens.revoke_all_by_session(
                    session.id, RevocationReason.logout.value
                )
                revoked = await uow.sessions.revoke(
                    session_id, RevocationReason.logout.value
                )
                await uow.commit()

        await self.session_cache.evict(session_id)
        if revoked:
            logger.info(f"Session {session_id} logged out")

        return Return.ok(LogoutResponse(session_id=session_id, revoked=revoked))

    async def revoke_session(
        self, session_id: str, reason: str
    ) -> Result[RevokeSessionResponse]:
        """
        Revoke one session and its refresh token.

        Returns:
            Result with RevokeSessionResponse (revoked=False if it was already
            revoked), or Error SESSION_NOT_FOUND / INTERNAL_ERROR
        """
        try:
            return await self._revoke_session(session_id, reason)
        except Exception:
            logger.exception(f"Unexpected error revoking session {session_id}")
            return Return.err(INTERNAL_ERROR)

    async def _revoke_session(
        self, session_id: str, reason: str
    ) -> Result[RevokeSessionResponse]:
        async with self.uow_factory() as uow:
            session = await uow.sessions.get_by_session_id(session_id)
            if session is None:
                return Return.err(
                    Error(AuthErrorCode.SESSION_NOT_FOUND, "Session not found")
                )

            await self.session_cache.evict(session_id)
            await uow.refresh_tokens.revoke_all_by_session(session.id, reason)
            revoked = await uow.sessions.revoke(session_id, reason)
            await uow.commit()

        # A refresh that passed its checks before the revoke committed may
        # have re-activated the entry
        await self.session_cache.evict(session_id)
        logger.info(f"Session {session_id} revoked ({reason})")

        return Return.ok(RevokeSessionResponse(session_id=session_id, revoked=revoked))

    async def revoke_all_user_sessions(
        self, user_id: UUID, reason: str
    ) -> Result[RevokeAllSessionsResponse]:
        """
        Revoke every active session of a user, in cache and durable store.

        On success no session of the user is reachable via the cache or via
        an active-session query.
        """
        try:
            return await self._revoke_all_user_sessions(user_id, reason)
        except Exception:
            logger.exception(f"Unexpected error revoking all sessions of user {user_id}")
            return Return.err(INTERNAL_ERROR)

    async def _revoke_all_user_sessions(
        self, user_id: UUID, reason: str
    ) -> Result[RevokeAllSessionsResponse]:
        async with self.uow_factory() as uow:
            sessions = await uow.sessions.get_active_by_user_id(user_id)
            session_ids = [s.session_id for s in sessions]

            await self._evict_all(session_ids)
            await uow.refresh_tokens.revoke_all_by_user_id(user_id, reason)
            revoked_count = await uow.sessions.revoke_all_by_user_id(user_id, reason)
            await uow.commit()

        await self._evict_all(session_ids)
        logger.info(f"Revoked {revoked_count} session(s) of user {user_id} ({reason})")

        return Return.ok(
            RevokeAllSessionsResponse(user_id=str(user_id), revoked_count=revoked_count)
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _evict_all(self, session_ids: Iterable[str]) -> None:
        await asyncio.gather(*(self.session_cache.evict(sid) for sid in session_ids))

    @staticmethod
    def _bundle(user: User, session_id: str, issued: IssuedTokens) -> AuthBundle:
        return AuthBundle(
            user_id=str(user.id),
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            roles=list(user.roles or []),
            session_id=session_id,
            access_token=issued.access_token,
            refresh_token=issued.refresh_token,
            access_token_expires_at=issued.access_token_expires_at,
            refresh_token_expires_at=issued.refresh_token_expires_at,
        )
