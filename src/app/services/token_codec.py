"""
Token Codec

Stateless creation and verification of signed access tokens, and generation
of opaque refresh tokens. No I/O: the orchestrator owns every cache and store
write, so the codec can be exercised in isolation.
"""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Optional
from uuid import UUID, uuid4

from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel

from libs.result import Error, Result, Return
from src.domain.entities import AuthErrorCode

MIN_REFRESH_TOKEN_BYTES = 64


class IssuedTokens(BaseModel):
    """Freshly minted token pair; expiries are naive UTC"""

    access_token: str
    refresh_token: str
    access_token_expires_at: datetime
    refresh_token_expires_at: datetime


class AccessClaims(BaseModel):
    """Verified access token claims"""

    user_id: str
    session_id: Optional[str] = None
    issued_at: Optional[datetime] = None
    expires_at: datetime


class TokenCodec:
    """
    Issues and verifies HS256 access tokens.

    The signing secret is fixed per instance; building a codec with a new
    secret invalidates every token signed with the previous one.
    """

    def __init__(
        self,
        secret: str,
        *,
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=90),
        algorithm: str = "HS256",
        refresh_token_bytes: int = MIN_REFRESH_TOKEN_BYTES,
    ):
        if not secret:
            raise ValueError("JWT secret must be configured")
        if refresh_token_bytes < MIN_REFRESH_TOKEN_BYTES:
            raise ValueError(
                f"refresh tokens need at least {MIN_REFRESH_TOKEN_BYTES} random bytes"
            )
        self._secret = secret
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.algorithm = algorithm
        self.refresh_token_bytes = refresh_token_bytes

    @classmethod
    def from_config(cls, config) -> "TokenCodec":
        return cls(
            config.JWT_SECRET,
            access_ttl=timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_ttl=timedelta(days=config.REFRESH_TOKEN_EXPIRE_DAYS),
            algorithm=config.JWT_ALGORITHM,
            refresh_token_bytes=config.REFRESH_TOKEN_BYTES,
        )

    def issue(self, user_id: UUID, session_id: str) -> IssuedTokens:
        """
        Mint an access/refresh pair for a session.

        Args:
            user_id: Token subject
            session_id: Opaque session identifier embedded as a claim

        Returns:
            IssuedTokens with both tokens and both expiries
        """
        # JWT timestamps have second precision
        now = datetime.now(UTC).replace(microsecond=0)
        access_expires_at = now + self.access_ttl
        refresh_expires_at = now + self.refresh_ttl

        return IssuedTokens(
            access_token=self.create_access_token(user_id, session_id, now, access_expires_at),
            refresh_token=self.generate_refresh_token(),
            access_token_expires_at=access_expires_at.replace(tzinfo=None),
            refresh_token_expires_at=refresh_expires_at.replace(tzinfo=None),
        )

    def create_access_token(
        self,
        user_id: UUID,
        session_id: Optional[str],
        issued_at: datetime,
        expires_at: datetime,
    ) -> str:
        payload = {
            "sub": str(user_id),
            "jti": uuid4().hex,
            "iat": issued_at,
            "exp": expires_at,
        }
        if session_id is not None:
            payload["session_id"] = session_id
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def generate_refresh_token(self) -> str:
        return secrets.token_urlsafe(self.refresh_token_bytes)

    def verify(self, token: str) -> Result[AccessClaims]:
        """
        Verify signature and expiry of an access token.

        Returns:
            Result with AccessClaims, or Error INVALID_TOKEN / TOKEN_EXPIRED
        """
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            return Return.err(Error(AuthErrorCode.TOKEN_EXPIRED, "Access token has expired"))
        except JWTError:
            return Return.err(Error(AuthErrorCode.INVALID_TOKEN, "Invalid access token"))

        subject = payload.get("sub")
        expires_at = payload.get("exp")
        if not subject or expires_at is None:
            return Return.err(Error(AuthErrorCode.INVALID_TOKEN, "Invalid access token"))

        issued_at = payload.get("iat")
        return Return.ok(
            AccessClaims(
                user_id=subject,
                session_id=payload.get("session_id"),
                issued_at=_from_timestamp(issued_at) if issued_at is not None else None,
                expires_at=_from_timestamp(expires_at),
            )
        )


def _from_timestamp(value: int) -> datetime:
    return datetime.fromtimestamp(value, UTC).replace(tzinfo=None)
