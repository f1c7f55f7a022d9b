"""
RefreshToken Entity

Single-use refresh tokens linked to a session.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utc_now


class RefreshToken(SQLModel, table=True):
    """
    RefreshToken entity - one row per issued refresh token.

    Business Rules:
    - Token is SHA-256 hash of a 64+ byte secure random string
    - Single-use: consumed by rotation, which sets replaced_by_token to the
      successor's hash in the same transaction that inserts the successor
    - A non-revoked token exists only while its session is active
    - Rows are never deleted (rotation chain kept for audit)
    """

    __tablename__ = "refresh_tokens"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    token_hash: str = Field(unique=True, index=True, max_length=64)  # SHA-256 output
    session_pk: UUID = Field(foreign_key="sessions.id", nullable=False, index=True)

    revoked: bool = Field(default=False)
    revoked_reason: Optional[str] = Field(default=None, max_length=255)
    replaced_by_token: Optional[str] = Field(default=None, max_length=64)
    revoked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    expires_at: datetime = Field(sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_refresh_token_expires_at", "expires_at"),
        Index("idx_refresh_token_session_revoked", "session_pk", "revoked"),
    )

    @property
    def is_expired(self) -> bool:
        return utc_now() >= self.expires_at

    @property
    def is_valid(self) -> bool:
        return not self.revoked and not self.is_expired
