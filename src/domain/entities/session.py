"""
Session Entity

Durable record of one authenticated device or browser instance.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utc_now

IP_ADDRESS_MAX_LENGTH = 45
DEVICE_INFO_MAX_LENGTH = 512


class Session(SQLModel, table=True):
    """
    Session entity - one row per login event.

    Business Rules:
    - session_id is the opaque identifier carried in access tokens and used as
      the fast cache key; id is only the storage key
    - A user may own many concurrent sessions (multi-device)
    - Active means not revoked and not past expires_at
    - Revoked and expired sessions are terminal and retained for audit
    - expires_at follows the current refresh token's expiry
    """

    __tablename__ = "sessions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    session_id: str = Field(unique=True, index=True, max_length=64)

    user_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)

    ip_address: str = Field(default="unknown", max_length=IP_ADDRESS_MAX_LENGTH)
    device_info: str = Field(default="", max_length=DEVICE_INFO_MAX_LENGTH)

    revoked: bool = Field(default=False)
    revoked_reason: Optional[str] = Field(default=None, max_length=255)
    revoked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    updated_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    last_active: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    expires_at: datetime = Field(sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_session_expires_at", "expires_at"),
        Index("idx_session_user_revoked", "user_id", "revoked"),
    )

    @property
    def is_expired(self) -> bool:
        return utc_now() >= self.expires_at

    @property
    def is_active(self) -> bool:
        return not self.revoked and not self.is_expired
