"""
User Entity

Represents a person who can hold many concurrent sessions.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, DateTime, Field, SQLModel

from src.domain.base import utc_now

from .enums import UserStatus


class User(SQLModel, table=True):
    """
    User entity - the identity behind every session.

    Business Rules:
    - Email must be unique across all users
    - Password stored as bcrypt hash
    - Only active users may log in or refresh
    - Roles are opaque labels carried into the auth bundle, never evaluated
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str = Field(max_length=60)  # Bcrypt output is 60 chars

    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)
    roles: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    status: UserStatus = Field(default=UserStatus.active)

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    last_login_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.active
