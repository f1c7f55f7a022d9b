"""
Authentication Use Case DTOs (Data Transfer Objects)

All Response classes for the session lifecycle.
Provides type safety and clear contracts between layers.
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel


# ============================================================================
# Response DTOs
# ============================================================================


class AuthBundle(BaseModel):
    """Response for login and refresh: user profile plus a fresh token pair"""

    user_id: str
    email: str
    first_name: str
    last_name: str
    roles: List[str]
    session_id: str
    access_token: str
    refresh_token: str
    access_token_expires_at: datetime
    refresh_token_expires_at: datetime


class LogoutResponse(BaseModel):
    """Response for logout; revoked is False when the session was already terminal"""

    session_id: str
    revoked: bool


class RevokeSessionResponse(BaseModel):
    """Response for single session revocation"""

    session_id: str
    revoked: bool


class RevokeAllSessionsResponse(BaseModel):
    """Response for revoking every session of a user"""

    user_id: str
    revoked_count: int
