"""
Session Service Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    AuthErrorCode,
    RevocationReason,
    UserStatus,
)

# Export all entities
from .user import User
from .session import Session
from .refresh_token import RefreshToken

__all__ = [
    # Enums
    "AuthErrorCode",
    "RevocationReason",
    "UserStatus",
    # Entities
    "User",
    "Session",
    "RefreshToken",
]
