"""
Session Service Domain Enums

All enumeration types used across domain entities and use case outcomes.
"""

from enum import Enum


class UserStatus(str, Enum):
    """User account status"""

    active = "active"
    disabled = "disabled"


class RevocationReason(str, Enum):
    """Reasons recorded on revoked sessions and refresh tokens"""

    logout = "logout"
    rotation = "replaced by rotation"
    session_invalid = "session invalid"
    user_invalid = "user invalid"
    admin = "revoked by administrator"


class AuthErrorCode(str, Enum):
    """Outcome codes returned by the session orchestrator and validator"""

    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    ACCOUNT_INACTIVE = "ACCOUNT_INACTIVE"
    TOKEN_INVALID_OR_EXPIRED = "TOKEN_INVALID_OR_EXPIRED"
    SESSION_INVALID = "SESSION_INVALID"
    USER_INVALID = "USER_INVALID"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Access token validation
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    SESSION_REVOKED = "SESSION_REVOKED"
    CACHE_UNAVAILABLE = "CACHE_UNAVAILABLE"
