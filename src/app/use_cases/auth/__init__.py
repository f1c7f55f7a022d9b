"""
Authentication Use Cases

Session lifecycle business logic.
"""

from .session_orchestrator import SessionOrchestrator
from .dtos import (
    AuthBundle,
    LogoutResponse,
    RevokeSessionResponse,
    RevokeAllSessionsResponse,
)

__all__ = [
    # Use Cases
    "SessionOrchestrator",
    # DTOs - Responses
    "AuthBundle",
    "LogoutResponse",
    "RevokeSessionResponse",
    "RevokeAllSessionsResponse",
]
