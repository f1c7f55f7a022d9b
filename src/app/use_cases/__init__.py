"""
Use Cases

All use cases are organized into domain folders:
- auth/: Session lifecycle (login, refresh, logout, revocation)

Import from subdirectories for better organization.
"""

from .auth import SessionOrchestrator

__all__ = [
    "SessionOrchestrator",
]
