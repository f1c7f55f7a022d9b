from abc import ABC, abstractmethod

from libs.result import Result
from src.domain.entities import User


class IIdentityProvider(ABC):
    """Credential check collaborator - application layer"""

    @abstractmethod
    async def authenticate(self, email: str, password: str) -> Result[User]:
        """
        Verify credentials against the stored identity.

        Returns:
            Result with the User, or Error INVALID_CREDENTIALS / ACCOUNT_INACTIVE.
            Unknown email and wrong password are indistinguishable.
        """
        pass
