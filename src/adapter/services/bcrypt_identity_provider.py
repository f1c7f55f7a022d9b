import asyncio
from typing import Callable

import bcrypt

from libs.result import Error, Result, Return
from src.app.services.identity_provider import IIdentityProvider
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuthErrorCode, User

BCRYPT_ROUNDS = 12


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds)).decode()


class BcryptIdentityProvider(IIdentityProvider):
    """
    Checks email + password against bcrypt hashes in the user store.

    Business Rules:
    - Constant-time password comparison to prevent timing attacks
    - A hash check runs even when the email is unknown
    - Inactive accounts are only reported after the password matched
    """

    def __init__(self, uow_factory: Callable[[], UnitOfWork]):
        self.uow_factory = uow_factory

    async def authenticate(self, email: str, password: str) -> Result[User]:
        async with self.uow_factory() as uow:
            user = await uow.users.get_by_email(email)

        if user is None:
            # Hash dummy password to maintain constant time
            await asyncio.to_thread(bcrypt.checkpw, b"dummy_password", bcrypt.gensalt(BCRYPT_ROUNDS))
            return Return.err(
                Error(AuthErrorCode.INVALID_CREDENTIALS, "Invalid email or password")
            )

        password_valid = await asyncio.to_thread(
            bcrypt.checkpw, password.encode(), user.password_hash.encode()
        )
        if not password_valid:
            return Return.err(
                Error(AuthErrorCode.INVALID_CREDENTIALS, "Invalid email or password")
            )

        if not user.is_active:
            return Return.err(
                Error(AuthErrorCode.ACCOUNT_INACTIVE, "User account is disabled")
            )

        return Return.ok(user)
