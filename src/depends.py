from functools import lru_cache
from typing import Callable, Optional

from fastapi import Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from libs.result import Error
from src.adapter.repositories.memory import InMemoryDatabase
from src.adapter.services.bcrypt_identity_provider import BcryptIdentityProvider
from src.adapter.services.memory_cache_service import InMemoryCacheService
from src.adapter.services.redis_cache_service import RedisCacheService
from src.adapter.services.unit_of_work import InMemoryUnitOfWork, SqlAlchemyUnitOfWork
from src.api.error import ClientError
from src.app.services.cache_service import ICacheService
from src.app.services.session_cache import SessionCache
from src.app.services.token_codec import AccessClaims, TokenCodec
from src.app.services.token_validator import TokenValidator
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import SessionOrchestrator
from src.domain.entities import AuthErrorCode

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

memory_db = InMemoryDatabase()

security = HTTPBearer(auto_error=False)


def get_uow_factory() -> Callable[[], UnitOfWork]:
    if ApplicationConfig.STORE_BACKEND == "memory":
        return lambda: InMemoryUnitOfWork(memory_db)
    return lambda: SqlAlchemyUnitOfWork(AsyncSessionLocal)


@lru_cache
def get_cache_service() -> ICacheService:
    if ApplicationConfig.CACHE_BACKEND == "memory":
        return InMemoryCacheService()
    return RedisCacheService(
        ApplicationConfig.REDIS_URL,
        socket_timeout=ApplicationConfig.REDIS_SOCKET_TIMEOUT,
    )


@lru_cache
def get_token_codec() -> TokenCodec:
    return TokenCodec.from_config(ApplicationConfig)


def get_session_cache(cache: ICacheService = Depends(get_cache_service)) -> SessionCache:
    return SessionCache(cache)


def get_session_orchestrator(
    uow_factory: Callable[[], UnitOfWork] = Depends(get_uow_factory),
    session_cache: SessionCache = Depends(get_session_cache),
    codec: TokenCodec = Depends(get_token_codec),
) -> SessionOrchestrator:
    return SessionOrchestrator(
        uow_factory,
        session_cache,
        codec,
        BcryptIdentityProvider(uow_factory),
    )


def get_token_validator(
    session_cache: SessionCache = Depends(get_session_cache),
    codec: TokenCodec = Depends(get_token_codec),
) -> TokenValidator:
    return TokenValidator(codec, session_cache)


async def get_optional_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    validator: TokenValidator = Depends(get_token_validator),
) -> Optional[AccessClaims]:
    """
    Resolve the bearer token to verified claims, or None.

    A cache outage yields None as well: the validator has no opinion, and
    routes that require a principal reject the request themselves.
    """
    if credentials is None:
        return None

    result = await validator.validate(credentials.credentials)
    if result.is_err():
        return None
    return result.value


async def get_current_principal(
    principal: Optional[AccessClaims] = Depends(get_optional_principal),
) -> AccessClaims:
    """
    Dependency for routes that require an authenticated session.

    Raises:
        ClientError: 401 if the token is missing, invalid, expired or revoked
    """
    if principal is None:
        raise ClientError(
            Error(AuthErrorCode.INVALID_TOKEN, "Invalid or expired token"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    return principal
