from datetime import timedelta

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.adapter.repositories.memory import InMemoryDatabase
from src.adapter.services.bcrypt_identity_provider import BcryptIdentityProvider
from src.adapter.services.memory_cache_service import InMemoryCacheService
from src.adapter.services.unit_of_work import InMemoryUnitOfWork
from src.app.services.session_cache import SessionCache
from src.app.services.token_codec import TokenCodec
from src.app.services.token_validator import TokenValidator
from src.app.use_cases.auth import SessionOrchestrator
from tests.fixtures.users import build_user

TEST_SECRET = "unit-test-secret"


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.users = MagicMock()
    uow.users.get_by_email = AsyncMock()
    uow.users.get_by_id = AsyncMock()
    uow.users.update = AsyncMock()

    uow.sessions = MagicMock()
    uow.sessions.create = AsyncMock(side_effect=lambda s: s)
    uow.sessions.get_by_id = AsyncMock()
    uow.sessions.get_by_session_id = AsyncMock()
    uow.sessions.get_active_by_user_id = AsyncMock(return_value=[])
    uow.sessions.record_activity = AsyncMock(return_value=True)
    uow.sessions.revoke = AsyncMock(return_value=True)
    uow.sessions.revoke_all_by_user_id = AsyncMock(return_value=0)

    uow.refresh_tokens = MagicMock()
    uow.refresh_tokens.create = AsyncMock(side_effect=lambda t: t)
    uow.refresh_tokens.get_by_token = AsyncMock()
    uow.refresh_tokens.revoke_if_valid = AsyncMock(return_value=True)
    uow.refresh_tokens.revoke = AsyncMock(return_value=True)
    uow.refresh_tokens.revoke_all_by_session = AsyncMock(return_value=0)
    uow.refresh_tokens.revoke_all_by_user_id = AsyncMock(return_value=0)
    return uow


@pytest.fixture
def codec():
    return TokenCodec(
        TEST_SECRET,
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=90),
    )


@pytest.fixture
def cache():
    return InMemoryCacheService()


@pytest.fixture
def session_cache(cache):
    return SessionCache(cache)


@pytest.fixture
def validator(codec, session_cache):
    return TokenValidator(codec, session_cache)


@pytest.fixture
def memory_db():
    db = InMemoryDatabase()
    for key in ("active", "second", "disabled"):
        user = build_user(key)
        db.users[user.id] = user
    return db


@pytest.fixture
def uow_factory(memory_db):
    return lambda: InMemoryUnitOfWork(memory_db)


@pytest.fixture
def orchestrator(uow_factory, session_cache, codec):
    return SessionOrchestrator(
        uow_factory, session_cache, codec, BcryptIdentityProvider(uow_factory)
    )
