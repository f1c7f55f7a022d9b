from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from libs.result import Error, Return
from src.app.use_cases.auth import SessionOrchestrator
from src.domain.base import hash_token, utc_now
from src.domain.entities import (
    AuthErrorCode,
    RefreshToken,
    RevocationReason,
    Session,
)
from tests.fixtures.users import build_user


@pytest.fixture
def identity():
    identity = MagicMock()
    identity.authenticate = AsyncMock()
    return identity


@pytest.fixture
def mock_session_cache():
    session_cache = MagicMock()
    session_cache.activate = AsyncMock()
    session_cache.evict = AsyncMock()
    return session_cache


@pytest.fixture
def use_case(mock_uow, mock_session_cache, codec, identity):
    return SessionOrchestrator(lambda: mock_uow, mock_session_cache, codec, identity)


def make_session(user_id, **overrides) -> Session:
    values = dict(
        session_id="session-1",
        user_id=user_id,
        expires_at=utc_now() + timedelta(days=90),
    )
    values.update(overrides)
    return Session(**values)


def make_refresh_token(session: Session, value: str = "refresh-value", **overrides) -> RefreshToken:
    values = dict(
        token_hash=hash_token(value),
        session_pk=session.id,
        expires_at=utc_now() + timedelta(days=90),
    )
    values.update(overrides)
    return RefreshToken(**values)


# ----------------------------------------------------------------------------
# Login
# ----------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_login_persists_session_and_activates_cache(
    use_case, mock_uow, mock_session_cache, identity
):
    user = build_user("active")
    identity.authenticate.return_value = Return.ok(user)
    mock_uow.users.get_by_id.return_value = user

    result = await use_case.login("alice@example.com", "SecurePass123!", "10.0.0.1", "curl/8")

    assert result.is_ok()
    bundle = result.value
    assert bundle.user_id == str(user.id)
    assert bundle.email == "alice@example.com"
    assert bundle.roles == ["member"]

    created_session = mock_uow.sessions.create.await_args.args[0]
    assert created_session.session_id == bundle.session_id
    assert created_session.ip_address == "10.0.0.1"
    assert created_session.device_info == "curl/8"
    assert created_session.expires_at == bundle.refresh_token_expires_at

    created_token = mock_uow.refresh_tokens.create.await_args.args[0]
    assert created_token.token_hash == hash_token(bundle.refresh_token)
    assert created_token.session_pk == created_session.id

    assert user.last_login_at is not None
    mock_uow.commit.assert_awaited_once()
    mock_session_cache.activate.assert_awaited_once_with(
        bundle.session_id, str(user.id), bundle.access_token_expires_at
    )


@pytest.mark.asyncio
async def test_login_invalid_credentials_touches_nothing(
    use_case, mock_uow, mock_session_cache, identity
):
    identity.authenticate.return_value = Return.err(
        Error(AuthErrorCode.INVALID_CREDENTIALS, "Invalid email or password")
    )

    result = await use_case.login("alice@example.com", "nope", "10.0.0.1", "")

    assert result.is_err()
    assert result.error.code == AuthErrorCode.INVALID_CREDENTIALS
    mock_uow.sessions.create.assert_not_called()
    mock_session_cache.activate.assert_not_called()


@pytest.mark.asyncio
async def test_login_store_failure_becomes_internal_error(use_case, mock_uow, identity):
    identity.authenticate.return_value = Return.ok(build_user("active"))
    mock_uow.sessions.create.side_effect = RuntimeError("database is locked")

    result = await use_case.login("alice@example.com", "SecurePass123!", "10.0.0.1", "")

    assert result.is_err()
    assert result.error.code == AuthErrorCode.INTERNAL_ERROR
    assert result.error.message == "Internal server error"
    mock_uow.commit.assert_not_called()


# ----------------------------------------------------------------------------
# Refresh
# ----------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_refresh_unknown_token(use_case, mock_uow):
    mock_uow.refresh_tokens.get_by_token.return_value = None

    result = await use_case.refresh("unknown", "10.0.0.1", "")

    assert result.is_err()
    assert result.error.code == AuthErrorCode.TOKEN_INVALID_OR_EXPIRED


@pytest.mark.asyncio
async def test_refresh_rotates_token(use_case, mock_uow, mock_session_cache):
    user = build_user("active")
    session = make_session(user.id)
    stored = make_refresh_token(session)
    mock_uow.refresh_tokens.get_by_token.return_value = stored
    mock_uow.sessions.get_by_id.return_value = session
    mock_uow.users.get_by_id.return_value = user

    result = await use_case.refresh("refresh-value", "10.0.0.2", "firefox")

    assert result.is_ok()
    bundle = result.value
    assert bundle.session_id == "session-1"
    assert bundle.refresh_token != "refresh-value"

    mock_uow.refresh_tokens.revoke_if_valid.assert_awaited_once_with(
        stored.id,
        RevocationReason.rotation.value,
        replaced_by_token=hash_token(bundle.refresh_token),
    )
    successor = mock_uow.refresh_tokens.create.await_args.args[0]
    assert successor.token_hash == hash_token(bundle.refresh_token)
    assert successor.session_pk == session.id

    pk, ip, device, _, expires_at = mock_uow.sessions.record_activity.await_args.args
    assert (pk, ip, device) == (session.id, "10.0.0.2", "firefox")
    assert expires_at == bundle.refresh_token_expires_at

    mock_uow.commit.assert_awaited_once()
    mock_session_cache.activate.assert_awaited_once()


@pytest.mark.asyncio
async def test_refresh_losing_the_race(use_case, mock_uow, mock_session_cache):
    user = build_user("active")
    session = make_session(user.id)
    mock_uow.refresh_tokens.get_by_token.return_value = make_refresh_token(session)
    mock_uow.sessions.get_by_id.return_value = session
    mock_uow.users.get_by_id.return_value = user
    mock_uow.refresh_tokens.revoke_if_valid.return_value = False

    result = await use_case.refresh("refresh-value", "10.0.0.1", "")

    assert result.is_err()
    assert result.error.code == AuthErrorCode.TOKEN_INVALID_OR_EXPIRED
    mock_uow.refresh_tokens.create.assert_not_called()
    mock_uow.commit.assert_not_called()
    mock_uow.rollback.assert_awaited()
    mock_session_cache.activate.assert_not_called()


@pytest.mark.asyncio
async def test_refresh_session_revoked_after_check(use_case, mock_uow, mock_session_cache):
    """Session ended between the activity check and the conditional update"""
    user = build_user("active")
    session = make_session(user.id)
    mock_uow.refresh_tokens.get_by_token.return_value = make_refresh_token(session)
    mock_uow.sessions.get_by_id.return_value = session
    mock_uow.users.get_by_id.return_value = user
    mock_uow.sessions.record_activity.return_value = False

    result = await use_case.refresh("refresh-value", "10.0.0.1", "")

    assert result.is_err()
    assert result.error.code == AuthErrorCode.SESSION_INVALID
    mock_uow.refresh_tokens.revoke_if_valid.assert_awaited_once()
    mock_uow.refresh_tokens.create.assert_not_called()
    mock_uow.commit.assert_not_called()
    mock_uow.rollback.assert_awaited()
    mock_session_cache.activate.assert_not_called()


@pytest.mark.asyncio
async def test_refresh_on_revoked_session_revokes_token(use_case, mock_uow):
    user = build_user("active")
    session = make_session(user.id, revoked=True)
    stored = make_refresh_token(session)
    mock_uow.refresh_tokens.get_by_token.return_value = stored
    mock_uow.sessions.get_by_id.return_value = session

    result = await use_case.refresh("refresh-value", "10.0.0.1", "")

    assert result.is_err()
    assert result.error.code == AuthErrorCode.SESSION_INVALID
    mock_uow.refresh_tokens.revoke.assert_awaited_once_with(
        stored.id, RevocationReason.session_invalid.value
    )
    mock_uow.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_refresh_for_disabled_user_revokes_token(use_case, mock_uow):
    user = build_user("disabled")
    session = make_session(user.id)
    stored = make_refresh_token(session)
    mock_uow.refresh_tokens.get_by_token.return_value = stored
    mock_uow.sessions.get_by_id.return_value = session
    mock_uow.users.get_by_id.return_value = user

    result = await use_case.refresh("refresh-value", "10.0.0.1", "")

    assert result.is_err()
    assert result.error.code == AuthErrorCode.USER_INVALID
    mock_uow.refresh_tokens.revoke.assert_awaited_once_with(
        stored.id, RevocationReason.user_invalid.value
    )


@pytest.mark.asyncio
async def test_refresh_with_expired_token(use_case, mock_uow):
    session = make_session(uuid4())
    mock_uow.refresh_tokens.get_by_token.return_value = make_refresh_token(
        session, expires_at=utc_now() - timedelta(seconds=1)
    )

    result = await use_case.refresh("refresh-value", "10.0.0.1", "")

    assert result.is_err()
    assert result.error.code == AuthErrorCode.TOKEN_INVALID_OR_EXPIRED
    mock_uow.sessions.get_by_id.assert_not_called()


# ----------------------------------------------------------------------------
# Logout / revocation
# ----------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_logout_unknown_session_is_noop(use_case, mock_uow, mock_session_cache):
    mock_uow.sessions.get_by_session_id.return_value = None

    result = await use_case.logout("missing")

    assert result.is_ok()
    assert result.value.revoked is False
    mock_uow.sessions.revoke.assert_not_called()
    mock_session_cache.evict.assert_awaited_with("missing")


@pytest.mark.asyncio
async def test_revoke_session_not_found(use_case, mock_uow, mock_session_cache):
    mock_uow.sessions.get_by_session_id.return_value = None

    result = await use_case.revoke_session("missing", RevocationReason.admin.value)

    assert result.is_err()
    assert result.error.code == AuthErrorCode.SESSION_NOT_FOUND
    mock_session_cache.evict.assert_not_called()


@pytest.mark.asyncio
async def test_revoke_session_evicts_before_and_after_commit(
    use_case, mock_uow, mock_session_cache
):
    session = make_session(uuid4())
    mock_uow.sessions.get_by_session_id.return_value = session

    result = await use_case.revoke_session("session-1", "compromised")

    assert result.is_ok()
    assert result.value.revoked is True
    mock_uow.refresh_tokens.revoke_all_by_session.assert_awaited_once_with(
        session.id, "compromised"
    )
    mock_uow.sessions.revoke.assert_awaited_once_with("session-1", "compromised")
    assert mock_session_cache.evict.await_count == 2


@pytest.mark.asyncio
async def test_revoke_all_evicts_every_active_session(
    use_case, mock_uow, mock_session_cache
):
    user_id = uuid4()
    sessions = [make_session(user_id, session_id=f"s{i}") for i in range(3)]
    mock_uow.sessions.get_active_by_user_id.return_value = sessions
    mock_uow.sessions.revoke_all_by_user_id.return_value = 3

    result = await use_case.revoke_all_user_sessions(user_id, RevocationReason.admin.value)

    assert result.is_ok()
    assert result.value.revoked_count == 3
    evicted = {call.args[0] for call in mock_session_cache.evict.await_args_list}
    assert evicted == {"s0", "s1", "s2"}
    mock_uow.refresh_tokens.revoke_all_by_user_id.assert_awaited_once_with(
        user_id, RevocationReason.admin.value
    )


@pytest.mark.asyncio
async def test_revoke_all_cache_failure_becomes_internal_error(
    use_case, mock_uow, mock_session_cache
):
    mock_uow.sessions.get_active_by_user_id.return_value = [make_session(uuid4())]
    mock_session_cache.evict.side_effect = RuntimeError("cache down")

    result = await use_case.revoke_all_user_sessions(uuid4(), RevocationReason.admin.value)

    assert result.is_err()
    assert result.error.code == AuthErrorCode.INTERNAL_ERROR
    mock_uow.commit.assert_not_called()
