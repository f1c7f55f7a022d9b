import pytest

from src.adapter.services.bcrypt_identity_provider import BcryptIdentityProvider
from src.domain.entities import AuthErrorCode
from tests.fixtures.users import build_user


@pytest.mark.asyncio
async def test_authenticate_success(mock_uow):
    user = build_user("active")
    mock_uow.users.get_by_email.return_value = user
    provider = BcryptIdentityProvider(lambda: mock_uow)

    result = await provider.authenticate("alice@example.com", "SecurePass123!")

    assert result.is_ok()
    assert result.value is user
    mock_uow.users.get_by_email.assert_awaited_once_with("alice@example.com")


@pytest.mark.asyncio
async def test_authenticate_wrong_password(mock_uow):
    mock_uow.users.get_by_email.return_value = build_user("active")
    provider = BcryptIdentityProvider(lambda: mock_uow)

    result = await provider.authenticate("alice@example.com", "WrongPassword!")

    assert result.is_err()
    assert result.error.code == AuthErrorCode.INVALID_CREDENTIALS
    assert result.error.message == "Invalid email or password"


@pytest.mark.asyncio
async def test_authenticate_unknown_email_same_error(mock_uow):
    """Unknown email and wrong password are indistinguishable"""
    mock_uow.users.get_by_email.return_value = None
    provider = BcryptIdentityProvider(lambda: mock_uow)

    result = await provider.authenticate("nobody@example.com", "SecurePass123!")

    assert result.is_err()
    assert result.error.code == AuthErrorCode.INVALID_CREDENTIALS
    assert result.error.message == "Invalid email or password"


@pytest.mark.asyncio
async def test_authenticate_disabled_account(mock_uow):
    mock_uow.users.get_by_email.return_value = build_user("disabled")
    provider = BcryptIdentityProvider(lambda: mock_uow)

    result = await provider.authenticate("carol@example.com", "DisabledPass789!")

    assert result.is_err()
    assert result.error.code == AuthErrorCode.ACCOUNT_INACTIVE


@pytest.mark.asyncio
async def test_disabled_account_with_wrong_password_reports_credentials(mock_uow):
    mock_uow.users.get_by_email.return_value = build_user("disabled")
    provider = BcryptIdentityProvider(lambda: mock_uow)

    result = await provider.authenticate("carol@example.com", "guess")

    assert result.is_err()
    assert result.error.code == AuthErrorCode.INVALID_CREDENTIALS
