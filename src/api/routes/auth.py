from typing import Optional

from fastapi import APIRouter, Body, Depends, Header, Request, Response, status
from pydantic import BaseModel, EmailStr, Field

from config import ApplicationConfig
from libs.result import Error
from src.api.error import ClientError, to_http_error
from src.app.services.token_codec import AccessClaims
from src.app.use_cases.auth import AuthBundle, LogoutResponse, SessionOrchestrator
from src.depends import get_current_principal, get_session_orchestrator
from src.domain.base import utc_now
from src.domain.entities.session import DEVICE_INFO_MAX_LENGTH, IP_ADDRESS_MAX_LENGTH

router = APIRouter(prefix="/auth", tags=["Authentication"])


class LoginRequest(BaseModel):
    """
    Login HTTP request payload

    Validates incoming HTTP request before calling the orchestrator.
    """

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=1, description="User password")


class RefreshRequest(BaseModel):
    """
    Refresh token HTTP request payload

    The token may also arrive via cookie or X-Refresh-Token header.
    """

    refresh_token: Optional[str] = Field(default=None, description="Refresh token")


def client_context(request: Request) -> tuple[str, str]:
    """IP address and device description of the calling client, cut to column size"""
    ip_address = request.client.host if request.client else "unknown"
    device_info = request.headers.get("user-agent", "")
    return ip_address[:IP_ADDRESS_MAX_LENGTH], device_info[:DEVICE_INFO_MAX_LENGTH]


def set_refresh_cookie(response: Response, bundle: AuthBundle) -> None:
    max_age = int((bundle.refresh_token_expires_at - utc_now()).total_seconds())
    response.set_cookie(
        key=ApplicationConfig.REFRESH_COOKIE_NAME,
        value=bundle.refresh_token,
        max_age=max(max_age, 0),
        httponly=True,
        secure=ApplicationConfig.REFRESH_COOKIE_SECURE,
        samesite="strict",
    )


@router.post("/login", status_code=status.HTTP_200_OK, response_model=AuthBundle)
async def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    orchestrator: SessionOrchestrator = Depends(get_session_orchestrator),
):
    """
    User Login

    Authenticates the user, opens a new session and returns a token pair.
    The refresh token is also set as an HTTP-only cookie.

    Raises:
        - 401 Unauthorized: Invalid credentials
        - 403 Forbidden: Account disabled
        - 500 Internal Server Error: Server error
    """
    ip_address, device_info = client_context(request)
    result = await orchestrator.login(
        payload.email, payload.password, ip_address, device_info
    )

    if result.is_err():
        raise to_http_error(result.error)

    set_refresh_cookie(response, result.value)
    return result.value


@router.post("/refresh-token", status_code=status.HTTP_200_OK, response_model=AuthBundle)
async def refresh_token(
    request: Request,
    response: Response,
    payload: Optional[RefreshRequest] = Body(default=None),
    x_refresh_token: Optional[str] = Header(default=None),
    orchestrator: SessionOrchestrator = Depends(get_session_orchestrator),
):
    """
    Refresh Token Rotation

    Exchanges a refresh token (body, cookie or X-Refresh-Token header) for a
    new token pair. The presented token can never be used again.

    Raises:
        - 400 Bad Request: No refresh token provided
        - 401 Unauthorized: Token invalid/expired, session or user invalid
        - 500 Internal Server Error: Server error
    """
    token = (
        (payload.refresh_token if payload else None)
        or request.cookies.get(ApplicationConfig.REFRESH_COOKIE_NAME)
        or x_refresh_token
    )
    if not token:
        raise ClientError(
            Error("REFRESH_TOKEN_MISSING", "Refresh token not provided"),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    ip_address, device_info = client_context(request)
    result = await orchestrator.refresh(token, ip_address, device_info)

    if result.is_err():
        raise to_http_error(result.error)

    set_refresh_cookie(response, result.value)
    return result.value


@router.post("/logout", status_code=status.HTTP_200_OK, response_model=LogoutResponse)
async def logout(
    response: Response,
    principal: AccessClaims = Depends(get_current_principal),
    orchestrator: SessionOrchestrator = Depends(get_session_orchestrator),
):
    """
    Logout

    Ends the session carried by the access token and clears the refresh
    token cookie.

    Raises:
        - 401 Unauthorized: Missing, invalid or revoked access token
        - 500 Internal Server Error: Server error
    """
    result = await orchestrator.logout(principal.session_id)

    if result.is_err():
        raise to_http_error(result.error)

    response.delete_cookie(ApplicationConfig.REFRESH_COOKIE_NAME)
    return result.value


@router.get("/me", status_code=status.HTTP_200_OK, response_model=AccessClaims)
async def me(principal: AccessClaims = Depends(get_current_principal)):
    """
    Current Session

    Returns the verified claims of a currently usable access token.
    """
    return principal
