from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, status
from pydantic import BaseModel, Field

from src.api.error import to_http_error
from src.api.utils.admin_auth import verify_admin_api_key
from src.app.use_cases.auth import SessionOrchestrator
from src.depends import get_session_orchestrator
from src.domain.entities import RevocationReason

router = APIRouter(
    prefix="/sessions",
    tags=["Sessions"],
    dependencies=[Depends(verify_admin_api_key)],
)


class RevokeAllSessionsRequest(BaseModel):
    """Request to revoke all sessions for a user"""

    user_id: UUID = Field(..., description="User ID whose sessions will be revoked")
    reason: str = Field(default=RevocationReason.admin.value, max_length=255)


class RevokeSessionRequest(BaseModel):
    """Optional payload for revoking a single session"""

    reason: str = Field(default=RevocationReason.admin.value, max_length=255)


class RevokeSessionResponse(BaseModel):
    """Response for session revocation operations"""

    message: str
    revoked_count: int


class RevokeSpecificSessionResponse(BaseModel):
    """Response for specific session revocation"""

    message: str
    session_id: str
    revoked: bool


@router.post(
    "/revoke-all",
    status_code=status.HTTP_200_OK,
    response_model=RevokeSessionResponse,
)
async def revoke_all_sessions(
    request: RevokeAllSessionsRequest,
    orchestrator: SessionOrchestrator = Depends(get_session_orchestrator),
):
    """
    Revoke All Sessions

    Revokes every active session of a user. Useful for:
    - Security incidents (account compromise)
    - Password changes
    - Admin-initiated logout

    Outstanding access tokens of those sessions stop validating immediately.

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
        - 500 Internal Server Error: Server error
    """
    result = await orchestrator.revoke_all_user_sessions(request.user_id, request.reason)

    if result.is_err():
        raise to_http_error(result.error)

    data = result.value
    return {
        "message": f"Successfully revoked {data.revoked_count} session(s)",
        "revoked_count": data.revoked_count,
    }


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_200_OK,
    response_model=RevokeSpecificSessionResponse,
)
async def revoke_specific_session(
    session_id: str,
    request: Optional[RevokeSessionRequest] = Body(default=None),
    orchestrator: SessionOrchestrator = Depends(get_session_orchestrator),
):
    """
    Revoke Specific Session

    Revokes a single session and its refresh token. Revoking an already
    revoked session succeeds with revoked=false.

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
        - 404 Not Found: Session not found
        - 500 Internal Server Error: Server error
    """
    reason = request.reason if request else RevocationReason.admin.value
    result = await orchestrator.revoke_session(session_id, reason)

    if result.is_err():
        raise to_http_error(result.error)

    data = result.value
    return {
        "message": "Session revoked successfully" if data.revoked else "Session already revoked",
        "session_id": data.session_id,
        "revoked": data.revoked,
    }
