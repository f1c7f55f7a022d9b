from fastapi import status
from libs.result import Error
from src.domain.entities import AuthErrorCode


class ClientError(Exception):
    def __init__(self, base_error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)


# Outcome codes that are the client's problem; anything else is a ServerError
CLIENT_ERROR_STATUS = {
    AuthErrorCode.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.ACCOUNT_INACTIVE: status.HTTP_403_FORBIDDEN,
    AuthErrorCode.TOKEN_INVALID_OR_EXPIRED: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.SESSION_INVALID: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.USER_INVALID: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.SESSION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    AuthErrorCode.INVALID_TOKEN: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.TOKEN_EXPIRED: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.SESSION_REVOKED: status.HTTP_401_UNAUTHORIZED,
}


def to_http_error(error: Error) -> Exception:
    status_code = CLIENT_ERROR_STATUS.get(error.code)
    if status_code is None:
        return ServerError(error)
    return ClientError(error, status_code=status_code)
