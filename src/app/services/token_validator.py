"""
Access Token Validator

Per-request fast path: signature and expiry check plus a session cache
existence check. Never touches the durable store and never writes the cache.
"""

import logging

from libs.result import Error, Result, Return
from src.app.services.cache_service import CacheUnavailableError
from src.app.services.session_cache import SessionCache
from src.app.services.token_codec import AccessClaims, TokenCodec
from src.domain.entities import AuthErrorCode

logger = logging.getLogger(__name__)


class TokenValidator:
    """
    Answers "is this access token currently usable".

    Outcomes:
    - ok(AccessClaims): signature valid, not expired, session cached as active
    - INVALID_TOKEN / TOKEN_EXPIRED: codec rejected the token
    - SESSION_REVOKED: token carries no session or its cache entry is gone
    - CACHE_UNAVAILABLE: cache could not answer; no opinion either way
    """

    def __init__(self, codec: TokenCodec, session_cache: SessionCache):
        self.codec = codec
        self.session_cache = session_cache

    async def validate(self, token: str) -> Result[AccessClaims]:
        verified = self.codec.verify(token)
        if verified.is_err():
            return verified

        claims = verified.value
        if not claims.session_id:
            return Return.err(
                Error(AuthErrorCode.SESSION_REVOKED, "Token is not bound to a session")
            )

        try:
            active = await self.session_cache.is_active(claims.session_id)
        except CacheUnavailableError:
            logger.warning(
                f"Session cache unavailable while validating session {claims.session_id}",
                exc_info=True,
            )
            return Return.err(
                Error(AuthErrorCode.CACHE_UNAVAILABLE, "Session state cannot be confirmed")
            )

        if not active:
            return Return.err(
                Error(AuthErrorCode.SESSION_REVOKED, "Session is no longer active")
            )

        return Return.ok(claims)
