import logging
from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError as PydanticValidationError

from shared.core.config import settings
from shared.core.exceptions import Unauthorized
from shared.core.schemas import UserToken
from shared.utils.app_status_code import AppStatusCode

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def verify_token(token: str) -> UserToken:
    """Cryptographically verify an identity-provider token and return its claims.

    Signature, expiry and (when configured) audience are all checked on every
    call; nothing is cached between requests.
    """
    options = {"verify_aud": bool(settings.JWT_AUDIENCE)}
    try:
        payload = jwt.decode(token, settings.JWT_SECRET,
                             algorithms=[settings.JWT_ALGORITHM],
                             audience=settings.JWT_AUDIENCE,
                             options=options)
    except ExpiredSignatureError:
        raise Unauthorized("Token has expired",
                           AppStatusCode.AUTHENTICATION_TOKEN_EXPIRED)
    except JWTError:
        raise Unauthorized("Invalid or expired token",
                           AppStatusCode.AUTHENTICATION_TOKEN_INVALID)

    try:
        user = UserToken(**payload)
    except PydanticValidationError:
        raise Unauthorized("Invalid token structure",
                           AppStatusCode.AUTHENTICATION_TOKEN_INVALID)

    if not user.sub.strip():
        raise Unauthorized("Invalid token structure",
                           AppStatusCode.AUTHENTICATION_TOKEN_INVALID)
    return user


def validate_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> UserToken:
    """Dependency for operations that require a verified caller."""
    if not credentials or not credentials.credentials:
        raise Unauthorized("Unauthorized")
    return verify_token(credentials.credentials)


def optional_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[UserToken]:
    """Dependency for operations open to guests.

    A missing token means anonymous; a token that is present but fails
    verification is still rejected.
    """
    if not credentials or not credentials.credentials:
        return None
    return verify_token(credentials.credentials)


def identify_request(request: Request) -> Optional[UserToken]:
    """Best-effort identity for request context; never raises."""
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    try:
        return verify_token(token.strip())
    except Unauthorized as exc:
        logger.debug("Ignoring unverifiable token on %s: %s",
                     request.url.path, exc.message)
        return None
