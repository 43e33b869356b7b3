"""
Access token verification.

Tokens are issued by the external identity service and signed with the shared
SECRET_KEY. They carry ``sub`` (user id) and ``role``.
"""

from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, Optional, cast

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
import jwt
from jwt import PyJWTError

from .core.config import settings
from .core.enums import RoleName
from .core.exceptions import UnauthorizedException
from .principal import AuthenticatedUser

logger = logging.getLogger(__name__)

oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and verify a JWT access token. Raises PyJWTError on failure."""
    payload_raw = jwt.decode(
        token,
        settings.secret_key.get_secret_value(),
        algorithms=[settings.algorithm],
        options={"verify_aud": False},
    )
    return cast(Dict[str, Any], payload_raw)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Used by tests and local tooling; production tokens come from the identity service.

    Args:
        data: Claims to encode (``sub`` and ``role`` at minimum)
        expires_delta: Optional expiration time delta
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire})
    return cast(
        str,
        jwt.encode(to_encode, settings.secret_key.get_secret_value(), algorithm=settings.algorithm),
    )


def principal_from_token(token: Optional[str]) -> AuthenticatedUser:
    """
    Build the caller principal from a bearer token.

    Raises:
        UnauthorizedException: Missing, expired, malformed or incomplete token
    """
    if not token:
        raise UnauthorizedException("Not authenticated")
    try:
        payload = decode_access_token(token)
    except PyJWTError as e:
        logger.warning(f"JWT validation error: {str(e)}")
        raise UnauthorizedException("Could not validate credentials")

    user_id = payload.get("sub")
    raw_role = payload.get("role")
    if not isinstance(user_id, str) or not user_id:
        logger.warning("Token payload missing 'sub' field")
        raise UnauthorizedException("Could not validate credentials")
    try:
        role = RoleName(str(raw_role).lower())
    except ValueError:
        logger.warning("Token carries unknown role %r", raw_role)
        raise UnauthorizedException("Could not validate credentials")
    return AuthenticatedUser(user_id=user_id, role=role)


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme_optional),
) -> AuthenticatedUser:
    """FastAPI dependency resolving the authenticated caller."""
    try:
        return principal_from_token(token)
    except UnauthorizedException as exc:
        http_exc = exc.to_http_exception()
        http_exc.headers = {"WWW-Authenticate": "Bearer"}
        raise http_exc
