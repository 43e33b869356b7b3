# backend/app/api/dependencies/auth.py
"""
Authentication and authorization dependencies.

Identity comes from the bearer token alone; no user lookup happens here.
Ownership checks live in the services.
"""

import logging
from typing import Awaitable, Callable

from fastapi import Depends

from ...auth import get_current_user
from ...core.enums import RoleName
from ...core.exceptions import ForbiddenException
from ...principal import AuthenticatedUser

logger = logging.getLogger(__name__)


def require_roles(*roles: RoleName) -> Callable[..., Awaitable[AuthenticatedUser]]:
    """
    Dependency factory that only lets the given roles through.

    Usage:
        @router.post("/", dependencies=[Depends(require_roles(RoleName.ADMIN))])
    """
    allowed = set(roles)

    async def _check(
        current_user: AuthenticatedUser = Depends(get_current_user),
    ) -> AuthenticatedUser:
        if current_user.role not in allowed:
            logger.info(
                "Role %s denied; requires one of %s",
                current_user.role.value,
                sorted(r.value for r in allowed),
            )
            raise ForbiddenException(
                "You don't have permission to perform this action"
            ).to_http_exception()
        return current_user

    return _check


__all__ = ["get_current_user", "require_roles"]
