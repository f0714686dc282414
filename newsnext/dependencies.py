"""
NewsNext Backend — Auth Dependencies
=====================================

FastAPI dependencies that turn the `Authorization: Bearer <jwt>` header
into a `User`:

    get_optional_user   anonymous allowed (public ad listing, tracking)
    get_current_user    401 without a valid token
    require_roles(...)  403 unless the user has one of the roles

The user row is loaded on every request, so deactivation and role
changes apply to tokens already issued.
"""

import logging
import uuid
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from newsnext.database import get_db_session
from newsnext.exceptions import AuthenticationError, AuthorizationError
from newsnext.models.enums import Role
from newsnext.models.user import User
from newsnext.security import decode_access_token

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


async def get_optional_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> Optional[User]:
    if not token:
        return None

    payload = decode_access_token(token)
    try:
        user_id = uuid.UUID(payload["sub"])
    except ValueError:
        raise AuthenticationError("Invalid or expired token")

    user = await db.get(User, user_id)
    if user is None or not user.is_active:
        logger.info("Rejected token for missing or inactive user %s", user_id)
        raise AuthenticationError("User not found or inactive")
    return user


async def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise AuthenticationError()
    return user


def require_roles(*roles: Role):
    """Dependency factory: `Depends(require_roles(Role.ADMIN, Role.SUPER_ADMIN))`."""
    allowed = frozenset(roles)

    async def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise AuthorizationError(
                "Insufficient permissions",
                context={"required": sorted(r.value for r in allowed)},
            )
        return user

    return checker


require_admin = require_roles(Role.ADMIN, Role.SUPER_ADMIN)
require_ad_manager = require_roles(Role.ADVERTISER, Role.ADMIN, Role.SUPER_ADMIN)
