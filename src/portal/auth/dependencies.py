"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from portal.auth.jwt import verify_token
from portal.auth.service import get_user_by_id
from portal.database import get_session
from portal.db.models import User
from portal.errors import AuthenticationError, AuthorizationError

_bearer = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    Extract and verify the bearer token, return the User model.

    Raises 401 when the token is missing, invalid or expired, the user no
    longer exists, or the account has been deactivated.
    """
    if credentials is None:
        msg = "Not authorized to access this route"
        raise AuthenticationError(msg)

    try:
        payload = verify_token(credentials.credentials, expected_type="access")
    except jwt.InvalidTokenError as e:
        raise AuthenticationError(str(e) or "Invalid token") from e

    user = await get_user_by_id(db, int(payload["sub"]))
    if user is None:
        msg = "User not found"
        raise AuthenticationError(msg)
    if not user.is_active:
        msg = "Account has been deactivated"
        raise AuthenticationError(msg)
    return user


def require_role(*roles: str):  # noqa: ANN201
    """Build a dependency that admits only users holding one of ``roles``."""

    async def _check(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            msg = f"User role {user.role} is not authorized to access this route"
            raise AuthorizationError(msg)
        return user

    return _check


require_admin = require_role("admin")
