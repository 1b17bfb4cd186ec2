"""
gateway/auth.py

Bearer token verification and role gates.
Tokens are issued by the auth service and carry "id" and "role" claims.
"""

from typing import Callable, Optional

import jwt
import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import settings
from gateway.schemas import CurrentUser

logger = structlog.get_logger(__name__)

security = HTTPBearer(auto_error=False)


def decode_token(token: str) -> Optional[CurrentUser]:
    """Verify a token and return its identity, or None if it is invalid."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
        return CurrentUser(id=int(payload["id"]), role=payload.get("role", "patient"))
    except (jwt.PyJWTError, KeyError, TypeError, ValueError) as exc:
        logger.warning("token_rejected", error=str(exc))
        return None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user = decode_token(credentials.credentials)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_roles(*roles: str) -> Callable:
    """Dependency factory allowing only the given roles through."""

    async def _check(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
        return user

    return _check
