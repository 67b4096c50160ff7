"""
FastAPI dependencies for authentication and authorization.

Authentication is delegated to Supabase: the bearer token is verified here and
the local User row (matched by email) supplies the role used for authorization.
"""

import logging
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.security import decode_supabase_token
from app.crud import user as user_crud
from app.models.user import User, RoleName

logger = logging.getLogger(__name__)

# HTTP Bearer token scheme (Authorization: Bearer <token>)
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """
    Verify the Supabase access token and return its claims.

    Raises:
        HTTPException 401: Missing, invalid or expired token
    """
    if not credentials or not credentials.credentials:
        raise _unauthorized("No token provided")

    if not settings.SUPABASE_JWT_SECRET:
        raise _unauthorized("JWT secret not configured")

    try:
        return decode_supabase_token(credentials.credentials)
    except JWTError as e:
        logger.info(f"Rejected bearer token: {e}")
        raise _unauthorized("Invalid or expired token")


async def get_current_user(
    payload: dict = Depends(get_token_payload),
    db: Session = Depends(get_db)
) -> User:
    """
    Resolve the registered user behind the token.

    Raises:
        HTTPException 401: Token has no email claim
        HTTPException 403: Email is not registered in this application
    """
    email = payload.get("email")
    if not email:
        raise _unauthorized("User email not found in token")

    user = user_crud.get_by_email(db, email)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User not registered"
        )

    return user


def require_roles(*roles: RoleName):
    """
    Build a dependency that only lets users with one of `roles` through.

    Usage:
        @router.post("/standards")
        def create_standard(user: User = Depends(require_roles(RoleName.ADMIN))):
            ...
    """
    allowed = {RoleName(r).value for r in roles}

    async def role_checker(user: User = Depends(get_current_user)) -> User:
        if user.role is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="User without role"
            )
        if user.role.name not in allowed:
            logger.warning(f"User {user.id} with role {user.role.name} denied (needs {sorted(allowed)})")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role"
            )
        return user

    return role_checker


# Shortcuts used by the routers
require_admin = require_roles(RoleName.ADMIN)
require_evaluator = require_roles(RoleName.ADMIN, RoleName.EVALUATOR)
