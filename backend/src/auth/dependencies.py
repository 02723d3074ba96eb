"""FastAPI dependencies for authentication and authorization.

This module provides dependency injection functions for:
- Extracting and validating JWT tokens from requests
- Loading the current authenticated user
- Enforcing permission-based access control

Usage:
    @app.get("/protected")
    def protected_endpoint(user: User = Depends(get_current_user)):
        return {"message": f"Hello {user.name}"}

    @app.delete("/users/{user_id}")
    def delete_user(user: User = Depends(require_permission(Perm.DELETE_USERS))):
        ...
"""

from typing import Callable, Annotated
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from uuid import UUID
import jwt

from database import get_db
from models.user import User
from .jwt import decode_token
from .permissions import PermissionResolver


# HTTP Bearer token security scheme
security = HTTPBearer()


def get_permission_resolver() -> PermissionResolver:
    """Request-scoped permission resolver.

    FastAPI caches dependency results per request, so every check made while
    handling one request shares the same resolver and its loaded permissions.
    """
    return PermissionResolver()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Extract and validate JWT token, returning the authenticated user.

    This dependency:
    1. Extracts Bearer token from Authorization header
    2. Validates token signature and expiration
    3. Loads user from database
    4. Checks user is ACTIVE (not DISABLED)

    Raises:
        HTTPException 401: If token is missing, invalid, expired, or user not found
        HTTPException 403: If user status is DISABLED
    """
    token = credentials.credentials

    try:
        payload = decode_token(token)

        user_id_str = payload.get("sub")
        if not user_id_str:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token: missing user ID claim",
                headers={"WWW-Authenticate": "Bearer"},
            )

        user_id = UUID(user_id_str)

    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token claims: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # DISABLED users must not authenticate
    if user.status != "ACTIVE":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    return user


def require_permission(permission: str) -> Callable:
    """Create a dependency that requires a named permission.

    Admins (wildcard holders) pass every check.

    Args:
        permission: Permission name, e.g. "edit publications"

    Raises:
        HTTPException 403: If the user's role lacks the permission

    Example:
        @app.patch("/publications/{id}")
        def update(user: User = Depends(require_permission(Perm.EDIT_PUBLICATIONS))):
            ...
    """

    def permission_dependency(
        current_user: User = Depends(get_current_user),
        resolver: PermissionResolver = Depends(get_permission_resolver),
    ) -> User:
        if not resolver.has_permission(current_user, permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required permission: {permission}",
            )
        return current_user

    return permission_dependency


def require_admin(
    current_user: User = Depends(get_current_user),
    resolver: PermissionResolver = Depends(get_permission_resolver),
) -> User:
    """Dependency for admin-only endpoints (restore, permanent delete, overrides)."""
    if not resolver.is_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions. Administrator access required",
        )
    return current_user


def require_reviewer(
    current_user: User = Depends(get_current_user),
    resolver: PermissionResolver = Depends(get_permission_resolver),
) -> User:
    """Dependency for moderation endpoints (admins and librarians)."""
    if not resolver.is_reviewer(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions. Reviewer access required",
        )
    return current_user


# Type aliases for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
Resolver = Annotated[PermissionResolver, Depends(get_permission_resolver)]
