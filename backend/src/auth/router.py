"""Authentication endpoints

Provides endpoints for user login and retrieving current user information.
"""

from datetime import datetime, timezone
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session

from database import get_db
from models.user import User
from audit.service import log_from_request
from .schemas import LoginRequest, LoginResponse, MeResponse
from .password import verify_password
from .jwt import create_access_token, get_jwt_expiry_minutes
from .dependencies import CurrentUser, Resolver


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=LoginResponse)
def login(
    credentials: LoginRequest,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
):
    """Authenticate user and return JWT access token.

    Security measures:
    - Generic error message for unknown email and wrong password
    - Failed login attempts are logged to audit_log
    - Disabled accounts are rejected
    - last_login_at is updated on successful login

    Raises:
        HTTPException: 401 if credentials are invalid or account is disabled
    """
    user = db.query(User).filter(User.email == credentials.email.lower()).first()

    if not user or not verify_password(credentials.password, user.password_hash):
        log_from_request(
            db=db,
            request=request,
            actor_id=user.id if user else None,
            action="LOGIN_FAILED",
            metadata={"email": credentials.email, "reason": "invalid_credentials"},
        )
        db.commit()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"  # Generic message to prevent enumeration
        )

    if user.status != "ACTIVE":
        log_from_request(
            db=db,
            request=request,
            actor_id=user.id,
            action="LOGIN_FAILED",
            metadata={"email": credentials.email, "reason": "account_disabled"},
        )
        db.commit()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is disabled"
        )

    user.last_login_at = datetime.now(timezone.utc)
    log_from_request(
        db=db,
        request=request,
        actor_id=user.id,
        action="LOGIN_SUCCESS",
        metadata={"email": user.email},
    )
    db.commit()

    access_token = create_access_token(
        user_id=user.id,
        role=user.role.slug,
        email=user.email
    )

    return LoginResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=get_jwt_expiry_minutes() * 60  # Convert minutes to seconds
    )


@router.get("/me", response_model=MeResponse)
def get_me(current_user: CurrentUser, resolver: Resolver):
    """Get current authenticated user information and effective permissions."""
    is_admin = resolver.is_admin(current_user)
    return MeResponse(
        id=current_user.id,
        email=current_user.email,
        name=current_user.name,
        phone_number=current_user.phone_number,
        department=current_user.department,
        status=current_user.status,
        role=current_user.role.slug,
        roles=[current_user.role.slug],
        permissions=sorted(resolver.permission_names(current_user)),
        is_admin=is_admin,
        is_reviewer=resolver.is_reviewer(current_user),
        last_login_at=current_user.last_login_at,
        created_at=current_user.created_at,
    )
