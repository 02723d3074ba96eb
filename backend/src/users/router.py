"""User management endpoints.

Users can:
- List and search users ('view users')
- Create users ('create users')
- View and update their own profile, or any profile with 'view users' / 'edit users'
- Delete users ('delete users'), never themselves, and admins only by admins.
  Reviewers of past submissions are kept so their decisions stay attributable

Changing a user's role additionally requires 'edit roles' (or admin).
Email uniqueness is enforced by a UNIQUE constraint. All mutations trigger
audit log events.
"""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from audit.service import log_from_request
from auth.dependencies import CurrentUser, Resolver, require_permission
from auth.password import hash_password, validate_password_strength
from auth.roles import Perm
from database import get_db
from models.pending_submission import PendingSubmission
from models.role import Role
from models.user import User
from schemas.pagination import clamp_per_page, last_page, paginate
from .schemas import UserCreate, UserListResponse, UserResponse, UserUpdate


router = APIRouter(prefix="/users", tags=["User Management"])


def _get_user_or_404(db: Session, user_id: UUID) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def _resolve_role(db: Session, slug: Optional[str]) -> Role:
    """Role by slug, or the default role when slug is None."""
    if slug is None:
        role = db.query(Role).filter(Role.is_default.is_(True)).first()
        if not role:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="No default role configured; specify a role",
            )
        return role

    role = db.query(Role).filter(Role.slug == slug.lower()).first()
    if not role:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown role: {slug}",
        )
    return role


def _check_password(password: str, email: str, name: str) -> None:
    is_valid, error = validate_password_strength(password, user_context=[email, name])
    if not is_valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)


@router.get(
    "",
    response_model=UserListResponse,
    summary="List users",
    description="Search users by name or email. Requires the 'view users' permission."
)
def list_users(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(Perm.VIEW_USERS))],
    search: Optional[str] = Query(None, description="Match name or email"),
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None),
) -> UserListResponse:
    per_page = clamp_per_page(per_page, 15, 100)
    query = db.query(User)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))

    users, total = paginate(query.order_by(User.created_at.desc()), page, per_page)
    return UserListResponse(
        users=[UserResponse.from_user(user) for user in users],
        total=total,
        page=page,
        per_page=per_page,
        last_page=last_page(total, per_page),
    )


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new user",
)
def create_user(
    request: Request,
    data: UserCreate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(Perm.CREATE_USERS))],
) -> UserResponse:
    """Create a new user.

    Raises:
        400: Password does not meet strength requirements
        409: Email already exists
        422: Unknown role slug
    """
    email = data.email.lower()
    _check_password(data.password, email, data.name)

    if db.query(User).filter(User.email == email).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"User with email {email} already exists"
        )

    role = _resolve_role(db, data.role)
    new_user = User(
        email=email,
        name=data.name,
        password_hash=hash_password(data.password),
        role_id=role.id,
        phone_number=data.phone_number,
        department=data.department,
        status="ACTIVE",
    )

    try:
        db.add(new_user)
        db.flush()

        log_from_request(
            db=db,
            request=request,
            action="USER_CREATED",
            actor_id=current_user.id,
            entity_type="user",
            entity_id=new_user.id,
            metadata={"email": new_user.email, "role": role.slug},
        )

        db.commit()
        db.refresh(new_user)

    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User creation failed due to constraint violation"
        )

    return UserResponse.from_user(new_user)


@router.get("/{user_id}", response_model=UserResponse, summary="Get user by ID")
def get_user(
    user_id: UUID,
    db: Annotated[Session, Depends(get_db)],
    current_user: CurrentUser,
    resolver: Resolver,
) -> UserResponse:
    """Get a single user. Users may always view themselves."""
    if user_id != current_user.id and not resolver.has_permission(current_user, Perm.VIEW_USERS):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    return UserResponse.from_user(_get_user_or_404(db, user_id))


@router.patch(
    "/{user_id}",
    response_model=UserResponse,
    summary="Update user",
    description="Updates user details. Triggers audit events for role/status changes."
)
def update_user(
    user_id: UUID,
    request: Request,
    data: UserUpdate,
    db: Annotated[Session, Depends(get_db)],
    current_user: CurrentUser,
    resolver: Resolver,
) -> UserResponse:
    """Update user details.

    Raises:
        400: New password does not meet strength requirements
        403: Not allowed to edit this user, change roles or change status
        404: User not found
        409: Email already in use
    """
    can_edit_users = resolver.has_permission(current_user, Perm.EDIT_USERS)
    if user_id != current_user.id and not can_edit_users:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")

    user = _get_user_or_404(db, user_id)

    changes = {}
    audit_events = []

    if data.name is not None and data.name != user.name:
        changes["name"] = {"old": user.name, "new": data.name}
        user.name = data.name

    if data.email is not None and data.email.lower() != user.email:
        email = data.email.lower()
        if db.query(User).filter(User.email == email, User.id != user.id).first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"User with email {email} already exists"
            )
        changes["email"] = {"old": user.email, "new": email}
        user.email = email

    for field in ("phone_number", "department"):
        value = getattr(data, field)
        if value is not None and value != getattr(user, field):
            changes[field] = {"old": getattr(user, field), "new": value}
            setattr(user, field, value)

    if data.password is not None:
        _check_password(data.password, user.email, user.name)
        user.password_hash = hash_password(data.password)
        changes["password"] = "changed"

    # Update role (triggers USER_ROLE_CHANGED audit event)
    if data.role is not None and data.role.lower() != user.role.slug:
        if not (resolver.is_admin(current_user) or resolver.has_permission(current_user, Perm.EDIT_ROLES)):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions. Changing roles requires 'edit roles'"
            )
        new_role = _resolve_role(db, data.role)
        old_slug = user.role.slug
        user.role_id = new_role.id
        user.role = new_role
        changes["role"] = {"old": old_slug, "new": new_role.slug}
        audit_events.append({
            "action": "USER_ROLE_CHANGED",
            "metadata": {"old_role": old_slug, "new_role": new_role.slug}
        })

    # Update status (triggers USER_DISABLED audit event if disabled)
    if data.status is not None and data.status != user.status:
        if not can_edit_users:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions. Changing status requires 'edit users'"
            )
        changes["status"] = {"old": user.status, "new": data.status}
        user.status = data.status
        if data.status == "DISABLED":
            audit_events.append({
                "action": "USER_DISABLED",
                "metadata": {"old_status": changes["status"]["old"], "new_status": data.status}
            })

    try:
        db.flush()

        if changes:
            log_from_request(
                db=db,
                request=request,
                action="USER_UPDATED",
                actor_id=current_user.id,
                entity_type="user",
                entity_id=user.id,
                metadata=changes
            )

        for event in audit_events:
            log_from_request(
                db=db,
                request=request,
                action=event["action"],
                actor_id=current_user.id,
                entity_type="user",
                entity_id=user.id,
                metadata=event["metadata"]
            )

        db.commit()
        db.refresh(user)

    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User update failed due to constraint violation"
        )

    return UserResponse.from_user(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete user")
def delete_user(
    user_id: UUID,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(Perm.DELETE_USERS))],
    resolver: Resolver,
):
    """Delete a user. Their publications and submissions are kept.

    Raises:
        400: Attempt to delete yourself
        403: Non-admin deleting an admin
        404: User not found
        409: User has reviewed submissions
    """
    if user_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account"
        )

    user = _get_user_or_404(db, user_id)
    if resolver.is_admin(user) and not resolver.is_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only administrators can delete administrator accounts"
        )

    reviewed = db.query(PendingSubmission).filter(PendingSubmission.verified_by == user.id).count()
    if reviewed:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"User has reviewed {reviewed} submission(s); disable the account instead"
        )

    log_from_request(
        db=db,
        request=request,
        action="USER_DELETED",
        actor_id=current_user.id,
        entity_type="user",
        entity_id=user.id,
        metadata={"email": user.email, "role": user.role.slug if user.role else None},
    )
    db.delete(user)
    db.commit()
