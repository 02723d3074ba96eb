"""Role and permission management endpoints.

Roles are named bundles of permissions; each user holds exactly one role.
Exactly one role may be the default (assigned to users created without an
explicit role). A role cannot be deleted while it is the default or while
users still hold it.
"""

from collections import defaultdict
from typing import Annotated, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from audit.service import log_from_request
from auth.dependencies import require_permission
from auth.roles import Perm
from database import get_db
from domain.publications.placement import slugify
from models.role import Permission, Role
from models.user import User
from .schemas import (
    PermissionListResponse,
    PermissionResponse,
    PermissionStats,
    RoleCreate,
    RoleListResponse,
    RolePermissionCount,
    RoleResponse,
    RoleUpdate,
)


router = APIRouter(tags=["Roles & Permissions"])


def _user_counts(db: Session) -> Dict[UUID, int]:
    rows = db.query(User.role_id, func.count(User.id)).group_by(User.role_id).all()
    return {role_id: count for role_id, count in rows}


def _get_role_or_404(db: Session, role_id: UUID) -> Role:
    role = db.query(Role).filter(Role.id == role_id).first()
    if not role:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Role not found")
    return role


def _check_unique(db: Session, name: str, slug: str, exclude_id: Optional[UUID] = None) -> None:
    query = db.query(Role).filter((Role.name == name) | (Role.slug == slug))
    if exclude_id is not None:
        query = query.filter(Role.id != exclude_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A role named '{name}' already exists"
        )


def _load_permissions(db: Session, permission_ids: List[UUID]) -> List[Permission]:
    wanted = set(permission_ids)
    permissions = db.query(Permission).filter(Permission.id.in_(wanted)).all() if wanted else []
    missing = wanted - {p.id for p in permissions}
    if missing:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "Unknown permission ids", "ids": sorted(str(i) for i in missing)},
        )
    return permissions


def _unset_other_defaults(db: Session, role: Role) -> None:
    db.query(Role).filter(Role.id != role.id, Role.is_default.is_(True)).update(
        {Role.is_default: False}, synchronize_session="fetch"
    )


@router.get("/roles", response_model=RoleListResponse, summary="List roles")
def list_roles(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(Perm.VIEW_ROLES))],
) -> RoleListResponse:
    """List roles with their user and permission counts."""
    counts = _user_counts(db)
    roles = db.query(Role).order_by(Role.name).all()
    return RoleListResponse(
        roles=[RoleResponse.from_role(role, counts.get(role.id, 0)) for role in roles],
        total=len(roles),
    )


@router.post("/roles", response_model=RoleResponse, status_code=status.HTTP_201_CREATED, summary="Create role")
def create_role(
    request: Request,
    data: RoleCreate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(Perm.CREATE_ROLES))],
) -> RoleResponse:
    """Create a role.

    Raises:
        409: Name (or derived slug) already taken
        422: Name yields an empty slug, or unknown permission ids
    """
    name = data.name.strip()
    slug = slugify(name)
    if not slug:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Role name must contain letters or digits"
        )
    _check_unique(db, name, slug)

    role = Role(
        name=name,
        slug=slug,
        description=data.description,
        is_default=data.is_default,
        permissions=_load_permissions(db, data.permission_ids),
    )
    db.add(role)
    db.flush()
    if role.is_default:
        _unset_other_defaults(db, role)

    log_from_request(
        db=db,
        request=request,
        action="ROLE_CREATED",
        actor_id=current_user.id,
        entity_type="role",
        entity_id=role.id,
        metadata={"name": role.name, "permissions": sorted(p.name for p in role.permissions)},
    )
    db.commit()
    db.refresh(role)
    return RoleResponse.from_role(role)


@router.get("/roles/{role_id}", response_model=RoleResponse, summary="Get role")
def get_role(
    role_id: UUID,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(Perm.VIEW_ROLES))],
) -> RoleResponse:
    role = _get_role_or_404(db, role_id)
    return RoleResponse.from_role(role, _user_counts(db).get(role.id, 0))


@router.patch("/roles/{role_id}", response_model=RoleResponse, summary="Update role")
def update_role(
    role_id: UUID,
    request: Request,
    data: RoleUpdate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(Perm.EDIT_ROLES))],
) -> RoleResponse:
    """Update a role; permission_ids, when given, replaces the role's permissions."""
    role = _get_role_or_404(db, role_id)
    changes = {}

    if data.name is not None and data.name.strip() != role.name:
        name = data.name.strip()
        slug = slugify(name)
        if not slug:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Role name must contain letters or digits"
            )
        _check_unique(db, name, slug, exclude_id=role.id)
        changes["name"] = {"old": role.name, "new": name}
        role.name = name
        role.slug = slug

    if data.description is not None and data.description != role.description:
        changes["description"] = {"old": role.description, "new": data.description}
        role.description = data.description

    if data.is_default is not None and data.is_default != role.is_default:
        changes["is_default"] = {"old": role.is_default, "new": data.is_default}
        role.is_default = data.is_default

    if data.permission_ids is not None:
        old_names = sorted(p.name for p in role.permissions)
        role.permissions = _load_permissions(db, data.permission_ids)
        new_names = sorted(p.name for p in role.permissions)
        if old_names != new_names:
            changes["permissions"] = {"old": old_names, "new": new_names}

    db.flush()
    if role.is_default:
        _unset_other_defaults(db, role)

    if changes:
        log_from_request(
            db=db,
            request=request,
            action="ROLE_UPDATED",
            actor_id=current_user.id,
            entity_type="role",
            entity_id=role.id,
            metadata=changes,
        )
    db.commit()
    db.refresh(role)
    return RoleResponse.from_role(role, _user_counts(db).get(role.id, 0))


@router.delete("/roles/{role_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete role")
def delete_role(
    role_id: UUID,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(Perm.DELETE_ROLES))],
):
    """Delete a role.

    Raises:
        404: Role not found
        409: Role is the default role, or users still hold it
    """
    role = _get_role_or_404(db, role_id)
    if role.is_default:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="The default role cannot be deleted")

    users_count = _user_counts(db).get(role.id, 0)
    if users_count:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Role is assigned to {users_count} user(s) and cannot be deleted"
        )

    log_from_request(
        db=db,
        request=request,
        action="ROLE_DELETED",
        actor_id=current_user.id,
        entity_type="role",
        entity_id=role.id,
        metadata={"name": role.name, "slug": role.slug},
    )
    db.delete(role)
    db.commit()


@router.get("/permissions", response_model=PermissionListResponse, summary="List permissions")
def list_permissions(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(Perm.VIEW_ROLES))],
) -> PermissionListResponse:
    """Permissions grouped by group, with catalogue statistics."""
    permissions = db.query(Permission).order_by(Permission.group, Permission.name).all()
    groups: Dict[str, List[PermissionResponse]] = defaultdict(list)
    for permission in permissions:
        groups[permission.group].append(PermissionResponse.model_validate(permission))

    roles = db.query(Role).order_by(Role.name).all()
    return PermissionListResponse(
        groups=dict(groups),
        stats=PermissionStats(
            total_permissions=len(permissions),
            total_roles=len(roles),
            permission_groups=len(groups),
            role_permission_counts=[
                RolePermissionCount(role=role.name, slug=role.slug, permissions_count=len(role.permissions))
                for role in roles
            ],
        ),
    )
