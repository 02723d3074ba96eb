"""Pydantic schemas for role and permission endpoints"""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PermissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: Optional[str] = None
    group: str


class RoleCreate(BaseModel):
    """Request schema for POST /roles. The slug is derived from the name."""
    name: str = Field(..., min_length=1, max_length=255, examples=["Archivist"])
    description: Optional[str] = Field(None, max_length=1000)
    is_default: bool = Field(False, description="Assign this role to new users by default")
    permission_ids: List[UUID] = Field(default_factory=list)


class RoleUpdate(BaseModel):
    """Request schema for PATCH /roles/{id}. permission_ids replaces the set when given."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    is_default: Optional[bool] = None
    permission_ids: Optional[List[UUID]] = None


class RoleResponse(BaseModel):
    id: UUID
    name: str
    slug: str
    description: Optional[str] = None
    is_default: bool
    users_count: int = 0
    permissions_count: int = 0
    permissions: List[PermissionResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_role(cls, role, users_count: int = 0) -> "RoleResponse":
        permissions = [PermissionResponse.model_validate(p) for p in role.permissions]
        return cls(
            id=role.id,
            name=role.name,
            slug=role.slug,
            description=role.description,
            is_default=role.is_default,
            users_count=users_count,
            permissions_count=len(permissions),
            permissions=permissions,
            created_at=role.created_at,
            updated_at=role.updated_at,
        )


class RoleListResponse(BaseModel):
    roles: List[RoleResponse]
    total: int


class RolePermissionCount(BaseModel):
    role: str
    slug: str
    permissions_count: int


class PermissionStats(BaseModel):
    total_permissions: int
    total_roles: int
    permission_groups: int
    role_permission_counts: List[RolePermissionCount]


class PermissionListResponse(BaseModel):
    """Permissions grouped by their group name, with summary statistics."""
    groups: Dict[str, List[PermissionResponse]]
    stats: PermissionStats
