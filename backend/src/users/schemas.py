"""Pydantic schemas for User management endpoints.

These schemas define the request/response contracts for user CRUD operations.
All schemas exclude password_hash for security (never return in API responses).
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from uuid import UUID
from datetime import datetime
from typing import List, Optional


class UserCreate(BaseModel):
    """Request schema for creating a new user (POST /users).

    Requires the 'create users' permission. Email must be unique.
    Password will be hashed before storage using Argon2id.
    """
    email: EmailStr = Field(
        ...,
        description="User's email address (unique, case-insensitive)",
        examples=["reader@library.example"]
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="User's display name",
        examples=["Jane Doe"]
    )
    password: str = Field(
        ...,
        min_length=8,
        description="Password (min 8 chars, must not repeat email or name)",
        examples=["correct horse battery"]
    )
    role: Optional[str] = Field(
        None,
        description="Role slug; the default role is used when omitted",
        examples=["librarian"]
    )
    phone_number: Optional[str] = Field(None, max_length=32)
    department: Optional[str] = Field(None, max_length=255)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "reader@library.example",
                "name": "Jane Doe",
                "password": "correct horse battery",
                "role": "user",
                "department": "History"
            }
        }
    )


class UserUpdate(BaseModel):
    """Request schema for updating an existing user (PATCH /users/{id}).

    All fields are optional. Changing the role requires the 'edit roles'
    permission (or administrator access).
    """
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8, description="New password (optional)")
    role: Optional[str] = Field(None, description="Role slug (triggers USER_ROLE_CHANGED audit event)")
    status: Optional[str] = Field(
        None,
        pattern="^(ACTIVE|DISABLED)$",
        description="User status (DISABLED blocks login, triggers USER_DISABLED audit event)",
    )
    phone_number: Optional[str] = Field(None, max_length=32)
    department: Optional[str] = Field(None, max_length=255)

    @field_validator('name', 'role', 'status')
    @classmethod
    def check_not_empty(cls, v):
        """Ensure fields are not empty strings if provided."""
        if v is not None and isinstance(v, str) and v.strip() == "":
            raise ValueError("Field cannot be empty string")
        return v


class UserResponse(BaseModel):
    """Response schema for user data.

    Returned by all user endpoints. Never includes password_hash for security.
    """
    id: UUID = Field(..., description="User's unique identifier")
    email: str = Field(..., description="User's email address")
    name: str = Field(..., description="User's display name")
    phone_number: Optional[str] = None
    department: Optional[str] = None
    role: Optional[str] = Field(None, description="Role slug")
    roles: List[str] = Field(default_factory=list, description="The role slug as a one-element list")
    status: str = Field(..., description="User status (ACTIVE|DISABLED)")
    last_login_at: Optional[datetime] = Field(None, description="Last successful login timestamp")
    created_at: datetime = Field(..., description="User creation timestamp")
    updated_at: datetime = Field(..., description="Last modification timestamp")

    @classmethod
    def from_user(cls, user) -> "UserResponse":
        slug = user.role.slug if user.role else None
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            phone_number=user.phone_number,
            department=user.department,
            role=slug,
            roles=[slug] if slug else [],
            status=user.status,
            last_login_at=user.last_login_at,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserListResponse(BaseModel):
    """Response schema for listing users (GET /users)."""
    users: List[UserResponse] = Field(..., description="Users on this page")
    total: int = Field(..., description="Total number of users matching the search")
    page: int
    per_page: int
    last_page: int
