"""Pydantic schemas for authentication endpoints"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from uuid import UUID
from datetime import datetime
from typing import List, Optional


class LoginRequest(BaseModel):
    """Request schema for user login.

    Attributes:
        email: User's email address
        password: User's password (plain text, will be verified against hash)
    """
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Response schema for successful login.

    Attributes:
        access_token: JWT access token
        token_type: Token type (always "bearer")
        expires_in: Token expiry in seconds
    """
    access_token: str
    token_type: str = "bearer"
    expires_in: int = 3600


class TokenPayload(BaseModel):
    """Decoded JWT token payload."""
    sub: str  # user_id as string
    role: str
    email: str
    exp: int
    iat: int


class MeResponse(BaseModel):
    """Current user profile with effective permissions.

    roles is the single role wrapped in a list for clients that expect a
    collection; a user never holds more than one role.
    """
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str
    phone_number: Optional[str] = None
    department: Optional[str] = None
    status: str
    role: str
    roles: List[str]
    permissions: List[str]
    is_admin: bool
    is_reviewer: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime
