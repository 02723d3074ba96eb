"""JWT token generation and validation

This module handles JWT access token creation and validation for authentication.
Tokens include user_id, role and email claims with configurable TTL.

JWT Token Claims Structure:
===========================

Standard JWT Claims:
- sub (Subject): User ID as UUID string
- iat (Issued At): Unix timestamp when token was created
- exp (Expiration): Unix timestamp when token expires (iat + JWT_EXPIRY_MINUTES)

Custom Claims:
- role: Slug of the user's single role (e.g. "admin", "librarian", "user").
  Informational only; authorization always re-reads the role from the
  database so role changes take effect immediately.
- email: User's email address

Security Properties:
- Algorithm: HS256 (HMAC-SHA256 symmetric signing)
- Secret: JWT_SECRET setting
- No refresh tokens (re-login after expiry)

Example Token Payload:
{
  "sub": "550e8400-e29b-41d4-a716-446655440000",
  "role": "librarian",
  "email": "librarian@example.com",
  "iat": 1704368400,
  "exp": 1704372000
}
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Any
from uuid import UUID
import jwt

from config import get_settings


def _get_jwt_secret() -> str:
    """Get JWT_SECRET from settings.

    Raises:
        ValueError: If JWT_SECRET is empty
    """
    secret = get_settings().JWT_SECRET
    if not secret:
        raise ValueError("JWT_SECRET is not set")
    return secret


def get_jwt_expiry_minutes() -> int:
    """Access token lifetime in minutes (default: 60)."""
    return get_settings().JWT_EXPIRY_MINUTES


def create_access_token(user_id: UUID, role: str, email: str) -> str:
    """Create a JWT access token for an authenticated user.

    Args:
        user_id: User's UUID
        role: Slug of the user's role
        email: User's email address

    Returns:
        str: Signed JWT token

    Raises:
        ValueError: If JWT_SECRET is not set
    """
    settings = get_settings()
    secret = _get_jwt_secret()

    now = datetime.now(timezone.utc)
    expiration = now + timedelta(minutes=get_jwt_expiry_minutes())

    payload = {
        'sub': str(user_id),  # Subject: user ID
        'role': role,
        'email': email,
        'iat': int(now.timestamp()),  # Issued at
        'exp': int(expiration.timestamp())  # Expiration
    }

    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT token.

    Args:
        token: JWT token string

    Returns:
        dict: Decoded token payload with claims

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or tampered
        ValueError: If JWT_SECRET is not set
    """
    secret = _get_jwt_secret()
    return jwt.decode(token, secret, algorithms=[get_settings().JWT_ALGORITHM])
