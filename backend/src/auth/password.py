"""Password hashing and verification using Argon2id

This module provides password hashing using Argon2id with OWASP-recommended
parameters and a global PASSWORD_PEPPER for additional security.

OWASP Parameters:
- Memory cost: 65536 KB (64 MB)
- Time cost: 3 iterations
- Parallelism: 4 threads
"""

from typing import Iterable, Optional

from argon2 import PasswordHasher, Type
from argon2.exceptions import VerifyMismatchError, VerificationError, InvalidHashError

from config import get_settings


MIN_PASSWORD_LENGTH = 8

# OWASP recommended parameters for Argon2id
# Memory cost: 64 MB, Time cost: 3, Parallelism: 4
_hasher = PasswordHasher(
    memory_cost=65536,  # 64 MB
    time_cost=3,
    parallelism=4,
    hash_len=32,
    salt_len=16,
    type=Type.ID  # Argon2id variant
)


def _get_pepper() -> str:
    """Get PASSWORD_PEPPER from settings.

    Raises:
        ValueError: If PASSWORD_PEPPER is empty
    """
    pepper = get_settings().PASSWORD_PEPPER
    if not pepper:
        raise ValueError("PASSWORD_PEPPER is not set")
    return pepper


def hash_password(password: str) -> str:
    """Hash a password using Argon2id with global pepper.

    The password is combined with PASSWORD_PEPPER before hashing. The pepper
    is server-side only and not stored in the database.

    Args:
        password: Plain text password to hash

    Returns:
        str: Argon2id hash string (format: $argon2id$v=19$m=65536,t=3,p=4$...$...)

    Raises:
        ValueError: If PASSWORD_PEPPER is not set or password is empty
    """
    if not password:
        raise ValueError("Password cannot be empty")

    return _hasher.hash(password + _get_pepper())


def verify_password(password: str, hash: str) -> bool:
    """Verify a password against an Argon2id hash.

    Args:
        password: Plain text password to verify
        hash: Argon2id hash to verify against

    Returns:
        bool: True if password matches hash, False otherwise
    """
    if not password or not hash:
        return False

    try:
        _hasher.verify(hash, password + _get_pepper())
        return True
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def validate_password_strength(
    password: str,
    user_context: Optional[Iterable[Optional[str]]] = None,
) -> tuple[bool, str]:
    """Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - Not only whitespace
    - Must not equal the user's email or name (case-insensitive)

    Args:
        password: Password to validate
        user_context: Values the password must not repeat (email, name)

    Returns:
        Tuple of (is_valid, error_message)

    Example:
        >>> validate_password_strength("short")
        (False, 'Password must be at least 8 characters long')
        >>> validate_password_strength("correct horse battery")
        (True, '')
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        return False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"

    if not password.strip():
        return False, "Password cannot be only whitespace"

    lowered = password.lower()
    for value in user_context or []:
        if value and lowered == value.lower():
            return False, "Password must not match your email or name"

    return True, ""
