#!/usr/bin/env python
"""Seed permissions, built-in roles and the first administrator.

Run once during initial setup (after ``alembic upgrade head``). Roles and
permissions that already exist are left untouched, so the script is safe to
re-run; the admin user is only created if the email is not taken.

Usage:
    python backend/scripts/seed_admin.py

Environment Variables:
    DATABASE_URL: Database connection string
    PASSWORD_PEPPER: Password hashing pepper (required in production)
    ADMIN_EMAIL: Email for admin user (default: admin@example.com)
    ADMIN_PASSWORD: Password for admin user (required)
    ADMIN_NAME: Display name for admin user (default: System Administrator)
"""

import os
import sys
from pathlib import Path

# Add backend/src to Python path
backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from auth.password import hash_password, validate_password_strength  # noqa: E402
from auth.roles import BuiltinRole  # noqa: E402
from database import get_db_session  # noqa: E402
from models.user import User  # noqa: E402
from roles.seed import seed_roles_and_permissions  # noqa: E402


def main():
    admin_email = os.getenv("ADMIN_EMAIL", "admin@example.com").lower()
    admin_password = os.getenv("ADMIN_PASSWORD")
    admin_name = os.getenv("ADMIN_NAME", "System Administrator")

    if not admin_password:
        print("ERROR: ADMIN_PASSWORD environment variable is required")
        sys.exit(1)

    is_valid, error_msg = validate_password_strength(admin_password, user_context=[admin_email, admin_name])
    if not is_valid:
        print(f"ERROR: Password does not meet strength requirements: {error_msg}")
        sys.exit(1)

    with get_db_session() as session:
        roles = seed_roles_and_permissions(session)
        print(f"Roles available: {', '.join(sorted(roles))}")

        if session.query(User).filter(User.email == admin_email).first():
            print(f"User with email {admin_email} already exists; nothing to do")
            return

        admin = User(
            email=admin_email,
            name=admin_name,
            password_hash=hash_password(admin_password),
            role_id=roles[BuiltinRole.ADMIN.value].id,
            status="ACTIVE",
        )
        session.add(admin)
        session.flush()
        print(f"Created admin user {admin.email} (id={admin.id})")


if __name__ == "__main__":
    main()
