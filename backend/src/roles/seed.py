"""Seed the permission catalogue and built-in roles.

Idempotent: existing permissions and roles are left as they are, missing ones
are created. Run by scripts/seed_admin.py and by the test fixtures.
"""

import logging
from typing import Dict

from sqlalchemy.orm import Session

from auth.roles import BUILTIN_ROLES, PERMISSION_CATALOGUE
from models.role import Permission, Role

logger = logging.getLogger(__name__)


def seed_roles_and_permissions(db: Session) -> Dict[str, Role]:
    """Create missing permissions and built-in roles.

    Returns:
        Dict mapping role slug to Role for the built-in roles
    """
    permissions = {p.name: p for p in db.query(Permission).all()}
    for name, description, group in PERMISSION_CATALOGUE:
        if name not in permissions:
            permission = Permission(name=name, description=description, group=group)
            db.add(permission)
            permissions[name] = permission
            logger.info(f"Seeded permission: {name}")

    roles = {}
    for slug, (name, description, is_default, granted) in BUILTIN_ROLES.items():
        role = db.query(Role).filter(Role.slug == slug).first()
        if role is None:
            role = Role(
                name=name,
                slug=slug,
                description=description,
                is_default=is_default,
                permissions=[permissions[p] for p in granted],
            )
            db.add(role)
            logger.info(f"Seeded role: {slug}")
        roles[slug] = role

    db.flush()
    return roles
