"""Permission checks for the single-role authorization model.

Every user holds exactly one role; the role grants a set of permission
names. Admin is a capability, not a name: a user is admin when their role
holds the wildcard permission. Roles whose name or slug is "admin" are also
treated as admin so that databases seeded before the wildcard existed keep
working.

Examples:
    >>> has_permission(user, "edit publications")
    True
    >>> has_role(user, "Librarian")
    True
"""

from typing import Dict, FrozenSet, Optional
from uuid import UUID

from models.user import User
from .roles import BuiltinRole, REVIEWER_ROLES, WILDCARD_PERMISSION


class PermissionResolver:
    """Answers permission questions, loading each role's permissions once.

    One resolver is created per request (see auth.dependencies), so repeated
    checks in the same request do not re-query the role's permission set.
    """

    def __init__(self):
        self._cache: Dict[UUID, FrozenSet[str]] = {}

    def permission_names(self, user: Optional[User]) -> FrozenSet[str]:
        if user is None or user.role is None:
            return frozenset()
        role = user.role
        names = self._cache.get(role.id)
        if names is None:
            names = frozenset(p.name for p in role.permissions)
            self._cache[role.id] = names
        return names

    def is_admin(self, user: Optional[User]) -> bool:
        if user is None or user.role is None:
            return False
        if WILDCARD_PERMISSION in self.permission_names(user):
            return True
        admin = BuiltinRole.ADMIN.value
        return (user.role.slug or "").lower() == admin or (user.role.name or "").lower() == admin

    def has_permission(self, user: Optional[User], permission: str) -> bool:
        if self.is_admin(user):
            return True
        return permission in self.permission_names(user)

    def has_role(self, user: Optional[User], role: str) -> bool:
        if user is None or user.role is None or not role:
            return False
        wanted = role.lower()
        return wanted in ((user.role.slug or "").lower(), (user.role.name or "").lower())

    def is_reviewer(self, user: Optional[User]) -> bool:
        """Admins and librarians may approve, reject and revert submissions."""
        if self.is_admin(user):
            return True
        return any(self.has_role(user, role) for role in REVIEWER_ROLES)


def is_admin(user: Optional[User]) -> bool:
    return PermissionResolver().is_admin(user)


def has_permission(user: Optional[User], permission: str) -> bool:
    """True if user is admin or their role is linked to permission (exact name)."""
    return PermissionResolver().has_permission(user, permission)


def has_role(user: Optional[User], role: str) -> bool:
    """Case-insensitive match against the user's role name or slug."""
    return PermissionResolver().has_role(user, role)


def is_reviewer(user: Optional[User]) -> bool:
    return PermissionResolver().is_reviewer(user)
