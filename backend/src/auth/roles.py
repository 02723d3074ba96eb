"""Built-in roles and the permission catalogue.

Roles are data (the role table), not code: admins can create new roles and
link any permissions to them. This module only defines the catalogue that
is seeded on installation and the names the API checks against.

Seeded Permission Matrix:
┌──────────────────────────┬───────┬───────────┬──────┐
│ Permission               │ admin │ librarian │ user │
├──────────────────────────┼───────┼───────────┼──────┤
│ * (all permissions)      │   ✓   │           │      │
│ view/create publications │   ✓   │     ✓     │  ✓   │
│ edit/delete publications │   ✓   │     ✓     │      │
│ view users               │   ✓   │     ✓     │      │
│ create/edit/delete users │   ✓   │           │      │
│ view/create/edit/delete  │   ✓   │           │      │
│   roles                  │       │           │      │
│ manage settings          │   ✓   │           │      │
└──────────────────────────┴───────┴───────────┴──────┘

Reviewers (approve/reject/revert submissions) are admins and librarians.
"""

from enum import Enum
from typing import Dict, List, Tuple


class BuiltinRole(str, Enum):
    """Slugs of the roles created by the seed."""
    ADMIN = "admin"
    LIBRARIAN = "librarian"
    USER = "user"


# Holding this permission grants every permission
WILDCARD_PERMISSION = "*"

# Role slugs allowed to moderate submissions (besides any admin)
REVIEWER_ROLES = (BuiltinRole.LIBRARIAN.value,)


class Perm:
    """Permission names checked by the API."""
    VIEW_USERS = "view users"
    CREATE_USERS = "create users"
    EDIT_USERS = "edit users"
    DELETE_USERS = "delete users"
    VIEW_ROLES = "view roles"
    CREATE_ROLES = "create roles"
    EDIT_ROLES = "edit roles"
    DELETE_ROLES = "delete roles"
    VIEW_PUBLICATIONS = "view publications"
    CREATE_PUBLICATIONS = "create publications"
    EDIT_PUBLICATIONS = "edit publications"
    DELETE_PUBLICATIONS = "delete publications"
    MANAGE_SETTINGS = "manage settings"


# (name, description, group)
PERMISSION_CATALOGUE: List[Tuple[str, str, str]] = [
    (Perm.VIEW_USERS, "View users", "user_management"),
    (Perm.CREATE_USERS, "Create users", "user_management"),
    (Perm.EDIT_USERS, "Edit users", "user_management"),
    (Perm.DELETE_USERS, "Delete users", "user_management"),
    (Perm.VIEW_ROLES, "View roles", "role_management"),
    (Perm.CREATE_ROLES, "Create roles", "role_management"),
    (Perm.EDIT_ROLES, "Edit roles", "role_management"),
    (Perm.DELETE_ROLES, "Delete roles", "role_management"),
    (Perm.VIEW_PUBLICATIONS, "View publications", "publication_management"),
    (Perm.CREATE_PUBLICATIONS, "Upload publications", "publication_management"),
    (Perm.EDIT_PUBLICATIONS, "Edit publications", "publication_management"),
    (Perm.DELETE_PUBLICATIONS, "Delete publications", "publication_management"),
    (Perm.MANAGE_SETTINGS, "Manage application settings", "settings"),
    (WILDCARD_PERMISSION, "All permissions", "system"),
]

# slug -> (name, description, is_default, permission names)
BUILTIN_ROLES: Dict[str, Tuple[str, str, bool, List[str]]] = {
    BuiltinRole.ADMIN.value: (
        "Administrator",
        "Full access to every feature",
        False,
        [WILDCARD_PERMISSION],
    ),
    BuiltinRole.LIBRARIAN.value: (
        "Librarian",
        "Reviews submissions and manages publications",
        False,
        [
            Perm.VIEW_PUBLICATIONS,
            Perm.CREATE_PUBLICATIONS,
            Perm.EDIT_PUBLICATIONS,
            Perm.DELETE_PUBLICATIONS,
            Perm.VIEW_USERS,
        ],
    ),
    BuiltinRole.USER.value: (
        "User",
        "Browses publications and submits new ones for review",
        True,
        [Perm.VIEW_PUBLICATIONS, Perm.CREATE_PUBLICATIONS],
    ),
}
