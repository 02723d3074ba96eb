"""SQLAlchemy Models for the publication library"""

from .base import Base
from .role import Role, Permission, permission_role
from .user import User
from .audit_log import AuditLog
from .publication import Publication
from .pending_submission import PendingSubmission
from .deleted_publication import DeletedPublication
from .app_setting import AppSetting

__all__ = [
    "Base",
    "Role",
    "Permission",
    "permission_role",
    "User",
    "AuditLog",
    "Publication",
    "PendingSubmission",
    "DeletedPublication",
    "AppSetting",
]
