"""Role and Permission SQLAlchemy models"""

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Table, Text, Uuid
from sqlalchemy.orm import relationship

from .base import Base, utcnow, isoformat


permission_role = Table(
    "permission_role",
    Base.metadata,
    Column("permission_id", Uuid, ForeignKey("permission.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Uuid, ForeignKey("role.id", ondelete="CASCADE"), primary_key=True),
)


class Permission(Base):
    """A named capability, e.g. "edit publications".

    The group column is a free-text category used only to group permissions
    in listings.
    """
    __tablename__ = "permission"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    group = Column(Text, nullable=False, default="general")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    roles = relationship("Role", secondary=permission_role, back_populates="permissions")

    def to_dict(self):
        return {
            "id": str(self.id),
            "name": self.name,
            "description": self.description,
            "group": self.group,
        }


class Role(Base):
    """Role model. Every user holds exactly one role.

    A role grants the set of permissions linked through permission_role.
    At most one role is flagged is_default; new users without an explicit
    role receive it.
    """
    __tablename__ = "role"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False, unique=True)
    slug = Column(Text, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    permissions = relationship(
        "Permission",
        secondary=permission_role,
        back_populates="roles",
        order_by="Permission.name",
    )
    users = relationship("User", back_populates="role")

    @property
    def permission_names(self) -> set[str]:
        return {permission.name for permission in self.permissions}

    def to_dict(self):
        return {
            "id": str(self.id),
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "is_default": self.is_default,
            "permissions": [p.name for p in self.permissions],
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
