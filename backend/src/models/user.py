"""User SQLAlchemy model"""

import re
import uuid

from sqlalchemy import Column, Text, ForeignKey, CheckConstraint, DateTime, Uuid
from sqlalchemy.orm import relationship, validates

from .base import Base, utcnow, isoformat


class User(Base):
    """User model representing authenticated library users.

    Each user holds exactly one role, which determines their permissions.
    Admin status is derived from the role (see auth.permissions.is_admin),
    never stored. Passwords are hashed using Argon2id.
    """
    __tablename__ = "user"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    role_id = Column(Uuid, ForeignKey("role.id", ondelete="RESTRICT"), nullable=False, index=True)
    email = Column(Text, nullable=False, unique=True)
    name = Column(Text, nullable=False)
    password_hash = Column(Text, nullable=False)
    phone_number = Column(Text, nullable=True)
    department = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="ACTIVE")
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    role = relationship("Role", back_populates="users")

    # Constraints
    __table_args__ = (
        CheckConstraint(
            "status IN ('ACTIVE', 'DISABLED')",
            name='ck_user_status'
        ),
    )

    @validates('email')
    def validate_email(self, key, value):
        """Basic email format validation"""
        if not re.match(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$', value):
            raise ValueError("Invalid email format")
        return value.lower()

    def to_dict(self):
        """Convert user to dictionary representation (excludes password_hash).

        The single role is wrapped in a one-element list for clients that
        expect a role collection.
        """
        return {
            "id": str(self.id),
            "email": self.email,
            "name": self.name,
            "phone_number": self.phone_number,
            "department": self.department,
            "role": self.role.slug if self.role else None,
            "roles": [self.role.slug] if self.role else [],
            "status": self.status,
            "last_login_at": isoformat(self.last_login_at),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
