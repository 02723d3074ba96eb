"""AuditLog SQLAlchemy model"""

import uuid

from sqlalchemy import Column, Text, ForeignKey, Index, DateTime, Uuid
from sqlalchemy.orm import relationship

from .base import Base, PortableJSONB, utcnow, isoformat


class AuditLog(Base):
    """AuditLog model for immutable event logging.

    Records moderation transitions, publication lifecycle events and admin
    changes. Entries are append-only and should never be updated or deleted.
    """
    __tablename__ = "audit_log"
    __table_args__ = (
        Index("ix_audit_log_created_at", "created_at"),
        Index("ix_audit_log_entity", "entity_type", "entity_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    actor_id = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    action = Column(Text, nullable=False)
    entity_type = Column(Text, nullable=True)
    entity_id = Column(Uuid, nullable=True)
    metadata_json = Column(PortableJSONB, nullable=True)
    ip_address = Column(Text, nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    actor = relationship("User")

    def to_dict(self):
        """Convert audit log entry to dictionary representation"""
        return {
            "id": str(self.id),
            "actor_id": str(self.actor_id) if self.actor_id else None,
            "actor_name": self.actor.name if self.actor else None,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "metadata": self.metadata_json,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "created_at": isoformat(self.created_at),
        }
