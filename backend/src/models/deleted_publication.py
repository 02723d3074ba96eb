"""DeletedPublication SQLAlchemy model"""

import uuid

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Index, Integer, Text, Uuid
from sqlalchemy.orm import relationship

from .base import Base, utcnow, isoformat


class DeletedPublication(Base):
    """Archived copy of a removed Publication plus deletion metadata.

    Created on delete, consumed (and removed) on restore, destroyed on
    permanent delete. file_path points into the deleted storage area, or is
    None when the file was already missing at delete time.
    """
    __tablename__ = "deleted_publication"
    __table_args__ = (
        Index("ix_deleted_publication_deleted_at", "deleted_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    original_id = Column(Uuid, nullable=False)
    user_id = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    name = Column(Text, nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    original_filename = Column(Text, nullable=False)
    file_path = Column(Text, nullable=True)
    file_url = Column(Text, nullable=True)
    mime_type = Column(Text, nullable=False, default="application/pdf")
    file_size = Column(BigInteger, nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    day = Column(Integer, nullable=False)
    page = Column(Integer, nullable=True)
    deleted_by = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    deleted_reason = Column(Text, nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    original_created_at = Column(DateTime(timezone=True), nullable=True)
    original_updated_at = Column(DateTime(timezone=True), nullable=True)

    owner = relationship("User", foreign_keys=[user_id])
    deleter = relationship("User", foreign_keys=[deleted_by])

    def to_dict(self):
        return {
            "id": str(self.id),
            "original_id": str(self.original_id),
            "user_id": str(self.user_id) if self.user_id else None,
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "original_filename": self.original_filename,
            "file_path": self.file_path,
            "file_url": self.file_url,
            "mime_type": self.mime_type,
            "file_size": self.file_size,
            "year": self.year,
            "month": self.month,
            "day": self.day,
            "page": self.page,
            "deleted_by": str(self.deleted_by) if self.deleted_by else None,
            "deleted_by_name": self.deleter.name if self.deleter else None,
            "deleted_reason": self.deleted_reason,
            "deleted_at": isoformat(self.deleted_at),
            "original_created_at": isoformat(self.original_created_at),
            "original_updated_at": isoformat(self.original_updated_at),
        }
