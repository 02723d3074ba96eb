"""Publication SQLAlchemy model"""

import uuid

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Index, Integer, Text, Uuid
from sqlalchemy.orm import relationship

from .base import Base, utcnow, isoformat


class Publication(Base):
    """Canonical, publicly listed publication.

    Created when a pending submission is approved, by a direct authorised
    upload, or by restoring a deleted publication. file_path points into the
    permanent storage area ({PERMANENT_PREFIX}/{slug}/{YYYY}/{MM}/{DD}/...).
    """
    __tablename__ = "publication"
    __table_args__ = (
        Index("ix_publication_date", "year", "month", "day"),
        Index("ix_publication_duplicate_key", "original_filename", "file_size"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    name = Column(Text, nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    original_filename = Column(Text, nullable=False)
    file_path = Column(Text, nullable=False)
    file_url = Column(Text, nullable=True)
    mime_type = Column(Text, nullable=False, default="application/pdf")
    file_size = Column(BigInteger, nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    day = Column(Integer, nullable=False)
    page = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    owner = relationship("User")

    def to_dict(self):
        """Convert publication to dictionary representation"""
        return {
            "id": str(self.id),
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
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
