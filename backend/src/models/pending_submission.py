"""PendingSubmission SQLAlchemy model"""

import uuid

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship

from .base import Base, utcnow, isoformat


class PendingSubmission(Base):
    """An uploaded document awaiting moderation.

    Rows are created with status "pending" and are only mutated by the
    approve/reject/revert transitions in publications.service. They are
    never deleted by the normal flow so that they double as the
    verification history.

    verified_by and verified_at are set together, and only while the status
    is not pending. publication_id links an approved submission to the
    Publication its approval created.
    """
    __tablename__ = "pending_submission"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_pending_submission_status",
        ),
        CheckConstraint(
            "(status = 'pending' AND verified_by IS NULL AND verified_at IS NULL)"
            " OR (status <> 'pending' AND verified_by IS NOT NULL AND verified_at IS NOT NULL)",
            name="ck_pending_submission_verification",
        ),
        Index("ix_pending_submission_status", "status"),
        Index("ix_pending_submission_duplicate_key", "original_filename", "file_size"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    name = Column(Text, nullable=True)
    title = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    original_filename = Column(Text, nullable=False)
    file_path = Column(Text, nullable=False)
    file_url = Column(Text, nullable=True)
    mime_type = Column(Text, nullable=False, default="application/pdf")
    file_size = Column(BigInteger, nullable=False)
    year = Column(Integer, nullable=True)
    month = Column(Integer, nullable=True)
    day = Column(Integer, nullable=True)
    page = Column(Integer, nullable=True)
    status = Column(Text, nullable=False, default="pending")
    verified_by = Column(Uuid, ForeignKey("user.id", ondelete="RESTRICT"), nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    admin_notes = Column(Text, nullable=True)
    publication_id = Column(Uuid, ForeignKey("publication.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    submitter = relationship("User", foreign_keys=[user_id])
    verifier = relationship("User", foreign_keys=[verified_by])
    publication = relationship("Publication")

    @property
    def has_complete_date(self) -> bool:
        return self.year is not None and self.month is not None and self.day is not None

    def to_dict(self):
        """Convert submission to dictionary representation"""
        return {
            "id": str(self.id),
            "user_id": str(self.user_id) if self.user_id else None,
            "submitter_name": self.submitter.name if self.submitter else None,
            "submitter_email": self.submitter.email if self.submitter else None,
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
            "status": self.status,
            "verified_by": str(self.verified_by) if self.verified_by else None,
            "verifier_name": self.verifier.name if self.verifier else None,
            "verified_at": isoformat(self.verified_at),
            "admin_notes": self.admin_notes,
            "publication_id": str(self.publication_id) if self.publication_id else None,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
