"""Pydantic schemas for publication and verification endpoints"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from schemas.pagination import Page


class PublicationResponse(BaseModel):
    """A published document."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: Optional[UUID] = None
    name: str
    title: str
    description: Optional[str] = None
    original_filename: str
    file_path: str
    file_url: Optional[str] = None
    mime_type: str
    file_size: int
    year: int
    month: int
    day: int
    page: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class SubmissionResponse(BaseModel):
    """An uploaded document and its moderation state."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: Optional[UUID] = None
    submitter_name: Optional[str] = None
    submitter_email: Optional[str] = None
    name: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    original_filename: str
    file_path: str
    file_url: Optional[str] = None
    mime_type: str
    file_size: int
    year: Optional[int] = None
    month: Optional[int] = None
    day: Optional[int] = None
    page: Optional[int] = None
    status: str
    verified_by: Optional[UUID] = None
    verifier_name: Optional[str] = None
    verified_at: Optional[datetime] = None
    admin_notes: Optional[str] = None
    publication_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_submission(cls, submission) -> "SubmissionResponse":
        response = cls.model_validate(submission)
        if submission.submitter is not None:
            response.submitter_name = submission.submitter.name
            response.submitter_email = submission.submitter.email
        if submission.verifier is not None:
            response.verifier_name = submission.verifier.name
        return response


class DeletedPublicationResponse(BaseModel):
    """An archived (soft-deleted) publication."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    original_id: UUID
    user_id: Optional[UUID] = None
    name: str
    title: str
    description: Optional[str] = None
    original_filename: str
    file_path: Optional[str] = None
    mime_type: str
    file_size: int
    year: int
    month: int
    day: int
    page: Optional[int] = None
    deleted_by: Optional[UUID] = None
    deleted_reason: Optional[str] = None
    deleted_at: datetime
    original_created_at: Optional[datetime] = None


class PublicationUpdate(BaseModel):
    """Editable publication metadata. Ranges are checked by the service."""
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    year: Optional[int] = None
    month: Optional[int] = None
    day: Optional[int] = None
    page: Optional[int] = None


class DeleteRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class ApproveRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=1000, description="Optional reviewer notes")


class RejectRequest(BaseModel):
    reason: str = Field(..., description="Why the submission was declined (required)")


class FileCheckResponse(BaseModel):
    """Whether the current user already uploaded a file with this name."""
    exists: bool
    location: Optional[str] = Field(None, description="'publication', 'pending' or null")
    record: Optional[Dict[str, Any]] = None


PublicationPage = Page[PublicationResponse]
SubmissionPage = Page[SubmissionResponse]
DeletedPublicationPage = Page[DeletedPublicationResponse]


class MessageResponse(BaseModel):
    message: str
    id: Optional[UUID] = None
