"""Shared plumbing for the submission and catalogue services.

Both services write to the database and to blob storage in the same
operation. Each operation runs inside one unit of work: the database is
committed once at the end, and when anything fails the transaction is
rolled back and every file move recorded so far is undone in reverse order.
"""

import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from audit.service import log_audit_event
from auth.permissions import PermissionResolver
from config import Settings
from domain.publications.errors import (
    AuthorizationError,
    DuplicateSubmission,
    StorageError,
    SubmissionValidationError,
)
from domain.publications.filename import (
    ParsedFilename,
    parse_publication_filename,
    resolve_mime_type,
    validate_date_parts,
    validate_filename,
    validate_upload,
)
from domain.publications.placement import FilePlacementService
from domain.publications.submission_status import ACTIVE_STATUSES
from domain.storage.ports.blob_storage_port import BlobStoragePort
from models.pending_submission import PendingSubmission
from models.publication import Publication
from models.user import User

logger = logging.getLogger(__name__)

UndoStack = List[Callable[[], None]]


@dataclass
class AuditContext:
    """Client details recorded with audit events."""
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass
class ValidatedUpload:
    filename: str
    parsed: ParsedFilename
    mime_type: str
    size: int
    page: Optional[int]

    @property
    def duplicate_key(self) -> tuple:
        """Fields that identify the same file across uploads."""
        parsed = self.parsed
        return (self.filename, self.size, parsed.year, parsed.month, parsed.day, self.page)


class PublicationServiceBase:
    """Holds the collaborators shared by the publication services.

    Args:
        db: Database session (committed by the service)
        storage: Blob storage backend
        settings: Application settings (storage layout, upload limits, policy)
        resolver: Permission resolver for the current request
    """

    def __init__(
        self,
        db: Session,
        storage: BlobStoragePort,
        settings: Settings,
        resolver: Optional[PermissionResolver] = None,
    ):
        self.db = db
        self.storage = storage
        self.settings = settings
        self.resolver = resolver or PermissionResolver()
        self.placement = FilePlacementService(
            storage,
            staging_prefix=settings.STAGING_PREFIX,
            permanent_prefix=settings.PERMANENT_PREFIX,
            max_attempts=settings.PLACEMENT_MAX_ATTEMPTS,
            reserved_prefixes=(settings.DELETED_PREFIX,),
        )

    @contextmanager
    def _unit_of_work(self) -> Iterator[UndoStack]:
        """Commit on success; on failure roll back and run undo steps."""
        undo: UndoStack = []
        try:
            yield undo
            self.db.commit()
        except Exception:
            self.db.rollback()
            for step in reversed(undo):
                step()
            raise

    def _undo_move(self, undo: UndoStack, moved_to: str, original: str) -> None:
        undo.append(lambda: self.placement.move_back(moved_to, original))

    def _undo_put(self, undo: UndoStack, path: str) -> None:
        undo.append(lambda: self._discard(path))

    def _discard(self, path: str) -> None:
        """Remove a file written by a failed operation."""
        try:
            self.storage.delete(path)
        except StorageError:
            logger.error(f"Failed to remove file after rollback: {path}", exc_info=True)

    def _require_reviewer(self, user: User) -> None:
        if not self.resolver.is_reviewer(user):
            raise AuthorizationError("Only administrators and librarians can moderate submissions")

    def _require_admin(self, user: User) -> None:
        if not self.resolver.is_admin(user):
            raise AuthorizationError("Administrator access required")

    def _audit(
        self,
        action: str,
        actor: Optional[User],
        entity_type: str,
        entity_id: UUID,
        metadata: Optional[dict] = None,
        context: Optional[AuditContext] = None,
    ) -> None:
        context = context or AuditContext()
        log_audit_event(
            db=self.db,
            action=action,
            actor_id=actor.id if actor else None,
            entity_type=entity_type,
            entity_id=entity_id,
            metadata=metadata,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
        )

    def _validate_upload(
        self,
        filename: str,
        size: int,
        mime_type: Optional[str],
        declared_page: Optional[int] = None,
    ) -> ValidatedUpload:
        """Parse the filename and check the upload constraints.

        The page number in the filename wins over a declared page.

        Raises:
            SubmissionValidationError: On any violation
        """
        is_valid, error = validate_filename(filename)
        if not is_valid:
            raise SubmissionValidationError(error, details={"filename": filename})
        basename = os.path.basename(filename)

        parsed = parse_publication_filename(basename)

        is_valid, error = validate_date_parts(parsed.year, parsed.month, parsed.day)
        if not is_valid:
            raise SubmissionValidationError(error, details={"filename": basename})

        resolved_mime = resolve_mime_type(mime_type, basename)
        is_valid, error = validate_upload(
            size,
            resolved_mime,
            self.settings.max_upload_size_bytes,
            self.settings.ALLOWED_MIME_TYPES,
        )
        if not is_valid:
            raise SubmissionValidationError(error, details={"filename": basename})

        if declared_page is not None and declared_page < 1:
            raise SubmissionValidationError("Page must be 1 or greater", details={"page": declared_page})

        page = parsed.page if parsed.page is not None else declared_page
        return ValidatedUpload(
            filename=basename,
            parsed=parsed,
            mime_type=resolved_mime,
            size=size,
            page=page,
        )

    def _check_duplicate(self, upload: ValidatedUpload) -> None:
        """Reject a file already published or awaiting moderation.

        Two uploads are the same file when original filename, byte size,
        year, month, day and page all match.

        Raises:
            DuplicateSubmission: With details.existing_file describing the match
        """
        parsed = upload.parsed

        def same_file(model):
            page_clause = model.page.is_(None) if upload.page is None else model.page == upload.page
            return (
                model.original_filename == upload.filename,
                model.file_size == upload.size,
                model.year == parsed.year,
                model.month == parsed.month,
                model.day == parsed.day,
                page_clause,
            )

        publication = self.db.query(Publication).filter(*same_file(Publication)).first()
        if publication:
            raise DuplicateSubmission(
                "This file has already been published",
                details={
                    "existing_file": {
                        "id": str(publication.id),
                        "filename": publication.original_filename,
                        "uploaded_at": publication.created_at.isoformat() if publication.created_at else None,
                        "title": publication.title,
                        "url": publication.file_url,
                    }
                },
            )

        submission = (
            self.db.query(PendingSubmission)
            .filter(*same_file(PendingSubmission))
            .filter(PendingSubmission.status.in_(ACTIVE_STATUSES))
            .first()
        )
        if submission:
            state = "pending verification" if submission.status == "pending" else "approved"
            raise DuplicateSubmission(
                f"This file is already uploaded and {state}",
                details={
                    "existing_file": {
                        "id": str(submission.id),
                        "filename": submission.original_filename,
                        "uploaded_at": submission.created_at.isoformat() if submission.created_at else None,
                        "title": submission.title,
                        "status": submission.status,
                    }
                },
            )
