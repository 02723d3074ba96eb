"""Publication submission, moderation and catalogue services.

SubmissionService owns the PendingSubmission lifecycle:

    submit → pending → approve → approved
                     → reject  → rejected
    approved | rejected → revert → pending

PublicationService owns the published catalogue: direct uploads, edits,
soft delete into the archive, restore and permanent deletion.

Every operation is one unit of work (see publications.base): a single commit
on success, and on failure a rollback plus compensation of any file moves.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import or_

from auth.roles import Perm
from domain.publications.errors import (
    AuthorizationError,
    FileNotFound,
    IncompleteMetadata,
    NotFound,
    StorageError,
    SubmissionValidationError,
)
from domain.publications.submission_status import (
    ACTIVE_STATUSES,
    SubmissionStatus,
    validate_transition,
)
from models.deleted_publication import DeletedPublication
from models.pending_submission import PendingSubmission
from models.publication import Publication
from models.user import User
from schemas.pagination import clamp_per_page, paginate
from .base import AuditContext, PublicationServiceBase
from .locks import transition_locks, upload_locks

logger = logging.getLogger(__name__)

UNTITLED = "Untitled Publication"
MAX_NOTES_LENGTH = 1000
MAX_TITLE_LENGTH = 255
MIN_YEAR = 1900


def _contains(search: str) -> str:
    return f"%{search.strip()}%"


class SubmissionService(PublicationServiceBase):
    """Moderation workflow for uploaded submissions.

    Example:
        service = SubmissionService(db, storage, settings, resolver)
        submission = service.submit(data, "report-2024-03-15.pdf", len(data), "application/pdf", user)
        service.approve(submission.id, librarian, notes="Looks good")
    """

    # ----- submit -------------------------------------------------------

    def submit(
        self,
        data: bytes,
        filename: str,
        size: int,
        mime_type: Optional[str],
        submitter: User,
        title: Optional[str] = None,
        description: Optional[str] = None,
        page: Optional[int] = None,
        context: Optional[AuditContext] = None,
    ) -> PendingSubmission:
        """Store an upload in the staging area and queue it for review.

        Raises:
            SubmissionValidationError: Bad filename, date, size or MIME type
            DuplicateSubmission: Same file already published or queued
            StorageError: File could not be written
        """
        upload = self._validate_upload(filename, size, mime_type, declared_page=page)
        title = (title or "").strip() or None
        if title and len(title) > MAX_TITLE_LENGTH:
            raise SubmissionValidationError(
                f"Title must be at most {MAX_TITLE_LENGTH} characters",
                details={"title_length": len(title)},
            )

        with upload_locks.hold(upload.duplicate_key):
            self._check_duplicate(upload)
            parsed = upload.parsed

            with self._unit_of_work() as undo:
                path = self.placement.place(
                    data, upload.filename, parsed.name, parsed.year, parsed.month, parsed.day
                )
                self._undo_put(undo, path)

                submission = PendingSubmission(
                    user_id=submitter.id,
                    name=parsed.name,
                    title=title or parsed.name,
                    description=description,
                    original_filename=upload.filename,
                    file_path=path,
                    file_url=self.storage.url(path),
                    mime_type=upload.mime_type or "application/pdf",
                    file_size=upload.size,
                    year=parsed.year,
                    month=parsed.month,
                    day=parsed.day,
                    page=upload.page,
                    status=SubmissionStatus.PENDING.value,
                )
                self.db.add(submission)
                self.db.flush()

                self._audit(
                    "SUBMISSION_CREATED",
                    submitter,
                    "pending_submission",
                    submission.id,
                    metadata={"filename": upload.filename, "file_path": path, "file_size": upload.size},
                    context=context,
                )

        logger.info(f"Submission created: id={submission.id}, file={upload.filename}, user={submitter.id}")
        return submission

    # ----- transitions --------------------------------------------------

    def approve(
        self,
        submission_id: UUID,
        reviewer: User,
        notes: Optional[str] = None,
        context: Optional[AuditContext] = None,
    ) -> PendingSubmission:
        """Publish a pending submission.

        The staged file is moved into the permanent area and a Publication
        row is created. With ALLOW_DEGRADED_APPROVAL a missing or unmovable
        file is logged and the stored path is kept instead.

        Raises:
            AuthorizationError: Reviewer is not an admin or librarian
            ConcurrentTransition: Another transition on this submission is running
            InvalidTransition: Submission is not pending
            IncompleteMetadata: Year, month or day is missing
            FileNotFound: Staged file is missing (strict mode)
            StorageWriteError: File could not be moved (strict mode)
        """
        self._require_reviewer(reviewer)
        notes = self._clean_notes(notes)
        degraded_allowed = self.settings.ALLOW_DEGRADED_APPROVAL

        with transition_locks.hold(submission_id):
            with self._unit_of_work() as undo:
                submission = self._lock_submission(submission_id)
                validate_transition(SubmissionStatus(submission.status), SubmissionStatus.APPROVED)
                self._require_complete_date(submission)

                original_path = submission.file_path
                final_path = original_path
                degraded = False

                if not self.storage.exists(original_path):
                    if not degraded_allowed:
                        raise FileNotFound(
                            f"Submission file not found: {original_path}",
                            details={"path": original_path, "submission_id": str(submission.id)},
                        )
                    logger.warning(
                        f"Approving submission without file: id={submission.id}, path={original_path}"
                    )
                    degraded = True
                else:
                    try:
                        final_path = self.placement.promote(
                            original_path,
                            submission.name or UNTITLED,
                            submission.year,
                            submission.month,
                            submission.day,
                        )
                    except StorageError:
                        if not degraded_allowed:
                            raise
                        logger.warning(
                            f"Failed to move file, keeping staging path: id={submission.id}, "
                            f"path={original_path}",
                            exc_info=True,
                        )
                        degraded = True
                    else:
                        self._undo_move(undo, final_path, original_path)

                publication = self._publish(submission, final_path)
                self._mark_verified(submission, SubmissionStatus.APPROVED, reviewer, notes)
                submission.publication_id = publication.id
                submission.file_path = final_path
                submission.file_url = publication.file_url

                self._audit(
                    "SUBMISSION_APPROVED",
                    reviewer,
                    "pending_submission",
                    submission.id,
                    metadata={
                        "publication_id": str(publication.id),
                        "from_path": original_path,
                        "to_path": final_path,
                        "degraded": degraded,
                    },
                    context=context,
                )

        logger.info(f"Submission approved: id={submission_id}, reviewer={reviewer.id}")
        return submission

    def approve_without_file(
        self,
        submission_id: UUID,
        reviewer: User,
        notes: Optional[str] = None,
        context: Optional[AuditContext] = None,
    ) -> PendingSubmission:
        """Publish a pending submission without checking or moving its file.

        Administrator-only override for records whose file was lost.

        Raises:
            AuthorizationError: Reviewer is not an admin
            ConcurrentTransition: Another transition on this submission is running
            InvalidTransition: Submission is not pending
            IncompleteMetadata: Year, month or day is missing
        """
        self._require_admin(reviewer)
        notes = self._clean_notes(notes)

        with transition_locks.hold(submission_id):
            with self._unit_of_work():
                submission = self._lock_submission(submission_id)
                validate_transition(SubmissionStatus(submission.status), SubmissionStatus.APPROVED)
                self._require_complete_date(submission)

                publication = self._publish(submission, submission.file_path)
                self._mark_verified(submission, SubmissionStatus.APPROVED, reviewer, notes)
                submission.publication_id = publication.id

                self._audit(
                    "SUBMISSION_APPROVED_WITHOUT_FILE",
                    reviewer,
                    "pending_submission",
                    submission.id,
                    metadata={"publication_id": str(publication.id), "file_path": submission.file_path},
                    context=context,
                )

        logger.warning(
            f"Submission approved without file: id={submission_id}, reviewer={reviewer.id}"
        )
        return submission

    def reject(
        self,
        submission_id: UUID,
        reviewer: User,
        reason: Optional[str],
        context: Optional[AuditContext] = None,
    ) -> PendingSubmission:
        """Decline a pending submission. The staged file is left in place.

        Raises:
            AuthorizationError: Reviewer is not an admin or librarian
            SubmissionValidationError: Reason is empty or too long
            ConcurrentTransition: Another transition on this submission is running
            InvalidTransition: Submission is not pending
        """
        self._require_reviewer(reviewer)
        reason = (reason or "").strip()
        if not reason:
            raise SubmissionValidationError("A rejection reason is required")
        if len(reason) > MAX_NOTES_LENGTH:
            raise SubmissionValidationError(
                f"Rejection reason must be at most {MAX_NOTES_LENGTH} characters",
                details={"reason_length": len(reason)},
            )

        with transition_locks.hold(submission_id):
            with self._unit_of_work():
                submission = self._lock_submission(submission_id)
                validate_transition(SubmissionStatus(submission.status), SubmissionStatus.REJECTED)
                self._mark_verified(submission, SubmissionStatus.REJECTED, reviewer, reason)

                self._audit(
                    "SUBMISSION_REJECTED",
                    reviewer,
                    "pending_submission",
                    submission.id,
                    metadata={"reason": reason},
                    context=context,
                )

        logger.info(f"Submission rejected: id={submission_id}, reviewer={reviewer.id}")
        return submission

    def revert(
        self,
        submission_id: UUID,
        reviewer: User,
        context: Optional[AuditContext] = None,
    ) -> PendingSubmission:
        """Return an approved or rejected submission to pending.

        Reverting an approval removes the Publication it created and moves
        the file back into the staging area.

        Raises:
            AuthorizationError: Reviewer is not an admin or librarian
            ConcurrentTransition: Another transition on this submission is running
            AlreadyPending: Submission is already pending
        """
        self._require_reviewer(reviewer)

        with transition_locks.hold(submission_id):
            with self._unit_of_work() as undo:
                submission = self._lock_submission(submission_id)
                previous_status = submission.status
                validate_transition(SubmissionStatus(previous_status), SubmissionStatus.PENDING)

                removed_publication_id = None
                if previous_status == SubmissionStatus.APPROVED.value and submission.publication_id:
                    publication = self.db.get(Publication, submission.publication_id)
                    if publication is not None:
                        removed_publication_id = publication.id
                        self._unpublish(submission, publication, undo)
                    submission.publication_id = None

                submission.status = SubmissionStatus.PENDING.value
                submission.verified_by = None
                submission.verified_at = None
                submission.admin_notes = None

                self._audit(
                    "SUBMISSION_REVERTED",
                    reviewer,
                    "pending_submission",
                    submission.id,
                    metadata={
                        "previous_status": previous_status,
                        "removed_publication_id": str(removed_publication_id) if removed_publication_id else None,
                        "file_path": submission.file_path,
                    },
                    context=context,
                )

        logger.info(f"Submission reverted: id={submission_id}, from={previous_status}, reviewer={reviewer.id}")
        return submission

    # ----- views --------------------------------------------------------

    def list_pending(self, search: Optional[str] = None, page: int = 1) -> Tuple[List[PendingSubmission], int, int]:
        """Pending submissions, newest first.

        Returns:
            Tuple of (rows, total, per_page)
        """
        query = self._submission_query(search).filter(
            PendingSubmission.status == SubmissionStatus.PENDING.value
        )
        query = query.order_by(PendingSubmission.created_at.desc())
        per_page = self.settings.PAGE_SIZE
        rows, total = paginate(query, page, per_page)
        return rows, total, per_page

    def list_history(
        self,
        status: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
    ) -> Tuple[List[PendingSubmission], int, int]:
        """Moderated (approved or rejected) submissions, most recently verified first."""
        reviewed = (SubmissionStatus.APPROVED.value, SubmissionStatus.REJECTED.value)
        query = self._submission_query(search)
        if status:
            if status not in reviewed:
                raise SubmissionValidationError(
                    f"Invalid status filter: {status}",
                    details={"allowed": list(reviewed)},
                )
            query = query.filter(PendingSubmission.status == status)
        else:
            query = query.filter(PendingSubmission.status.in_(reviewed))

        query = query.order_by(PendingSubmission.verified_at.desc(), PendingSubmission.created_at.desc())
        per_page = self.settings.PAGE_SIZE
        rows, total = paginate(query, page, per_page)
        return rows, total, per_page

    def get_submission(self, submission_id: UUID, user: User) -> PendingSubmission:
        """Load a submission visible to user (its submitter or a reviewer).

        Raises:
            NotFound: Unknown id
            AuthorizationError: User is neither submitter nor reviewer
        """
        submission = self.db.get(PendingSubmission, submission_id)
        if submission is None:
            raise NotFound("Submission not found", details={"id": str(submission_id)})
        if submission.user_id != user.id and not self.resolver.is_reviewer(user):
            raise AuthorizationError("You do not have access to this submission")
        return submission

    def read_submission_file(self, submission: PendingSubmission) -> Tuple[bytes, str, str]:
        """Content of the submission's file.

        An approved submission serves its publication's file when it still exists.

        Returns:
            Tuple of (content, mime_type, filename)

        Raises:
            FileNotFound: File is missing from storage
        """
        path = submission.file_path
        mime_type = submission.mime_type
        if submission.status == SubmissionStatus.APPROVED.value and submission.publication_id:
            publication = self.db.get(Publication, submission.publication_id)
            if publication is not None:
                path = publication.file_path
                mime_type = publication.mime_type
        return self.storage.get(path), mime_type or "application/pdf", submission.original_filename

    # ----- helpers ------------------------------------------------------

    def _submission_query(self, search: Optional[str]):
        query = self.db.query(PendingSubmission).outerjoin(User, PendingSubmission.user_id == User.id)
        if search and search.strip():
            pattern = _contains(search)
            query = query.filter(
                or_(
                    PendingSubmission.name.ilike(pattern),
                    PendingSubmission.title.ilike(pattern),
                    PendingSubmission.original_filename.ilike(pattern),
                    User.name.ilike(pattern),
                    User.email.ilike(pattern),
                )
            )
        return query

    def _lock_submission(self, submission_id: UUID) -> PendingSubmission:
        submission = (
            self.db.query(PendingSubmission)
            .filter(PendingSubmission.id == submission_id)
            .with_for_update()
            .first()
        )
        if submission is None:
            raise NotFound("Submission not found", details={"id": str(submission_id)})
        return submission

    @staticmethod
    def _require_complete_date(submission: PendingSubmission) -> None:
        if not submission.has_complete_date:
            missing = [part for part in ("year", "month", "day") if getattr(submission, part) is None]
            raise IncompleteMetadata(
                "Submission is missing required date fields",
                details={"missing": missing, "submission_id": str(submission.id)},
            )

    @staticmethod
    def _clean_notes(notes: Optional[str]) -> Optional[str]:
        notes = (notes or "").strip() or None
        if notes and len(notes) > MAX_NOTES_LENGTH:
            raise SubmissionValidationError(
                f"Notes must be at most {MAX_NOTES_LENGTH} characters",
                details={"notes_length": len(notes)},
            )
        return notes

    @staticmethod
    def _mark_verified(
        submission: PendingSubmission,
        status: SubmissionStatus,
        reviewer: User,
        notes: Optional[str],
    ) -> None:
        submission.status = status.value
        submission.verified_by = reviewer.id
        submission.verified_at = datetime.now(timezone.utc)
        submission.admin_notes = notes

    def _publish(self, submission: PendingSubmission, path: str) -> Publication:
        publication = Publication(
            user_id=submission.user_id,
            name=submission.name or UNTITLED,
            title=submission.title or UNTITLED,
            description=submission.description,
            original_filename=submission.original_filename,
            file_path=path,
            file_url=self.storage.url(path),
            mime_type=submission.mime_type or "application/pdf",
            file_size=submission.file_size,
            year=submission.year,
            month=submission.month,
            day=submission.day,
            page=submission.page,
        )
        self.db.add(publication)
        self.db.flush()
        return publication

    def _unpublish(self, submission: PendingSubmission, publication: Publication, undo) -> None:
        """Delete the publication an approval created and restage its file."""
        path = publication.file_path
        staging_root = self.placement.staging_prefix + "/"

        if path and not path.startswith(staging_root):
            if self.storage.exists(path):
                staged = self.placement.relocate(
                    path, self.placement.permanent_prefix, self.placement.staging_prefix
                )
                self._undo_move(undo, staged, path)
                path = staged
            else:
                logger.warning(f"Publication file missing during revert: publication={publication.id}, path={path}")

        submission.file_path = path
        submission.file_url = self.storage.url(path)
        submission.publication_id = None
        self.db.flush()
        self.db.delete(publication)
        self.db.flush()


class PublicationService(PublicationServiceBase):
    """Published catalogue and the deleted-publication archive."""

    EDITABLE_FIELDS = ("title", "description", "year", "month", "day", "page")

    def store_direct(
        self,
        data: bytes,
        filename: str,
        size: int,
        mime_type: Optional[str],
        owner: User,
        title: Optional[str] = None,
        description: Optional[str] = None,
        page: Optional[int] = None,
        context: Optional[AuditContext] = None,
    ) -> Publication:
        """Publish an upload immediately, bypassing moderation.

        Raises:
            AuthorizationError: Owner lacks upload permission or reviewer capability
            SubmissionValidationError: Bad filename, date, size or MIME type
            DuplicateSubmission: Same file already published or queued
        """
        if not (
            self.resolver.has_permission(owner, Perm.CREATE_PUBLICATIONS)
            and self.resolver.is_reviewer(owner)
        ):
            raise AuthorizationError("Direct publishing requires librarian or administrator access")

        upload = self._validate_upload(filename, size, mime_type, declared_page=page)
        title = (title or "").strip() or None
        if title and len(title) > MAX_TITLE_LENGTH:
            raise SubmissionValidationError(f"Title must be at most {MAX_TITLE_LENGTH} characters")

        with upload_locks.hold(upload.duplicate_key):
            self._check_duplicate(upload)
            parsed = upload.parsed

            with self._unit_of_work() as undo:
                path = self.placement.place(
                    data,
                    upload.filename,
                    parsed.name,
                    parsed.year,
                    parsed.month,
                    parsed.day,
                    permanent=True,
                )
                self._undo_put(undo, path)

                publication = Publication(
                    user_id=owner.id,
                    name=parsed.name or UNTITLED,
                    title=title or parsed.name or UNTITLED,
                    description=description,
                    original_filename=upload.filename,
                    file_path=path,
                    file_url=self.storage.url(path),
                    mime_type=upload.mime_type,
                    file_size=upload.size,
                    year=parsed.year,
                    month=parsed.month,
                    day=parsed.day,
                    page=upload.page,
                )
                self.db.add(publication)
                self.db.flush()

                self._audit(
                    "PUBLICATION_CREATED",
                    owner,
                    "publication",
                    publication.id,
                    metadata={"filename": upload.filename, "file_path": path},
                    context=context,
                )

        logger.info(f"Publication stored directly: id={publication.id}, file={upload.filename}")
        return publication

    def check_file(self, filename: str, user: User) -> Dict[str, Any]:
        """Whether user already uploaded a file with this original filename."""
        publication = (
            self.db.query(Publication)
            .filter(Publication.user_id == user.id, Publication.original_filename == filename)
            .first()
        )
        if publication:
            return {"exists": True, "location": "publication", "record": publication.to_dict()}

        submission = (
            self.db.query(PendingSubmission)
            .filter(
                PendingSubmission.user_id == user.id,
                PendingSubmission.original_filename == filename,
                PendingSubmission.status.in_(ACTIVE_STATUSES),
            )
            .first()
        )
        if submission:
            return {"exists": True, "location": "pending", "record": submission.to_dict()}

        return {"exists": False, "location": None, "record": None}

    def list_publications(
        self,
        search: Optional[str] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
        day: Optional[int] = None,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> Tuple[List[Publication], int, int]:
        per_page = clamp_per_page(per_page, 50, self.settings.MAX_PAGE_SIZE)
        query = self.db.query(Publication)

        if search and search.strip():
            pattern = _contains(search)
            query = query.filter(
                or_(
                    Publication.title.ilike(pattern),
                    Publication.description.ilike(pattern),
                    Publication.original_filename.ilike(pattern),
                    Publication.file_path.ilike(pattern),
                    Publication.name.ilike(pattern),
                )
            )
        if year is not None:
            query = query.filter(Publication.year == year)
        if month is not None:
            query = query.filter(Publication.month == month)
        if day is not None:
            query = query.filter(Publication.day == day)

        query = query.order_by(
            Publication.year.desc(),
            Publication.month.desc(),
            Publication.day.desc(),
            Publication.created_at.desc(),
        )
        rows, total = paginate(query, page, per_page)
        return rows, total, per_page

    def get_publication(self, publication_id: UUID) -> Publication:
        publication = self.db.get(Publication, publication_id)
        if publication is None:
            raise NotFound("Publication not found", details={"id": str(publication_id)})
        return publication

    def read_file(self, publication: Publication) -> Tuple[bytes, str, str]:
        """Returns (content, mime_type, filename). Raises FileNotFound if missing."""
        content = self.storage.get(publication.file_path)
        return content, publication.mime_type or "application/pdf", publication.original_filename

    def update_publication(
        self,
        publication_id: UUID,
        actor: User,
        changes: Dict[str, Any],
        context: Optional[AuditContext] = None,
    ) -> Publication:
        """Edit publication metadata. The stored file is not moved.

        Raises:
            NotFound: Unknown id
            SubmissionValidationError: A field is out of range
        """
        changes = {k: v for k, v in changes.items() if k in self.EDITABLE_FIELDS}
        self._validate_changes(changes)

        with self._unit_of_work():
            publication = self.get_publication(publication_id)
            changed = {}
            for field, value in changes.items():
                if field == "title":
                    value = value.strip()
                if getattr(publication, field) != value:
                    changed[field] = {"old": getattr(publication, field), "new": value}
                    setattr(publication, field, value)

            if changed:
                self._audit(
                    "PUBLICATION_UPDATED",
                    actor,
                    "publication",
                    publication.id,
                    metadata={"changes": changed},
                    context=context,
                )

        return publication

    def delete_publication(
        self,
        publication_id: UUID,
        actor: User,
        reason: Optional[str] = None,
        context: Optional[AuditContext] = None,
    ) -> DeletedPublication:
        """Move a publication and its file into the archive."""
        with self._unit_of_work() as undo:
            publication = self.get_publication(publication_id)
            path = publication.file_path

            try:
                archived_path = self.placement.relocate(
                    path, self.settings.PERMANENT_PREFIX, self.settings.DELETED_PREFIX
                )
            except FileNotFound:
                # The freed permanent path may be reused by a later upload
                logger.warning(f"Publication file missing during delete: id={publication.id}, path={path}")
                archived_path = None
            else:
                self._undo_move(undo, archived_path, path)

            archive = DeletedPublication(
                original_id=publication.id,
                user_id=publication.user_id,
                name=publication.name,
                title=publication.title,
                description=publication.description,
                original_filename=publication.original_filename,
                file_path=archived_path,
                file_url=self.storage.url(archived_path) if archived_path else None,
                mime_type=publication.mime_type,
                file_size=publication.file_size,
                year=publication.year,
                month=publication.month,
                day=publication.day,
                page=publication.page,
                deleted_by=actor.id,
                deleted_reason=(reason or "").strip() or None,
                original_created_at=publication.created_at,
                original_updated_at=publication.updated_at,
            )
            self.db.add(archive)

            self.db.query(PendingSubmission).filter(
                PendingSubmission.publication_id == publication.id
            ).update({PendingSubmission.publication_id: None}, synchronize_session="fetch")
            self.db.delete(publication)
            self.db.flush()

            self._audit(
                "PUBLICATION_DELETED",
                actor,
                "publication",
                publication_id,
                metadata={"archive_id": str(archive.id), "file_path": archived_path, "reason": archive.deleted_reason},
                context=context,
            )

        logger.info(f"Publication deleted: id={publication_id}, archive={archive.id}, actor={actor.id}")
        return archive

    def list_deleted(
        self,
        search: Optional[str] = None,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> Tuple[List[DeletedPublication], int, int]:
        per_page = clamp_per_page(per_page, self.settings.PAGE_SIZE, self.settings.MAX_PAGE_SIZE)
        query = self.db.query(DeletedPublication)
        if search and search.strip():
            pattern = _contains(search)
            query = query.filter(
                or_(
                    DeletedPublication.title.ilike(pattern),
                    DeletedPublication.name.ilike(pattern),
                    DeletedPublication.original_filename.ilike(pattern),
                    DeletedPublication.deleted_reason.ilike(pattern),
                )
            )
        query = query.order_by(DeletedPublication.deleted_at.desc())
        rows, total = paginate(query, page, per_page)
        return rows, total, per_page

    def restore_deleted(
        self,
        archive_id: UUID,
        actor: User,
        context: Optional[AuditContext] = None,
    ) -> Publication:
        """Recreate an archived publication and move its file back.

        The publication keeps its original id when that id is still free.

        Raises:
            AuthorizationError: Actor is not an admin
            NotFound: Unknown archive id
            FileNotFound: The archive has no file left in the deleted area
        """
        self._require_admin(actor)

        with self._unit_of_work() as undo:
            archive = self._get_archive(archive_id)
            path = archive.file_path

            if not self._in_deleted_area(path) or not self.storage.exists(path):
                logger.warning(f"Archived file missing during restore: archive={archive.id}, path={path}")
                raise FileNotFound(
                    "The archived file is no longer available; the archive can only be permanently deleted",
                    details={"archive_id": str(archive.id), "path": path},
                )

            restored_path = self.placement.relocate(
                path, self.settings.DELETED_PREFIX, self.settings.PERMANENT_PREFIX
            )
            self._undo_move(undo, restored_path, path)

            publication = Publication(
                user_id=archive.user_id,
                name=archive.name,
                title=archive.title,
                description=archive.description,
                original_filename=archive.original_filename,
                file_path=restored_path,
                file_url=self.storage.url(restored_path),
                mime_type=archive.mime_type,
                file_size=archive.file_size,
                year=archive.year,
                month=archive.month,
                day=archive.day,
                page=archive.page,
            )
            if self.db.get(Publication, archive.original_id) is None:
                publication.id = archive.original_id
            if archive.original_created_at is not None:
                publication.created_at = archive.original_created_at
            self.db.add(publication)
            self.db.delete(archive)
            self.db.flush()

            self._audit(
                "PUBLICATION_RESTORED",
                actor,
                "publication",
                publication.id,
                metadata={"archive_id": str(archive_id), "file_path": restored_path},
                context=context,
            )

        logger.info(f"Publication restored: id={publication.id}, archive={archive_id}, actor={actor.id}")
        return publication

    def permanently_delete(
        self,
        archive_id: UUID,
        actor: User,
        context: Optional[AuditContext] = None,
    ) -> None:
        """Remove an archived publication and its file for good.

        The row is deleted and committed first; the file is removed afterwards
        so that a storage failure never resurrects the record.

        Raises:
            AuthorizationError: Actor is not an admin
            NotFound: Unknown archive id
        """
        self._require_admin(actor)

        with self._unit_of_work():
            archive = self._get_archive(archive_id)
            path = archive.file_path
            self.db.delete(archive)
            self._audit(
                "PUBLICATION_PERMANENTLY_DELETED",
                actor,
                "deleted_publication",
                archive_id,
                metadata={"original_id": str(archive.original_id), "file_path": path},
                context=context,
            )

        # Only paths inside the deleted area belong to the archive
        if not self._in_deleted_area(path):
            logger.warning(f"Archive has no file in the deleted area: archive={archive_id}, path={path}")
        else:
            try:
                if not self.storage.delete(path):
                    logger.warning(f"Archived file already missing: archive={archive_id}, path={path}")
            except StorageError:
                logger.error(f"Failed to delete archived file: archive={archive_id}, path={path}", exc_info=True)

        logger.info(f"Publication permanently deleted: archive={archive_id}, actor={actor.id}")

    def _in_deleted_area(self, path: Optional[str]) -> bool:
        return bool(path) and path.startswith(self.settings.DELETED_PREFIX.strip("/") + "/")

    def _get_archive(self, archive_id: UUID) -> DeletedPublication:
        archive = self.db.get(DeletedPublication, archive_id)
        if archive is None:
            raise NotFound("Deleted publication not found", details={"id": str(archive_id)})
        return archive

    @staticmethod
    def _validate_changes(changes: Dict[str, Any]) -> None:
        max_year = datetime.now(timezone.utc).year + 1
        errors = []

        title = changes.get("title")
        if "title" in changes:
            if title is None or not str(title).strip():
                errors.append("Title cannot be empty")
            elif len(title.strip()) > MAX_TITLE_LENGTH:
                errors.append(f"Title must be at most {MAX_TITLE_LENGTH} characters")

        ranges = {"year": (MIN_YEAR, max_year), "month": (1, 12), "day": (1, 31)}
        for field, (low, high) in ranges.items():
            if field in changes:
                value = changes[field]
                if value is None or not low <= value <= high:
                    errors.append(f"{field.capitalize()} must be between {low} and {high}")

        if changes.get("page") is not None and changes["page"] < 1:
            errors.append("Page must be 1 or greater")

        if errors:
            raise SubmissionValidationError("; ".join(errors), details={"errors": errors})
