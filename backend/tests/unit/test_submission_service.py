"""Unit tests for the moderation workflow (SubmissionService)

Tests cover:
- Submitting uploads into the staging area
- Duplicate detection
- Approve, reject and revert transitions with their file moves
- Rollback of file moves when the database write fails
- Degraded approval when the staged file is missing
"""

import pytest

from config import Settings
from domain.publications.errors import (
    AlreadyPending,
    AuthorizationError,
    ConcurrentTransition,
    DuplicateSubmission,
    FileNotFound,
    IncompleteMetadata,
    InvalidTransition,
    NotFound,
    StorageWriteError,
    SubmissionValidationError,
)
from models.audit_log import AuditLog
from models.pending_submission import PendingSubmission
from models.publication import Publication
from publications.base import AuditContext
from publications.locks import transition_locks, upload_locks
from publications.service import SubmissionService

FILENAME = "report-2024-03-15.pdf"
STAGED = "temp_publications/report/2024/03/15/report-2024-03-15.pdf"
PUBLISHED = "publications/report/2024/03/15/report-2024-03-15.pdf"


@pytest.fixture
def service(db_session, storage, test_settings):
    return SubmissionService(db_session, storage, test_settings)


@pytest.fixture
def submission(service, regular_user, pdf_bytes):
    return service.submit(pdf_bytes, FILENAME, len(pdf_bytes), "application/pdf", regular_user)


def _actions(db_session):
    return [entry.action for entry in db_session.query(AuditLog).order_by(AuditLog.created_at).all()]


class TestSubmit:

    def test_submit_stages_file(self, service, submission, storage, db_session, pdf_bytes):
        assert submission.status == "pending"
        assert submission.file_path == STAGED
        assert submission.file_url == f"/storage/{STAGED}"
        assert submission.name == "report"
        assert submission.title == "report"
        assert (submission.year, submission.month, submission.day) == (2024, 3, 15)
        assert storage.get(STAGED) == pdf_bytes
        assert _actions(db_session) == ["SUBMISSION_CREATED"]

    def test_title_and_audit_context(self, service, regular_user, db_session, pdf_bytes):
        submission = service.submit(
            pdf_bytes, FILENAME, len(pdf_bytes), None, regular_user,
            title="  Annual Report  ", description="Q1 figures",
            context=AuditContext(ip_address="10.0.0.7", user_agent="pytest"),
        )

        assert submission.title == "Annual Report"
        assert submission.description == "Q1 figures"
        assert submission.mime_type == "application/pdf"
        entry = db_session.query(AuditLog).one()
        assert entry.ip_address == "10.0.0.7"
        assert entry.user_agent == "pytest"

    def test_page_from_filename_wins(self, service, regular_user, pdf_bytes):
        submission = service.submit(
            pdf_bytes, "report-2024-03-15-4.pdf", len(pdf_bytes), "application/pdf", regular_user, page=9
        )
        assert submission.page == 4

    def test_declared_page_used_when_filename_has_none(self, service, regular_user, pdf_bytes):
        submission = service.submit(pdf_bytes, FILENAME, len(pdf_bytes), "application/pdf", regular_user, page=2)
        assert submission.page == 2

    @pytest.mark.parametrize("filename", [
        "report.pdf",
        "report-1850-01-01.pdf",
        "report-2024-13-01.pdf",
        "../report-2024-03-15.pdf",
        "report-2024-03-15.txt",
    ])
    def test_invalid_filenames_store_nothing(self, service, regular_user, storage, db_session, pdf_bytes, filename):
        with pytest.raises(SubmissionValidationError):
            service.submit(pdf_bytes, filename, len(pdf_bytes), "application/pdf", regular_user)

        assert db_session.query(PendingSubmission).count() == 0
        assert not (storage.root / "temp_publications").exists()

    def test_empty_and_wrong_type(self, service, regular_user, pdf_bytes):
        with pytest.raises(SubmissionValidationError, match="empty"):
            service.submit(b"", FILENAME, 0, "application/pdf", regular_user)
        with pytest.raises(SubmissionValidationError, match="Unsupported"):
            service.submit(pdf_bytes, FILENAME, len(pdf_bytes), "image/png", regular_user)

    def test_oversized_upload(self, db_session, storage, regular_user):
        service = SubmissionService(db_session, storage, Settings(MAX_UPLOAD_SIZE_KB=1))
        data = b"%PDF" + b"x" * 2048

        with pytest.raises(SubmissionValidationError, match="maximum size"):
            service.submit(data, FILENAME, len(data), "application/pdf", regular_user)

    def test_invalid_declared_page(self, service, regular_user, pdf_bytes):
        with pytest.raises(SubmissionValidationError, match="Page"):
            service.submit(pdf_bytes, FILENAME, len(pdf_bytes), "application/pdf", regular_user, page=0)

    def test_duplicate_pending_submission(self, service, submission, regular_user, pdf_bytes):
        with pytest.raises(DuplicateSubmission) as exc_info:
            service.submit(pdf_bytes, FILENAME, len(pdf_bytes), "application/pdf", regular_user)

        existing = exc_info.value.details["existing_file"]
        assert existing["id"] == str(submission.id)
        assert existing["status"] == "pending"
        assert exc_info.value.status_code == 409

    def test_duplicate_of_published_file(self, service, submission, librarian_user, regular_user, pdf_bytes):
        service.approve(submission.id, librarian_user)

        with pytest.raises(DuplicateSubmission) as exc_info:
            service.submit(pdf_bytes, FILENAME, len(pdf_bytes), "application/pdf", regular_user)

        assert "already been published" in exc_info.value.message

    def test_duplicate_check_runs_under_upload_lock(self, service, regular_user, pdf_bytes, monkeypatch):
        """Identical concurrent uploads are checked and inserted one at a time"""
        original_check = service._check_duplicate
        seen = []

        def checking(upload):
            seen.append(upload_locks.is_locked(upload.duplicate_key))
            original_check(upload)

        monkeypatch.setattr(service, "_check_duplicate", checking)

        submission = service.submit(pdf_bytes, FILENAME, len(pdf_bytes), "application/pdf", regular_user)

        assert seen == [True]
        assert upload_locks.is_locked((FILENAME, len(pdf_bytes), 2024, 3, 15, None)) is False
        assert submission.status == "pending"

    def test_same_name_different_size_is_not_duplicate(self, service, submission, regular_user):
        other = service.submit(b"%PDF-1.7 other", FILENAME, 14, "application/pdf", regular_user)

        assert other.file_path.endswith("report-2024-03-15-1.pdf")

    def test_resubmission_after_rejection_is_allowed(self, service, submission, librarian_user, regular_user, pdf_bytes):
        service.reject(submission.id, librarian_user, "Blurry scan")

        again = service.submit(pdf_bytes, FILENAME, len(pdf_bytes), "application/pdf", regular_user)

        assert again.status == "pending"


class TestApprove:

    def test_approve_publishes_and_moves_file(self, service, submission, librarian_user, storage, db_session):
        approved = service.approve(submission.id, librarian_user, notes="  Looks good ")

        assert approved.status == "approved"
        assert approved.verified_by == librarian_user.id
        assert approved.verified_at is not None
        assert approved.admin_notes == "Looks good"
        assert approved.file_path == PUBLISHED
        assert storage.exists(PUBLISHED)
        assert not storage.exists(STAGED)

        publication = db_session.get(Publication, approved.publication_id)
        assert publication.file_path == PUBLISHED
        assert publication.title == "report"
        assert publication.user_id == submission.user_id
        assert "SUBMISSION_APPROVED" in _actions(db_session)

    def test_regular_user_cannot_approve(self, service, submission, regular_user):
        with pytest.raises(AuthorizationError):
            service.approve(submission.id, regular_user)

    def test_approve_twice(self, service, submission, librarian_user):
        service.approve(submission.id, librarian_user)

        with pytest.raises(InvalidTransition):
            service.approve(submission.id, librarian_user)

    def test_approve_rejected_submission(self, service, submission, librarian_user):
        service.reject(submission.id, librarian_user, "Wrong document")

        with pytest.raises(InvalidTransition):
            service.approve(submission.id, librarian_user)

    def test_unknown_submission(self, service, librarian_user):
        from uuid import uuid4

        with pytest.raises(NotFound):
            service.approve(uuid4(), librarian_user)

    def test_missing_date_parts(self, service, librarian_user, regular_user, db_session):
        incomplete = PendingSubmission(
            user_id=regular_user.id,
            original_filename="legacy.pdf",
            file_path="temp_publications/legacy.pdf",
            file_size=10,
            year=2020,
            status="pending",
        )
        db_session.add(incomplete)
        db_session.commit()

        with pytest.raises(IncompleteMetadata) as exc_info:
            service.approve(incomplete.id, librarian_user)

        assert exc_info.value.details["missing"] == ["month", "day"]
        assert db_session.get(PendingSubmission, incomplete.id).status == "pending"

    def test_missing_file_is_an_error_by_default(self, service, submission, librarian_user, storage, db_session):
        storage.delete(STAGED)

        with pytest.raises(FileNotFound):
            service.approve(submission.id, librarian_user)

        assert db_session.get(PendingSubmission, submission.id).status == "pending"
        assert db_session.query(Publication).count() == 0

    def test_degraded_approval_keeps_staging_path(self, db_session, storage, submission, librarian_user):
        storage.delete(STAGED)
        service = SubmissionService(db_session, storage, Settings(ALLOW_DEGRADED_APPROVAL=True))

        approved = service.approve(submission.id, librarian_user)

        assert approved.status == "approved"
        publication = db_session.get(Publication, approved.publication_id)
        assert publication.file_path == STAGED
        entry = db_session.query(AuditLog).filter(AuditLog.action == "SUBMISSION_APPROVED").one()
        assert entry.metadata_json["degraded"] is True

    def test_degraded_approval_when_move_fails(self, db_session, storage, submission, librarian_user, monkeypatch):
        def failing_move(source, destination):
            raise StorageWriteError("disk full")

        monkeypatch.setattr(storage, "move", failing_move)
        service = SubmissionService(db_session, storage, Settings(ALLOW_DEGRADED_APPROVAL=True))

        approved = service.approve(submission.id, librarian_user)

        assert approved.file_path == STAGED

    def test_move_failure_is_an_error_by_default(self, service, submission, librarian_user, storage, monkeypatch):
        def failing_move(source, destination):
            raise StorageWriteError("disk full")

        monkeypatch.setattr(storage, "move", failing_move)

        with pytest.raises(StorageWriteError):
            service.approve(submission.id, librarian_user)

    def test_database_failure_moves_file_back(self, service, submission, librarian_user, storage, db_session, monkeypatch):
        def failing_publish(submission, path):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(service, "_publish", failing_publish)

        with pytest.raises(RuntimeError):
            service.approve(submission.id, librarian_user)

        assert storage.exists(STAGED)
        assert not storage.exists(PUBLISHED)
        assert db_session.get(PendingSubmission, submission.id).status == "pending"
        assert transition_locks.is_locked(submission.id) is False

    def test_concurrent_transition_is_refused(self, service, submission, librarian_user):
        with transition_locks.hold(submission.id):
            with pytest.raises(ConcurrentTransition):
                service.approve(submission.id, librarian_user)

    def test_notes_too_long(self, service, submission, librarian_user):
        with pytest.raises(SubmissionValidationError):
            service.approve(submission.id, librarian_user, notes="x" * 1001)


class TestApproveWithoutFile:

    def test_admin_only(self, service, submission, librarian_user):
        with pytest.raises(AuthorizationError):
            service.approve_without_file(submission.id, librarian_user)

    def test_publishes_without_touching_storage(self, service, submission, admin_user, storage, db_session):
        storage.delete(STAGED)

        approved = service.approve_without_file(submission.id, admin_user)

        assert approved.status == "approved"
        assert db_session.get(Publication, approved.publication_id).file_path == STAGED
        assert "SUBMISSION_APPROVED_WITHOUT_FILE" in _actions(db_session)


class TestReject:

    def test_reject_keeps_file_in_staging(self, service, submission, librarian_user, storage, db_session):
        rejected = service.reject(submission.id, librarian_user, "  Scan is unreadable ")

        assert rejected.status == "rejected"
        assert rejected.admin_notes == "Scan is unreadable"
        assert rejected.verified_by == librarian_user.id
        assert storage.exists(STAGED)
        assert "SUBMISSION_REJECTED" in _actions(db_session)

    @pytest.mark.parametrize("reason", [None, "", "   ", "x" * 1001])
    def test_reason_required(self, service, submission, librarian_user, reason):
        with pytest.raises(SubmissionValidationError):
            service.reject(submission.id, librarian_user, reason)

    def test_reject_approved_submission(self, service, submission, librarian_user):
        service.approve(submission.id, librarian_user)

        with pytest.raises(InvalidTransition):
            service.reject(submission.id, librarian_user, "Changed my mind")


class TestRevert:

    def test_revert_approval_removes_publication(self, service, submission, librarian_user, storage, db_session):
        approved = service.approve(submission.id, librarian_user)
        publication_id = approved.publication_id

        reverted = service.revert(submission.id, librarian_user)

        assert reverted.status == "pending"
        assert reverted.verified_by is None
        assert reverted.verified_at is None
        assert reverted.admin_notes is None
        assert reverted.publication_id is None
        assert reverted.file_path == STAGED
        assert storage.exists(STAGED)
        assert not storage.exists(PUBLISHED)
        assert db_session.get(Publication, publication_id) is None

        entry = db_session.query(AuditLog).filter(AuditLog.action == "SUBMISSION_REVERTED").one()
        assert entry.metadata_json["previous_status"] == "approved"
        assert entry.metadata_json["removed_publication_id"] == str(publication_id)

    def test_revert_rejection(self, service, submission, librarian_user):
        service.reject(submission.id, librarian_user, "Wrong file")

        reverted = service.revert(submission.id, librarian_user)

        assert reverted.status == "pending"
        assert reverted.file_path == STAGED

    def test_revert_pending(self, service, submission, librarian_user):
        with pytest.raises(AlreadyPending):
            service.revert(submission.id, librarian_user)

    def test_revert_then_approve_again(self, service, submission, librarian_user, storage):
        service.approve(submission.id, librarian_user)
        service.revert(submission.id, librarian_user)

        again = service.approve(submission.id, librarian_user)

        assert again.status == "approved"
        assert again.file_path == PUBLISHED
        assert storage.exists(PUBLISHED)

    def test_revert_when_published_file_is_missing(self, service, submission, librarian_user, storage):
        service.approve(submission.id, librarian_user)
        storage.delete(PUBLISHED)

        reverted = service.revert(submission.id, librarian_user)

        assert reverted.status == "pending"
        assert reverted.file_path == PUBLISHED

    def test_regular_user_cannot_revert(self, service, submission, librarian_user, regular_user):
        service.reject(submission.id, librarian_user, "Wrong file")

        with pytest.raises(AuthorizationError):
            service.revert(submission.id, regular_user)


class TestViews:

    def test_list_pending_search_and_pagination(self, db_session, storage, regular_user, librarian_user, pdf_bytes):
        service = SubmissionService(db_session, storage, Settings(PAGE_SIZE=2))
        for day in range(1, 4):
            service.submit(pdf_bytes, f"bulletin-2024-01-0{day}.pdf", len(pdf_bytes), None, regular_user)
        service.submit(pdf_bytes, "gazette-2024-02-01.pdf", len(pdf_bytes), None, librarian_user)

        rows, total, per_page = service.list_pending(page=1)
        assert (len(rows), total, per_page) == (2, 4, 2)

        rows, total, _ = service.list_pending(search="BULLETIN")
        assert total == 3

        rows, total, _ = service.list_pending(search="librarian@example")
        assert [row.name for row in rows] == ["gazette"]

    def test_list_history(self, service, submission, librarian_user, regular_user, pdf_bytes):
        other = service.submit(pdf_bytes, "gazette-2024-02-01.pdf", len(pdf_bytes), None, regular_user)
        service.approve(submission.id, librarian_user)
        service.reject(other.id, librarian_user, "Duplicate content")

        rows, total, _ = service.list_history()
        assert total == 2
        rows, total, _ = service.list_history(status="rejected")
        assert [row.id for row in rows] == [other.id]

        with pytest.raises(SubmissionValidationError):
            service.list_history(status="pending")

    def test_get_submission_visibility(self, service, submission, regular_user, librarian_user, make_user):
        assert service.get_submission(submission.id, regular_user).id == submission.id
        assert service.get_submission(submission.id, librarian_user).id == submission.id

        stranger = make_user("user", "stranger@example.com")
        with pytest.raises(AuthorizationError):
            service.get_submission(submission.id, stranger)

    def test_read_file_follows_publication(self, service, submission, librarian_user, pdf_bytes):
        content, mime_type, filename = service.read_submission_file(submission)
        assert (content, mime_type, filename) == (pdf_bytes, "application/pdf", FILENAME)

        approved = service.approve(submission.id, librarian_user)
        assert service.read_submission_file(approved)[0] == pdf_bytes


class TestReviewerFields:
    """verified_by and verified_at are set exactly when the status is not pending"""

    @pytest.mark.parametrize("status,with_reviewer", [
        ("approved", False),
        ("rejected", False),
        ("pending", True),
    ])
    def test_mismatched_reviewer_fields_are_refused(self, db_session, regular_user, status, with_reviewer):
        from datetime import datetime, timezone

        from sqlalchemy.exc import IntegrityError

        row = PendingSubmission(
            user_id=regular_user.id,
            original_filename=FILENAME,
            file_path=STAGED,
            file_size=10,
            status=status,
        )
        if with_reviewer:
            row.verified_by = regular_user.id
            row.verified_at = datetime.now(timezone.utc)
        db_session.add(row)

        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_transitions_keep_fields_paired(self, service, submission, librarian_user, db_session):
        service.reject(submission.id, librarian_user, "Scan unreadable")
        db_session.refresh(submission)
        assert submission.verified_by == librarian_user.id and submission.verified_at is not None

        service.revert(submission.id, librarian_user)
        db_session.refresh(submission)
        assert submission.verified_by is None and submission.verified_at is None
