"""Verification (moderation) endpoints

Librarians and administrators review pending submissions here: approve,
reject, revert, and the administrator-only approval without a file.
"""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from auth.dependencies import CurrentUser, require_admin, require_reviewer
from models.user import User
from schemas.pagination import last_page
from .dependencies import Audit, Submissions, file_response
from .schemas import ApproveRequest, RejectRequest, SubmissionPage, SubmissionResponse


router = APIRouter(prefix="/verification", tags=["Verification"])


def _page(rows, total: int, page: int, per_page: int) -> SubmissionPage:
    return SubmissionPage(
        items=[SubmissionResponse.from_submission(row) for row in rows],
        total=total,
        page=page,
        per_page=per_page,
        last_page=last_page(total, per_page),
    )


@router.get("/pending", response_model=SubmissionPage)
def list_pending(
    service: Submissions,
    current_user: Annotated[User, Depends(require_reviewer)],
    search: Optional[str] = Query(None, description="Search name, title, filename, submitter name or email"),
    page: int = Query(1, ge=1),
):
    """Pending submissions, newest first (15 per page)."""
    rows, total, per_page = service.list_pending(search=search, page=page)
    return _page(rows, total, page, per_page)


@router.get("/history", response_model=SubmissionPage)
def list_history(
    service: Submissions,
    current_user: Annotated[User, Depends(require_reviewer)],
    status: Optional[str] = Query(None, description="approved or rejected"),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
):
    """Moderated submissions, most recently verified first."""
    rows, total, per_page = service.list_history(status=status, search=search, page=page)
    return _page(rows, total, page, per_page)


@router.get("/{submission_id}", response_model=SubmissionResponse)
def get_submission(submission_id: UUID, service: Submissions, current_user: CurrentUser):
    """A submission, visible to its submitter and to reviewers."""
    return SubmissionResponse.from_submission(service.get_submission(submission_id, current_user))


@router.get("/{submission_id}/file")
def get_submission_file(
    submission_id: UUID,
    service: Submissions,
    current_user: CurrentUser,
    download: bool = Query(False),
):
    submission = service.get_submission(submission_id, current_user)
    content, mime_type, filename = service.read_submission_file(submission)
    return file_response(content, mime_type, filename, download=download)


@router.post("/{submission_id}/approve", response_model=SubmissionResponse)
def approve_submission(
    submission_id: UUID,
    service: Submissions,
    audit: Audit,
    current_user: Annotated[User, Depends(require_reviewer)],
    body: Optional[ApproveRequest] = None,
):
    """Approve a pending submission and publish its file.

    Returns 404 if the staged file is missing, 409 if the submission is not
    pending or another moderation action is in progress, and 422 if the
    submission has no complete publication date.
    """
    submission = service.approve(
        submission_id, current_user, notes=body.notes if body else None, context=audit
    )
    return SubmissionResponse.from_submission(submission)


@router.post("/{submission_id}/approve-without-file", response_model=SubmissionResponse)
def approve_submission_without_file(
    submission_id: UUID,
    service: Submissions,
    audit: Audit,
    current_user: Annotated[User, Depends(require_admin)],
    body: Optional[ApproveRequest] = None,
):
    """Approve a pending submission whose file is missing (administrators only)."""
    submission = service.approve_without_file(
        submission_id, current_user, notes=body.notes if body else None, context=audit
    )
    return SubmissionResponse.from_submission(submission)


@router.post("/{submission_id}/reject", response_model=SubmissionResponse)
def reject_submission(
    submission_id: UUID,
    body: RejectRequest,
    service: Submissions,
    audit: Audit,
    current_user: Annotated[User, Depends(require_reviewer)],
):
    submission = service.reject(submission_id, current_user, body.reason, context=audit)
    return SubmissionResponse.from_submission(submission)


@router.post("/{submission_id}/revert", response_model=SubmissionResponse)
def revert_submission(
    submission_id: UUID,
    service: Submissions,
    audit: Audit,
    current_user: Annotated[User, Depends(require_reviewer)],
):
    """Return an approved or rejected submission to pending.

    Reverting an approval deletes the publication it created and moves the
    file back into the staging area.
    """
    submission = service.revert(submission_id, current_user, context=audit)
    return SubmissionResponse.from_submission(submission)
