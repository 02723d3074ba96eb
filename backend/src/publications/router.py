"""Publication catalogue endpoints

Provides uploads (moderated submission and direct publishing), catalogue
browsing, metadata edits, soft delete and the deleted-publication archive.
Domain errors raised by the services are rendered by the PublicationError
handler in main.py.
"""

import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from auth.dependencies import CurrentUser, require_admin, require_permission
from auth.roles import Perm
from models.user import User
from schemas.pagination import last_page
from .dependencies import Audit, Publications, Submissions, file_response
from .schemas import (
    DeletedPublicationPage,
    DeletedPublicationResponse,
    DeleteRequest,
    FileCheckResponse,
    MessageResponse,
    PublicationPage,
    PublicationResponse,
    PublicationUpdate,
    SubmissionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/publications", tags=["Publications"])


@router.get("", response_model=PublicationPage)
def list_publications(
    service: Publications,
    current_user: Annotated[User, Depends(require_permission(Perm.VIEW_PUBLICATIONS))],
    search: Optional[str] = Query(None, description="Search title, description, filename and path"),
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None, ge=1, le=12),
    day: Optional[int] = Query(None, ge=1, le=31),
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    per_page: Optional[int] = Query(None, description="Entries per page (clamped to 1..100)"),
):
    """List publications, newest publication date first."""
    rows, total, per_page = service.list_publications(
        search=search, year=year, month=month, day=day, page=page, per_page=per_page
    )
    return PublicationPage(
        items=[PublicationResponse.model_validate(row) for row in rows],
        total=total,
        page=page,
        per_page=per_page,
        last_page=last_page(total, per_page),
    )


@router.post("/submissions", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def submit_publication(
    service: Submissions,
    audit: Audit,
    current_user: Annotated[User, Depends(require_permission(Perm.CREATE_PUBLICATIONS))],
    file: Annotated[UploadFile, File(...)],
    title: Annotated[Optional[str], Form()] = None,
    description: Annotated[Optional[str], Form()] = None,
    page: Annotated[Optional[int], Form()] = None,
):
    """Upload a PDF for moderation.

    The filename must follow ``name-YYYY-MM-DD[-page].pdf``. The file is kept
    in the staging area until a librarian or administrator approves it.

    Example:
        curl -X POST https://library.example.com/api/v1/publications/submissions \\
          -H "Authorization: Bearer $TOKEN" \\
          -F "file=@annual-report-2024-03-15.pdf" -F "title=Annual Report"
    """
    data = await file.read()
    submission = service.submit(
        data=data,
        filename=file.filename or "",
        size=len(data),
        mime_type=file.content_type,
        submitter=current_user,
        title=title,
        description=description,
        page=page,
        context=audit,
    )
    return SubmissionResponse.from_submission(submission)


@router.post("/upload", response_model=PublicationResponse, status_code=status.HTTP_201_CREATED)
async def upload_publication(
    service: Publications,
    audit: Audit,
    current_user: Annotated[User, Depends(require_permission(Perm.CREATE_PUBLICATIONS))],
    file: Annotated[UploadFile, File(...)],
    title: Annotated[Optional[str], Form()] = None,
    description: Annotated[Optional[str], Form()] = None,
    page: Annotated[Optional[int], Form()] = None,
):
    """Publish a PDF immediately (librarians and administrators)."""
    data = await file.read()
    publication = service.store_direct(
        data=data,
        filename=file.filename or "",
        size=len(data),
        mime_type=file.content_type,
        owner=current_user,
        title=title,
        description=description,
        page=page,
        context=audit,
    )
    return PublicationResponse.model_validate(publication)


@router.get("/check/{filename}", response_model=FileCheckResponse)
def check_file(filename: str, service: Publications, current_user: CurrentUser):
    """Check whether the current user already uploaded a file with this name."""
    return FileCheckResponse(**service.check_file(filename, current_user))


@router.get("/deleted", response_model=DeletedPublicationPage)
def list_deleted(
    service: Publications,
    current_user: Annotated[User, Depends(require_permission(Perm.DELETE_PUBLICATIONS))],
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None),
):
    """List archived publications, most recently deleted first."""
    rows, total, per_page = service.list_deleted(search=search, page=page, per_page=per_page)
    return DeletedPublicationPage(
        items=[DeletedPublicationResponse.model_validate(row) for row in rows],
        total=total,
        page=page,
        per_page=per_page,
        last_page=last_page(total, per_page),
    )


@router.post("/deleted/{archive_id}/restore", response_model=PublicationResponse)
def restore_publication(
    archive_id: UUID,
    service: Publications,
    audit: Audit,
    current_user: Annotated[User, Depends(require_admin)],
):
    """Restore an archived publication (administrators only)."""
    publication = service.restore_deleted(archive_id, current_user, context=audit)
    return PublicationResponse.model_validate(publication)


@router.delete("/deleted/{archive_id}", response_model=MessageResponse)
def permanently_delete_publication(
    archive_id: UUID,
    service: Publications,
    audit: Audit,
    current_user: Annotated[User, Depends(require_admin)],
):
    """Permanently delete an archived publication and its file (administrators only)."""
    service.permanently_delete(archive_id, current_user, context=audit)
    return MessageResponse(message="Publication permanently deleted", id=archive_id)


@router.get("/{publication_id}", response_model=PublicationResponse)
def get_publication(
    publication_id: UUID,
    service: Publications,
    current_user: Annotated[User, Depends(require_permission(Perm.VIEW_PUBLICATIONS))],
):
    return PublicationResponse.model_validate(service.get_publication(publication_id))


@router.get("/{publication_id}/file")
def get_publication_file(
    publication_id: UUID,
    service: Publications,
    current_user: Annotated[User, Depends(require_permission(Perm.VIEW_PUBLICATIONS))],
    download: bool = Query(False, description="Serve as attachment instead of inline"),
):
    """View or download the publication PDF."""
    publication = service.get_publication(publication_id)
    content, mime_type, filename = service.read_file(publication)
    return file_response(content, mime_type, filename, download=download)


@router.patch("/{publication_id}", response_model=PublicationResponse)
def update_publication(
    publication_id: UUID,
    changes: PublicationUpdate,
    service: Publications,
    audit: Audit,
    current_user: Annotated[User, Depends(require_permission(Perm.EDIT_PUBLICATIONS))],
):
    """Edit publication metadata (title, description, date parts, page)."""
    publication = service.update_publication(
        publication_id,
        current_user,
        changes.model_dump(exclude_unset=True),
        context=audit,
    )
    return PublicationResponse.model_validate(publication)


@router.delete("/{publication_id}", response_model=DeletedPublicationResponse)
def delete_publication(
    publication_id: UUID,
    service: Publications,
    audit: Audit,
    current_user: Annotated[User, Depends(require_permission(Perm.DELETE_PUBLICATIONS))],
    body: Optional[DeleteRequest] = None,
):
    """Move a publication into the deleted archive."""
    archive = service.delete_publication(
        publication_id,
        current_user,
        reason=body.reason if body else None,
        context=audit,
    )
    return DeletedPublicationResponse.model_validate(archive)
