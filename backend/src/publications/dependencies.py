"""FastAPI dependencies that assemble the publication services per request."""

from typing import Annotated

from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from audit.service import get_client_ip
from auth.dependencies import get_permission_resolver
from auth.permissions import PermissionResolver
from config import Settings, get_settings
from database import get_db
from domain.storage.ports.blob_storage_port import BlobStoragePort
from infrastructure.storage import get_storage
from .base import AuditContext
from .service import PublicationService, SubmissionService


def get_submission_service(
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[BlobStoragePort, Depends(get_storage)],
    settings: Annotated[Settings, Depends(get_settings)],
    resolver: Annotated[PermissionResolver, Depends(get_permission_resolver)],
) -> SubmissionService:
    return SubmissionService(db, storage, settings, resolver)


def get_publication_service(
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[BlobStoragePort, Depends(get_storage)],
    settings: Annotated[Settings, Depends(get_settings)],
    resolver: Annotated[PermissionResolver, Depends(get_permission_resolver)],
) -> PublicationService:
    return PublicationService(db, storage, settings, resolver)


def get_audit_context(request: Request) -> AuditContext:
    return AuditContext(
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


def file_response(content: bytes, mime_type: str, filename: str, download: bool = False) -> Response:
    """Serve stored file content inline (view) or as an attachment (download)."""
    disposition = "attachment" if download else "inline"
    safe_name = filename.replace('"', "")
    return Response(
        content=content,
        media_type=mime_type,
        headers={"Content-Disposition": f'{disposition}; filename="{safe_name}"'},
    )


Submissions = Annotated[SubmissionService, Depends(get_submission_service)]
Publications = Annotated[PublicationService, Depends(get_publication_service)]
Audit = Annotated[AuditContext, Depends(get_audit_context)]
