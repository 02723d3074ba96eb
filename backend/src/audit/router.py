"""Audit log query endpoints (the admin activities feed).

All endpoints in this router are read-only. Audit logs are immutable and
cannot be created, updated, or deleted through the API.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional
from uuid import UUID

from database import get_db
from models.audit_log import AuditLog
from models.user import User
from auth.dependencies import require_permission
from auth.roles import Perm
from .schemas import AuditLogListResponse, AuditLogResponse


router = APIRouter(prefix="/audit", tags=["Audit Logs"])


@router.get(
    "",
    response_model=AuditLogListResponse,
    summary="Query audit logs",
    description="Query audit logs with filtering and pagination. Requires the 'view users' permission."
)
def query_audit_logs(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Perm.VIEW_USERS)),
    action: Optional[str] = Query(None, description="Filter by action type (e.g., SUBMISSION_APPROVED)"),
    entity_type: Optional[str] = Query(None, description="Filter by entity type (e.g., publication)"),
    actor_id: Optional[UUID] = Query(None, description="Filter by acting user"),
    start_date: Optional[datetime] = Query(None, description="Minimum created_at timestamp (ISO 8601)"),
    end_date: Optional[datetime] = Query(None, description="Maximum created_at timestamp (ISO 8601)"),
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    per_page: int = Query(50, ge=1, le=100, description="Entries per page (max 100)"),
) -> AuditLogListResponse:
    """Query audit logs with filtering and pagination.

    Results are ordered by created_at DESC (newest first).

    Example:
        GET /audit?action=SUBMISSION_APPROVED&page=1&per_page=50
    """
    query = db.query(AuditLog)

    if action:
        query = query.filter(AuditLog.action == action)

    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)

    if actor_id:
        query = query.filter(AuditLog.actor_id == actor_id)

    if start_date:
        query = query.filter(AuditLog.created_at >= start_date)

    if end_date:
        query = query.filter(AuditLog.created_at <= end_date)

    total = query.count()

    offset = (page - 1) * per_page
    entries = query.order_by(AuditLog.created_at.desc()).offset(offset).limit(per_page).all()

    return AuditLogListResponse(
        entries=[AuditLogResponse.model_validate(entry) for entry in entries],
        total=total,
        page=page,
        per_page=per_page
    )
