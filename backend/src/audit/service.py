"""Audit logging service.

This service provides a centralized interface for creating immutable audit log
entries. Moderation transitions, publication lifecycle events and admin
changes are all recorded through it.

Audit Events:
- LOGIN_SUCCESS, LOGIN_FAILED
- USER_CREATED, USER_UPDATED, USER_ROLE_CHANGED, USER_DISABLED, USER_DELETED
- ROLE_CREATED, ROLE_UPDATED, ROLE_DELETED
- SETTINGS_UPDATED
- SUBMISSION_CREATED, SUBMISSION_APPROVED, SUBMISSION_APPROVED_WITHOUT_FILE,
  SUBMISSION_REJECTED, SUBMISSION_REVERTED
- PUBLICATION_CREATED, PUBLICATION_UPDATED, PUBLICATION_DELETED,
  PUBLICATION_RESTORED, PUBLICATION_PERMANENTLY_DELETED
"""

from sqlalchemy.orm import Session
from uuid import UUID
from typing import Optional, Dict, Any
from fastapi import Request

from models.audit_log import AuditLog


def get_client_ip(request: Request) -> Optional[str]:
    """Client IP address, honouring X-Forwarded-For (first hop)."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else None


def log_audit_event(
    db: Session,
    action: str,
    actor_id: Optional[UUID] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[UUID] = None,
    metadata: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> AuditLog:
    """Create an audit log entry.

    The entry is flushed but not committed, so it shares the caller's
    transaction and disappears if that transaction rolls back.

    Args:
        db: Database session
        action: Event action (e.g., "SUBMISSION_APPROVED", "LOGIN_SUCCESS")
        actor_id: User who performed the action (None for anonymous/system events)
        entity_type: Type of entity affected (e.g., "user", "pending_submission")
        entity_id: ID of affected entity
        metadata: Additional context as JSON
        ip_address: Client IP address (IPv4 or IPv6)
        user_agent: Client User-Agent header

    Returns:
        AuditLog: The created audit log entry

    Example:
        log_audit_event(
            db=db,
            action="SUBMISSION_REJECTED",
            actor_id=reviewer.id,
            entity_type="pending_submission",
            entity_id=submission.id,
            metadata={"reason": "Scan is unreadable"},
        )
    """
    audit_entry = AuditLog(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        metadata_json=metadata,
        ip_address=ip_address,
        user_agent=user_agent,
    )

    db.add(audit_entry)
    db.flush()  # Get ID without committing transaction

    return audit_entry


def log_from_request(
    db: Session,
    request: Request,
    action: str,
    actor_id: Optional[UUID] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[UUID] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """Create audit log entry extracting IP and User-Agent from FastAPI request.

    Convenience wrapper around log_audit_event.
    """
    return log_audit_event(
        db=db,
        action=action,
        actor_id=actor_id,
        entity_type=entity_type,
        entity_id=entity_id,
        metadata=metadata,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )
