"""Application settings endpoints (requires 'manage settings')"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from audit.service import log_from_request
from auth.dependencies import require_permission
from auth.roles import Perm
from database import get_db
from models.user import User
from .schemas import ApplicationSettings, ApplicationSettingsUpdate
from .store import settings_store


router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("", response_model=ApplicationSettings)
def get_application_settings(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(Perm.MANAGE_SETTINGS))],
):
    """Current validated settings snapshot."""
    return settings_store.current(db)


@router.put("", response_model=ApplicationSettings)
def update_application_settings(
    request: Request,
    data: ApplicationSettingsUpdate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(Perm.MANAGE_SETTINGS))],
):
    """Validate, persist and reload the settings.

    Invalid values are rejected with 422 and nothing is written.
    """
    changes = data.model_dump(exclude_unset=True)
    before = settings_store.current(db).model_dump()
    snapshot = settings_store.apply(db, changes)

    changed = {
        key: {"old": before.get(key), "new": value}
        for key, value in snapshot.model_dump().items()
        if before.get(key) != value
    }
    if changed:
        log_from_request(
            db=db,
            request=request,
            action="SETTINGS_UPDATED",
            actor_id=current_user.id,
            entity_type="app_setting",
            metadata=changed,
        )
        db.commit()
    return snapshot


@router.post("/reload", response_model=ApplicationSettings)
def reload_application_settings(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(Perm.MANAGE_SETTINGS))],
):
    """Re-read the settings from the database."""
    return settings_store.reload(db)
