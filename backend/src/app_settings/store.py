"""Database-backed store for the editable application settings.

Values are validated as a whole by ApplicationSettings before they are
written, so the table never holds a combination that fails validation.
The store keeps one process-wide snapshot; it changes only through apply()
or an explicit reload().
"""

import logging
import threading
from typing import Any, Dict, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from config import Settings, get_settings
from domain.publications.errors import SubmissionValidationError
from models.app_setting import AppSetting
from .schemas import ApplicationSettings

logger = logging.getLogger(__name__)


def default_values(settings: Settings) -> Dict[str, Any]:
    """Values used for keys that have no row yet."""
    return {
        "app_name": settings.APP_NAME,
        "app_url": settings.APP_URL,
        "timezone": settings.APP_TIMEZONE,
        "locale": settings.APP_LOCALE,
        "mail_from_name": settings.MAIL_FROM_NAME,
        "mail_from_address": settings.MAIL_FROM_ADDRESS,
    }


def _validate(values: Dict[str, Any]) -> ApplicationSettings:
    try:
        return ApplicationSettings(**values)
    except ValidationError as e:
        errors = [
            {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise SubmissionValidationError("Invalid application settings", details={"errors": errors}) from e


class SettingsStore:
    """Loads, validates and caches ApplicationSettings.

    Example:
        store = SettingsStore()
        store.apply(db, {"timezone": "Europe/Berlin"})
        store.current().timezone  # "Europe/Berlin"
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings
        self._lock = threading.Lock()
        self._snapshot: Optional[ApplicationSettings] = None

    @property
    def defaults(self) -> Dict[str, Any]:
        return default_values(self._settings or get_settings())

    def load(self, db: Session) -> ApplicationSettings:
        """Read and validate the stored values merged over the defaults."""
        values = self.defaults
        for row in db.query(AppSetting).filter(AppSetting.key.in_(list(values))).all():
            values[row.key] = row.value
        return _validate(values)

    def reload(self, db: Session) -> ApplicationSettings:
        """Refresh the cached snapshot from the database."""
        snapshot = self.load(db)
        with self._lock:
            self._snapshot = snapshot
        logger.info("Application settings reloaded")
        return snapshot

    def current(self, db: Optional[Session] = None) -> ApplicationSettings:
        """The cached snapshot; loaded from db (or the defaults) on first use."""
        with self._lock:
            snapshot = self._snapshot
        if snapshot is not None:
            return snapshot
        if db is not None:
            return self.reload(db)
        return _validate(self.defaults)

    def apply(self, db: Session, changes: Dict[str, Any]) -> ApplicationSettings:
        """Validate changes together with the stored values, persist and reload.

        Commits the session.

        Raises:
            SubmissionValidationError: If the merged values are invalid
        """
        merged = self.load(db).model_dump()
        merged.update({k: v for k, v in changes.items() if v is not None})
        validated = _validate(merged)

        rows = {row.key: row for row in db.query(AppSetting).all()}
        for key, value in validated.model_dump().items():
            row = rows.get(key)
            if row is None:
                db.add(AppSetting(key=key, value=value))
            elif row.value != value:
                row.value = value
        db.commit()

        return self.reload(db)

    def clear(self) -> None:
        """Drop the cached snapshot (used by tests)."""
        with self._lock:
            self._snapshot = None


# Process-wide store
settings_store = SettingsStore()
