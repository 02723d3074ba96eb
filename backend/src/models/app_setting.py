"""AppSetting SQLAlchemy model"""

import uuid

from sqlalchemy import Column, DateTime, Text, Uuid

from .base import Base, PortableJSONB, utcnow


class AppSetting(Base):
    """One editable application setting stored as a key/JSON value pair.

    Values are validated by app_settings.schemas.ApplicationSettings before
    they are written; see app_settings.store.SettingsStore.
    """
    __tablename__ = "app_setting"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    key = Column(Text, nullable=False, unique=True)
    value = Column(PortableJSONB, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
