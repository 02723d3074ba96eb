"""Pydantic schemas for the editable application settings"""

from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, EmailStr, Field, TypeAdapter, ValidationError, field_validator

_http_url = TypeAdapter(AnyHttpUrl)


class ApplicationSettings(BaseModel):
    """Validated snapshot of the settings administrators can edit at runtime."""
    model_config = ConfigDict(extra="forbid")

    app_name: str = Field(..., min_length=1, max_length=255)
    app_url: str = Field(..., description="Public base URL (http or https)")
    timezone: str = Field(..., description="IANA timezone name, e.g. Europe/Berlin")
    locale: str = Field(..., min_length=2, max_length=16, pattern=r"^[A-Za-z]{2,3}([_-][A-Za-z0-9]{2,8})*$")
    mail_from_name: str = Field(..., min_length=1, max_length=255)
    mail_from_address: EmailStr

    @field_validator("app_url")
    @classmethod
    def check_url(cls, v: str) -> str:
        try:
            _http_url.validate_python(v)
        except ValidationError:
            raise ValueError("URL must start with http:// or https:// and include a host")
        return v.rstrip("/")

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v


class ApplicationSettingsUpdate(BaseModel):
    """Partial update for PUT /settings; omitted fields keep their value."""
    model_config = ConfigDict(extra="forbid")

    app_name: Optional[str] = None
    app_url: Optional[str] = None
    timezone: Optional[str] = None
    locale: Optional[str] = None
    mail_from_name: Optional[str] = None
    mail_from_address: Optional[str] = None
