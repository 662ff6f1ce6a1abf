"""Pydantic schemas for branding settings."""

from pydantic import BaseModel


class BrandingSettingsUpdate(BaseModel):
    """Partial update; only fields explicitly set are applied."""

    company_name: str | None = None
    logo_url: str | None = None
    primary_color: str | None = None
    secondary_color: str | None = None
    font_family: str | None = None
    presentation_url: str | None = None
    presentation_name: str | None = None
    presentation_size: int | None = None
