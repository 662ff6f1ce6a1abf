"""SQLAlchemy ORM models for reusable content and branding."""

from datetime import datetime

from sqlalchemy import CheckConstraint, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from rfpdesk.db.base import Base

DEFAULT_PRIMARY_COLOR = "#1976D2"
DEFAULT_SECONDARY_COLOR = "#FF9800"
DEFAULT_FONT_FAMILY = "Roboto"

# Primary key of the one branding row
BRANDING_ID = 1


class Template(Base):
    """Reusable content block (cover letter, methodology, ...)."""

    __tablename__ = "templates"
    __table_args__ = (Index("idx_templates_category", "category"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)


class BrandingSettings(Base):
    """
    Display configuration for generated proposals.

    Singleton: at most one row, created on first write and updated in place.
    The primary key is pinned to BRANDING_ID, so a second row cannot exist.
    """

    __tablename__ = "branding_settings"
    __table_args__ = (
        CheckConstraint(f"id = {BRANDING_ID}", name="ck_branding_settings_singleton"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=False, default=BRANDING_ID
    )
    logo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    company_name: Mapped[str] = mapped_column(Text, nullable=False)
    primary_color: Mapped[str] = mapped_column(
        String(7), default=DEFAULT_PRIMARY_COLOR, server_default=DEFAULT_PRIMARY_COLOR, nullable=False
    )
    secondary_color: Mapped[str] = mapped_column(
        String(7), default=DEFAULT_SECONDARY_COLOR, server_default=DEFAULT_SECONDARY_COLOR, nullable=False
    )
    font_family: Mapped[str] = mapped_column(
        String(100), default=DEFAULT_FONT_FAMILY, server_default=DEFAULT_FONT_FAMILY, nullable=False
    )
    # Brand presentation (PPTX) metadata; the file itself lives in external storage
    presentation_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    presentation_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    presentation_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
