"""Branding settings - singleton display configuration for proposals."""

import logging
import re
import threading
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rfpdesk.core.clock import Clock, system_clock
from rfpdesk.core.errors import ValidationError
from rfpdesk.db.models import BrandingSettings
from rfpdesk.db.models.content import (
    BRANDING_ID,
    DEFAULT_FONT_FAMILY,
    DEFAULT_PRIMARY_COLOR,
    DEFAULT_SECONDARY_COLOR,
)
from rfpdesk.schemas.branding import BrandingSettingsUpdate

logger = logging.getLogger(__name__)

HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
NOT_NULL_FIELDS = ("company_name", "primary_color", "secondary_color", "font_family")

# Serializes read-modify-write within this process; the fixed primary key
# covers other processes
_branding_lock = threading.Lock()


@dataclass(frozen=True)
class BrandingContext:
    """Resolved branding used when rendering a proposal."""

    company_name: str | None
    logo_url: str | None
    primary_color: str
    secondary_color: str
    font_family: str


def get_branding(db: Session) -> BrandingSettings | None:
    return db.get(BrandingSettings, BRANDING_ID, populate_existing=True)


def _validate(fields: dict) -> dict:
    for name in NOT_NULL_FIELDS:
        if name in fields and (fields[name] is None or not str(fields[name]).strip()):
            raise ValidationError(f"{name} cannot be empty")
    for name in ("primary_color", "secondary_color"):
        if name in fields and not HEX_COLOR_RE.match(fields[name]):
            raise ValidationError(f"{name} must be a hex color like #1976D2")
    size = fields.get("presentation_size")
    if size is not None and size < 0:
        raise ValidationError("presentation_size cannot be negative")

    cleaned = dict(fields)
    for name in ("company_name", "font_family"):
        if name in cleaned:
            cleaned[name] = cleaned[name].strip()
    for name in ("primary_color", "secondary_color"):
        if name in cleaned:
            cleaned[name] = cleaned[name].upper()
    return cleaned


def update_branding(
    db: Session,
    data: BrandingSettingsUpdate,
    *,
    clock: Clock = system_clock,
) -> BrandingSettings:
    """
    Apply a partial update, creating the record on first write.

    Only fields explicitly set on ``data`` are applied. The first write must
    carry a company name.
    """
    fields = _validate({name: getattr(data, name) for name in data.model_fields_set})

    with _branding_lock:
        branding = get_branding(db)
        if branding is None:
            if not fields.get("company_name"):
                raise ValidationError("company_name is required")
            branding = BrandingSettings(
                id=BRANDING_ID,
                company_name=fields["company_name"],
                primary_color=DEFAULT_PRIMARY_COLOR,
                secondary_color=DEFAULT_SECONDARY_COLOR,
                font_family=DEFAULT_FONT_FAMILY,
                updated_at=clock.now(),
            )
            db.add(branding)
            try:
                db.flush()
                logger.info("Creating branding settings")
            except IntegrityError:
                # Another process created the row first; update it instead
                db.rollback()
                branding = get_branding(db)
                if branding is None:
                    raise

        for name, value in fields.items():
            setattr(branding, name, value)
        branding.updated_at = clock.now()

        db.commit()
        db.refresh(branding)

    logger.info("Updated branding settings: %s", ", ".join(sorted(fields)) or "no fields")
    return branding


def load_branding_context(db: Session) -> BrandingContext:
    """Branding for rendering; falls back to defaults when nothing is configured."""
    branding = get_branding(db)
    if branding is None:
        return BrandingContext(
            company_name=None,
            logo_url=None,
            primary_color=DEFAULT_PRIMARY_COLOR,
            secondary_color=DEFAULT_SECONDARY_COLOR,
            font_family=DEFAULT_FONT_FAMILY,
        )
    return BrandingContext(
        company_name=branding.company_name,
        logo_url=branding.logo_url,
        primary_color=branding.primary_color,
        secondary_color=branding.secondary_color,
        font_family=branding.font_family,
    )
