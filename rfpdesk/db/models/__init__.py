"""SQLAlchemy ORM models."""

from rfpdesk.db.models.auth import User, UserSession, VerificationToken
from rfpdesk.db.models.content import BrandingSettings, Template
from rfpdesk.db.models.documents import CompanyDocument, RfpDocument
from rfpdesk.db.models.responses import RfpResponse

__all__ = [
    "BrandingSettings",
    "CompanyDocument",
    "RfpDocument",
    "RfpResponse",
    "Template",
    "User",
    "UserSession",
    "VerificationToken",
]
