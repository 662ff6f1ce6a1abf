"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database, tables rebuilt for every test
- Controllable clock
- Fast bcrypt hasher
- Factories for documents, responses, templates and users
"""
import os
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Generator

import pytest
from sqlalchemy.orm import Session

# Configure before any rfpdesk import reads settings
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"

from rfpdesk.core.security import BcryptPasswordHasher
from rfpdesk.db.base import Base
from rfpdesk.db.session import SessionLocal, engine
import rfpdesk.db.models  # noqa: F401


# =============================================================================
# Clock
# =============================================================================

class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Session on a fresh in-memory database.

    The engine uses a single shared connection, so sessions opened by code
    under test (e.g. the CLI) see the same data.
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


# =============================================================================
# Collaborators
# =============================================================================

@pytest.fixture(scope="session")
def hasher() -> BcryptPasswordHasher:
    return BcryptPasswordHasher(rounds=4)


class StaticExtractor:
    """Content extractor returning a fixed string."""

    def __init__(self, content: str = "Extracted text"):
        self.content = content
        self.calls = []

    def extract(self, document) -> str:
        self.calls.append(document.id)
        return self.content


@pytest.fixture
def extractor() -> StaticExtractor:
    return StaticExtractor()


# =============================================================================
# Factories
# =============================================================================

SCENARIO_A_PRICING = {
    "project_duration_months": 6,
    "number_of_consultants": 3,
    "price_per_consultant_per_month": Decimal("5000.00"),
    "tax_rate": Decimal("15"),
    "additional_costs": [{"label": "travel", "amount": Decimal("1200.00")}],
}


@pytest.fixture
def make_document(db, clock):
    from rfpdesk.schemas.documents import RfpDocumentCreate
    from rfpdesk.services import document_service

    def _make(**overrides):
        data = {
            "title": "ERP Modernisation RFP",
            "client_name": "Ministry of Finance",
            "file_name": "rfp.pdf",
            "file_size": 204800,
            "file_type": "application/pdf",
        }
        data.update(overrides)
        return document_service.create_document(db, RfpDocumentCreate(**data), clock=clock)

    return _make


@pytest.fixture
def make_response(db, clock, make_document):
    from rfpdesk.schemas.responses import RfpResponseCreate
    from rfpdesk.services import response_service

    def _make(**overrides):
        if "rfp_document_id" not in overrides:
            overrides["rfp_document_id"] = make_document().id
        data = {
            "title": "Response to ERP Modernisation RFP",
            "content": "Our approach to the engagement.",
            "payment_terms": "Net 30",
            "proposal_validity_days": 90,
            **SCENARIO_A_PRICING,
        }
        data.update(overrides)
        return response_service.create_response(db, RfpResponseCreate(**data), clock=clock)

    return _make


@pytest.fixture
def make_template(db, clock):
    from rfpdesk.schemas.template import TemplateCreate
    from rfpdesk.services import template_service

    def _make(**overrides):
        data = {
            "name": "Standard cover letter",
            "content": "Dear evaluation committee,",
            "category": "cover-letter",
        }
        data.update(overrides)
        return template_service.create_template(db, TemplateCreate(**data), clock=clock)

    return _make


TEST_PASSWORD = "correct horse battery"


@pytest.fixture
def make_user(db, clock, hasher):
    """Register a user; pass verified=True to also consume the verification token."""
    from rfpdesk.services import auth_service

    def _make(email: str = "analyst@acme-consulting.com", password: str = TEST_PASSWORD, verified: bool = True):
        user, token = auth_service.register_user(
            db, email, password, "Dana", "Reyes", hasher=hasher, clock=clock
        )
        if verified:
            user = auth_service.verify_email(db, token, clock=clock)
        return user, token

    return _make


@pytest.fixture
def password() -> str:
    return TEST_PASSWORD
