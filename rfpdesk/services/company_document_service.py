"""Company reference documents (capabilities, case studies, certifications).

Immutable once uploaded: there are no update operations.
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from rfpdesk.core.clock import Clock, system_clock
from rfpdesk.core.config import settings
from rfpdesk.core.errors import NotFoundError, ValidationError
from rfpdesk.db.models import CompanyDocument
from rfpdesk.schemas.documents import CompanyDocumentCreate
from rfpdesk.services.document_service import validate_upload

logger = logging.getLogger(__name__)


def normalize_category(category: str | None) -> str:
    """Lower-case the category and check it against the configured allow-list."""
    if not category or not category.strip():
        raise ValidationError("category is required")
    value = category.strip().lower()
    if value not in settings.company_document_categories_list:
        raise ValidationError(f"Unknown document category: {category}")
    return value


def create_company_document(
    db: Session,
    data: CompanyDocumentCreate,
    *,
    clock: Clock = system_clock,
) -> CompanyDocument:
    """Store reference material metadata (and content, if already extracted)."""
    file_type = validate_upload(data.file_name, data.file_size, data.file_type)
    category = normalize_category(data.category)
    if not data.title or not data.title.strip():
        raise ValidationError("title is required")

    document = CompanyDocument(
        title=data.title.strip(),
        file_name=data.file_name.strip(),
        file_size=data.file_size,
        file_type=file_type,
        category=category,
        content=data.content,
        uploaded_at=clock.now(),
    )
    db.add(document)
    db.commit()
    db.refresh(document)
    logger.info("Created company document %s in category %s", document.id, category)
    return document


def get_company_document(db: Session, document_id: int) -> CompanyDocument | None:
    return db.get(CompanyDocument, document_id)


def require_company_document(db: Session, document_id: int) -> CompanyDocument:
    document = get_company_document(db, document_id)
    if document is None:
        raise NotFoundError(f"Company document {document_id} not found")
    return document


def list_company_documents(
    db: Session,
    category: str | None = None,
) -> list[CompanyDocument]:
    """List company documents, optionally filtered by category."""
    query = select(CompanyDocument)
    if category:
        query = query.where(CompanyDocument.category == category.strip().lower())
    query = query.order_by(CompanyDocument.uploaded_at.desc(), CompanyDocument.id.desc())
    return list(db.execute(query).scalars().all())
