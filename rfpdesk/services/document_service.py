"""RFP document store: upload records and the extraction status machine.

uploaded -> processing -> processed | failed

Content extraction itself is an external collaborator; this module only
records its outcome. Transitions are compare-and-set on (status, version).
"""

import logging
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from rfpdesk.core.clock import Clock, system_clock
from rfpdesk.core.config import settings
from rfpdesk.core.errors import InvalidStateError, NotFoundError, ValidationError
from rfpdesk.core.structured_logging import build_log_context
from rfpdesk.db.enums import DocumentStatus
from rfpdesk.db.models import RfpDocument
from rfpdesk.schemas.documents import RfpDocumentCreate
from rfpdesk.services import version_service

logger = logging.getLogger(__name__)

# Short names accepted in place of MIME types
FILE_TYPE_ALIASES = {
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "txt": "text/plain",
}

# target status -> statuses it may be reached from
_ALLOWED_SOURCES: dict[DocumentStatus, frozenset[DocumentStatus]] = {
    DocumentStatus.UPLOADED: frozenset(),
    DocumentStatus.PROCESSING: frozenset({DocumentStatus.UPLOADED}),
    DocumentStatus.PROCESSED: frozenset({DocumentStatus.UPLOADED, DocumentStatus.PROCESSING}),
    DocumentStatus.FAILED: frozenset({DocumentStatus.UPLOADED, DocumentStatus.PROCESSING}),
}


class ExtractionError(Exception):
    """Raised by a content extractor when a file cannot be read."""

    pass


class ContentExtractor(Protocol):
    def extract(self, document: RfpDocument) -> str:
        """Return extracted text or raise ExtractionError."""
        ...


# =============================================================================
# Upload validation
# =============================================================================


def normalize_file_type(file_type: str | None) -> str:
    """
    Map a MIME type (or short alias like ``pdf``) to an allowed MIME type.

    Raises:
        ValidationError: unrecognized file type
    """
    if not file_type or not file_type.strip():
        raise ValidationError("file_type is required")
    value = file_type.strip().lower()
    value = FILE_TYPE_ALIASES.get(value.lstrip("."), value)
    if value not in settings.allowed_file_types_list:
        raise ValidationError(f"Unsupported file type: {file_type}")
    return value


def validate_upload(file_name: str, file_size: int, file_type: str) -> str:
    """Validate upload metadata shared by RFP and company documents.

    Returns the normalized MIME type.
    """
    if not file_name or not file_name.strip():
        raise ValidationError("file_name is required")
    if isinstance(file_size, bool) or not isinstance(file_size, int):
        raise ValidationError("file_size must be a whole number of bytes")
    if file_size <= 0:
        raise ValidationError("file_size must be greater than zero")
    if file_size > settings.MAX_UPLOAD_SIZE_BYTES:
        raise ValidationError(
            f"file_size exceeds maximum of {settings.MAX_UPLOAD_SIZE_BYTES} bytes"
        )
    return normalize_file_type(file_type)


def _require_text(value: str | None, field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()


# =============================================================================
# Queries
# =============================================================================


def get_document(db: Session, document_id: int) -> RfpDocument | None:
    """Get an RFP document by ID (fresh from the database)."""
    return db.get(RfpDocument, document_id, populate_existing=True)


def require_document(db: Session, document_id: int) -> RfpDocument:
    document = get_document(db, document_id)
    if document is None:
        raise NotFoundError(f"RFP document {document_id} not found")
    return document


def list_documents(db: Session, status: DocumentStatus | None = None) -> list[RfpDocument]:
    """List RFP documents, newest first."""
    query = select(RfpDocument)
    if status is not None:
        query = query.where(RfpDocument.status == DocumentStatus(status))
    query = query.order_by(RfpDocument.uploaded_at.desc(), RfpDocument.id.desc())
    return list(db.execute(query).scalars().all())


# =============================================================================
# Mutations
# =============================================================================


def create_document(
    db: Session,
    data: RfpDocumentCreate,
    *,
    clock: Clock = system_clock,
) -> RfpDocument:
    """Record a new upload with status=uploaded."""
    file_type = validate_upload(data.file_name, data.file_size, data.file_type)
    document = RfpDocument(
        title=_require_text(data.title, "title"),
        client_name=_require_text(data.client_name, "client_name"),
        file_name=data.file_name.strip(),
        file_size=data.file_size,
        file_type=file_type,
        content=data.content,
        status=DocumentStatus.UPLOADED,
        version=1,
        uploaded_at=clock.now(),
    )
    db.add(document)
    db.commit()
    db.refresh(document)

    logger.info("Created RFP document %s (%s, %d bytes)", document.id, file_type, data.file_size)
    return document


def _transition(
    db: Session,
    document_id: int,
    target: DocumentStatus,
    values: dict,
    expected_version: int | None,
) -> RfpDocument:
    document = require_document(db, document_id)
    version_service.check_version("RfpDocument", document_id, document.version, expected_version)

    current = document.status
    if current not in _ALLOWED_SOURCES[target]:
        raise InvalidStateError(
            f"Cannot move document {document_id} from {current.value} to {target.value}",
            current_status=current.value,
        )

    version_service.compare_and_set(
        db,
        RfpDocument,
        document_id,
        expected_status=current,
        expected_version=document.version,
        values={**values, "status": target},
    )
    db.commit()
    db.refresh(document)

    logger.info(
        "Document status changed %s -> %s",
        current.value,
        target.value,
        extra=build_log_context(entity="rfp_document", entity_id=document_id),
    )
    return document


def mark_processing(
    db: Session,
    document_id: int,
    *,
    expected_version: int | None = None,
) -> RfpDocument:
    """Claim an uploaded document for extraction."""
    return _transition(db, document_id, DocumentStatus.PROCESSING, {}, expected_version)


def mark_processed(
    db: Session,
    document_id: int,
    content: str,
    *,
    expected_version: int | None = None,
    clock: Clock = system_clock,
) -> RfpDocument:
    """Store extracted content; uploaded/processing -> processed."""
    if content is None:
        raise ValidationError("content is required")
    return _transition(
        db,
        document_id,
        DocumentStatus.PROCESSED,
        {"content": content, "processed_at": clock.now(), "error_message": None},
        expected_version,
    )


def mark_failed(
    db: Session,
    document_id: int,
    reason: str,
    *,
    expected_version: int | None = None,
    clock: Clock = system_clock,
) -> RfpDocument:
    """Record an extraction failure; uploaded/processing -> failed."""
    return _transition(
        db,
        document_id,
        DocumentStatus.FAILED,
        {"processed_at": clock.now(), "error_message": (reason or "Extraction failed")[:2000]},
        expected_version,
    )


def run_extraction(
    db: Session,
    document_id: int,
    extractor: ContentExtractor,
    *,
    clock: Clock = system_clock,
) -> RfpDocument:
    """
    Drive one extraction attempt for an uploaded document.

    Extraction failures end in ``failed``. An unexpected extractor error is
    recorded as a failure too, then re-raised. Lifecycle errors
    (InvalidStateError, ConcurrentModificationError) propagate.
    """
    document = mark_processing(db, document_id)
    try:
        content = extractor.extract(document)
    except ExtractionError as exc:
        logger.warning("Extraction failed for document %s: %s", document_id, exc)
        return mark_failed(
            db, document_id, str(exc), expected_version=document.version, clock=clock
        )
    except Exception as exc:
        logger.exception("Extractor crashed on document %s", document_id)
        mark_failed(
            db,
            document_id,
            f"Unexpected extraction error: {exc}",
            expected_version=document.version,
            clock=clock,
        )
        raise
    return mark_processed(
        db, document_id, content, expected_version=document.version, clock=clock
    )
