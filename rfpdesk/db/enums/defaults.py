"""Centralized defaults for enums."""

from rfpdesk.db.enums.documents import DocumentStatus
from rfpdesk.db.enums.responses import Currency, ResponseStatus


DEFAULT_DOCUMENT_STATUS: DocumentStatus = DocumentStatus.UPLOADED
DEFAULT_RESPONSE_STATUS: ResponseStatus = ResponseStatus.DRAFT
DEFAULT_CURRENCY: Currency = Currency.USD
