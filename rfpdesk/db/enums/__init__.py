"""Enum definitions for application constants."""

from rfpdesk.db.enums.auth import TokenType
from rfpdesk.db.enums.defaults import (
    DEFAULT_CURRENCY,
    DEFAULT_DOCUMENT_STATUS,
    DEFAULT_RESPONSE_STATUS,
)
from rfpdesk.db.enums.documents import DocumentStatus
from rfpdesk.db.enums.responses import Currency, DeliveryModel, ResponseStatus

__all__ = [
    "Currency",
    "DEFAULT_CURRENCY",
    "DEFAULT_DOCUMENT_STATUS",
    "DEFAULT_RESPONSE_STATUS",
    "DeliveryModel",
    "DocumentStatus",
    "ResponseStatus",
    "TokenType",
]
