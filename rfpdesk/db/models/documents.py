"""SQLAlchemy ORM models for uploaded RFP and company documents."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, CheckConstraint, Index, Integer, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rfpdesk.db.base import Base
from rfpdesk.db.enums import DEFAULT_DOCUMENT_STATUS, DocumentStatus
from rfpdesk.db.types import EnumText

if TYPE_CHECKING:
    from rfpdesk.db.models.responses import RfpResponse


class RfpDocument(Base):
    """
    A client-issued RFP uploaded for response authoring.

    ``content`` and ``status`` are filled in by the extraction flow;
    ``processed_at`` is set exactly when status is processed or failed.
    """

    __tablename__ = "rfp_documents"
    __table_args__ = (
        CheckConstraint("file_size > 0", name="ck_rfp_documents_file_size_positive"),
        Index("idx_rfp_documents_status", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    client_name: Mapped[str] = mapped_column(Text, nullable=False)
    file_name: Mapped[str] = mapped_column(Text, nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    file_type: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[DocumentStatus] = mapped_column(
        EnumText(DocumentStatus),
        default=DEFAULT_DOCUMENT_STATUS,
        server_default=DEFAULT_DOCUMENT_STATUS.value,
        nullable=False,
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(
        Integer, default=1, server_default=text("1"), nullable=False
    )
    uploaded_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    processed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    responses: Mapped[list["RfpResponse"]] = relationship(back_populates="rfp_document")


class CompanyDocument(Base):
    """Company reference material (capabilities, case studies, certifications).

    Immutable once uploaded.
    """

    __tablename__ = "company_documents"
    __table_args__ = (
        CheckConstraint("file_size > 0", name="ck_company_documents_file_size_positive"),
        Index("idx_company_documents_category", "category"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    file_name: Mapped[str] = mapped_column(Text, nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    file_type: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
