"""SQLAlchemy ORM model for drafted RFP responses."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, Integer, Numeric, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rfpdesk.db.base import Base
from rfpdesk.db.enums import (
    DEFAULT_CURRENCY,
    DEFAULT_RESPONSE_STATUS,
    Currency,
    DeliveryModel,
    ResponseStatus,
)
from rfpdesk.db.types import EnumText, JSONRecordList
from rfpdesk.schemas.pricing import AdditionalCost, ConsultantType

if TYPE_CHECKING:
    from rfpdesk.db.models.documents import RfpDocument


class RfpResponse(Base):
    """
    A priced response to an RFP document.

    Derived fields (total_project_cost, tax_amount, final_total_cost) are
    written only by the pricing step of the lifecycle and are present
    whenever status is priced, finalized or sent.
    """

    __tablename__ = "rfp_responses"
    __table_args__ = (
        Index("idx_rfp_responses_document", "rfp_document_id"),
        Index("idx_rfp_responses_status", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    rfp_document_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("rfp_documents.id"), nullable=False
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[ResponseStatus] = mapped_column(
        EnumText(ResponseStatus),
        default=DEFAULT_RESPONSE_STATUS,
        server_default=DEFAULT_RESPONSE_STATUS.value,
        nullable=False,
    )

    # Pricing inputs
    project_duration_months: Mapped[int | None] = mapped_column(Integer, nullable=True)
    number_of_consultants: Mapped[int | None] = mapped_column(Integer, nullable=True)
    price_per_consultant_per_month: Mapped[Decimal | None] = mapped_column(
        Numeric(10, 2), nullable=True
    )
    tax_rate: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    delivery_model: Mapped[DeliveryModel | None] = mapped_column(
        EnumText(DeliveryModel), nullable=True
    )
    currency: Mapped[Currency] = mapped_column(
        EnumText(Currency, length=3),
        default=DEFAULT_CURRENCY,
        server_default=DEFAULT_CURRENCY.value,
        nullable=False,
    )
    consultant_types: Mapped[list[ConsultantType]] = mapped_column(
        JSONRecordList(ConsultantType), default=list, nullable=True
    )
    additional_costs: Mapped[list[AdditionalCost]] = mapped_column(
        JSONRecordList(AdditionalCost), default=list, nullable=True
    )
    payment_terms: Mapped[str | None] = mapped_column(Text, nullable=True)
    proposal_validity_days: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Derived (pricing engine output)
    total_project_cost: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    tax_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    final_total_cost: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    # Optimistic concurrency
    version: Mapped[int] = mapped_column(
        Integer, default=1, server_default=text("1"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    rfp_document: Mapped["RfpDocument"] = relationship(back_populates="responses")

    @property
    def has_totals(self) -> bool:
        return (
            self.total_project_cost is not None
            and self.tax_amount is not None
            and self.final_total_cost is not None
        )
