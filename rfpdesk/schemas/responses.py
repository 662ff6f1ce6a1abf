"""Pydantic schemas for RFP responses."""

from decimal import Decimal

from pydantic import BaseModel, Field

from rfpdesk.db.enums import Currency, DeliveryModel
from rfpdesk.schemas.pricing import AdditionalCost, ConsultantType


class RfpResponseCreate(BaseModel):
    """Schema for starting a response draft.

    If ``template_id`` is given and ``content`` is empty, the template's
    content seeds the draft.
    """

    rfp_document_id: int
    title: str
    content: str | None = None
    template_id: int | None = None

    project_duration_months: int | None = None
    number_of_consultants: int | None = None
    price_per_consultant_per_month: Decimal | None = None
    tax_rate: Decimal | None = None
    delivery_model: DeliveryModel | None = None
    currency: Currency = Currency.USD
    consultant_types: list[ConsultantType] = Field(default_factory=list)
    additional_costs: list[AdditionalCost] = Field(default_factory=list)
    payment_terms: str | None = None
    proposal_validity_days: int | None = None


class RfpResponseContentUpdate(BaseModel):
    """Editable narrative fields. Only fields explicitly set are applied."""

    title: str | None = None
    content: str | None = None
    payment_terms: str | None = None
    proposal_validity_days: int | None = None


class RfpResponsePricingUpdate(BaseModel):
    """Editable pricing inputs. Only fields explicitly set are applied."""

    project_duration_months: int | None = None
    number_of_consultants: int | None = None
    price_per_consultant_per_month: Decimal | None = None
    tax_rate: Decimal | None = None
    delivery_model: DeliveryModel | None = None
    currency: Currency | None = None
    consultant_types: list[ConsultantType] | None = None
    additional_costs: list[AdditionalCost] | None = None
