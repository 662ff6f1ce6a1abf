"""Pydantic schemas for response pricing inputs and derived totals."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from rfpdesk.db.enums import Currency


class ConsultantType(BaseModel):
    """One consultant role line: ``count`` people at ``rate`` per month."""

    model_config = ConfigDict(frozen=True)

    role: str
    rate: Decimal
    count: int
    currency: Currency | None = None


class AdditionalCost(BaseModel):
    """One-off cost added on top of consultant fees (travel, equipment, ...)."""

    model_config = ConfigDict(frozen=True)

    label: str
    amount: Decimal
    currency: Currency | None = None


class PricingInput(BaseModel):
    """Raw pricing fields of a response, as entered by the author."""

    project_duration_months: int | None = None
    number_of_consultants: int | None = None
    price_per_consultant_per_month: Decimal | None = None
    tax_rate: Decimal | None = None
    currency: Currency = Currency.USD
    consultant_types: list[ConsultantType] = Field(default_factory=list)
    additional_costs: list[AdditionalCost] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class PricingTotals(BaseModel):
    """Derived totals. Never set directly by callers."""

    model_config = ConfigDict(frozen=True)

    total_project_cost: Decimal
    tax_amount: Decimal
    final_total_cost: Decimal
    currency: Currency


class PricingLine(BaseModel):
    label: str
    quantity: int | None = None
    unit_price: Decimal | None = None
    months: int | None = None
    amount: Decimal


class PricingSummary(BaseModel):
    """Line-item breakdown for rendering a pricing table."""

    lines: list[PricingLine]
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal
    currency: Currency
