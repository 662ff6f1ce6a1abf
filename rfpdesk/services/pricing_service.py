"""Pricing engine: derives response totals from raw pricing inputs.

Pure functions, no database access. Two ways to describe consultant fees:

- flat: ``number_of_consultants`` people at ``price_per_consultant_per_month``
- per role: ``consultant_types``, each ``count`` people at ``rate``

When ``consultant_types`` is non-empty it takes over from the flat fields.
Amounts and rates carry at most two decimal places. Every multiplication is
rounded half-up to cents before the next step, so a single-role list and the
equivalent flat fields produce the same figures.
"""

from decimal import Decimal

from rfpdesk.core.errors import ValidationError
from rfpdesk.db.enums import Currency
from rfpdesk.schemas.pricing import (
    PricingInput,
    PricingLine,
    PricingSummary,
    PricingTotals,
)
from rfpdesk.utils.money import (
    HUNDRED,
    Money,
    multiply,
    percentage_of,
    round_money,
    to_decimal,
)

MAX_TAX_RATE = HUNDRED


def _positive_int(value, field: str) -> int:
    if value is None:
        raise ValidationError(f"{field} is required")
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be a whole number")
    if value <= 0:
        raise ValidationError(f"{field} must be greater than zero")
    return value


def _non_negative(value, field: str) -> Decimal:
    if value is None:
        raise ValidationError(f"{field} is required")
    amount = to_decimal(value, field)
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative")
    # Columns store cents
    if amount != round_money(amount):
        raise ValidationError(f"{field} cannot have more than two decimal places")
    return amount


def _tax_rate(value) -> Decimal:
    rate = _non_negative(value, "tax_rate")
    if rate > MAX_TAX_RATE:
        raise ValidationError("tax_rate must be between 0 and 100")
    return rate


def _check_currency(tag: Currency | None, currency: Currency, field: str) -> None:
    if tag is not None and tag != currency:
        raise ValidationError(
            f"{field} is in {tag.value} but the response is priced in {currency.value}; "
            "currencies cannot be mixed"
        )


def _fee_lines(pricing: PricingInput, duration: int) -> list[tuple[PricingLine, Money]]:
    currency = pricing.currency
    has_flat = (
        pricing.number_of_consultants is not None
        or pricing.price_per_consultant_per_month is not None
    )

    if pricing.consultant_types:
        # Flat fields become informational but must still be sane if given
        if has_flat:
            if pricing.number_of_consultants is not None:
                _positive_int(pricing.number_of_consultants, "number_of_consultants")
            if pricing.price_per_consultant_per_month is not None:
                _non_negative(
                    pricing.price_per_consultant_per_month, "price_per_consultant_per_month"
                )

        lines = []
        for index, consultant in enumerate(pricing.consultant_types):
            prefix = f"consultant_types[{index}]"
            if not consultant.role or not consultant.role.strip():
                raise ValidationError(f"{prefix}.role is required")
            count = _positive_int(consultant.count, f"{prefix}.count")
            rate = _non_negative(consultant.rate, f"{prefix}.rate")
            _check_currency(consultant.currency, currency, f"{prefix}.currency")
            amount = multiply(multiply(rate, count), duration)
            line = PricingLine(
                label=consultant.role.strip(),
                quantity=count,
                unit_price=rate,
                months=duration,
                amount=amount,
            )
            lines.append((line, Money(amount, consultant.currency or currency)))
        return lines

    count = _positive_int(pricing.number_of_consultants, "number_of_consultants")
    rate = _non_negative(
        pricing.price_per_consultant_per_month, "price_per_consultant_per_month"
    )
    amount = multiply(multiply(rate, count), duration)
    line = PricingLine(
        label="Consultants",
        quantity=count,
        unit_price=rate,
        months=duration,
        amount=amount,
    )
    return [(line, Money(amount, currency))]


def _cost_lines(pricing: PricingInput) -> list[tuple[PricingLine, Money]]:
    lines = []
    for index, cost in enumerate(pricing.additional_costs):
        prefix = f"additional_costs[{index}]"
        if not cost.label or not cost.label.strip():
            raise ValidationError(f"{prefix}.label is required")
        amount = _non_negative(cost.amount, f"{prefix}.amount")
        _check_currency(cost.currency, pricing.currency, f"{prefix}.currency")
        money = Money(amount, cost.currency or pricing.currency)
        lines.append((PricingLine(label=cost.label.strip(), amount=money.amount), money))
    return lines


def summarize_pricing(pricing: PricingInput) -> PricingSummary:
    """
    Validate inputs and build the full line-item breakdown.

    Raises:
        ValidationError: missing/out-of-range inputs or mixed currencies
    """
    duration = _positive_int(pricing.project_duration_months, "project_duration_months")
    tax_rate = _tax_rate(pricing.tax_rate)

    lines = _fee_lines(pricing, duration) + _cost_lines(pricing)

    # Money addition refuses to mix currency tags
    subtotal = Money.zero(pricing.currency)
    for _, money in lines:
        subtotal = subtotal + money

    tax = Money(percentage_of(subtotal.amount, tax_rate), pricing.currency)
    total = subtotal + tax

    return PricingSummary(
        lines=[line for line, _ in lines],
        subtotal=subtotal.amount,
        tax_rate=tax_rate,
        tax_amount=tax.amount,
        total=total.amount,
        currency=pricing.currency,
    )


def compute_totals(pricing: PricingInput) -> PricingTotals:
    """
    Compute total project cost, tax and final total.

    total = consultant fees + additional costs
    tax = round(total * tax_rate / 100)
    final = total + tax
    """
    summary = summarize_pricing(pricing)
    return PricingTotals(
        total_project_cost=summary.subtotal,
        tax_amount=summary.tax_amount,
        final_total_cost=summary.total,
        currency=summary.currency,
    )


def verify_totals(
    pricing: PricingInput,
    total_project_cost: Decimal | None,
    tax_amount: Decimal | None,
    final_total_cost: Decimal | None,
) -> bool:
    """Return True if stored derived values are present and match a recomputation."""
    if total_project_cost is None or tax_amount is None or final_total_cost is None:
        return False
    try:
        expected = compute_totals(pricing)
    except ValidationError:
        return False
    return (
        expected.total_project_cost == total_project_cost
        and expected.tax_amount == tax_amount
        and expected.final_total_cost == final_total_cost
    )


def validate_inputs(pricing: PricingInput) -> None:
    """
    Validate the pricing inputs that are present.

    Drafts may be incomplete, so missing fields pass here; ``compute_totals``
    is the strict check.
    """
    if pricing.project_duration_months is not None:
        _positive_int(pricing.project_duration_months, "project_duration_months")
    if pricing.number_of_consultants is not None:
        _positive_int(pricing.number_of_consultants, "number_of_consultants")
    if pricing.price_per_consultant_per_month is not None:
        _non_negative(pricing.price_per_consultant_per_month, "price_per_consultant_per_month")
    if pricing.tax_rate is not None:
        _tax_rate(pricing.tax_rate)

    for index, consultant in enumerate(pricing.consultant_types):
        prefix = f"consultant_types[{index}]"
        if not consultant.role or not consultant.role.strip():
            raise ValidationError(f"{prefix}.role is required")
        _positive_int(consultant.count, f"{prefix}.count")
        _non_negative(consultant.rate, f"{prefix}.rate")
        _check_currency(consultant.currency, pricing.currency, f"{prefix}.currency")

    _cost_lines(pricing)
