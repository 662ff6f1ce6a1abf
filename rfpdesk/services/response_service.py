"""RFP response lifecycle: draft -> priced -> finalized -> sent.

- draft -> priced: pricing engine must succeed; totals and status land together
- priced -> finalized: content, payment terms and consistent totals required
- finalized -> sent: terminal, nothing changes afterwards
- priced/finalized -> draft: reopen for edits, derived totals are cleared

Every write is a compare-and-set on (status, version) and advances
``updated_at``. Mutating a sent response raises ImmutableStateError before
any version check.
"""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from rfpdesk.core.clock import Clock, system_clock
from rfpdesk.core.errors import (
    ImmutableStateError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from rfpdesk.core.structured_logging import build_log_context
from rfpdesk.db.enums import ResponseStatus
from rfpdesk.db.models import RfpDocument, RfpResponse
from rfpdesk.schemas.pricing import PricingInput, PricingSummary
from rfpdesk.schemas.responses import (
    RfpResponseContentUpdate,
    RfpResponseCreate,
    RfpResponsePricingUpdate,
)
from rfpdesk.services import pricing_service, template_service, version_service

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[ResponseStatus, frozenset[ResponseStatus]] = {
    ResponseStatus.DRAFT: frozenset({ResponseStatus.PRICED}),
    ResponseStatus.PRICED: frozenset({ResponseStatus.FINALIZED, ResponseStatus.DRAFT}),
    ResponseStatus.FINALIZED: frozenset({ResponseStatus.SENT, ResponseStatus.DRAFT}),
    ResponseStatus.SENT: frozenset(),
}

PRICING_FIELDS = (
    "project_duration_months",
    "number_of_consultants",
    "price_per_consultant_per_month",
    "tax_rate",
    "currency",
    "consultant_types",
    "additional_costs",
)

DERIVED_FIELDS = ("total_project_cost", "tax_amount", "final_total_cost")

CLEARED_TOTALS = dict.fromkeys(DERIVED_FIELDS)


def can_transition(current: ResponseStatus, target: ResponseStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[ResponseStatus(current)]


def pricing_input(response: RfpResponse) -> PricingInput:
    """Snapshot a response's pricing inputs for the pricing engine."""
    return PricingInput.model_validate(response)


# =============================================================================
# Queries
# =============================================================================


def get_response(db: Session, response_id: int) -> RfpResponse | None:
    """Get a response by ID (fresh from the database)."""
    return db.get(RfpResponse, response_id, populate_existing=True)


def require_response(db: Session, response_id: int) -> RfpResponse:
    response = get_response(db, response_id)
    if response is None:
        raise NotFoundError(f"RFP response {response_id} not found")
    return response


def list_responses(
    db: Session,
    rfp_document_id: int | None = None,
    status: ResponseStatus | None = None,
) -> list[RfpResponse]:
    """List responses, most recently updated first."""
    query = select(RfpResponse)
    if rfp_document_id is not None:
        query = query.where(RfpResponse.rfp_document_id == rfp_document_id)
    if status is not None:
        query = query.where(RfpResponse.status == ResponseStatus(status))
    query = query.order_by(RfpResponse.updated_at.desc(), RfpResponse.id.desc())
    return list(db.execute(query).scalars().all())


def get_pricing_summary(db: Session, response_id: int) -> PricingSummary:
    """Line-item pricing breakdown for a response (raises ValidationError if incomplete)."""
    response = require_response(db, response_id)
    return pricing_service.summarize_pricing(pricing_input(response))


# =============================================================================
# Internal helpers
# =============================================================================


def _validate_narrative(
    title: str | None = None,
    proposal_validity_days: int | None = None,
    *,
    title_set: bool = False,
) -> None:
    if title_set and (title is None or not title.strip()):
        raise ValidationError("title is required")
    if proposal_validity_days is not None:
        if isinstance(proposal_validity_days, bool) or proposal_validity_days < 0:
            raise ValidationError("proposal_validity_days cannot be negative")


def _sent_error(response: RfpResponse) -> ImmutableStateError:
    return ImmutableStateError(
        f"Response {response.id} has been sent and can no longer change",
        current_status=response.status.value,
    )


def _load_for_write(
    db: Session,
    response_id: int,
    expected_version: int | None,
) -> RfpResponse:
    response = require_response(db, response_id)
    # A sent response is immutable whatever version the caller holds
    if response.status == ResponseStatus.SENT:
        raise _sent_error(response)
    version_service.check_version("RfpResponse", response_id, response.version, expected_version)
    return response


def _require_editable(response: RfpResponse) -> None:
    """Edits are allowed in draft and priced; finalized must be reopened first."""
    if response.status == ResponseStatus.SENT:
        raise _sent_error(response)
    if response.status == ResponseStatus.FINALIZED:
        raise InvalidStateError(
            f"Response {response.id} is finalized; reopen it before editing",
            current_status=response.status.value,
        )


def _require_transition(response: RfpResponse, target: ResponseStatus) -> None:
    current = response.status
    if current == ResponseStatus.SENT:
        raise _sent_error(response)
    if not can_transition(current, target):
        raise InvalidStateError(
            f"Cannot move response {response.id} from {current.value} to {target.value}",
            current_status=current.value,
        )


def _write(
    db: Session,
    response: RfpResponse,
    values: dict[str, Any],
    *,
    clock: Clock,
) -> RfpResponse:
    """
    Compare-and-set ``values`` (plus updated_at) and commit.

    A response that ends up priced, finalized or sent must carry every
    derived total.
    """
    previous_status = response.status
    target_status = values.get("status", previous_status)
    if target_status in ResponseStatus.priced_states():
        missing = [
            field
            for field in DERIVED_FIELDS
            if (values[field] if field in values else getattr(response, field)) is None
        ]
        if missing:
            raise InvalidStateError(
                f"Response {response.id} would be {target_status.value} without "
                f"{', '.join(missing)}; reprice it first",
                current_status=previous_status.value,
            )
    values = {
        **values,
        "updated_at": version_service.next_timestamp(response.updated_at, clock.now()),
    }
    version_service.compare_and_set(
        db,
        RfpResponse,
        response.id,
        expected_status=previous_status,
        expected_version=response.version,
        values=values,
    )
    db.commit()
    db.refresh(response)

    if response.status != previous_status:
        logger.info(
            "Response status changed %s -> %s",
            previous_status.value,
            response.status.value,
            extra=build_log_context(entity="rfp_response", entity_id=response.id),
        )
    return response


# =============================================================================
# Creation and edits
# =============================================================================


def create_response(
    db: Session,
    data: RfpResponseCreate,
    *,
    clock: Clock = system_clock,
) -> RfpResponse:
    """
    Start a draft response for an existing RFP document.

    Pricing inputs may be incomplete; whatever is given must be in range.
    """
    _validate_narrative(data.title, data.proposal_validity_days, title_set=True)

    if db.get(RfpDocument, data.rfp_document_id) is None:
        raise ValidationError(f"RFP document {data.rfp_document_id} does not exist")

    content = data.content
    if data.template_id is not None:
        template = template_service.require_template(db, data.template_id)
        if not content or not content.strip():
            content = template.content

    pricing = PricingInput.model_validate(
        {field: getattr(data, field) for field in PRICING_FIELDS}
    )
    pricing_service.validate_inputs(pricing)

    now = clock.now()
    response = RfpResponse(
        rfp_document_id=data.rfp_document_id,
        title=data.title.strip(),
        content=content,
        status=ResponseStatus.DRAFT,
        project_duration_months=pricing.project_duration_months,
        number_of_consultants=pricing.number_of_consultants,
        price_per_consultant_per_month=pricing.price_per_consultant_per_month,
        tax_rate=pricing.tax_rate,
        delivery_model=data.delivery_model,
        currency=pricing.currency,
        consultant_types=list(pricing.consultant_types),
        additional_costs=list(pricing.additional_costs),
        payment_terms=data.payment_terms,
        proposal_validity_days=data.proposal_validity_days,
        version=1,
        created_at=now,
        updated_at=now,
    )
    db.add(response)
    db.commit()
    db.refresh(response)

    logger.info(
        "Created response %s for document %s", response.id, data.rfp_document_id
    )
    return response


def update_content(
    db: Session,
    response_id: int,
    data: RfpResponseContentUpdate,
    *,
    expected_version: int | None = None,
    clock: Clock = system_clock,
) -> RfpResponse:
    """Edit title/content/payment terms/validity. Draft and priced only."""
    response = _load_for_write(db, response_id, expected_version)
    _require_editable(response)

    fields = {name: getattr(data, name) for name in data.model_fields_set}
    if not fields:
        return response
    _validate_narrative(
        fields.get("title"),
        fields.get("proposal_validity_days"),
        title_set="title" in fields,
    )
    if "title" in fields:
        fields["title"] = fields["title"].strip()

    return _write(db, response, fields, clock=clock)


def update_pricing(
    db: Session,
    response_id: int,
    data: RfpResponsePricingUpdate,
    *,
    expected_version: int | None = None,
    clock: Clock = system_clock,
) -> RfpResponse:
    """
    Edit pricing inputs.

    In draft the inputs are stored as-is (range-checked). In priced the
    totals are recomputed in the same write; if the new inputs don't price,
    nothing changes.
    """
    response = _load_for_write(db, response_id, expected_version)
    _require_editable(response)

    fields = {name: getattr(data, name) for name in data.model_fields_set}
    if not fields:
        return response
    if "currency" in fields and fields["currency"] is None:
        raise ValidationError("currency is required")
    for list_field in ("consultant_types", "additional_costs"):
        if list_field in fields and fields[list_field] is None:
            fields[list_field] = []

    current = {field: getattr(response, field) for field in PRICING_FIELDS}
    merged = PricingInput.model_validate(
        {**current, **{k: v for k, v in fields.items() if k in PRICING_FIELDS}}
    )

    if response.status == ResponseStatus.PRICED:
        totals = pricing_service.compute_totals(merged)
        fields.update(
            total_project_cost=totals.total_project_cost,
            tax_amount=totals.tax_amount,
            final_total_cost=totals.final_total_cost,
        )
    else:
        pricing_service.validate_inputs(merged)

    return _write(db, response, fields, clock=clock)


# =============================================================================
# Lifecycle transitions
# =============================================================================


def price_response(
    db: Session,
    response_id: int,
    *,
    expected_version: int | None = None,
    clock: Clock = system_clock,
) -> RfpResponse:
    """draft -> priced. Runs the pricing engine on the stored inputs."""
    response = _load_for_write(db, response_id, expected_version)
    _require_transition(response, ResponseStatus.PRICED)

    totals = pricing_service.compute_totals(pricing_input(response))
    return _write(
        db,
        response,
        {
            "status": ResponseStatus.PRICED,
            "total_project_cost": totals.total_project_cost,
            "tax_amount": totals.tax_amount,
            "final_total_cost": totals.final_total_cost,
        },
        clock=clock,
    )


def finalize_response(
    db: Session,
    response_id: int,
    *,
    expected_version: int | None = None,
    clock: Clock = system_clock,
) -> RfpResponse:
    """priced -> finalized. Needs content, payment terms and consistent totals."""
    response = _load_for_write(db, response_id, expected_version)
    _require_transition(response, ResponseStatus.FINALIZED)

    if not response.content or not response.content.strip():
        raise ValidationError("Response content is required before finalizing")
    if not response.payment_terms or not response.payment_terms.strip():
        raise ValidationError("Payment terms are required before finalizing")
    if not pricing_service.verify_totals(
        pricing_input(response),
        response.total_project_cost,
        response.tax_amount,
        response.final_total_cost,
    ):
        raise InvalidStateError(
            f"Response {response.id} pricing is missing or stale; reprice before finalizing",
            current_status=response.status.value,
        )

    return _write(db, response, {"status": ResponseStatus.FINALIZED}, clock=clock)


def send_response(
    db: Session,
    response_id: int,
    *,
    expected_version: int | None = None,
    clock: Clock = system_clock,
) -> RfpResponse:
    """finalized -> sent (terminal)."""
    response = _load_for_write(db, response_id, expected_version)
    _require_transition(response, ResponseStatus.SENT)
    return _write(db, response, {"status": ResponseStatus.SENT}, clock=clock)


def reopen_response(
    db: Session,
    response_id: int,
    *,
    expected_version: int | None = None,
    clock: Clock = system_clock,
) -> RfpResponse:
    """priced/finalized -> draft. Derived totals are cleared and must be recomputed."""
    response = _load_for_write(db, response_id, expected_version)
    _require_transition(response, ResponseStatus.DRAFT)
    return _write(
        db,
        response,
        {"status": ResponseStatus.DRAFT, **CLEARED_TOTALS},
        clock=clock,
    )
