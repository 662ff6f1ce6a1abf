"""Tests for the RFP response lifecycle state machine."""

from decimal import Decimal

import pytest
from sqlalchemy import update

from rfpdesk.core.errors import (
    ConcurrentModificationError,
    ImmutableStateError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from rfpdesk.db.enums import ResponseStatus


def _sent_response(db, make_response):
    from rfpdesk.services import response_service

    response = make_response()
    response_service.price_response(db, response.id)
    response_service.finalize_response(db, response.id)
    return response_service.send_response(db, response.id)


# =============================================================================
# Creation
# =============================================================================

def test_create_response_starts_as_draft(make_response, clock):
    response = make_response()

    assert response.status == ResponseStatus.DRAFT
    assert response.version == 1
    assert response.created_at == clock.now()
    assert response.total_project_cost is None
    assert response.final_total_cost is None
    assert response.additional_costs[0].label == "travel"
    assert response.additional_costs[0].amount == Decimal("1200.00")


def test_create_response_requires_existing_document(make_response, db):
    from rfpdesk.services import response_service

    with pytest.raises(ValidationError, match="does not exist"):
        make_response(rfp_document_id=4242)
    assert response_service.list_responses(db) == []


def test_create_response_allows_incomplete_pricing(make_response):
    response = make_response(
        project_duration_months=None,
        number_of_consultants=None,
        price_per_consultant_per_month=None,
        tax_rate=None,
        additional_costs=[],
    )
    assert response.status == ResponseStatus.DRAFT
    assert response.project_duration_months is None


def test_create_response_rejects_out_of_range_pricing(make_response):
    with pytest.raises(ValidationError):
        make_response(tax_rate=Decimal("120"))
    with pytest.raises(ValidationError):
        make_response(proposal_validity_days=-1)


def test_create_response_seeds_content_from_template(make_response, make_template):
    template = make_template(content="Dear evaluation committee,")
    response = make_response(template_id=template.id, content=None)
    assert response.content == "Dear evaluation committee,"

    # Explicit content wins over the template
    response = make_response(template_id=template.id, content="Custom opening")
    assert response.content == "Custom opening"


def test_create_response_unknown_template(make_response):
    with pytest.raises(NotFoundError):
        make_response(template_id=77, content=None)


# =============================================================================
# Pricing
# =============================================================================

def test_price_response_scenario_a(db, make_response):
    from rfpdesk.services import response_service

    response = make_response()
    created_at = response.updated_at
    response = response_service.price_response(db, response.id)

    assert response.status == ResponseStatus.PRICED
    assert response.total_project_cost == Decimal("91200.00")
    assert response.tax_amount == Decimal("13680.00")
    assert response.final_total_cost == Decimal("104880.00")
    assert response.version == 2
    assert response.updated_at > created_at


def test_price_response_with_missing_inputs_changes_nothing(db, make_response):
    from rfpdesk.services import response_service

    response = make_response(tax_rate=None)
    with pytest.raises(ValidationError, match="tax_rate"):
        response_service.price_response(db, response.id)

    response = response_service.require_response(db, response.id)
    assert response.status == ResponseStatus.DRAFT
    assert response.version == 1
    assert response.total_project_cost is None


def test_update_pricing_in_priced_recomputes_totals(db, make_response):
    from rfpdesk.schemas.responses import RfpResponsePricingUpdate
    from rfpdesk.services import response_service

    response = make_response()
    response_service.price_response(db, response.id)
    response = response_service.update_pricing(
        db, response.id, RfpResponsePricingUpdate(tax_rate=Decimal("0"))
    )

    assert response.status == ResponseStatus.PRICED
    assert response.tax_amount == Decimal("0.00")
    assert response.final_total_cost == Decimal("91200.00")


def test_update_pricing_in_priced_rejects_unpriceable_inputs(db, make_response):
    from rfpdesk.schemas.responses import RfpResponsePricingUpdate
    from rfpdesk.services import response_service

    response = make_response()
    priced_version = response_service.price_response(db, response.id).version

    with pytest.raises(ValidationError):
        response_service.update_pricing(
            db, response.id, RfpResponsePricingUpdate(project_duration_months=0)
        )

    response = response_service.require_response(db, response.id)
    assert response.project_duration_months == 6
    assert response.final_total_cost == Decimal("104880.00")
    assert response.version == priced_version


def test_update_pricing_in_priced_rejects_sub_cent_rate(db, make_response):
    from rfpdesk.schemas.responses import RfpResponsePricingUpdate
    from rfpdesk.services import response_service

    response = make_response(payment_terms="Net 30")
    priced_version = response_service.price_response(db, response.id).version

    with pytest.raises(ValidationError, match="two decimal places"):
        response_service.update_pricing(
            db,
            response.id,
            RfpResponsePricingUpdate(price_per_consultant_per_month=Decimal("5000.005")),
        )

    # Stored inputs and totals still agree, so the response can move on
    response = response_service.require_response(db, response.id)
    assert response.price_per_consultant_per_month == Decimal("5000.00")
    assert response.version == priced_version
    finalized = response_service.finalize_response(db, response.id)
    assert finalized.status == ResponseStatus.FINALIZED


def test_create_response_rejects_sub_cent_tax_rate(make_response):
    with pytest.raises(ValidationError, match="tax_rate cannot have more than two decimal places"):
        make_response(tax_rate=Decimal("15.125"))


def test_update_pricing_in_draft_stores_inputs(db, make_response):
    from rfpdesk.schemas.pricing import ConsultantType
    from rfpdesk.schemas.responses import RfpResponsePricingUpdate
    from rfpdesk.services import response_service

    response = make_response()
    response = response_service.update_pricing(
        db,
        response.id,
        RfpResponsePricingUpdate(
            consultant_types=[ConsultantType(role="Architect", rate=Decimal("9000"), count=1)]
        ),
    )

    assert response.status == ResponseStatus.DRAFT
    assert response.consultant_types == [
        ConsultantType(role="Architect", rate=Decimal("9000"), count=1)
    ]
    assert response.total_project_cost is None


def test_update_pricing_rejects_null_currency(db, make_response):
    from rfpdesk.schemas.responses import RfpResponsePricingUpdate
    from rfpdesk.services import response_service

    response = make_response()
    with pytest.raises(ValidationError, match="currency"):
        response_service.update_pricing(db, response.id, RfpResponsePricingUpdate(currency=None))


def test_get_pricing_summary(db, make_response):
    from rfpdesk.services import response_service

    response = make_response()
    summary = response_service.get_pricing_summary(db, response.id)
    assert summary.total == Decimal("104880.00")
    assert len(summary.lines) == 2


# =============================================================================
# Finalize
# =============================================================================

def test_finalize_requires_payment_terms(db, make_response):
    from rfpdesk.services import response_service

    response = make_response(payment_terms=None)
    response_service.price_response(db, response.id)

    with pytest.raises(ValidationError, match="Payment terms"):
        response_service.finalize_response(db, response.id)
    assert response_service.require_response(db, response.id).status == ResponseStatus.PRICED


def test_finalize_requires_content(db, make_response):
    from rfpdesk.services import response_service

    response = make_response(content="   ")
    response_service.price_response(db, response.id)

    with pytest.raises(ValidationError, match="content"):
        response_service.finalize_response(db, response.id)


def test_finalize_rejects_stale_totals(db, make_response):
    from rfpdesk.db.models import RfpResponse
    from rfpdesk.services import response_service

    response = make_response()
    response_service.price_response(db, response.id)
    db.execute(
        update(RfpResponse)
        .where(RfpResponse.id == response.id)
        .values(final_total_cost=Decimal("1.00"))
    )
    db.commit()

    with pytest.raises(InvalidStateError, match="stale"):
        response_service.finalize_response(db, response.id)


def test_finalize_from_draft_is_invalid(db, make_response):
    from rfpdesk.services import response_service

    response = make_response()
    with pytest.raises(InvalidStateError) as exc_info:
        response_service.finalize_response(db, response.id)
    assert exc_info.value.current_status == "draft"


def test_concurrent_finalize_only_one_wins(db, make_response):
    from rfpdesk.services import response_service

    response = make_response()
    priced = response_service.price_response(db, response.id)
    read_version = priced.version

    # Both callers read the same version; the first write wins
    first = response_service.finalize_response(db, response.id, expected_version=read_version)
    assert first.status == ResponseStatus.FINALIZED

    with pytest.raises(ConcurrentModificationError):
        response_service.finalize_response(db, response.id, expected_version=read_version)

    stored = response_service.require_response(db, response.id)
    assert stored.status == ResponseStatus.FINALIZED
    assert stored.version == read_version + 1


def test_concurrent_reopen_wins_over_finalize_at_conditional_update(
    db, make_response, monkeypatch, clock
):
    from rfpdesk.db.session import SessionLocal
    from rfpdesk.services import response_service, version_service

    response = make_response()
    response_id = response.id
    priced_version = response_service.price_response(db, response_id, clock=clock).version

    real_check_version = version_service.check_version
    raced = []

    # A second editor reopens the response after finalize has read it
    def _check_then_race(*args, **kwargs):
        real_check_version(*args, **kwargs)
        if not raced:
            raced.append(True)
            other = SessionLocal()
            try:
                response_service.reopen_response(other, response_id, clock=clock)
            finally:
                other.close()

    monkeypatch.setattr(version_service, "check_version", _check_then_race)

    with pytest.raises(ConcurrentModificationError):
        response_service.finalize_response(db, response_id, clock=clock)

    stored = response_service.require_response(db, response_id)
    assert stored.status == ResponseStatus.DRAFT
    assert stored.version == priced_version + 1
    assert stored.final_total_cost is None


def test_edit_finalized_requires_reopen(db, make_response):
    from rfpdesk.schemas.responses import RfpResponseContentUpdate
    from rfpdesk.services import response_service

    response = make_response()
    response_service.price_response(db, response.id)
    response_service.finalize_response(db, response.id)

    with pytest.raises(InvalidStateError) as exc_info:
        response_service.update_content(
            db, response.id, RfpResponseContentUpdate(content="Changed")
        )
    assert not isinstance(exc_info.value, ImmutableStateError)


# =============================================================================
# Sent / reopen
# =============================================================================

def test_send_makes_response_immutable(db, make_response):
    from rfpdesk.schemas.responses import RfpResponseContentUpdate, RfpResponsePricingUpdate
    from rfpdesk.services import response_service

    sent = _sent_response(db, make_response)
    assert sent.status == ResponseStatus.SENT
    title, version = sent.title, sent.version

    with pytest.raises(ImmutableStateError):
        response_service.update_content(db, sent.id, RfpResponseContentUpdate(title="New"))
    with pytest.raises(ImmutableStateError):
        response_service.update_pricing(
            db, sent.id, RfpResponsePricingUpdate(tax_rate=Decimal("5"))
        )
    with pytest.raises(ImmutableStateError):
        response_service.reopen_response(db, sent.id)
    with pytest.raises(ImmutableStateError):
        response_service.send_response(db, sent.id)

    stored = response_service.require_response(db, sent.id)
    assert stored.title == title
    assert stored.version == version


def test_sent_with_stale_version_is_still_immutable(db, make_response):
    from rfpdesk.schemas.responses import RfpResponseContentUpdate
    from rfpdesk.services import response_service

    sent = _sent_response(db, make_response)

    with pytest.raises(ImmutableStateError):
        response_service.update_content(
            db, sent.id, RfpResponseContentUpdate(title="New"), expected_version=1
        )
    with pytest.raises(ImmutableStateError):
        response_service.reopen_response(db, sent.id, expected_version=sent.version + 5)


def test_derived_totals_present_in_every_priced_state(db, make_response):
    from rfpdesk.services import response_service

    response = make_response()
    assert response.total_project_cost is None

    steps = [
        response_service.price_response,
        response_service.finalize_response,
        response_service.send_response,
    ]
    seen = set()
    for step in steps:
        response = step(db, response.id)
        seen.add(response.status)
        assert response.total_project_cost == Decimal("91200.00")
        assert response.tax_amount == Decimal("13680.00")
        assert response.final_total_cost == Decimal("104880.00")

    assert seen == ResponseStatus.priced_states()


def test_write_refuses_priced_response_without_totals(db, make_response):
    from rfpdesk.db.models import RfpResponse
    from rfpdesk.schemas.responses import RfpResponseContentUpdate
    from rfpdesk.services import response_service

    response = make_response()
    priced_version = response_service.price_response(db, response.id).version
    db.execute(
        update(RfpResponse)
        .where(RfpResponse.id == response.id)
        .values(total_project_cost=None, tax_amount=None, final_total_cost=None)
    )
    db.commit()

    with pytest.raises(InvalidStateError, match="total_project_cost"):
        response_service.update_content(
            db, response.id, RfpResponseContentUpdate(content="Revised approach")
        )

    stored = response_service.require_response(db, response.id)
    assert stored.content == "Our approach to the engagement."
    assert stored.version == priced_version


def test_reopen_clears_totals(db, make_response):
    from rfpdesk.services import response_service

    response = make_response()
    response_service.price_response(db, response.id)
    response_service.finalize_response(db, response.id)
    response = response_service.reopen_response(db, response.id)

    assert response.status == ResponseStatus.DRAFT
    assert not response.has_totals

    # And can be priced again
    response = response_service.price_response(db, response.id)
    assert response.final_total_cost == Decimal("104880.00")


def test_reopen_draft_is_invalid(db, make_response):
    from rfpdesk.services import response_service

    response = make_response()
    with pytest.raises(InvalidStateError):
        response_service.reopen_response(db, response.id)


def test_update_content_applies_only_given_fields(db, make_response, clock):
    from rfpdesk.schemas.responses import RfpResponseContentUpdate
    from rfpdesk.services import response_service

    response = make_response()
    clock.advance(hours=1)
    updated = response_service.update_content(
        db, response.id, RfpResponseContentUpdate(payment_terms="50% upfront"), clock=clock
    )

    assert updated.payment_terms == "50% upfront"
    assert updated.content == "Our approach to the engagement."
    assert updated.updated_at == clock.now()


def test_update_content_rejects_blank_title(db, make_response):
    from rfpdesk.schemas.responses import RfpResponseContentUpdate
    from rfpdesk.services import response_service

    response = make_response()
    with pytest.raises(ValidationError):
        response_service.update_content(db, response.id, RfpResponseContentUpdate(title=" "))


def test_transition_table():
    from rfpdesk.services.response_service import can_transition

    assert can_transition(ResponseStatus.DRAFT, ResponseStatus.PRICED)
    assert can_transition(ResponseStatus.PRICED, ResponseStatus.FINALIZED)
    assert can_transition(ResponseStatus.FINALIZED, ResponseStatus.SENT)
    assert can_transition(ResponseStatus.FINALIZED, ResponseStatus.DRAFT)
    assert not can_transition(ResponseStatus.DRAFT, ResponseStatus.SENT)
    for target in ResponseStatus:
        assert not can_transition(ResponseStatus.SENT, target)


def test_list_responses_filters(db, make_document, make_response):
    from rfpdesk.services import response_service

    document = make_document()
    first = make_response(rfp_document_id=document.id)
    make_response(rfp_document_id=document.id)
    make_response()
    response_service.price_response(db, first.id)

    assert len(response_service.list_responses(db, rfp_document_id=document.id)) == 2
    priced = response_service.list_responses(db, status=ResponseStatus.PRICED)
    assert [r.id for r in priced] == [first.id]
