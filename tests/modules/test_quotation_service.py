"""
Tests for the Quotation module service.

Validates:
- Vendor quotation pricing snapshot and derived total
- Enquiry moves to quoted on quotation, accepted on acceptance
- Counter filing: accept / reject / negotiate and their payload rules
- Vendor resolution of negotiate counters
- Pending counters are superseded by newer ones
- A quotation (and its enquiry) is accepted at most once
"""

from datetime import date
from decimal import Decimal

import pytest

from procurement_kernel.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    PreconditionError,
    ValidationError,
)
from procurement_modules.enquiry import EnquiryStatus
from procurement_modules.quotation import CounterAction, CounterStatus, QuotationStatus


def _negotiation(quotation, unit_price="90", notes="Can you do 90?"):
    return {
        "items": [
            {
                "component_id": quotation.items[0].component_id,
                "quantity": Decimal("10"),
                "unit_price": Decimal(unit_price),
            }
        ],
        "negotiation_notes": notes,
    }


# =============================================================================
# Quotation creation
# =============================================================================


class TestCreateQuotation:

    def test_total_from_catalog_snapshot(self, chain, enquiry_service):
        quotation = chain.quotation()
        assert quotation.status is QuotationStatus.SENT
        assert quotation.quotation_number == "PQ-000001"
        assert quotation.total_amount == Decimal("1062")
        line = quotation.items[0]
        assert line.unit_price == Decimal("100")
        assert line.discount_percent == Decimal("10")
        assert line.line_total == Decimal("1062")
        assert enquiry_service.get(quotation.enquiry_id).status is EnquiryStatus.QUOTED

    def test_item_overrides_catalog(self, chain):
        quotation = chain.quotation(unit_price=Decimal("50"), cgst_percent=Decimal("0"))
        # 10 x 50 x 0.9 x 1.09
        assert quotation.total_amount == Decimal("490.5")

    def test_multi_line_total(self, chain, quotation_service, vendor):
        first = chain.component()
        second = chain.component(price_per_unit=Decimal("20"), discount_percent=Decimal("0"))
        enquiry = chain.enquiries.create(
            chain.pm,
            vendor_id=vendor.vendor_id,
            title="Mixed",
            items=[
                {"component_id": first.id, "quantity": Decimal("10")},
                {"component_id": second.id, "quantity": Decimal("5")},
            ],
        )
        quotation = chain.quotation(enquiry)
        # 1062 + 5 x 20 x 1.18
        assert quotation.total_amount == Decimal("1180")
        assert [line.line_number for line in quotation.items] == [1, 2]

    def test_second_quotation_keeps_enquiry_quoted(self, chain, enquiry_service):
        first = chain.quotation()
        enquiry = enquiry_service.get(first.enquiry_id)
        second = chain.quotation(enquiry)
        assert second.quotation_number == "PQ-000002"
        assert enquiry_service.get(enquiry.id).status is EnquiryStatus.QUOTED

    def test_manager_cannot_quote(self, chain, quotation_service, pm):
        enquiry = chain.enquiry()
        with pytest.raises(AuthorizationError):
            quotation_service.create_quotation(
                pm, enquiry.id, [], valid_till="2025-02-15",
                expected_delivery_date="2025-03-01",
            )

    def test_other_vendor_cannot_quote(self, chain, quotation_service, other_vendor):
        enquiry = chain.enquiry()
        with pytest.raises(AuthorizationError):
            quotation_service.create_quotation(
                other_vendor,
                enquiry.id,
                [{"component_id": enquiry.items[0].component_id, "quantity": Decimal("1")}],
                valid_till="2025-02-15",
                expected_delivery_date="2025-03-01",
            )

    def test_delivery_in_past(self, chain, quotation_service, vendor):
        enquiry = chain.enquiry()
        with pytest.raises(ValidationError) as exc_info:
            quotation_service.create_quotation(
                vendor,
                enquiry.id,
                [{"component_id": enquiry.items[0].component_id, "quantity": Decimal("1")}],
                valid_till="2025-02-15",
                expected_delivery_date=date(2025, 1, 14),
            )
        assert exc_info.value.field == "expected_delivery_date"

    def test_delivery_today_allowed(self, chain, quotation_service, vendor):
        enquiry = chain.enquiry()
        quotation = quotation_service.create_quotation(
            vendor,
            enquiry.id,
            [{"component_id": enquiry.items[0].component_id, "quantity": Decimal("1")}],
            valid_till="2025-02-15",
            expected_delivery_date=date(2025, 1, 15),
        )
        assert quotation.expected_delivery_date == date(2025, 1, 15)

    def test_advance_percent_bounds(self, chain):
        with pytest.raises(ValidationError):
            chain.quotation(advance_payment_percent="120")

    def test_rejected_enquiry_not_quotable(self, chain, enquiry_service, vendor):
        enquiry = chain.enquiry()
        enquiry_service.reject(vendor, enquiry.id, "no capacity")
        with pytest.raises(PreconditionError) as exc_info:
            chain.quotation(enquiry_service.get(enquiry.id))
        assert exc_info.value.current_state == "rejected"

    def test_unknown_component(self, chain, quotation_service, vendor, new_id):
        enquiry = chain.enquiry()
        with pytest.raises(ValidationError):
            quotation_service.create_quotation(
                vendor,
                enquiry.id,
                [{"component_id": new_id, "quantity": Decimal("1")}],
                valid_till="2025-02-15",
                expected_delivery_date="2025-03-01",
            )

    def test_failed_quote_leaves_enquiry_raised(self, chain, enquiry_service):
        enquiry = chain.enquiry()
        with pytest.raises(ValidationError):
            chain.quotation(enquiry, unit_price=Decimal("-1"))
        assert enquiry_service.get(enquiry.id).status is EnquiryStatus.RAISED

    def test_out_of_range_quantity(self, chain, enquiry_service):
        enquiry = chain.enquiry()
        with pytest.raises(ValidationError) as exc_info:
            chain.quotation(enquiry, quantity=Decimal("1e22"))
        assert exc_info.value.field == "items[0].quantity"
        assert enquiry_service.get(enquiry.id).status is EnquiryStatus.RAISED

    def test_line_amount_out_of_range(self, chain):
        # quantity and price each fit, their product does not
        with pytest.raises(ValidationError) as exc_info:
            chain.quotation(quantity=Decimal("1e12"), unit_price=Decimal("1e10"))
        assert exc_info.value.field == "items[0]"
        assert exc_info.value.reason == "amount out of range"


# =============================================================================
# Counter filing
# =============================================================================


class TestFileCounter:

    def test_accept(self, chain, quotation_service, enquiry_service, pm):
        quotation = chain.quotation()
        result = quotation_service.file_counter(pm, quotation.id, "accept")
        assert result.quotation.status is QuotationStatus.ACCEPTED
        assert result.counter.action is CounterAction.ACCEPT
        assert result.counter.status is CounterStatus.ACCEPTED
        assert result.counter.counter_number == "VC-000001"
        assert enquiry_service.get(quotation.enquiry_id).status is EnquiryStatus.ACCEPTED

    def test_accept_twice_conflicts(self, chain, quotation_service, pm):
        quotation = chain.accepted_quotation()
        with pytest.raises(ConflictError):
            quotation_service.file_counter(pm, quotation.id, CounterAction.ACCEPT)
        assert len(quotation_service.list_counters(quotation.id)) == 1

    def test_reject_needs_reason(self, chain, quotation_service, pm):
        quotation = chain.quotation()
        with pytest.raises(ValidationError) as exc_info:
            quotation_service.file_counter(pm, quotation.id, "reject", {})
        assert exc_info.value.field == "rejection_reason"

    def test_reject(self, chain, quotation_service, enquiry_service, pm):
        quotation = chain.quotation()
        result = quotation_service.file_counter(
            pm, quotation.id, "reject", {"rejection_reason": "too expensive"}
        )
        assert result.quotation.status is QuotationStatus.REJECTED
        assert result.counter.status is CounterStatus.REJECTED
        assert result.counter.rejection_reason == "too expensive"
        # The enquiry stays open for other quotations
        assert enquiry_service.get(quotation.enquiry_id).status is EnquiryStatus.QUOTED

    def test_negotiate_needs_items_and_notes(self, chain, quotation_service, pm):
        quotation = chain.quotation()
        with pytest.raises(ValidationError):
            quotation_service.file_counter(
                pm, quotation.id, "negotiate", {"negotiation_notes": "lower please"}
            )
        with pytest.raises(ValidationError):
            quotation_service.file_counter(
                pm, quotation.id, "negotiate", _negotiation(quotation, notes=" ")
            )

    def test_negotiate(self, chain, quotation_service, pm):
        quotation = chain.quotation()
        result = quotation_service.file_counter(
            pm, quotation.id, "negotiate", _negotiation(quotation)
        )
        assert result.quotation.status is QuotationStatus.NEGOTIATING
        assert result.counter.status is CounterStatus.PENDING
        # 10 x 90 x 0.9 x 1.18; other pricing fields kept from the quotation
        assert result.counter.total_amount == Decimal("955.8")
        assert result.counter.items[0].discount_percent == Decimal("10")
        # Quotation itself is never edited by a counter
        assert quotation_service.get(quotation.id).total_amount == Decimal("1062")

    def test_negotiate_line_must_be_quoted(self, chain, quotation_service, pm):
        quotation = chain.quotation()
        other = chain.component()
        payload = _negotiation(quotation)
        payload["items"][0]["component_id"] = other.id
        with pytest.raises(ValidationError):
            quotation_service.file_counter(pm, quotation.id, "negotiate", payload)

    def test_unknown_action(self, chain, quotation_service, pm):
        quotation = chain.quotation()
        with pytest.raises(ValidationError):
            quotation_service.file_counter(pm, quotation.id, "haggle")

    def test_vendor_cannot_file(self, chain, quotation_service, vendor):
        quotation = chain.quotation()
        with pytest.raises(AuthorizationError):
            quotation_service.file_counter(vendor, quotation.id, "accept")

    def test_counter_on_rejected_quotation(self, chain, quotation_service, pm):
        quotation = chain.quotation()
        quotation_service.file_counter(pm, quotation.id, "reject", {"rejection_reason": "no"})
        with pytest.raises(InvalidStateError):
            quotation_service.file_counter(pm, quotation.id, "negotiate", _negotiation(quotation))

    def test_new_counter_supersedes_pending(self, chain, quotation_service, pm):
        quotation = chain.quotation()
        first = quotation_service.file_counter(
            pm, quotation.id, "negotiate", _negotiation(quotation)
        ).counter
        second = quotation_service.file_counter(
            pm, quotation.id, "negotiate", _negotiation(quotation, unit_price="85")
        ).counter
        old = quotation_service.get_counter(first.id)
        assert old.status is CounterStatus.REJECTED
        assert old.superseded_by_id == second.id
        assert second.status is CounterStatus.PENDING
        history = quotation_service.list_counters(quotation.id)
        assert [c.id for c in history] == [first.id, second.id]

    def test_accept_supersedes_pending_negotiation(self, chain, quotation_service, pm):
        quotation = chain.quotation()
        pending = quotation_service.file_counter(
            pm, quotation.id, "negotiate", _negotiation(quotation)
        ).counter
        result = quotation_service.file_counter(pm, quotation.id, "accept")
        assert result.quotation.status is QuotationStatus.ACCEPTED
        assert quotation_service.get_counter(pending.id).status is CounterStatus.REJECTED

    def test_second_quotation_cannot_be_accepted(self, chain, quotation_service, pm):
        first = chain.quotation()
        enquiry = chain.enquiries.get(first.enquiry_id)
        second = chain.quotation(enquiry)
        quotation_service.file_counter(pm, first.id, "accept")
        with pytest.raises(ConflictError):
            quotation_service.file_counter(pm, second.id, "accept")
        assert quotation_service.get(second.id).status is QuotationStatus.SENT


# =============================================================================
# Counter resolution
# =============================================================================


class TestResolveCounter:

    @pytest.fixture
    def negotiation(self, chain, quotation_service, pm):
        quotation = chain.quotation()
        return quotation_service.file_counter(
            pm, quotation.id, "negotiate", _negotiation(quotation)
        )

    def test_vendor_accepts(self, negotiation, quotation_service, enquiry_service, vendor):
        result = quotation_service.resolve_counter(vendor, negotiation.counter.id, "accept")
        assert result.counter.status is CounterStatus.ACCEPTED
        assert result.quotation.status is QuotationStatus.ACCEPTED
        assert enquiry_service.get(result.quotation.enquiry_id).status is EnquiryStatus.ACCEPTED

    def test_vendor_rejects_with_reason(self, negotiation, quotation_service, vendor):
        result = quotation_service.resolve_counter(
            vendor, negotiation.counter.id, "reject", "below cost"
        )
        assert result.counter.status is CounterStatus.REJECTED
        assert result.counter.rejection_reason == "below cost"
        assert result.quotation.status is QuotationStatus.REJECTED

    def test_reject_needs_reason(self, negotiation, quotation_service, vendor):
        with pytest.raises(ValidationError):
            quotation_service.resolve_counter(vendor, negotiation.counter.id, "reject")
        assert (
            quotation_service.get_counter(negotiation.counter.id).status
            is CounterStatus.PENDING
        )

    def test_negotiate_is_not_a_decision(self, negotiation, quotation_service, vendor):
        with pytest.raises(ValidationError):
            quotation_service.resolve_counter(vendor, negotiation.counter.id, "negotiate")

    def test_manager_cannot_resolve(self, negotiation, quotation_service, pm):
        with pytest.raises(AuthorizationError):
            quotation_service.resolve_counter(pm, negotiation.counter.id, "accept")

    def test_other_vendor_cannot_resolve(self, negotiation, quotation_service, other_vendor):
        with pytest.raises(AuthorizationError):
            quotation_service.resolve_counter(other_vendor, negotiation.counter.id, "accept")

    def test_resolve_twice_conflicts(self, negotiation, quotation_service, vendor):
        quotation_service.resolve_counter(vendor, negotiation.counter.id, "accept")
        with pytest.raises(ConflictError):
            quotation_service.resolve_counter(vendor, negotiation.counter.id, "accept")

    def test_superseded_counter_cannot_be_accepted(
        self, negotiation, quotation_service, pm, vendor
    ):
        quotation = negotiation.quotation
        quotation_service.file_counter(
            pm, quotation.id, "negotiate", _negotiation(quotation, unit_price="80")
        )
        with pytest.raises(InvalidStateError):
            quotation_service.resolve_counter(vendor, negotiation.counter.id, "accept")


class TestListQuotations:

    def test_by_enquiry(self, chain, quotation_service):
        first = chain.quotation()
        chain.quotation()
        listed = quotation_service.list_quotations(enquiry_id=first.enquiry_id)
        assert [q.id for q in listed] == [first.id]
