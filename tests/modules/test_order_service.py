"""
Tests for the Order module service.

Validates:
- confirm_from_loi creates the order and confirms the LOI atomically
- Advance amount derivation and override bounds
- At most one order per LOI
- Vendor acknowledgement and completion after the invoice is paid
"""

from decimal import Decimal

import pytest

from procurement_kernel.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    PreconditionError,
    ValidationError,
)
from procurement_modules.loi import LOIStatus
from procurement_modules.order import OrderStatus


class TestConfirmFromLOI:

    def test_creates_pending_order(self, chain, order_service, loi_service, pm, audit_records):
        loi = chain.accepted_loi()
        order = order_service.confirm_from_loi(pm, loi.id)
        assert order.status is OrderStatus.PENDING
        assert order.order_number == "PO-000001"
        assert order.loi_id == loi.id
        assert order.total_amount == Decimal("1062")
        assert order.advance_amount == Decimal("212.4")
        assert order.items[0].quantity == Decimal("10")
        assert loi_service.get(loi.id).status is LOIStatus.CONFIRMED
        actions = [(r["entity_type"], r["action"]) for r in audit_records[-2:]]
        assert actions == [("order", "create"), ("loi", "confirm")]

    def test_advance_override(self, chain, order_service, pm):
        loi = chain.accepted_loi()
        order = order_service.confirm_from_loi(pm, loi.id, advance_amount=Decimal("500"))
        assert order.advance_amount == Decimal("500")

    @pytest.mark.parametrize("amount", [Decimal("1062.01"), Decimal("-1")])
    def test_advance_override_out_of_range(self, chain, order_service, loi_service, pm, amount):
        loi = chain.accepted_loi()
        with pytest.raises(ValidationError) as exc_info:
            order_service.confirm_from_loi(pm, loi.id, advance_amount=amount)
        assert exc_info.value.field == "advance_amount"
        assert loi_service.get(loi.id).status is LOIStatus.ACCEPTED

    def test_zero_advance(self, chain, order_service, pm):
        quotation = chain.accepted_quotation(chain.quotation(advance_payment_percent="0"))
        loi = chain.accepted_loi(chain.loi(quotation))
        assert order_service.confirm_from_loi(pm, loi.id).advance_amount == Decimal("0")

    @pytest.mark.parametrize("respond", [None, "reject"])
    def test_loi_must_be_accepted(self, chain, order_service, loi_service, pm, vendor, respond):
        loi = chain.loi()
        if respond == "reject":
            loi_service.reject(vendor, loi.id, "no")
        with pytest.raises(PreconditionError):
            order_service.confirm_from_loi(pm, loi.id)
        assert loi_service.get(loi.id).status is not LOIStatus.CONFIRMED
        assert order_service.list_orders() == []

    def test_second_order_conflicts(self, chain, order_service, pm):
        order = chain.order(confirm=False)
        with pytest.raises(ConflictError) as exc_info:
            order_service.confirm_from_loi(pm, order.loi_id)
        assert exc_info.value.existing_id == order.id
        assert len(order_service.list_orders()) == 1

    def test_vendor_cannot_create(self, chain, order_service, vendor):
        loi = chain.accepted_loi()
        with pytest.raises(AuthorizationError):
            order_service.confirm_from_loi(vendor, loi.id)


class TestConfirm:

    def test_vendor_confirms(self, chain, order_service, vendor):
        order = chain.order(confirm=False)
        assert order_service.confirm(vendor, order.id).status is OrderStatus.CONFIRMED

    def test_manager_cannot_confirm(self, chain, order_service, pm):
        order = chain.order(confirm=False)
        with pytest.raises(AuthorizationError):
            order_service.confirm(pm, order.id)

    def test_other_vendor_cannot_confirm(self, chain, order_service, other_vendor):
        order = chain.order(confirm=False)
        with pytest.raises(AuthorizationError):
            order_service.confirm(other_vendor, order.id)

    def test_confirm_twice_invalid_state(self, chain, order_service, vendor):
        order = chain.order()
        with pytest.raises(InvalidStateError):
            order_service.confirm(vendor, order.id)


class TestComplete:

    def test_pending_order_cannot_complete(self, chain, order_service, pm):
        order = chain.order(confirm=False)
        with pytest.raises(InvalidStateError):
            order_service.complete(pm, order.id)

    def test_requires_invoice(self, chain, order_service, pm):
        order = chain.order()
        with pytest.raises(PreconditionError) as exc_info:
            order_service.complete(pm, order.id)
        assert exc_info.value.current_state == "missing"

    def test_requires_paid_invoice(self, chain, order_service, pm):
        order = chain.order()
        chain.accepted_invoice(chain.invoice(order))
        with pytest.raises(PreconditionError) as exc_info:
            order_service.complete(pm, order.id)
        assert exc_info.value.current_state == "accepted"

    def test_completes_after_paid(self, chain, order_service, invoice_service, pm):
        order = chain.order()
        invoice = chain.accepted_invoice(chain.invoice(order))
        chain.completed_payment(order, "1062")
        invoice_service.mark_paid(pm, invoice.id)
        completed = order_service.complete(pm, order.id)
        assert completed.status is OrderStatus.COMPLETED

    def test_complete_twice_conflicts(self, chain, order_service, invoice_service, pm):
        order = chain.order()
        invoice = chain.accepted_invoice(chain.invoice(order))
        chain.completed_payment(order, "1062")
        invoice_service.mark_paid(pm, invoice.id)
        order_service.complete(pm, order.id)
        with pytest.raises(ConflictError):
            order_service.complete(pm, order.id)

    def test_vendor_cannot_complete(self, chain, order_service, invoice_service, pm, vendor):
        order = chain.order()
        invoice = chain.accepted_invoice(chain.invoice(order))
        invoice_service.mark_paid(pm, invoice.id)
        with pytest.raises(AuthorizationError):
            order_service.complete(vendor, order.id)


# =============================================================================
# Listing
# =============================================================================


class TestListOrders:

    def test_filter_by_status(self, chain, order_service, vendor):
        confirmed = chain.order()
        chain.order(confirm=False)
        assert [o.id for o in order_service.list_orders(status="confirmed")] == [confirmed.id]
        assert len(order_service.list_orders(vendor_id=vendor.vendor_id)) == 2

    def test_unknown_status_filter(self, order_service):
        with pytest.raises(ValidationError) as exc_info:
            order_service.list_orders(status="shipped")
        assert exc_info.value.field == "status"
