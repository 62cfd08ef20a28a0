"""
Tests for the Catalog module service.

Validates:
- Vendor submission creates a pending component with submission_count 1
- Manager approval / rejection and their role gates
- Resubmission of a rejected component on edit
- Restricted editing of approved components
- Duplicate codes and repeated approval are conflicts
- Audit records and operation logs
"""

from decimal import Decimal

import pytest

from procurement_kernel.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from procurement_modules.catalog import ComponentStatus


def submit_kwargs(**overrides):
    fields = {
        "name": "Hex bolt M8",
        "code": "HB-100",
        "price_per_unit": Decimal("100"),
        "unit_of_measurement": "pcs",
    }
    fields.update(overrides)
    return fields


# =============================================================================
# Submission
# =============================================================================


class TestSubmit:

    def test_submit_creates_pending(self, catalog_service, vendor):
        component = catalog_service.submit(vendor, **submit_kwargs())
        assert component.status is ComponentStatus.PENDING
        assert component.submission_count == 1
        assert component.vendor_id == vendor.vendor_id
        assert component.component_number == "CMP-000001"
        assert component.price_per_unit == Decimal("100")

    def test_manager_cannot_submit(self, catalog_service, pm):
        with pytest.raises(AuthorizationError):
            catalog_service.submit(pm, **submit_kwargs())

    @pytest.mark.parametrize(
        "field, value",
        [
            ("price_per_unit", Decimal("0")),
            ("price_per_unit", "abc"),
            ("discount_percent", Decimal("101")),
            ("cgst_percent", Decimal("-1")),
            ("name", "   "),
            ("stock", -5),
            ("min_order_qty", 0),
        ],
    )
    def test_invalid_fields(self, catalog_service, vendor, field, value):
        with pytest.raises(ValidationError) as exc_info:
            catalog_service.submit(vendor, **submit_kwargs(**{field: value}))
        assert exc_info.value.field == field

    def test_float_price_rejected(self, catalog_service, vendor):
        with pytest.raises(ValidationError):
            catalog_service.submit(vendor, **submit_kwargs(price_per_unit=12.5))

    def test_duplicate_code_conflicts(self, catalog_service, vendor):
        catalog_service.submit(vendor, **submit_kwargs(code="DUP"))
        with pytest.raises(ConflictError):
            catalog_service.submit(vendor, **submit_kwargs(code="DUP"))

    def test_same_code_for_other_vendor_allowed(self, catalog_service, vendor, other_vendor):
        catalog_service.submit(vendor, **submit_kwargs(code="SHARED"))
        component = catalog_service.submit(other_vendor, **submit_kwargs(code="SHARED"))
        assert component.vendor_id == other_vendor.vendor_id

    def test_creation_audited(self, catalog_service, vendor, audit_records):
        component = catalog_service.submit(vendor, **submit_kwargs())
        assert len(audit_records) == 1
        assert audit_records[0]["outcome"] == "created"
        assert audit_records[0]["entity_id"] == str(component.id)
        assert audit_records[0]["to_state"] == "pending"


# =============================================================================
# Approval
# =============================================================================


class TestApproval:

    def test_approve(self, chain, catalog_service, pm, audit_records):
        component = chain.component(approve=False)
        approved = catalog_service.approve(pm, component.id)
        assert approved.status is ComponentStatus.APPROVED
        assert audit_records[-1]["action"] == "approve"
        assert audit_records[-1]["from_state"] == "pending"

    def test_vendor_cannot_approve(self, chain, catalog_service, vendor):
        component = chain.component(approve=False)
        with pytest.raises(AuthorizationError):
            catalog_service.approve(vendor, component.id)
        assert catalog_service.get(component.id).status is ComponentStatus.PENDING

    def test_approve_twice_conflicts(self, chain, catalog_service, pm):
        component = chain.component()
        with pytest.raises(ConflictError):
            catalog_service.approve(pm, component.id)

    def test_reject_requires_reason(self, chain, catalog_service, pm):
        component = chain.component(approve=False)
        with pytest.raises(ValidationError):
            catalog_service.reject(pm, component.id, "  ")

    def test_reject_records_reason(self, chain, catalog_service, pm):
        component = chain.component(approve=False)
        rejected = catalog_service.reject(pm, component.id, " price too high ")
        assert rejected.status is ComponentStatus.REJECTED
        assert rejected.rejection_reason == "price too high"

    def test_reject_approved_is_invalid_state(self, chain, catalog_service, pm):
        component = chain.component()
        with pytest.raises(InvalidStateError):
            catalog_service.reject(pm, component.id, "changed our mind")

    def test_unknown_component(self, catalog_service, pm, new_id):
        with pytest.raises(NotFoundError):
            catalog_service.approve(pm, new_id)

    def test_operation_logs(self, chain, catalog_service, pm, vendor, captured_logs):
        component = chain.component(approve=False)
        catalog_service.approve(pm, component.id)
        with pytest.raises(AuthorizationError):
            catalog_service.reject(vendor, component.id, "nope")
        messages = [r["message"] for r in captured_logs()]
        assert "catalog_approve_committed" in messages
        rolled_back = [r for r in captured_logs() if r["message"] == "catalog_reject_rolled_back"]
        assert rolled_back[0]["error_code"] == "UNAUTHORIZED_ACTOR"


# =============================================================================
# Editing
# =============================================================================


class TestEdit:

    def test_edit_pending_keeps_status(self, chain, catalog_service, vendor):
        component = chain.component(approve=False)
        result = catalog_service.edit(vendor, component.id, {"name": "Hex bolt M10"})
        assert not result.resubmitted
        assert result.component.name == "Hex bolt M10"
        assert result.component.status is ComponentStatus.PENDING

    def test_edit_rejected_resubmits(self, chain, catalog_service, pm, vendor, audit_records):
        component = chain.component(approve=False)
        catalog_service.reject(pm, component.id, "missing HSN code")
        result = catalog_service.edit(vendor, component.id, {"hsn_code": "7318"})
        assert result.resubmitted
        assert result.component.status is ComponentStatus.PENDING
        assert result.component.rejection_reason is None
        assert result.component.submission_count == 2
        assert result.component.hsn_code == "7318"
        assert audit_records[-1]["action"] == "resubmit"

    def test_second_resubmission_counts_again(self, chain, catalog_service, pm, vendor):
        component = chain.component(approve=False)
        for attempt in range(2):
            catalog_service.reject(pm, component.id, f"attempt {attempt}")
            catalog_service.edit(vendor, component.id, {"stock": 10 + attempt})
        assert catalog_service.get(component.id).submission_count == 3

    def test_edit_approved_allowed_field(self, chain, catalog_service, vendor):
        component = chain.component()
        result = catalog_service.edit(
            vendor, component.id, {"price_per_unit": Decimal("120"), "stock": 42}
        )
        assert result.component.status is ComponentStatus.APPROVED
        assert result.component.price_per_unit == Decimal("120")
        assert result.component.stock == 42

    def test_edit_approved_restricted_field(self, chain, catalog_service, vendor):
        component = chain.component()
        with pytest.raises(InvalidStateError):
            catalog_service.edit(vendor, component.id, {"name": "Renamed"})
        assert catalog_service.get(component.id).name == "Hex bolt M8"

    @pytest.mark.parametrize("field", ["status", "vendor_id", "submission_count"])
    def test_protected_fields(self, chain, catalog_service, vendor, field):
        component = chain.component(approve=False)
        with pytest.raises(ValidationError):
            catalog_service.edit(vendor, component.id, {field: "x"})

    def test_unknown_field(self, chain, catalog_service, vendor):
        component = chain.component(approve=False)
        with pytest.raises(ValidationError):
            catalog_service.edit(vendor, component.id, {"colour": "red"})

    def test_other_vendor_cannot_edit(self, chain, catalog_service, other_vendor):
        component = chain.component(approve=False)
        with pytest.raises(AuthorizationError):
            catalog_service.edit(other_vendor, component.id, {"stock": 1})

    def test_catalog_edit_does_not_touch_quotation(self, chain, catalog_service, vendor):
        quotation = chain.quotation()
        component_id = quotation.items[0].component_id
        catalog_service.edit(vendor, component_id, {"price_per_unit": Decimal("999")})
        assert chain.quotations.get(quotation.id).items[0].unit_price == Decimal("100")


class TestListComponents:

    def test_filters(self, chain, catalog_service, vendor, other_vendor):
        chain.component()
        chain.component(approve=False)
        catalog_service.submit(other_vendor, **submit_kwargs(code="OTHER"))
        mine = catalog_service.list_components(vendor_id=vendor.vendor_id)
        assert len(mine) == 2
        pending = catalog_service.list_components(status="pending")
        assert {c.code for c in pending} == {"HB-002", "OTHER"}

    def test_unknown_status_filter(self, catalog_service):
        with pytest.raises(ValidationError) as exc_info:
            catalog_service.list_components(status="archived")
        assert exc_info.value.field == "status"
