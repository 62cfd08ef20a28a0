"""
Catalog Module Service (``procurement_modules.catalog.service``).

Responsibility
--------------
Vendor component submission and the purchasing manager's approval of it.

Invariants enforced
-------------------
* A new component starts ``pending`` with ``submission_count == 1``.
* Editing a ``rejected`` component is a resubmission: the reason is
  cleared, status returns to ``pending`` and the count grows by exactly 1.
* Editing an ``approved`` component may only touch the fields listed in
  ``ProcurementSettings.approved_editable_fields``; status stays approved.
* Catalog edits never reach existing documents; quotation lines keep their
  own price snapshot.

Failure modes
-------------
* ValidationError -- bad field value, unknown or protected patch field.
* AuthorizationError -- wrong role, or a vendor editing another vendor's
  component.
* InvalidStateError -- approve/reject outside ``pending``; restricted edit
  of an approved component.
* ConflictError -- approving twice, duplicate code, concurrent write.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any
from uuid import UUID

from procurement_kernel.domain.actor import Actor, ActorRole
from procurement_kernel.exceptions import InvalidStateError, ValidationError
from procurement_kernel.logging_config import get_logger
from procurement_kernel.services.sequence_service import SequenceService
from procurement_modules._service_helpers import (
    DocumentService,
    optional_text,
    parse_choice,
    parse_int,
    parse_percent,
    parse_positive,
    require_role,
    require_text,
    require_vendor_scope,
)
from procurement_modules.catalog.models import (
    Component,
    ComponentEditResult,
    ComponentStatus,
)
from procurement_modules.catalog.orm import ComponentModel
from procurement_modules.catalog.workflows import COMPONENT_WORKFLOW

logger = get_logger("modules.catalog.service")

_FIELD_PARSERS: dict[str, Callable[[Any, str], Any]] = {
    "code": require_text,
    "name": require_text,
    "description": lambda value, field: optional_text(value, field) or "",
    "hsn_code": optional_text,
    "unit_of_measurement": require_text,
    "price_per_unit": parse_positive,
    "discount_percent": parse_percent,
    "cgst_percent": parse_percent,
    "sgst_percent": parse_percent,
    "stock": lambda value, field: parse_int(value, field, minimum=0),
    "min_order_qty": lambda value, field: parse_int(value, field, minimum=1),
    "lead_time_days": lambda value, field: parse_int(value, field, minimum=0),
}

PROTECTED_FIELDS = frozenset({
    "id",
    "component_number",
    "vendor_id",
    "status",
    "rejection_reason",
    "submission_count",
    "version",
})


def _parse_patch(patch: Mapping[str, Any]) -> dict[str, Any]:
    if not patch:
        raise ValidationError("patch", "no fields to change")
    parsed = {}
    for key, value in patch.items():
        if key in PROTECTED_FIELDS:
            raise ValidationError(key, "field cannot be edited")
        parser = _FIELD_PARSERS.get(key)
        if parser is None:
            raise ValidationError(key, "unknown component field")
        parsed[key] = parser(value, key)
    return parsed


class CatalogService(DocumentService):
    """
    Component submission, editing and approval.

    Contract
    --------
    * ``submit`` and ``edit`` are vendor operations on the vendor's own
      components; ``approve`` and ``reject`` belong to purchasing managers.
    * Every mutating method owns its transaction and returns the DTO as
      committed.
    """

    def submit(
        self,
        actor: Actor,
        *,
        name: str,
        code: str,
        price_per_unit: Any,
        unit_of_measurement: str,
        description: str = "",
        hsn_code: str | None = None,
        discount_percent: Any = 0,
        cgst_percent: Any = 0,
        sgst_percent: Any = 0,
        stock: int = 0,
        min_order_qty: int = 1,
        lead_time_days: int = 0,
    ) -> Component:
        """Create a ``pending`` component for the calling vendor."""
        require_role(actor, ActorRole.VENDOR, "submit component")
        fields = _parse_patch({
            "name": name,
            "code": code,
            "price_per_unit": price_per_unit,
            "unit_of_measurement": unit_of_measurement,
            "description": description,
            "hsn_code": hsn_code,
            "discount_percent": discount_percent,
            "cgst_percent": cgst_percent,
            "sgst_percent": sgst_percent,
            "stock": stock,
            "min_order_qty": min_order_qty,
            "lead_time_days": lead_time_days,
        })

        with self._operation(actor, "catalog_submit", component_code=fields["code"]) as records:
            row = ComponentModel(
                component_number=self._sequences.next_document_number(
                    SequenceService.COMPONENT
                ),
                vendor_id=actor.vendor_id,
                status=COMPONENT_WORKFLOW.initial_state,
                submission_count=1,
                created_by_id=actor.actor_id,
                **fields,
            )
            self._repo.add(row)
            self._record_creation(row, COMPONENT_WORKFLOW, actor, records)
            return row.to_dto()

    def edit(
        self,
        actor: Actor,
        component_id: UUID,
        patch: Mapping[str, Any],
    ) -> ComponentEditResult:
        """
        Apply ``patch`` to a component.

        pending  -> fields change, status unchanged.
        approved -> only approved-editable fields, status unchanged.
        rejected -> resubmission back to pending.
        """
        require_role(actor, ActorRole.VENDOR, "edit component")
        changes = _parse_patch(patch)

        with self._operation(
            actor, "catalog_edit", component_id=str(component_id), fields=sorted(changes)
        ) as records:
            row = self._repo.get(ComponentModel, component_id)
            require_vendor_scope(actor, row.vendor_id, "edit component")

            if row.status == ComponentStatus.APPROVED.value:
                allowed = set(self._settings.approved_editable_fields)
                restricted = sorted(set(changes) - allowed)
                if restricted:
                    raise InvalidStateError(
                        row.entity_type,
                        row.id,
                        row.status,
                        f"edit {', '.join(restricted)} of",
                        (ComponentStatus.PENDING.value, ComponentStatus.REJECTED.value),
                    )

            resubmitted = row.status == ComponentStatus.REJECTED.value
            if resubmitted:
                self._apply_transition(
                    row,
                    COMPONENT_WORKFLOW,
                    "resubmit",
                    actor,
                    records,
                    details={"fields": sorted(changes)},
                    rejection_reason=None,
                    submission_count=row.submission_count + 1,
                    **changes,
                )
            else:
                prior = row.status
                for key, value in changes.items():
                    setattr(row, key, value)
                row.updated_by_id = actor.actor_id
                self._repo.save(row, expected_status=prior)

            if resubmitted:
                logger.info(
                    "component_resubmitted",
                    extra={
                        "component_id": str(row.id),
                        "submission_count": row.submission_count,
                    },
                )
            return ComponentEditResult(component=row.to_dto(), resubmitted=resubmitted)

    def approve(self, actor: Actor, component_id: UUID) -> Component:
        with self._operation(
            actor, "catalog_approve", component_id=str(component_id)
        ) as records:
            row = self._repo.get(ComponentModel, component_id)
            self._apply_transition(row, COMPONENT_WORKFLOW, "approve", actor, records)
            return row.to_dto()

    def reject(self, actor: Actor, component_id: UUID, reason: str) -> Component:
        """Reject a pending component; ``reason`` must not be blank."""
        with self._operation(
            actor, "catalog_reject", component_id=str(component_id)
        ) as records:
            row = self._repo.get(ComponentModel, component_id)
            self._apply_transition(
                row,
                COMPONENT_WORKFLOW,
                "reject",
                actor,
                records,
                reason=reason,
                rejection_reason=(reason or "").strip() or None,
            )
            return row.to_dto()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, component_id: UUID) -> Component:
        return self._repo.get(ComponentModel, component_id).to_dto()

    def list_components(
        self,
        vendor_id: UUID | None = None,
        status: ComponentStatus | str | None = None,
    ) -> list[Component]:
        filters: dict[str, Any] = {}
        if vendor_id is not None:
            filters["vendor_id"] = vendor_id
        if status is not None:
            filters["status"] = parse_choice(ComponentStatus, status, "status").value
        rows = self._repo.query(
            ComponentModel, order_by=ComponentModel.component_number, **filters
        )
        return [row.to_dto() for row in rows]
