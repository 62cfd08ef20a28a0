"""
Enquiry Module Service (``procurement_modules.enquiry.service``).

Responsibility
--------------
Purchasing managers raise, amend and withdraw enquiries; the addressed
vendor may reject one.  Quotation creation and acceptance move the enquiry
forward through the quotation service.

Invariants enforced
-------------------
* An enquiry has at least one item, each naming an existing component
  (any status) with a positive quantity.
* No update once ``accepted`` or ``rejected``.
* A vendor cannot reject an enquiry that already has an accepted quotation.
* Delete only while ``raised`` and unquoted.

Failure modes
-------------
* ValidationError, AuthorizationError, InvalidStateError, ConflictError,
  NotFoundError.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any
from uuid import UUID

from procurement_kernel.domain.actor import Actor, ActorRole
from procurement_kernel.exceptions import ConflictError, InvalidStateError, ValidationError
from procurement_kernel.logging_config import get_logger
from procurement_kernel.services.sequence_service import SequenceService
from procurement_modules._service_helpers import (
    DocumentService,
    optional_text,
    parse_choice,
    parse_date,
    parse_positive,
    parse_uuid,
    require_role,
    require_text,
    require_vendor_scope,
)
from procurement_modules.catalog.orm import ComponentModel
from procurement_modules.enquiry.models import Enquiry, EnquiryStatus
from procurement_modules.enquiry.orm import EnquiryItemModel, EnquiryModel
from procurement_modules.enquiry.workflows import ENQUIRY_WORKFLOW

logger = get_logger("modules.enquiry.service")

UPDATABLE_FIELDS = ("title", "description", "items", "required_delivery_date")

_CLOSED = (EnquiryStatus.ACCEPTED.value, EnquiryStatus.REJECTED.value)


class EnquiryService(DocumentService):
    """
    Enquiry lifecycle facade.

    Contract
    --------
    * ``create``, ``update`` and ``delete`` are purchasing-manager
      operations; ``reject`` belongs to the addressed vendor.
    * Each mutating method owns its transaction.
    """

    def _build_items(
        self, items: Sequence[Mapping[str, Any]] | None, actor: Actor
    ) -> list[EnquiryItemModel]:
        if not items:
            raise ValidationError("items", "at least one line item is required")
        rows = []
        for index, item in enumerate(items):
            where = f"items[{index}]"
            if not isinstance(item, Mapping):
                raise ValidationError(where, "must be a mapping")
            component_id = parse_uuid(item.get("component_id"), f"{where}.component_id")
            component = self._repo.find(ComponentModel, component_id)
            if component is None:
                raise ValidationError(
                    f"{where}.component_id", f"component {component_id} does not exist"
                )
            unit = item.get("unit")
            if unit is None:
                unit = component.unit_of_measurement
            rows.append(
                EnquiryItemModel(
                    line_number=index + 1,
                    component_id=component_id,
                    quantity=parse_positive(item.get("quantity"), f"{where}.quantity"),
                    unit=require_text(unit, f"{where}.unit"),
                    created_by_id=actor.actor_id,
                )
            )
        return rows

    def create(
        self,
        actor: Actor,
        *,
        vendor_id: UUID,
        title: str,
        items: Sequence[Mapping[str, Any]],
        description: str = "",
        required_delivery_date: Any = None,
    ) -> Enquiry:
        """Raise an enquiry to ``vendor_id``."""
        require_role(actor, ActorRole.PURCHASING_MANAGER, "create enquiry")
        title = require_text(title, "title")
        vendor_id = parse_uuid(vendor_id, "vendor_id")
        delivery = (
            parse_date(required_delivery_date, "required_delivery_date")
            if required_delivery_date is not None
            else None
        )

        with self._operation(
            actor, "enquiry_create", vendor_id=str(vendor_id), item_count=len(items or ())
        ) as records:
            item_rows = self._build_items(items, actor)
            row = EnquiryModel(
                enquiry_number=self._sequences.next_document_number(SequenceService.ENQUIRY),
                vendor_id=vendor_id,
                title=title,
                description=optional_text(description, "description") or "",
                required_delivery_date=delivery,
                status=ENQUIRY_WORKFLOW.initial_state,
                created_by_id=actor.actor_id,
            )
            row.items = item_rows
            self._repo.add(row)
            self._record_creation(row, ENQUIRY_WORKFLOW, actor, records)
            return row.to_dto()

    def update(self, actor: Actor, enquiry_id: UUID, patch: Mapping[str, Any]) -> Enquiry:
        """Amend an open enquiry.  ``items`` replaces the whole item list."""
        require_role(actor, ActorRole.PURCHASING_MANAGER, "update enquiry")
        if not patch:
            raise ValidationError("patch", "no fields to change")
        for key in patch:
            if key not in UPDATABLE_FIELDS:
                raise ValidationError(key, "field cannot be updated")

        with self._operation(
            actor, "enquiry_update", enquiry_id=str(enquiry_id), fields=sorted(patch)
        ):
            row = self._repo.get(EnquiryModel, enquiry_id)
            prior = row.status
            if prior in _CLOSED:
                raise InvalidStateError(
                    row.entity_type,
                    row.id,
                    prior,
                    "update",
                    (EnquiryStatus.RAISED.value, EnquiryStatus.QUOTED.value),
                )

            if "title" in patch:
                row.title = require_text(patch["title"], "title")
            if "description" in patch:
                row.description = optional_text(patch["description"], "description") or ""
            if "required_delivery_date" in patch:
                value = patch["required_delivery_date"]
                row.required_delivery_date = (
                    None if value is None else parse_date(value, "required_delivery_date")
                )
            if "items" in patch:
                new_items = self._build_items(patch["items"], actor)
                # Old rows must be gone before new line numbers are inserted.
                row.items.clear()
                self._session.flush()
                row.items.extend(new_items)

            row.updated_by_id = actor.actor_id
            self._repo.save(row, expected_status=prior)
            return row.to_dto()

    def reject(self, actor: Actor, enquiry_id: UUID, reason: str) -> Enquiry:
        """Vendor declines the enquiry."""
        with self._operation(actor, "enquiry_reject", enquiry_id=str(enquiry_id)) as records:
            row = self._repo.get(EnquiryModel, enquiry_id)
            require_vendor_scope(actor, row.vendor_id, "reject enquiry")
            accepted = self._quotation_ids(row.id, status="accepted")
            if accepted:
                raise ConflictError(
                    row.entity_type,
                    row.id,
                    "enquiry already has an accepted quotation",
                    existing_id=accepted[0],
                )
            self._apply_transition(
                row,
                ENQUIRY_WORKFLOW,
                "reject",
                actor,
                records,
                reason=reason,
                rejection_reason=(reason or "").strip() or None,
            )
            return row.to_dto()

    def delete(self, actor: Actor, enquiry_id: UUID) -> None:
        """Withdraw an enquiry nobody has quoted yet."""
        require_role(actor, ActorRole.PURCHASING_MANAGER, "delete enquiry")
        with self._operation(actor, "enquiry_delete", enquiry_id=str(enquiry_id)):
            row = self._repo.get(EnquiryModel, enquiry_id)
            if row.status != EnquiryStatus.RAISED.value or self._quotation_ids(row.id):
                raise InvalidStateError(
                    row.entity_type,
                    row.id,
                    row.status,
                    "delete",
                    (EnquiryStatus.RAISED.value,),
                )
            self._repo.delete(row)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, enquiry_id: UUID) -> Enquiry:
        return self._repo.get(EnquiryModel, enquiry_id).to_dto()

    def list_enquiries(
        self,
        vendor_id: UUID | None = None,
        status: EnquiryStatus | str | None = None,
    ) -> list[Enquiry]:
        filters: dict[str, Any] = {}
        if vendor_id is not None:
            filters["vendor_id"] = vendor_id
        if status is not None:
            filters["status"] = parse_choice(EnquiryStatus, status, "status").value
        rows = self._repo.query(EnquiryModel, order_by=EnquiryModel.enquiry_number, **filters)
        return [row.to_dto() for row in rows]

    def _quotation_ids(self, enquiry_id: UUID, **filters: Any) -> list[UUID]:
        from procurement_modules.quotation.orm import QuotationModel

        rows = self._repo.query(QuotationModel, enquiry_id=enquiry_id, **filters)
        return [row.id for row in rows]
