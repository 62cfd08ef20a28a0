"""
Order Module Service (``procurement_modules.order.service``).

Responsibility
--------------
The single conversion point from negotiation to fulfilment: an accepted
LOI becomes a purchase order, and the LOI becomes ``confirmed`` in the same
transaction.  Also the vendor's acknowledgement and the final completion.

Invariants enforced
-------------------
* Order creation and the LOI status change commit together or not at all.
* At most one order per LOI.
* ``advance_amount`` defaults to ``total x advance% / 100``; an explicit
  override must lie within [0, total].
* An order completes only once its invoice is ``paid``.

Failure modes
-------------
* PreconditionError -- LOI not accepted (LOI left unchanged); no paid
  invoice on complete.
* ConflictError -- order already exists for the LOI.
* ValidationError -- advance override out of range.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from procurement_engines.pricing import advance_amount as compute_advance
from procurement_kernel.domain.actor import Actor, ActorRole
from procurement_kernel.exceptions import ConflictError, PreconditionError, ValidationError
from procurement_kernel.logging_config import get_logger
from procurement_kernel.services.sequence_service import SequenceService
from procurement_modules._service_helpers import (
    DocumentService,
    parse_choice,
    parse_non_negative,
    require_role,
    require_vendor_scope,
)
from procurement_modules.loi.models import LOIStatus
from procurement_modules.loi.orm import LOIModel
from procurement_modules.loi.workflows import LOI_WORKFLOW
from procurement_modules.order.models import Order, OrderStatus
from procurement_modules.order.orm import OrderItemModel, OrderModel
from procurement_modules.order.workflows import ORDER_WORKFLOW

logger = get_logger("modules.order.service")


class OrderService(DocumentService):
    """
    Purchase order facade.

    Contract
    --------
    * ``confirm_from_loi`` and ``complete`` are purchasing-manager
      operations; ``confirm`` is the vendor's acknowledgement.
    """

    def confirm_from_loi(
        self,
        actor: Actor,
        loi_id: UUID,
        advance_amount: Any = None,
    ) -> Order:
        """Create the order for an accepted LOI and confirm the LOI."""
        require_role(actor, ActorRole.PURCHASING_MANAGER, "create order")
        override = (
            parse_non_negative(advance_amount, "advance_amount")
            if advance_amount is not None
            else None
        )

        with self._operation(actor, "order_confirm_from_loi", loi_id=str(loi_id)) as records:
            loi = self._repo.get(LOIModel, loi_id)
            existing = self._repo.query(OrderModel, loi_id=loi.id)
            if existing:
                raise ConflictError(
                    existing[0].entity_type,
                    existing[0].id,
                    "an order already exists for this LOI",
                    existing_id=existing[0].id,
                )
            if loi.status != LOIStatus.ACCEPTED.value:
                raise PreconditionError(
                    loi.entity_type, loi.id, loi.status, (LOIStatus.ACCEPTED.value,)
                )

            advance = (
                override
                if override is not None
                else compute_advance(loi.total_amount, loi.advance_payment_percent)
            )
            if advance > loi.total_amount:
                raise ValidationError("advance_amount", "must not exceed the order total")

            row = OrderModel(
                order_number=self._sequences.next_document_number(SequenceService.ORDER),
                loi_id=loi.id,
                vendor_id=loi.vendor_id,
                total_amount=loi.total_amount,
                advance_payment_percent=loi.advance_payment_percent,
                advance_amount=advance,
                expected_delivery_date=loi.expected_delivery_date,
                status=ORDER_WORKFLOW.initial_state,
                created_by_id=actor.actor_id,
            )
            row.items = [OrderItemModel.copy_of(line, actor.actor_id) for line in loi.items]
            self._repo.add(row)
            self._record_creation(
                row,
                ORDER_WORKFLOW,
                actor,
                records,
                details={"loi_id": str(loi.id), "advance_amount": str(advance)},
            )
            self._apply_transition(
                loi,
                LOI_WORKFLOW,
                "confirm",
                actor,
                records,
                details={"order_id": str(row.id)},
            )
            return row.to_dto()

    def confirm(self, actor: Actor, order_id: UUID) -> Order:
        """Vendor acknowledges the order; invoicing opens."""
        with self._operation(actor, "order_confirm", order_id=str(order_id)) as records:
            row = self._repo.get(OrderModel, order_id)
            require_vendor_scope(actor, row.vendor_id, "confirm order")
            self._apply_transition(row, ORDER_WORKFLOW, "confirm", actor, records)
            return row.to_dto()

    def complete(self, actor: Actor, order_id: UUID) -> Order:
        with self._operation(actor, "order_complete", order_id=str(order_id)) as records:
            row = self._repo.get(OrderModel, order_id)
            if row.status == OrderStatus.CONFIRMED.value:
                self._require_paid_invoice(row)
            self._apply_transition(row, ORDER_WORKFLOW, "complete", actor, records)
            return row.to_dto()

    def _require_paid_invoice(self, order: OrderModel) -> None:
        from procurement_modules.invoice.orm import InvoiceModel

        invoices = [
            inv
            for inv in self._repo.query(
                InvoiceModel, order_by=InvoiceModel.invoice_number, order_id=order.id
            )
            if inv.status != "rejected"
        ]
        if not invoices:
            raise PreconditionError("invoice", order.id, "missing", ("paid",))
        if invoices[-1].status != "paid":
            raise PreconditionError(
                invoices[-1].entity_type, invoices[-1].id, invoices[-1].status, ("paid",)
            )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, order_id: UUID) -> Order:
        return self._repo.get(OrderModel, order_id).to_dto()

    def list_orders(
        self,
        vendor_id: UUID | None = None,
        status: OrderStatus | str | None = None,
    ) -> list[Order]:
        filters: dict[str, Any] = {}
        if vendor_id is not None:
            filters["vendor_id"] = vendor_id
        if status is not None:
            filters["status"] = parse_choice(OrderStatus, status, "status").value
        rows = self._repo.query(OrderModel, order_by=OrderModel.order_number, **filters)
        return [row.to_dto() for row in rows]
