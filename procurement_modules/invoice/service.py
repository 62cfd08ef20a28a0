"""
Invoice Module Service (``procurement_modules.invoice.service``).

Responsibility
--------------
Vendor invoices against confirmed orders and the purchasing manager's
processing of them: receive, accept or reject, and mark paid.

Invariants enforced
-------------------
* Only a ``confirmed`` order can be invoiced.
* At most one non-rejected invoice per order.  Rejecting an invoice frees
  the order for a fresh one.
* Header totals are recomputed from the submitted lines, never copied from
  the order.  Lines may only reference components on the order.
* ``mark_paid`` is a manual bookkeeping override.  It always succeeds from
  ``accepted``; when logged payments do not settle the invoice the
  divergence is logged and attached to the audit record.

Failure modes
-------------
* PreconditionError -- order not confirmed.
* ConflictError -- an open invoice already exists (``existing_id`` set).
* ValidationError -- bad line data or a component not on the order.
* InvalidStateError -- transition from the wrong state.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any
from uuid import UUID

from sqlalchemy.orm.attributes import flag_modified

from procurement_engines.ledger import compute_ledger
from procurement_engines.pricing import invoice_line_amounts, invoice_totals
from procurement_kernel.db.types import round_money
from procurement_kernel.domain.actor import Actor, ActorRole
from procurement_kernel.exceptions import ConflictError, PreconditionError
from procurement_kernel.logging_config import get_logger
from procurement_kernel.services.sequence_service import SequenceService
from procurement_modules._lines import line_snapshots, parse_priced_lines
from procurement_modules._service_helpers import (
    DocumentService,
    optional_text,
    parse_choice,
    require_role,
    require_vendor_scope,
)
from procurement_modules.invoice.models import Invoice, InvoiceStatus, InvoiceSummary
from procurement_modules.invoice.orm import InvoiceItemModel, InvoiceModel
from procurement_modules.invoice.workflows import INVOICE_WORKFLOW
from procurement_modules.order.models import OrderStatus
from procurement_modules.order.orm import OrderModel

logger = get_logger("modules.invoice.service")


class InvoiceService(DocumentService):
    """
    Invoice facade.

    Contract
    --------
    * ``create_invoice`` belongs to the order's vendor.  Every transition
      after that is a purchasing-manager action.
    * Omitting ``items`` invoices the order lines as agreed.
    """

    def create_invoice(
        self,
        actor: Actor,
        order_id: UUID,
        items: Sequence[Mapping[str, Any]] | None = None,
        notes: str | None = None,
    ) -> Invoice:
        require_role(actor, ActorRole.VENDOR, "create invoice")
        with self._operation(actor, "invoice_create", order_id=str(order_id)) as records:
            order = self._repo.get(OrderModel, order_id)
            require_vendor_scope(actor, order.vendor_id, "create invoice")
            if order.status != OrderStatus.CONFIRMED.value:
                raise PreconditionError(
                    order.entity_type, order.id, order.status, (OrderStatus.CONFIRMED.value,)
                )
            self._reject_open_invoice(order.id)
            self._claim_order(order, actor)

            if items is None:
                items = [
                    {"component_id": line.component_id, "quantity": line.quantity}
                    for line in order.items
                ]
            lines = parse_priced_lines(
                items, line_snapshots(order.items), scope="order components"
            )
            amounts = [
                invoice_line_amounts(
                    line.quantity,
                    line.unit_price,
                    line.discount_percent,
                    line.cgst_percent,
                    line.sgst_percent,
                )
                for line in lines
            ]
            totals = invoice_totals(lines=amounts)

            row = InvoiceModel(
                invoice_number=self._sequences.next_document_number(SequenceService.INVOICE),
                order_id=order.id,
                vendor_id=order.vendor_id,
                subtotal=totals.subtotal,
                total_discount=totals.total_discount,
                total_cgst=totals.total_cgst,
                total_sgst=totals.total_sgst,
                total_amount=totals.total_amount,
                notes=optional_text(notes, "notes"),
                status=INVOICE_WORKFLOW.initial_state,
                created_by_id=actor.actor_id,
            )
            row.items = [
                InvoiceItemModel(
                    line_number=number,
                    component_id=line.component_id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    discount_percent=line.discount_percent,
                    cgst_percent=line.cgst_percent,
                    sgst_percent=line.sgst_percent,
                    base_amount=amount.base_amount,
                    discount_amount=amount.discount_amount,
                    taxable_amount=amount.taxable_amount,
                    cgst_amount=amount.cgst_amount,
                    sgst_amount=amount.sgst_amount,
                    line_total=amount.line_total,
                    created_by_id=actor.actor_id,
                )
                for number, (line, amount) in enumerate(zip(lines, amounts), start=1)
            ]
            self._repo.add(row)
            self._record_creation(
                row,
                INVOICE_WORKFLOW,
                actor,
                records,
                details={"order_id": str(order.id), "total_amount": str(row.total_amount)},
            )
            return row.to_dto()

    def _claim_order(self, order: OrderModel, actor: Actor) -> None:
        # The version bump makes a concurrent create_invoice for the same
        # order fail at flush instead of adding a second open invoice.
        order.updated_by_id = actor.actor_id
        flag_modified(order, "updated_by_id")
        self._repo.save(order, expected_status=OrderStatus.CONFIRMED.value)

    def _reject_open_invoice(self, order_id: UUID) -> None:
        for existing in self._repo.query(InvoiceModel, order_id=order_id):
            if existing.status != InvoiceStatus.REJECTED.value:
                logger.warning(
                    "invoice_duplicate_rejected",
                    extra={"order_id": str(order_id), "existing_invoice_id": str(existing.id)},
                )
                raise ConflictError(
                    existing.entity_type,
                    existing.id,
                    "an open invoice already exists for this order",
                    existing_id=existing.id,
                )

    def mark_received(self, actor: Actor, invoice_id: UUID) -> Invoice:
        return self._transition(actor, invoice_id, "mark_received")

    def accept(self, actor: Actor, invoice_id: UUID) -> Invoice:
        return self._transition(actor, invoice_id, "accept")

    def reject(self, actor: Actor, invoice_id: UUID, reason: str) -> Invoice:
        return self._transition(
            actor,
            invoice_id,
            "reject",
            reason=reason,
            rejection_reason=optional_text(reason, "reason"),
        )

    def mark_paid(self, actor: Actor, invoice_id: UUID) -> Invoice:
        """
        Record the invoice as paid in the books.

        The payment ledger is consulted but never blocks: a divergence is
        reported, not refused.
        """
        from procurement_modules.reporting.selectors import LedgerSelector

        with self._operation(actor, "invoice_mark_paid", invoice_id=str(invoice_id)) as records:
            row = self._repo.get(InvoiceModel, invoice_id)
            ledger = LedgerSelector(
                self._session, self._settings.settlement_tolerance
            ).order_ledger(row.order_id)
            details = None
            if not ledger.settled:
                logger.warning(
                    "invoice_paid_ledger_divergence",
                    extra={
                        "invoice_id": str(row.id),
                        "order_id": str(row.order_id),
                        "total_amount": str(row.total_amount),
                        "paid_to_date": str(ledger.paid_to_date),
                        "pending": str(ledger.pending),
                    },
                )
                details = {
                    "ledger_divergence": True,
                    "paid_to_date": str(ledger.paid_to_date),
                    "pending": str(ledger.pending),
                }
            self._apply_transition(
                row, INVOICE_WORKFLOW, "mark_paid", actor, records, details=details
            )
            return row.to_dto()

    def _transition(
        self,
        actor: Actor,
        invoice_id: UUID,
        action: str,
        reason: str | None = None,
        **changes: Any,
    ) -> Invoice:
        with self._operation(actor, f"invoice_{action}", invoice_id=str(invoice_id)) as records:
            row = self._repo.get(InvoiceModel, invoice_id)
            self._apply_transition(
                row, INVOICE_WORKFLOW, action, actor, records, reason=reason, **changes
            )
            return row.to_dto()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, invoice_id: UUID) -> Invoice:
        return self._repo.get(InvoiceModel, invoice_id).to_dto()

    def summary(self, invoice_id: UUID) -> InvoiceSummary:
        """Invoice totals and payment position at display precision."""
        from procurement_modules.payment.orm import PaymentModel

        row = self._repo.get(InvoiceModel, invoice_id)
        payments = self._repo.query(PaymentModel, order_id=row.order_id)
        ledger = compute_ledger(
            basis_amount=row.total_amount,
            payments=[(p.amount, p.status) for p in payments],
            tolerance=self._settings.settlement_tolerance,
        )
        places = self._settings.display_decimal_places
        return InvoiceSummary(
            invoice_id=row.id,
            invoice_number=row.invoice_number,
            status=InvoiceStatus(row.status),
            subtotal=round_money(row.subtotal, places),
            total_discount=round_money(row.total_discount, places),
            total_cgst=round_money(row.total_cgst, places),
            total_sgst=round_money(row.total_sgst, places),
            total_amount=round_money(row.total_amount, places),
            paid_to_date=round_money(ledger.paid_to_date, places),
            pending=round_money(ledger.pending, places),
            ledger_state=ledger.state.value,
            currency=self._settings.currency,
            discrepancy=row.status == InvoiceStatus.PAID.value and not ledger.settled,
        )

    def list_invoices(
        self,
        order_id: UUID | None = None,
        vendor_id: UUID | None = None,
        status: InvoiceStatus | str | None = None,
    ) -> list[Invoice]:
        filters: dict[str, Any] = {}
        if order_id is not None:
            filters["order_id"] = order_id
        if vendor_id is not None:
            filters["vendor_id"] = vendor_id
        if status is not None:
            filters["status"] = parse_choice(InvoiceStatus, status, "status").value
        rows = self._repo.query(InvoiceModel, order_by=InvoiceModel.invoice_number, **filters)
        return [row.to_dto() for row in rows]
