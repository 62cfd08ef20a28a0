"""
Payment Module Service (``procurement_modules.payment.service``).

Responsibility
--------------
Record payment events against an order and move them through
``pending -> completed -> receipt_sent`` (or ``failed``).  Also suggests
the amount for the next payment from the derived ledger.

Invariants enforced
-------------------
* Payments are recorded only against ``confirmed`` or ``completed``
  orders, with ``amount > 0``.
* Any number of payments per order and phase.
* Failed payments stay on record and never count toward paid-to-date.
* Over-payment follows ``ProcurementSettings.overpayment_policy``:
  ``allow`` records it (the ledger shows ``overpaid``), ``reject`` refuses
  amounts above the pending balance plus tolerance.

Failure modes
-------------
* PreconditionError -- order not confirmed or completed.
* ValidationError -- bad amount, phase, date or reference; refused
  over-payment.
* InvalidStateError -- transition from the wrong state.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from procurement_config.settings import OverpaymentPolicy
from procurement_engines.ledger import suggest_payment_amount
from procurement_kernel.domain.actor import Actor, ActorRole
from procurement_kernel.exceptions import PreconditionError, ValidationError
from procurement_kernel.logging_config import get_logger
from procurement_kernel.services.sequence_service import SequenceService
from procurement_modules._service_helpers import (
    DocumentService,
    optional_text,
    parse_choice,
    parse_date,
    parse_positive,
    require_role,
    require_text,
    require_vendor_scope,
)
from procurement_modules.order.models import OrderStatus
from procurement_modules.order.orm import OrderModel
from procurement_modules.payment.models import Payment, PaymentPhase, PaymentStatus
from procurement_modules.payment.orm import PaymentModel
from procurement_modules.payment.workflows import PAYMENT_WORKFLOW

logger = get_logger("modules.payment.service")

_PAYABLE = (OrderStatus.CONFIRMED.value, OrderStatus.COMPLETED.value)


def _parse_phase(value: Any) -> PaymentPhase:
    try:
        return PaymentPhase(value)
    except ValueError as exc:
        raise ValidationError("phase", "must be 'advance' or 'final'") from exc


class PaymentService(DocumentService):
    """
    Payment tracker.

    Contract
    --------
    * ``record_payment``, ``complete`` and ``fail`` are purchasing-manager
      operations.  ``send_receipt`` belongs to the vendor being paid.
    """

    def _ledger(self):
        from procurement_modules.reporting.selectors import LedgerSelector

        return LedgerSelector(self._session, self._settings.settlement_tolerance)

    def record_payment(
        self,
        actor: Actor,
        order_id: UUID,
        phase: PaymentPhase | str,
        amount: Any,
        due_date: date | str,
        *,
        notes: str | None = None,
        payment_method: str | None = None,
    ) -> Payment:
        require_role(actor, ActorRole.PURCHASING_MANAGER, "record payment")
        phase = _parse_phase(phase)
        amount = parse_positive(amount, "amount")
        due = parse_date(due_date, "due_date")

        with self._operation(
            actor, "payment_record", order_id=str(order_id), phase=phase.value
        ) as records:
            order = self._repo.get(OrderModel, order_id)
            if order.status not in _PAYABLE:
                raise PreconditionError(order.entity_type, order.id, order.status, _PAYABLE)
            self._check_overpayment(order.id, amount)

            row = PaymentModel(
                payment_number=self._sequences.next_document_number(SequenceService.PAYMENT),
                order_id=order.id,
                vendor_id=order.vendor_id,
                phase=phase.value,
                amount=amount,
                due_date=due,
                notes=optional_text(notes, "notes"),
                payment_method=optional_text(payment_method, "payment_method"),
                status=PAYMENT_WORKFLOW.initial_state,
                created_by_id=actor.actor_id,
            )
            self._repo.add(row)
            self._record_creation(
                row,
                PAYMENT_WORKFLOW,
                actor,
                records,
                details={"order_id": str(order.id), "amount": str(amount)},
            )
            return row.to_dto()

    def _check_overpayment(self, order_id: UUID, amount: Decimal) -> None:
        ledger = self._ledger().order_ledger(order_id)
        if amount <= ledger.pending + self._settings.settlement_tolerance:
            return
        log_fields = {
            "order_id": str(order_id),
            "amount": str(amount),
            "pending": str(ledger.pending),
            "overpayment_policy": self._settings.overpayment_policy.value,
        }
        if self._settings.overpayment_policy is OverpaymentPolicy.REJECT:
            logger.warning("payment_overpayment_rejected", extra=log_fields)
            raise ValidationError(
                "amount", f"exceeds the pending balance of {ledger.pending}"
            )
        logger.warning("payment_overpayment_recorded", extra=log_fields)

    def complete(self, actor: Actor, payment_id: UUID) -> Payment:
        with self._operation(actor, "payment_complete", payment_id=str(payment_id)) as records:
            row = self._repo.get(PaymentModel, payment_id)
            self._apply_transition(
                row,
                PAYMENT_WORKFLOW,
                "complete",
                actor,
                records,
                payment_date=self._clock.today(),
            )
            return row.to_dto()

    def fail(self, actor: Actor, payment_id: UUID) -> Payment:
        with self._operation(actor, "payment_fail", payment_id=str(payment_id)) as records:
            row = self._repo.get(PaymentModel, payment_id)
            self._apply_transition(row, PAYMENT_WORKFLOW, "fail", actor, records)
            return row.to_dto()

    def send_receipt(self, actor: Actor, payment_id: UUID, reference: str) -> Payment:
        """Vendor acknowledges a completed payment with a receipt reference or URL."""
        reference = require_text(reference, "reference")
        with self._operation(
            actor, "payment_send_receipt", payment_id=str(payment_id)
        ) as records:
            row = self._repo.get(PaymentModel, payment_id)
            require_vendor_scope(actor, row.vendor_id, "send receipt")
            self._apply_transition(
                row,
                PAYMENT_WORKFLOW,
                "send_receipt",
                actor,
                records,
                reference_number=reference,
            )
            return row.to_dto()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def suggest_amount(self, order_id: UUID, phase: PaymentPhase | str) -> Decimal:
        """Pre-filled amount for the next payment in ``phase``."""
        phase = _parse_phase(phase)
        selector = self._ledger()
        order = self._repo.get(OrderModel, order_id)
        ledger = selector.order_ledger(order_id)
        return suggest_payment_amount(
            phase.value,
            advance_amount=order.advance_amount,
            advance_paid=selector.paid_in_phase(order_id, PaymentPhase.ADVANCE.value),
            pending=ledger.pending,
        )

    def get(self, payment_id: UUID) -> Payment:
        return self._repo.get(PaymentModel, payment_id).to_dto()

    def list_payments(
        self,
        order_id: UUID | None = None,
        status: PaymentStatus | str | None = None,
    ) -> list[Payment]:
        filters: dict[str, Any] = {}
        if order_id is not None:
            filters["order_id"] = order_id
        if status is not None:
            filters["status"] = parse_choice(PaymentStatus, status, "status").value
        rows = self._repo.query(PaymentModel, order_by=PaymentModel.payment_number, **filters)
        return [row.to_dto() for row in rows]
