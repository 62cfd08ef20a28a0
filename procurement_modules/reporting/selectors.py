"""
Reporting selectors (``procurement_modules.reporting.selectors``).

Responsibility
--------------
The derived, never-stored views that flow backward through the chain:

* ``LedgerSelector`` -- paid-to-date, pending and settlement of an order
  from its payments, against the open invoice (or the order total when no
  invoice exists yet).
* ``DashboardSelector`` -- counts and amounts for the purchasing
  manager's overview.

Invariants enforced
-------------------
* Failed payments never contribute to any aggregate.
* Settled <=> pending <= tolerance (default 0.01).
* ``discrepancy`` flags an invoice marked ``paid`` whose payments do not
  settle it.  Neither side is corrected from the other.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from procurement_engines.ledger import (
    DEFAULT_TOLERANCE,
    FAILED_STATUS,
    LedgerState,
    compute_ledger,
)
from procurement_kernel.db.types import ZERO
from procurement_kernel.exceptions import NotFoundError
from procurement_kernel.logging_config import get_logger
from procurement_kernel.selectors.base import BaseSelector
from procurement_modules.catalog.orm import ComponentModel
from procurement_modules.enquiry.orm import EnquiryModel
from procurement_modules.invoice.orm import InvoiceModel
from procurement_modules.loi.orm import LOIModel
from procurement_modules.order.orm import OrderItemModel, OrderModel
from procurement_modules.payment.orm import PaymentModel
from procurement_modules.quotation.orm import QuotationModel

logger = get_logger("modules.reporting.selectors")

REJECTED = "rejected"
PAID = "paid"


@dataclass(frozen=True)
class OrderLedger:
    """Payment position of one order."""

    order_id: UUID
    basis_amount: Decimal
    paid_to_date: Decimal
    pending: Decimal
    overpaid_amount: Decimal
    state: LedgerState
    settled: bool
    invoice_id: UUID | None = None
    invoice_status: str | None = None
    discrepancy: bool = False


@dataclass(frozen=True)
class DashboardSummary:
    enquiries_raised: int
    enquiries_answered: int
    quotations_received: int
    lois_sent: int
    invoices_received: int
    invoices_pending: int
    payment_count: int
    payments_amount: Decimal
    vendors_connected: int
    components_purchased: Decimal


class LedgerSelector(BaseSelector[PaymentModel]):
    """
    Derived payment ledger per order.

    Contract:
        ``order_ledger`` recomputes everything from stored payments on
        every call.  The basis is the newest non-rejected invoice's total;
        without one, the order total.
    """

    def __init__(self, session, tolerance: Decimal = DEFAULT_TOLERANCE):
        super().__init__(session)
        self.tolerance = tolerance

    def open_invoice(self, order_id: UUID) -> InvoiceModel | None:
        rows = self.session.execute(
            select(InvoiceModel)
            .where(InvoiceModel.order_id == order_id, InvoiceModel.status != REJECTED)
            .order_by(InvoiceModel.invoice_number.desc())
        ).scalars().all()
        return rows[0] if rows else None

    def payments(self, order_id: UUID) -> list[PaymentModel]:
        return list(
            self.session.execute(
                select(PaymentModel)
                .where(PaymentModel.order_id == order_id)
                .order_by(PaymentModel.payment_number)
            ).scalars().all()
        )

    def order_ledger(self, order_id: UUID) -> OrderLedger:
        order = self.session.get(OrderModel, order_id)
        if order is None:
            raise NotFoundError("order", order_id)

        invoice = self.open_invoice(order_id)
        basis = invoice.total_amount if invoice is not None else order.total_amount
        ledger = compute_ledger(
            basis_amount=basis,
            payments=[(p.amount, p.status) for p in self.payments(order_id)],
            tolerance=self.tolerance,
        )
        discrepancy = invoice is not None and invoice.status == PAID and not ledger.settled
        if discrepancy:
            logger.warning(
                "ledger_invoice_discrepancy",
                extra={
                    "order_id": str(order_id),
                    "invoice_id": str(invoice.id),
                    "pending": str(ledger.pending),
                },
            )
        return OrderLedger(
            order_id=order_id,
            basis_amount=ledger.basis_amount,
            paid_to_date=ledger.paid_to_date,
            pending=ledger.pending,
            overpaid_amount=ledger.overpaid_amount,
            state=ledger.state,
            settled=ledger.settled,
            invoice_id=invoice.id if invoice is not None else None,
            invoice_status=invoice.status if invoice is not None else None,
            discrepancy=discrepancy,
        )

    def is_settled(self, order_id: UUID) -> bool:
        return self.order_ledger(order_id).settled

    def paid_in_phase(self, order_id: UUID, phase: str) -> Decimal:
        """Non-failed amount paid in one phase."""
        return sum(
            (
                p.amount
                for p in self.payments(order_id)
                if p.phase == phase and p.status != FAILED_STATUS
            ),
            ZERO,
        )


class DashboardSelector(BaseSelector[OrderModel]):
    """Overview counts for the purchasing manager."""

    def _count(self, model, *criteria) -> int:
        return self.session.execute(
            select(func.count()).select_from(model).where(*criteria)
        ).scalar_one()

    def summary(self) -> DashboardSummary:
        amounts = self.session.execute(
            select(PaymentModel.amount).where(PaymentModel.status != FAILED_STATUS)
        ).scalars().all()
        quantities = self.session.execute(select(OrderItemModel.quantity)).scalars().all()
        vendors = self.session.execute(
            select(func.count(func.distinct(ComponentModel.vendor_id))).where(
                ComponentModel.status == "approved"
            )
        ).scalar_one()
        return DashboardSummary(
            enquiries_raised=self._count(EnquiryModel),
            enquiries_answered=self._count(EnquiryModel, EnquiryModel.status != "raised"),
            quotations_received=self._count(QuotationModel),
            lois_sent=self._count(LOIModel),
            invoices_received=self._count(InvoiceModel),
            invoices_pending=self._count(
                InvoiceModel, InvoiceModel.status.in_(("pending", "received"))
            ),
            payment_count=self._count(PaymentModel),
            payments_amount=sum(amounts, ZERO),
            vendors_connected=vendors,
            components_purchased=sum(quantities, ZERO),
        )
