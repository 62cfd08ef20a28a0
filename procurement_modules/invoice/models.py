"""
Invoice Domain Models.

Invoice lines are itemized: base, discount, taxable value, CGST and SGST
are each stored so the header totals can be audited line by line.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from uuid import UUID


class InvoiceStatus(Enum):
    """Invoice lifecycle states."""
    PENDING = "pending"
    RECEIVED = "received"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    PAID = "paid"


@dataclass(frozen=True)
class InvoiceLine:
    line_number: int
    component_id: UUID
    quantity: Decimal
    unit_price: Decimal
    discount_percent: Decimal
    cgst_percent: Decimal
    sgst_percent: Decimal
    base_amount: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class Invoice:
    id: UUID
    invoice_number: str
    order_id: UUID
    vendor_id: UUID
    subtotal: Decimal
    total_discount: Decimal
    total_cgst: Decimal
    total_sgst: Decimal
    total_amount: Decimal
    notes: str | None = None
    status: InvoiceStatus = InvoiceStatus.PENDING
    rejection_reason: str | None = None
    items: tuple[InvoiceLine, ...] = field(default_factory=tuple)
    version: int = 1


@dataclass(frozen=True)
class InvoiceSummary:
    """Display view of an invoice and its payment position.

    Amounts are rounded to display precision and denominated in the
    configured ``currency``.  ``discrepancy`` is True when the invoice is
    marked paid but logged payments do not settle it.
    """
    invoice_id: UUID
    invoice_number: str
    status: InvoiceStatus
    subtotal: Decimal
    total_discount: Decimal
    total_cgst: Decimal
    total_sgst: Decimal
    total_amount: Decimal
    paid_to_date: Decimal
    pending: Decimal
    ledger_state: str
    currency: str
    discrepancy: bool = False
