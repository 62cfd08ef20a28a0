"""
Payment Domain Models.

Payments are events against an order.  An order may have any number of
them, per phase; failed payments stay on record but never count.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID


class PaymentStatus(Enum):
    """Payment lifecycle states."""
    PENDING = "pending"
    COMPLETED = "completed"
    RECEIPT_SENT = "receipt_sent"
    FAILED = "failed"


class PaymentPhase(Enum):
    ADVANCE = "advance"
    FINAL = "final"


@dataclass(frozen=True)
class Payment:
    id: UUID
    payment_number: str
    order_id: UUID
    vendor_id: UUID
    phase: PaymentPhase
    amount: Decimal
    due_date: date
    status: PaymentStatus = PaymentStatus.PENDING
    payment_date: date | None = None
    reference_number: str | None = None
    notes: str | None = None
    payment_method: str | None = None
    version: int = 1
