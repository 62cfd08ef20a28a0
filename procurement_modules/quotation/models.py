"""
Quotation Domain Models.

Vendor quotations and the append-only counter quotations that negotiate
them.  A counter never edits the quotation it answers; the negotiation
history is the ordered list of counters.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from procurement_modules._lines import PricedLine


class QuotationStatus(Enum):
    """Quotation lifecycle states."""
    SENT = "sent"
    NEGOTIATING = "negotiating"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class CounterAction(Enum):
    """What a counter quotation does to its quotation."""
    ACCEPT = "accept"
    REJECT = "reject"
    NEGOTIATE = "negotiate"


class CounterStatus(Enum):
    """Counter quotation states."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Quotation:
    id: UUID
    quotation_number: str
    enquiry_id: UUID
    vendor_id: UUID
    valid_till: date
    expected_delivery_date: date
    advance_payment_percent: Decimal
    total_amount: Decimal
    status: QuotationStatus = QuotationStatus.SENT
    notes: str | None = None
    items: tuple[PricedLine, ...] = field(default_factory=tuple)
    version: int = 1


@dataclass(frozen=True)
class CounterQuotation:
    """One step of a negotiation.

    ``items`` is non-empty only for ``negotiate`` counters.  A counter that
    was still pending when a newer one was filed is rejected and points at
    its replacement through ``superseded_by_id``.
    """
    id: UUID
    counter_number: str
    quotation_id: UUID
    action: CounterAction
    status: CounterStatus
    total_amount: Decimal
    advance_payment_percent: Decimal
    valid_till: date | None = None
    expected_delivery_date: date | None = None
    rejection_reason: str | None = None
    negotiation_notes: str | None = None
    superseded_by_id: UUID | None = None
    items: tuple[PricedLine, ...] = field(default_factory=tuple)
    version: int = 1


@dataclass(frozen=True)
class CounterFilingResult:
    """The counter just filed and the quotation as it now stands."""
    counter: CounterQuotation
    quotation: Quotation
