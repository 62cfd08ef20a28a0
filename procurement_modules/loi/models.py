"""
LOI Domain Models.

A letter of intent issued to the vendor once a quotation (or the counter
that closed its negotiation) is accepted.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from procurement_modules._lines import PricedLine


class LOIStatus(Enum):
    """LOI lifecycle states."""
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CONFIRMED = "confirmed"  # an order was created from it


class LOISourceType(Enum):
    """Document an LOI may be issued from."""
    QUOTATION = "quotation"
    COUNTER_QUOTATION = "counter_quotation"


@dataclass(frozen=True)
class LOI:
    id: UUID
    loi_number: str
    quotation_id: UUID
    vendor_id: UUID
    source_key: str
    total_amount: Decimal
    advance_payment_percent: Decimal
    counter_quotation_id: UUID | None = None
    terms_and_conditions: str | None = None
    expected_delivery_date: date | None = None
    status: LOIStatus = LOIStatus.SENT
    rejection_reason: str | None = None
    vendor_response_date: date | None = None
    items: tuple[PricedLine, ...] = field(default_factory=tuple)
    version: int = 1
