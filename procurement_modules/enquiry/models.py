"""
Enquiry Domain Models.

A buyer-side requirement sent to one vendor: what is needed, how much and
by when.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID


class EnquiryStatus(Enum):
    """Enquiry lifecycle states."""
    RAISED = "raised"
    QUOTED = "quoted"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class EnquiryItem:
    """One requested component."""
    line_number: int
    component_id: UUID
    quantity: Decimal
    unit: str


@dataclass(frozen=True)
class Enquiry:
    id: UUID
    enquiry_number: str
    vendor_id: UUID
    title: str
    description: str = ""
    required_delivery_date: date | None = None
    status: EnquiryStatus = EnquiryStatus.RAISED
    rejection_reason: str | None = None
    items: tuple[EnquiryItem, ...] = field(default_factory=tuple)
    version: int = 1
