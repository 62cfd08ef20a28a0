"""
Order Domain Models.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from procurement_modules._lines import PricedLine


class OrderStatus(Enum):
    """Purchase order lifecycle states."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Order:
    """A purchase order created from an accepted LOI."""
    id: UUID
    order_number: str
    loi_id: UUID
    vendor_id: UUID
    total_amount: Decimal
    advance_payment_percent: Decimal
    advance_amount: Decimal
    expected_delivery_date: date | None = None
    status: OrderStatus = OrderStatus.PENDING
    items: tuple[PricedLine, ...] = field(default_factory=tuple)
    version: int = 1
