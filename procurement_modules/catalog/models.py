"""
Catalog Domain Models.

The nouns of the catalog: vendor-submitted components and the result of
editing one.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from uuid import UUID


class ComponentStatus(Enum):
    """Component approval states."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Component:
    """A catalog item offered by one vendor."""
    id: UUID
    component_number: str
    vendor_id: UUID
    code: str
    name: str
    unit_of_measurement: str
    price_per_unit: Decimal
    description: str = ""
    hsn_code: str | None = None
    discount_percent: Decimal = Decimal("0")
    cgst_percent: Decimal = Decimal("0")
    sgst_percent: Decimal = Decimal("0")
    stock: int = 0
    min_order_qty: int = 1
    lead_time_days: int = 0
    status: ComponentStatus = ComponentStatus.PENDING
    rejection_reason: str | None = None
    submission_count: int = 1
    version: int = 1


@dataclass(frozen=True)
class ComponentEditResult:
    """Outcome of ``CatalogService.edit``.

    ``resubmitted`` is True when the edit sent a rejected component back
    for approval, so the caller can tell the vendor.
    """
    component: Component
    resubmitted: bool
