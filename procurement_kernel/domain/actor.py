"""
Actor identity supplied by the calling layer.

The kernel trusts this input.  It only checks the role at the operation
boundary and, for vendor callers, that the document belongs to the vendor.
"""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class ActorRole(Enum):
    """Who is calling."""
    VENDOR = "vendor"
    PURCHASING_MANAGER = "purchasing_manager"


@dataclass(frozen=True)
class Actor:
    """
    An authenticated caller.

    ``vendor_id`` is required for vendor actors and scopes them to their own
    documents.  Purchasing managers act for the company and see every vendor.
    """
    actor_id: UUID
    role: ActorRole
    vendor_id: UUID | None = None

    def __post_init__(self) -> None:
        if self.role is ActorRole.VENDOR and self.vendor_id is None:
            raise ValueError("vendor actors must carry a vendor_id")

    @property
    def is_vendor(self) -> bool:
        return self.role is ActorRole.VENDOR

    @property
    def is_purchasing_manager(self) -> bool:
        return self.role is ActorRole.PURCHASING_MANAGER
