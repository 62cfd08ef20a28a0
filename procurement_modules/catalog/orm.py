"""
SQLAlchemy ORM persistence models for the Catalog module.

Responsibility
--------------
Database-backed persistence for vendor-submitted components.

Invariants enforced
-------------------
* All monetary and percent fields use ``Decimal`` -- NEVER float.
* ``status`` stored as String(50); values come from ``ComponentStatus``.
* ``version`` is the optimistic-concurrency counter.
* ``submission_count`` starts at 1 and only grows on resubmission.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from procurement_kernel.db.base import TrackedBase


class ComponentModel(TrackedBase):
    """
    A catalog component.

    Maps to the ``Component`` DTO in ``procurement_modules.catalog.models``.

    Guarantees:
        - ``component_number`` is unique.
        - (vendor_id, code) is unique: a vendor never lists one code twice.
    """

    __tablename__ = "procurement_components"

    __table_args__ = (
        UniqueConstraint("component_number", name="uq_component_number"),
        UniqueConstraint("vendor_id", "code", name="uq_component_vendor_code"),
        CheckConstraint("submission_count >= 1", name="ck_component_submission_count"),
        Index("idx_component_vendor", "vendor_id"),
        Index("idx_component_status", "status"),
    )

    entity_type = "component"

    component_number: Mapped[str] = mapped_column(String(50), nullable=False)
    vendor_id: Mapped[UUID] = mapped_column(nullable=False)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(String(2000), nullable=False, default="")
    hsn_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    unit_of_measurement: Mapped[str] = mapped_column(String(20), nullable=False)
    price_per_unit: Mapped[Decimal] = mapped_column(nullable=False)
    discount_percent: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    cgst_percent: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    sgst_percent: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    stock: Mapped[int] = mapped_column(nullable=False, default=0)
    min_order_qty: Mapped[int] = mapped_column(nullable=False, default=1)
    lead_time_days: Mapped[int] = mapped_column(nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="pending")
    rejection_reason: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    submission_count: Mapped[int] = mapped_column(nullable=False, default=1)
    version: Mapped[int] = mapped_column(nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def to_dto(self):
        from procurement_modules.catalog.models import Component, ComponentStatus

        return Component(
            id=self.id,
            component_number=self.component_number,
            vendor_id=self.vendor_id,
            code=self.code,
            name=self.name,
            unit_of_measurement=self.unit_of_measurement,
            price_per_unit=self.price_per_unit,
            description=self.description,
            hsn_code=self.hsn_code,
            discount_percent=self.discount_percent,
            cgst_percent=self.cgst_percent,
            sgst_percent=self.sgst_percent,
            stock=self.stock,
            min_order_qty=self.min_order_qty,
            lead_time_days=self.lead_time_days,
            status=ComponentStatus(self.status),
            rejection_reason=self.rejection_reason,
            submission_count=self.submission_count,
            version=self.version,
        )

    def pricing_snapshot(self) -> dict:
        """Catalog pricing a new quotation line starts from."""
        return {
            "unit_price": self.price_per_unit,
            "discount_percent": self.discount_percent,
            "cgst_percent": self.cgst_percent,
            "sgst_percent": self.sgst_percent,
        }

    def __repr__(self) -> str:
        return f"<ComponentModel {self.component_number} {self.code} [{self.status}]>"
