"""
SQLAlchemy ORM persistence models for the Enquiry module.

Invariants enforced
-------------------
* ``EnquiryItemModel`` belongs to exactly one ``EnquiryModel``.
* Item ``component_id`` carries no foreign key; the enquiry keeps pointing
  at the component it asked for even if the catalog row changes.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from procurement_kernel.db.base import TrackedBase


class EnquiryModel(TrackedBase):
    """
    An enquiry addressed to one vendor.

    Maps to the ``Enquiry`` DTO in ``procurement_modules.enquiry.models``.
    """

    __tablename__ = "procurement_enquiries"

    __table_args__ = (
        UniqueConstraint("enquiry_number", name="uq_enquiry_number"),
        Index("idx_enquiry_vendor", "vendor_id"),
        Index("idx_enquiry_status", "status"),
    )

    entity_type = "enquiry"

    enquiry_number: Mapped[str] = mapped_column(String(50), nullable=False)
    vendor_id: Mapped[UUID] = mapped_column(nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(String(2000), nullable=False, default="")
    required_delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="raised")
    rejection_reason: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    version: Mapped[int] = mapped_column(nullable=False)

    items: Mapped[list["EnquiryItemModel"]] = relationship(
        "EnquiryItemModel",
        back_populates="enquiry",
        order_by="EnquiryItemModel.line_number",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    def to_dto(self):
        from procurement_modules.enquiry.models import Enquiry, EnquiryStatus

        return Enquiry(
            id=self.id,
            enquiry_number=self.enquiry_number,
            vendor_id=self.vendor_id,
            title=self.title,
            description=self.description,
            required_delivery_date=self.required_delivery_date,
            status=EnquiryStatus(self.status),
            rejection_reason=self.rejection_reason,
            items=tuple(item.to_dto() for item in self.items),
            version=self.version,
        )

    def __repr__(self) -> str:
        return f"<EnquiryModel {self.enquiry_number} [{self.status}]>"


class EnquiryItemModel(TrackedBase):
    """A requested component on an enquiry."""

    __tablename__ = "procurement_enquiry_items"

    __table_args__ = (
        UniqueConstraint("enquiry_id", "line_number", name="uq_enquiry_item_line"),
    )

    enquiry_id: Mapped[UUID] = mapped_column(
        ForeignKey("procurement_enquiries.id"), nullable=False,
    )
    line_number: Mapped[int] = mapped_column(nullable=False)
    component_id: Mapped[UUID] = mapped_column(nullable=False)
    quantity: Mapped[Decimal] = mapped_column(nullable=False)
    unit: Mapped[str] = mapped_column(String(20), nullable=False)

    enquiry: Mapped["EnquiryModel"] = relationship(
        "EnquiryModel",
        back_populates="items",
    )

    def to_dto(self):
        from procurement_modules.enquiry.models import EnquiryItem

        return EnquiryItem(
            line_number=self.line_number,
            component_id=self.component_id,
            quantity=self.quantity,
            unit=self.unit,
        )
