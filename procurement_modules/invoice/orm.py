"""
SQLAlchemy ORM persistence models for the Invoice module.

Invariants enforced
-------------------
* Header totals are the sums of the stored line components, and
  ``total_amount == subtotal - total_discount + total_cgst + total_sgst``.
* At most one non-rejected invoice per order (checked by the service at
  creation).
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from procurement_kernel.db.base import TrackedBase
from procurement_modules._line_orm import PricedLineMixin


class InvoiceModel(TrackedBase):
    """
    A vendor invoice against a confirmed order.

    Maps to the ``Invoice`` DTO in ``procurement_modules.invoice.models``.
    """

    __tablename__ = "procurement_invoices"

    __table_args__ = (
        UniqueConstraint("invoice_number", name="uq_invoice_number"),
        Index("idx_invoice_order", "order_id"),
        Index("idx_invoice_status", "status"),
    )

    entity_type = "invoice"

    invoice_number: Mapped[str] = mapped_column(String(50), nullable=False)
    order_id: Mapped[UUID] = mapped_column(ForeignKey("procurement_orders.id"), nullable=False)
    vendor_id: Mapped[UUID] = mapped_column(nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(nullable=False)
    total_discount: Mapped[Decimal] = mapped_column(nullable=False)
    total_cgst: Mapped[Decimal] = mapped_column(nullable=False)
    total_sgst: Mapped[Decimal] = mapped_column(nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="pending")
    rejection_reason: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    version: Mapped[int] = mapped_column(nullable=False)

    items: Mapped[list["InvoiceItemModel"]] = relationship(
        "InvoiceItemModel",
        order_by="InvoiceItemModel.line_number",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    def to_dto(self):
        from procurement_modules.invoice.models import Invoice, InvoiceStatus

        return Invoice(
            id=self.id,
            invoice_number=self.invoice_number,
            order_id=self.order_id,
            vendor_id=self.vendor_id,
            subtotal=self.subtotal,
            total_discount=self.total_discount,
            total_cgst=self.total_cgst,
            total_sgst=self.total_sgst,
            total_amount=self.total_amount,
            notes=self.notes,
            status=InvoiceStatus(self.status),
            rejection_reason=self.rejection_reason,
            items=tuple(item.to_dto() for item in self.items),
            version=self.version,
        )

    def __repr__(self) -> str:
        return f"<InvoiceModel {self.invoice_number} [{self.status}]>"


class InvoiceItemModel(PricedLineMixin, TrackedBase):
    """An itemized invoice line."""

    __tablename__ = "procurement_invoice_items"

    __table_args__ = (
        UniqueConstraint("invoice_id", "line_number", name="uq_invoice_item_line"),
    )

    invoice_id: Mapped[UUID] = mapped_column(
        ForeignKey("procurement_invoices.id"), nullable=False,
    )
    base_amount: Mapped[Decimal] = mapped_column(nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(nullable=False)
    taxable_amount: Mapped[Decimal] = mapped_column(nullable=False)
    cgst_amount: Mapped[Decimal] = mapped_column(nullable=False)
    sgst_amount: Mapped[Decimal] = mapped_column(nullable=False)

    def to_dto(self):
        from procurement_modules.invoice.models import InvoiceLine

        return InvoiceLine(
            line_number=self.line_number,
            component_id=self.component_id,
            quantity=self.quantity,
            unit_price=self.unit_price,
            discount_percent=self.discount_percent,
            cgst_percent=self.cgst_percent,
            sgst_percent=self.sgst_percent,
            base_amount=self.base_amount,
            discount_amount=self.discount_amount,
            taxable_amount=self.taxable_amount,
            cgst_amount=self.cgst_amount,
            sgst_amount=self.sgst_amount,
            line_total=self.line_total,
        )
