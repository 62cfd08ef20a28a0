"""
SQLAlchemy ORM persistence models for the Quotation module.

Invariants enforced
-------------------
* Quotation and counter lines are price snapshots (``PricedLineMixin``).
* ``total_amount`` equals the sum of the stored line totals.
* Counter quotations are append-only: only ``status`` and
  ``superseded_by_id`` change after insert.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from procurement_kernel.db.base import TrackedBase
from procurement_modules._line_orm import PricedLineMixin


class QuotationModel(TrackedBase):
    """
    A vendor's quotation against an enquiry.

    Maps to the ``Quotation`` DTO in ``procurement_modules.quotation.models``.
    """

    __tablename__ = "procurement_quotations"

    __table_args__ = (
        UniqueConstraint("quotation_number", name="uq_quotation_number"),
        Index("idx_quotation_enquiry", "enquiry_id"),
        Index("idx_quotation_vendor", "vendor_id"),
        Index("idx_quotation_status", "status"),
    )

    entity_type = "quotation"

    quotation_number: Mapped[str] = mapped_column(String(50), nullable=False)
    enquiry_id: Mapped[UUID] = mapped_column(
        ForeignKey("procurement_enquiries.id"), nullable=False,
    )
    vendor_id: Mapped[UUID] = mapped_column(nullable=False)
    valid_till: Mapped[date] = mapped_column(Date, nullable=False)
    expected_delivery_date: Mapped[date] = mapped_column(Date, nullable=False)
    advance_payment_percent: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="sent")
    version: Mapped[int] = mapped_column(nullable=False)

    items: Mapped[list["QuotationItemModel"]] = relationship(
        "QuotationItemModel",
        order_by="QuotationItemModel.line_number",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    def to_dto(self):
        from procurement_modules.quotation.models import Quotation, QuotationStatus

        return Quotation(
            id=self.id,
            quotation_number=self.quotation_number,
            enquiry_id=self.enquiry_id,
            vendor_id=self.vendor_id,
            valid_till=self.valid_till,
            expected_delivery_date=self.expected_delivery_date,
            advance_payment_percent=self.advance_payment_percent,
            total_amount=self.total_amount,
            status=QuotationStatus(self.status),
            notes=self.notes,
            items=tuple(item.to_line() for item in self.items),
            version=self.version,
        )

    def __repr__(self) -> str:
        return f"<QuotationModel {self.quotation_number} [{self.status}]>"


class QuotationItemModel(PricedLineMixin, TrackedBase):
    """A priced line on a quotation."""

    __tablename__ = "procurement_quotation_items"

    __table_args__ = (
        UniqueConstraint("quotation_id", "line_number", name="uq_quotation_item_line"),
    )

    quotation_id: Mapped[UUID] = mapped_column(
        ForeignKey("procurement_quotations.id"), nullable=False,
    )


class CounterQuotationModel(TrackedBase):
    """
    One counter quotation in a negotiation.

    Maps to the ``CounterQuotation`` DTO in
    ``procurement_modules.quotation.models``.
    """

    __tablename__ = "procurement_counter_quotations"

    __table_args__ = (
        UniqueConstraint("counter_number", name="uq_counter_number"),
        Index("idx_counter_quotation", "quotation_id"),
        Index("idx_counter_status", "status"),
    )

    entity_type = "counter_quotation"

    counter_number: Mapped[str] = mapped_column(String(50), nullable=False)
    quotation_id: Mapped[UUID] = mapped_column(
        ForeignKey("procurement_quotations.id"), nullable=False,
    )
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)
    advance_payment_percent: Mapped[Decimal] = mapped_column(nullable=False)
    valid_till: Mapped[date | None] = mapped_column(Date, nullable=True)
    expected_delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    negotiation_notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    superseded_by_id: Mapped[UUID | None] = mapped_column(nullable=True)
    version: Mapped[int] = mapped_column(nullable=False)

    items: Mapped[list["CounterQuotationItemModel"]] = relationship(
        "CounterQuotationItemModel",
        order_by="CounterQuotationItemModel.line_number",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    def to_dto(self):
        from procurement_modules.quotation.models import (
            CounterAction,
            CounterQuotation,
            CounterStatus,
        )

        return CounterQuotation(
            id=self.id,
            counter_number=self.counter_number,
            quotation_id=self.quotation_id,
            action=CounterAction(self.action),
            status=CounterStatus(self.status),
            total_amount=self.total_amount,
            advance_payment_percent=self.advance_payment_percent,
            valid_till=self.valid_till,
            expected_delivery_date=self.expected_delivery_date,
            rejection_reason=self.rejection_reason,
            negotiation_notes=self.negotiation_notes,
            superseded_by_id=self.superseded_by_id,
            items=tuple(item.to_line() for item in self.items),
            version=self.version,
        )

    def __repr__(self) -> str:
        return f"<CounterQuotationModel {self.counter_number} {self.action} [{self.status}]>"


class CounterQuotationItemModel(PricedLineMixin, TrackedBase):
    """A proposed line on a ``negotiate`` counter."""

    __tablename__ = "procurement_counter_quotation_items"

    __table_args__ = (
        UniqueConstraint("counter_id", "line_number", name="uq_counter_item_line"),
    )

    counter_id: Mapped[UUID] = mapped_column(
        ForeignKey("procurement_counter_quotations.id"), nullable=False,
    )
