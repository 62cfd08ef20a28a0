"""
SQLAlchemy ORM persistence models for the LOI module.

Invariants enforced
-------------------
* ``source_key`` is unique: one LOI per (quotation, counter quotation)
  pair, whatever the caller retries.
* LOI lines are copied from the accepted source, never re-priced.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from procurement_kernel.db.base import TrackedBase
from procurement_modules._line_orm import PricedLineMixin


class LOIModel(TrackedBase):
    """
    A letter of intent.

    Maps to the ``LOI`` DTO in ``procurement_modules.loi.models``.
    """

    __tablename__ = "procurement_lois"

    __table_args__ = (
        UniqueConstraint("loi_number", name="uq_loi_number"),
        UniqueConstraint("source_key", name="uq_loi_source_key"),
        Index("idx_loi_quotation", "quotation_id"),
        Index("idx_loi_vendor", "vendor_id"),
        Index("idx_loi_status", "status"),
    )

    entity_type = "loi"

    loi_number: Mapped[str] = mapped_column(String(50), nullable=False)
    quotation_id: Mapped[UUID] = mapped_column(
        ForeignKey("procurement_quotations.id"), nullable=False,
    )
    counter_quotation_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("procurement_counter_quotations.id"), nullable=True,
    )
    vendor_id: Mapped[UUID] = mapped_column(nullable=False)
    source_key: Mapped[str] = mapped_column(String(200), nullable=False)
    terms_and_conditions: Mapped[str | None] = mapped_column(String(4000), nullable=True)
    expected_delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    advance_payment_percent: Mapped[Decimal] = mapped_column(nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="sent")
    rejection_reason: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    vendor_response_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    version: Mapped[int] = mapped_column(nullable=False)

    items: Mapped[list["LOIItemModel"]] = relationship(
        "LOIItemModel",
        order_by="LOIItemModel.line_number",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    def to_dto(self):
        from procurement_modules.loi.models import LOI, LOIStatus

        return LOI(
            id=self.id,
            loi_number=self.loi_number,
            quotation_id=self.quotation_id,
            counter_quotation_id=self.counter_quotation_id,
            vendor_id=self.vendor_id,
            source_key=self.source_key,
            total_amount=self.total_amount,
            advance_payment_percent=self.advance_payment_percent,
            terms_and_conditions=self.terms_and_conditions,
            expected_delivery_date=self.expected_delivery_date,
            status=LOIStatus(self.status),
            rejection_reason=self.rejection_reason,
            vendor_response_date=self.vendor_response_date,
            items=tuple(item.to_line() for item in self.items),
            version=self.version,
        )

    def __repr__(self) -> str:
        return f"<LOIModel {self.loi_number} [{self.status}]>"


class LOIItemModel(PricedLineMixin, TrackedBase):
    """A line on an LOI."""

    __tablename__ = "procurement_loi_items"

    __table_args__ = (
        UniqueConstraint("loi_id", "line_number", name="uq_loi_item_line"),
    )

    loi_id: Mapped[UUID] = mapped_column(
        ForeignKey("procurement_lois.id"), nullable=False,
    )
