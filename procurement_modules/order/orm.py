"""
SQLAlchemy ORM persistence models for the Order module.

Invariants enforced
-------------------
* ``loi_id`` is unique: an LOI converts into at most one order.
* ``advance_amount`` lies within [0, total_amount] (checked by the service).
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from procurement_kernel.db.base import TrackedBase
from procurement_modules._line_orm import PricedLineMixin


class OrderModel(TrackedBase):
    """
    A purchase order.

    Maps to the ``Order`` DTO in ``procurement_modules.order.models``.
    """

    __tablename__ = "procurement_orders"

    __table_args__ = (
        UniqueConstraint("order_number", name="uq_order_number"),
        UniqueConstraint("loi_id", name="uq_order_loi"),
        Index("idx_order_vendor", "vendor_id"),
        Index("idx_order_status", "status"),
    )

    entity_type = "order"

    order_number: Mapped[str] = mapped_column(String(50), nullable=False)
    loi_id: Mapped[UUID] = mapped_column(ForeignKey("procurement_lois.id"), nullable=False)
    vendor_id: Mapped[UUID] = mapped_column(nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)
    advance_payment_percent: Mapped[Decimal] = mapped_column(nullable=False)
    advance_amount: Mapped[Decimal] = mapped_column(nullable=False)
    expected_delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="pending")
    version: Mapped[int] = mapped_column(nullable=False)

    items: Mapped[list["OrderItemModel"]] = relationship(
        "OrderItemModel",
        order_by="OrderItemModel.line_number",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    def to_dto(self):
        from procurement_modules.order.models import Order, OrderStatus

        return Order(
            id=self.id,
            order_number=self.order_number,
            loi_id=self.loi_id,
            vendor_id=self.vendor_id,
            total_amount=self.total_amount,
            advance_payment_percent=self.advance_payment_percent,
            advance_amount=self.advance_amount,
            expected_delivery_date=self.expected_delivery_date,
            status=OrderStatus(self.status),
            items=tuple(item.to_line() for item in self.items),
            version=self.version,
        )

    def __repr__(self) -> str:
        return f"<OrderModel {self.order_number} [{self.status}]>"


class OrderItemModel(PricedLineMixin, TrackedBase):
    """A line on a purchase order."""

    __tablename__ = "procurement_order_items"

    __table_args__ = (
        UniqueConstraint("order_id", "line_number", name="uq_order_item_line"),
    )

    order_id: Mapped[UUID] = mapped_column(
        ForeignKey("procurement_orders.id"), nullable=False,
    )
