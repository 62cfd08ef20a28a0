"""
SQLAlchemy ORM persistence models for the Payment module.

Invariants enforced
-------------------
* ``amount`` is a positive Decimal -- NEVER float.
* Failed rows are kept; aggregates exclude them by status.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from procurement_kernel.db.base import TrackedBase


class PaymentModel(TrackedBase):
    """
    One payment event on an order.

    Maps to the ``Payment`` DTO in ``procurement_modules.payment.models``.
    """

    __tablename__ = "procurement_payments"

    __table_args__ = (
        UniqueConstraint("payment_number", name="uq_payment_number"),
        Index("idx_payment_order", "order_id"),
        Index("idx_payment_status", "status"),
    )

    entity_type = "payment"

    payment_number: Mapped[str] = mapped_column(String(50), nullable=False)
    order_id: Mapped[UUID] = mapped_column(ForeignKey("procurement_orders.id"), nullable=False)
    vendor_id: Mapped[UUID] = mapped_column(nullable=False)
    phase: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    reference_number: Mapped[str | None] = mapped_column(String(500), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="pending")
    version: Mapped[int] = mapped_column(nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def to_dto(self):
        from procurement_modules.payment.models import Payment, PaymentPhase, PaymentStatus

        return Payment(
            id=self.id,
            payment_number=self.payment_number,
            order_id=self.order_id,
            vendor_id=self.vendor_id,
            phase=PaymentPhase(self.phase),
            amount=self.amount,
            due_date=self.due_date,
            status=PaymentStatus(self.status),
            payment_date=self.payment_date,
            reference_number=self.reference_number,
            notes=self.notes,
            payment_method=self.payment_method,
            version=self.version,
        )

    def __repr__(self) -> str:
        return f"<PaymentModel {self.payment_number} {self.amount} [{self.status}]>"
