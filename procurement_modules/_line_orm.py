"""
Column mixin for priced line tables.

Each document owns its lines through a concrete table (quotation, counter
quotation, LOI, order) that adds the parent foreign key.  Lines are price
snapshots: ``component_id`` carries no foreign key so catalog edits and
deletions never reach historical documents.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Mapped, mapped_column

from procurement_modules._lines import LineInput, PricedLine


class PricedLineMixin:
    """Shared columns of a priced line."""

    line_number: Mapped[int] = mapped_column(nullable=False)
    component_id: Mapped[UUID] = mapped_column(nullable=False)
    quantity: Mapped[Decimal] = mapped_column(nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(nullable=False)
    discount_percent: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    cgst_percent: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    sgst_percent: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    line_total: Mapped[Decimal] = mapped_column(nullable=False)

    @classmethod
    def from_input(cls, line: LineInput, line_number: int, created_by_id: UUID):
        return cls(
            line_number=line_number,
            component_id=line.component_id,
            quantity=line.quantity,
            unit_price=line.unit_price,
            discount_percent=line.discount_percent,
            cgst_percent=line.cgst_percent,
            sgst_percent=line.sgst_percent,
            line_total=line.line_total,
            created_by_id=created_by_id,
        )

    @classmethod
    def copy_of(cls, other: "PricedLineMixin", created_by_id: UUID):
        """Same line on the next document in the chain."""
        return cls(
            line_number=other.line_number,
            component_id=other.component_id,
            quantity=other.quantity,
            unit_price=other.unit_price,
            discount_percent=other.discount_percent,
            cgst_percent=other.cgst_percent,
            sgst_percent=other.sgst_percent,
            line_total=other.line_total,
            created_by_id=created_by_id,
        )

    def to_line(self) -> PricedLine:
        return PricedLine(
            line_number=self.line_number,
            component_id=self.component_id,
            quantity=self.quantity,
            unit_price=self.unit_price,
            discount_percent=self.discount_percent,
            cgst_percent=self.cgst_percent,
            sgst_percent=self.sgst_percent,
            line_total=self.line_total,
        )
