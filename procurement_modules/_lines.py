"""
Priced line items shared by quotations, counter quotations, LOIs, orders
and invoices.

``parse_priced_lines`` turns caller payloads into validated ``LineInput``
values.  Missing pricing fields fall back to a per-component snapshot
supplied by the caller (catalog values for a new quotation, the previous
document's lines further down the chain), so a document never reads live
catalog prices after it has been created.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any
from uuid import UUID

from procurement_engines.pricing import quotation_line_total
from procurement_kernel.db.types import store_money
from procurement_kernel.exceptions import ValidationError
from procurement_modules._service_helpers import (
    parse_percent,
    parse_non_negative,
    parse_positive,
    parse_uuid,
)

PRICING_FIELDS = ("unit_price", "discount_percent", "cgst_percent", "sgst_percent")


@dataclass(frozen=True)
class LineInput:
    """A validated priced line before persistence."""
    component_id: UUID
    quantity: Decimal
    unit_price: Decimal
    discount_percent: Decimal
    cgst_percent: Decimal
    sgst_percent: Decimal

    @property
    def line_total(self) -> Decimal:
        return quotation_line_total(
            self.quantity,
            self.unit_price,
            self.discount_percent,
            self.cgst_percent,
            self.sgst_percent,
        )


@dataclass(frozen=True)
class PricedLine:
    """A stored line on a quotation, counter quotation, LOI or order."""
    line_number: int
    component_id: UUID
    quantity: Decimal
    unit_price: Decimal
    discount_percent: Decimal
    cgst_percent: Decimal
    sgst_percent: Decimal
    line_total: Decimal


def parse_priced_lines(
    items: Sequence[Mapping[str, Any]] | None,
    snapshots: Mapping[UUID, Mapping[str, Any]],
    field: str = "items",
    scope: str = "known components",
) -> tuple[LineInput, ...]:
    """
    Validate ``items``.

    Each item needs ``component_id`` (a key of ``snapshots``) and
    ``quantity > 0``.  ``unit_price`` must be >= 0; discount, CGST and SGST
    must be within 0..100.  Omitted pricing fields come from the snapshot.

    Raises:
        ValidationError: empty list, unknown component, bad value or a line
            amount too large for stored precision.
    """
    if not items:
        raise ValidationError(field, "at least one line item is required")

    lines = []
    for index, item in enumerate(items):
        where = f"{field}[{index}]"
        if not isinstance(item, Mapping):
            raise ValidationError(where, "must be a mapping")
        component_id = parse_uuid(item.get("component_id"), f"{where}.component_id")
        snapshot = snapshots.get(component_id)
        if snapshot is None:
            raise ValidationError(
                f"{where}.component_id", f"{component_id} is not one of the {scope}"
            )

        def pick(name: str) -> Any:
            value = item.get(name)
            return snapshot.get(name) if value is None else value

        line = LineInput(
            component_id=component_id,
            quantity=parse_positive(item.get("quantity"), f"{where}.quantity"),
            unit_price=parse_non_negative(pick("unit_price"), f"{where}.unit_price"),
            discount_percent=parse_percent(
                pick("discount_percent"), f"{where}.discount_percent"
            ),
            cgst_percent=parse_percent(pick("cgst_percent"), f"{where}.cgst_percent"),
            sgst_percent=parse_percent(pick("sgst_percent"), f"{where}.sgst_percent"),
        )
        try:
            store_money(line.quantity * line.unit_price)
            line.line_total
        except ValidationError as exc:
            raise ValidationError(where, exc.reason) from exc
        lines.append(line)
    return tuple(lines)


def line_snapshots(lines: Sequence[Any]) -> dict[UUID, dict[str, Any]]:
    """Pricing snapshot per component from stored line rows."""
    return {
        line.component_id: {name: getattr(line, name) for name in PRICING_FIELDS}
        for line in lines
    }
