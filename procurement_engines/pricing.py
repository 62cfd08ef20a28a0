"""
procurement_engines.pricing -- Line and document totals for quotations,
counter quotations, LOIs, orders and invoices.

Responsibility:
    The two pricing formulas of the document chain.

    Quotation-style lines (quotation, counter, LOI, order):
        line_total = quantity x unit_price x (1 - discount%/100)
                     x (1 + (cgst% + sgst%)/100)
        total      = sum(line_total)

    Invoice lines are itemized:
        base      = quantity x unit_price
        discount  = base x discount%/100
        taxable   = base - discount
        cgst      = taxable x cgst%/100
        sgst      = taxable x sgst%/100
        line_total = taxable + cgst + sgst

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Each line amount is computed at full Decimal precision and then
      quantized once to stored precision (9 places) via round_money.
    - Document totals are the exact sum of the stored line amounts, so a
      total recomputed from stored lines always equals the stored total.
    - Invoice components are each quantized before summing, therefore
      total_amount == subtotal - total_discount + total_cgst + total_sgst
      holds exactly.
    - A line or total too large for stored precision raises ValidationError
      (via store_money) rather than losing digits.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from procurement_engines.tracer import traced_engine
from procurement_kernel.db.types import HUNDRED, ZERO, percent_of, store_money


def quotation_line_total(
    quantity: Decimal,
    unit_price: Decimal,
    discount_percent: Decimal,
    cgst_percent: Decimal,
    sgst_percent: Decimal,
) -> Decimal:
    """Discounted, tax-inclusive line amount at stored precision."""
    gross = quantity * unit_price
    discounted = gross * (HUNDRED - discount_percent) / HUNDRED
    taxed = discounted * (HUNDRED + cgst_percent + sgst_percent) / HUNDRED
    return store_money(taxed)


def document_total(line_totals: Iterable[Decimal]) -> Decimal:
    """Sum of stored line totals."""
    return store_money(sum(line_totals, ZERO))


def advance_amount(total_amount: Decimal, advance_payment_percent: Decimal) -> Decimal:
    """``total x pct / 100`` at stored precision."""
    return store_money(percent_of(total_amount, advance_payment_percent))


@dataclass(frozen=True)
class InvoiceLineAmounts:
    """Itemized amounts for one invoice line."""
    base_amount: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class InvoiceTotals:
    """Invoice header totals."""
    subtotal: Decimal
    total_discount: Decimal
    total_cgst: Decimal
    total_sgst: Decimal
    total_amount: Decimal


def invoice_line_amounts(
    quantity: Decimal,
    unit_price: Decimal,
    discount_percent: Decimal,
    cgst_percent: Decimal,
    sgst_percent: Decimal,
) -> InvoiceLineAmounts:
    base = store_money(quantity * unit_price)
    discount = store_money(percent_of(base, discount_percent))
    taxable = base - discount
    cgst = store_money(percent_of(taxable, cgst_percent))
    sgst = store_money(percent_of(taxable, sgst_percent))
    return InvoiceLineAmounts(
        base_amount=base,
        discount_amount=discount,
        taxable_amount=taxable,
        cgst_amount=cgst,
        sgst_amount=sgst,
        line_total=taxable + cgst + sgst,
    )


@traced_engine("pricing.invoice_totals", "1.0", fingerprint_fields=("lines",))
def invoice_totals(*, lines: Sequence[InvoiceLineAmounts]) -> InvoiceTotals:
    """Header totals from itemized lines."""
    subtotal = store_money(sum((line.base_amount for line in lines), ZERO))
    total_discount = store_money(sum((line.discount_amount for line in lines), ZERO))
    total_cgst = store_money(sum((line.cgst_amount for line in lines), ZERO))
    total_sgst = store_money(sum((line.sgst_amount for line in lines), ZERO))
    return InvoiceTotals(
        subtotal=subtotal,
        total_discount=total_discount,
        total_cgst=total_cgst,
        total_sgst=total_sgst,
        total_amount=store_money(subtotal - total_discount + total_cgst + total_sgst),
    )
