"""
Module: procurement_engines
Responsibility:
    Pure calculation engines for the procurement lifecycle: line pricing,
    invoice totals, and the payment ledger.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import procurement_kernel.db.types and sibling engine modules.
    MUST NOT import procurement_services or procurement_modules.

Invariants enforced:
    - Purity: engines never read the clock or the database.  Identical
      inputs always produce identical outputs.
    - Decimal-only arithmetic; floats are forbidden.

Usage:
    from procurement_engines.pricing import quotation_line_total, invoice_line_amounts
    from procurement_engines.ledger import compute_ledger, LedgerState
"""

from procurement_engines.ledger import (
    LedgerState,
    PaymentLedger,
    compute_ledger,
    paid_to_date,
    suggest_payment_amount,
)
from procurement_engines.pricing import (
    InvoiceLineAmounts,
    InvoiceTotals,
    advance_amount,
    document_total,
    invoice_line_amounts,
    invoice_totals,
    quotation_line_total,
)

__all__ = [
    "InvoiceLineAmounts",
    "InvoiceTotals",
    "LedgerState",
    "PaymentLedger",
    "advance_amount",
    "compute_ledger",
    "document_total",
    "invoice_line_amounts",
    "invoice_totals",
    "paid_to_date",
    "quotation_line_total",
    "suggest_payment_amount",
]
