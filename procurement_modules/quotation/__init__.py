"""
Quotation Module (``procurement_modules.quotation``).

Vendor quotations against enquiries and the counter-quotation negotiation
loop.  Negotiation is append-only: every answer is a new counter
quotation, so the full history survives.
"""

from procurement_modules.quotation.models import (
    CounterAction,
    CounterFilingResult,
    CounterQuotation,
    CounterStatus,
    Quotation,
    QuotationStatus,
)
from procurement_modules.quotation.service import QuotationService
from procurement_modules.quotation.workflows import (
    COUNTER_QUOTATION_WORKFLOW,
    QUOTATION_WORKFLOW,
)

__all__ = [
    "COUNTER_QUOTATION_WORKFLOW",
    "CounterAction",
    "CounterFilingResult",
    "CounterQuotation",
    "CounterStatus",
    "QUOTATION_WORKFLOW",
    "Quotation",
    "QuotationService",
    "QuotationStatus",
]
