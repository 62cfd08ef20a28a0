"""
Invoice Module (``procurement_modules.invoice``).

Itemized vendor invoices against confirmed orders, processed by the
purchasing manager: pending -> received -> accepted -> paid, or rejected.
"""

from procurement_modules.invoice.models import (
    Invoice,
    InvoiceLine,
    InvoiceStatus,
    InvoiceSummary,
)
from procurement_modules.invoice.service import InvoiceService
from procurement_modules.invoice.workflows import INVOICE_WORKFLOW

__all__ = [
    "INVOICE_WORKFLOW",
    "Invoice",
    "InvoiceLine",
    "InvoiceService",
    "InvoiceStatus",
    "InvoiceSummary",
]
