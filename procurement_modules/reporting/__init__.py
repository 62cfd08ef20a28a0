"""
Reporting Module (``procurement_modules.reporting``).

Read-only derived views: the per-order payment ledger and the dashboard
summary.  Nothing here is stored.
"""

from procurement_modules.reporting.selectors import (
    DashboardSelector,
    DashboardSummary,
    LedgerSelector,
    OrderLedger,
)

__all__ = [
    "DashboardSelector",
    "DashboardSummary",
    "LedgerSelector",
    "OrderLedger",
]
