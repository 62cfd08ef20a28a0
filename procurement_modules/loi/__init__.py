"""
LOI Module (``procurement_modules.loi``).

Letters of intent issued from accepted quotations or counter quotations,
one per deal, answered by the vendor and confirmed by order creation.
"""

from procurement_modules.loi.models import LOI, LOISourceType, LOIStatus
from procurement_modules.loi.service import LOIService
from procurement_modules.loi.workflows import LOI_WORKFLOW

__all__ = [
    "LOI",
    "LOIService",
    "LOISourceType",
    "LOIStatus",
    "LOI_WORKFLOW",
]
