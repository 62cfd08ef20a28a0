"""
Payment Module (``procurement_modules.payment``).

Payment events against orders, in advance and final phases.  The running
balance is derived on read by ``procurement_modules.reporting``.
"""

from procurement_modules.payment.models import Payment, PaymentPhase, PaymentStatus
from procurement_modules.payment.service import PaymentService
from procurement_modules.payment.workflows import PAYMENT_WORKFLOW

__all__ = [
    "PAYMENT_WORKFLOW",
    "Payment",
    "PaymentPhase",
    "PaymentService",
    "PaymentStatus",
]
