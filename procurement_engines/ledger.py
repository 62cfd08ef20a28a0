"""
procurement_engines.ledger -- Derived payment ledger for an order.

Responsibility:
    Computes paid-to-date, pending balance, over-payment and the display
    state of an order/invoice pair from its payments.  Nothing here is
    stored; the ledger is recomputed on every read.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Failed payments never contribute to any aggregate.
    - pending = max(0, basis - paid_to_date).
    - settled <=> pending <= tolerance (default 0.01).
    - overpaid <=> paid_to_date - basis > tolerance.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from procurement_engines.tracer import traced_engine
from procurement_kernel.db.types import ZERO

DEFAULT_TOLERANCE = Decimal("0.01")

FAILED_STATUS = "failed"


class LedgerState(str, Enum):
    """Display state of an order's payment ledger."""

    UNPAID = "unpaid"
    PARTIALLY_PAID = "partially_paid"
    SETTLED = "settled"
    OVERPAID = "overpaid"


@dataclass(frozen=True)
class PaymentLedger:
    """Derived ledger figures for one basis amount."""

    basis_amount: Decimal
    paid_to_date: Decimal
    pending: Decimal
    overpaid_amount: Decimal
    state: LedgerState
    tolerance: Decimal = DEFAULT_TOLERANCE

    @property
    def settled(self) -> bool:
        return self.pending <= self.tolerance


def paid_to_date(payments: Iterable[tuple[Decimal, str]]) -> Decimal:
    """Sum of ``amount`` over (amount, status) pairs whose status is not failed."""
    return sum(
        (amount for amount, status in payments if status != FAILED_STATUS),
        ZERO,
    )


@traced_engine("ledger.compute", "1.0", fingerprint_fields=("basis_amount", "payments"))
def compute_ledger(
    *,
    basis_amount: Decimal,
    payments: Iterable[tuple[Decimal, str]],
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> PaymentLedger:
    paid = paid_to_date(payments)
    pending = max(ZERO, basis_amount - paid)
    overpaid = max(ZERO, paid - basis_amount)

    if overpaid > tolerance:
        state = LedgerState.OVERPAID
    elif pending <= tolerance:
        state = LedgerState.SETTLED
    elif paid > ZERO:
        state = LedgerState.PARTIALLY_PAID
    else:
        state = LedgerState.UNPAID

    return PaymentLedger(
        basis_amount=basis_amount,
        paid_to_date=paid,
        pending=pending,
        overpaid_amount=overpaid,
        state=state,
        tolerance=tolerance,
    )


def suggest_payment_amount(
    phase: str,
    *,
    advance_amount: Decimal,
    advance_paid: Decimal,
    pending: Decimal,
) -> Decimal:
    """
    Amount to pre-fill for a new payment.

    ``advance``: the part of the agreed advance not yet paid, capped by
    the pending balance.  ``final``: the whole pending balance.
    """
    if phase == "advance":
        return max(ZERO, min(advance_amount - advance_paid, pending))
    return max(ZERO, pending)
