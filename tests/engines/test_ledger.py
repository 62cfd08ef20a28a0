"""
Tests for the payment ledger engine.

Validates:
- paid_to_date excludes failed payments
- pending = max(0, basis - paid); settled <=> pending <= tolerance
- State classification: unpaid, partially_paid, settled, overpaid
- suggest_payment_amount per phase, floored at zero
"""

from decimal import Decimal

import pytest

from procurement_engines.ledger import (
    DEFAULT_TOLERANCE,
    LedgerState,
    compute_ledger,
    paid_to_date,
    suggest_payment_amount,
)


def D(value: str) -> Decimal:
    return Decimal(value)


class TestPaidToDate:

    def test_failed_excluded(self):
        payments = [(D("100"), "completed"), (D("50"), "failed"), (D("25"), "pending")]
        assert paid_to_date(payments) == D("125")

    def test_empty(self):
        assert paid_to_date([]) == D("0")

    def test_receipt_sent_counts(self):
        assert paid_to_date([(D("10"), "receipt_sent")]) == D("10")


class TestComputeLedger:

    def test_unpaid(self):
        ledger = compute_ledger(basis_amount=D("1062"), payments=[])
        assert ledger.state is LedgerState.UNPAID
        assert ledger.pending == D("1062")
        assert not ledger.settled

    def test_partially_paid(self):
        ledger = compute_ledger(basis_amount=D("1062"), payments=[(D("212.4"), "completed")])
        assert ledger.state is LedgerState.PARTIALLY_PAID
        assert ledger.paid_to_date == D("212.4")
        assert ledger.pending == D("849.6")

    def test_settled_exact(self):
        ledger = compute_ledger(
            basis_amount=D("1062"),
            payments=[(D("212.4"), "completed"), (D("849.6"), "receipt_sent")],
        )
        assert ledger.state is LedgerState.SETTLED
        assert ledger.pending == D("0")
        assert ledger.settled

    def test_settled_within_tolerance(self):
        ledger = compute_ledger(basis_amount=D("100"), payments=[(D("99.99"), "completed")])
        assert ledger.pending == D("0.01")
        assert ledger.settled
        assert ledger.state is LedgerState.SETTLED

    def test_not_settled_just_outside_tolerance(self):
        ledger = compute_ledger(basis_amount=D("100"), payments=[(D("99.98"), "completed")])
        assert not ledger.settled
        assert ledger.state is LedgerState.PARTIALLY_PAID

    def test_overpaid(self):
        ledger = compute_ledger(basis_amount=D("100"), payments=[(D("150"), "completed")])
        assert ledger.state is LedgerState.OVERPAID
        assert ledger.pending == D("0")
        assert ledger.overpaid_amount == D("50")
        assert ledger.settled

    def test_tiny_excess_is_settled_not_overpaid(self):
        ledger = compute_ledger(basis_amount=D("100"), payments=[(D("100.005"), "completed")])
        assert ledger.state is LedgerState.SETTLED

    def test_failed_payment_does_not_settle(self):
        ledger = compute_ledger(basis_amount=D("100"), payments=[(D("100"), "failed")])
        assert ledger.state is LedgerState.UNPAID

    def test_custom_tolerance(self):
        ledger = compute_ledger(
            basis_amount=D("100"), payments=[(D("99"), "completed")], tolerance=D("1")
        )
        assert ledger.settled
        assert ledger.tolerance == D("1")

    def test_default_tolerance(self):
        assert DEFAULT_TOLERANCE == D("0.01")


class TestSuggestPaymentAmount:

    def test_advance_outstanding(self):
        assert suggest_payment_amount(
            "advance", advance_amount=D("212.4"), advance_paid=D("100"), pending=D("962")
        ) == D("112.4")

    def test_advance_capped_by_pending(self):
        assert suggest_payment_amount(
            "advance", advance_amount=D("500"), advance_paid=D("0"), pending=D("300")
        ) == D("300")

    def test_advance_already_paid_floors_at_zero(self):
        assert suggest_payment_amount(
            "advance", advance_amount=D("100"), advance_paid=D("150"), pending=D("50")
        ) == D("0")

    @pytest.mark.parametrize("pending", ["0", "849.6"])
    def test_final_is_pending(self, pending):
        assert suggest_payment_amount(
            "final", advance_amount=D("212.4"), advance_paid=D("212.4"), pending=D(pending)
        ) == D(pending)
