"""
tests/unit/test_compute_balances.py: Unit tests for balance_service.compute_balances.

What this file proves:
  - balance(m) = paid(m) - total / member_count for every member
  - Balances sum to zero within tolerance for every ledger
  - An empty roster returns {} and a roster with no expenses is all zero
  - Balances are listed in roster order
  - Corrupt input (sum drift beyond tolerance) raises
    SettlementInvariantViolation instead of returning wrong numbers

Unit test constraints:
  - No Flask. compute_balances accepts a Ledger or any object with the same
    read API (members, expenses, total_amount).
"""

from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace

import pytest

from solamate.app.amounts import DEFAULT_TOLERANCE
from solamate.app.errors import ErrorCode, SettlementInvariantViolation
from solamate.app.models.expense import ExpenseEvent
from solamate.app.models.ledger import Ledger
from solamate.app.services.balance_service import (
    balance_sum,
    check_balance_sum,
    compute_balances,
    compute_paid,
    compute_share,
)


def _ledger(members, *expenses) -> Ledger:
    ledger = Ledger(members=members)
    for payer, amount in expenses:
        ledger.add_expense(payer, amount)
    return ledger


# ── Tests ──────────────────────────────────────────────────────────────────

def test_empty_roster_returns_empty_dict():
    assert compute_balances(Ledger()) == {}


def test_no_expenses_all_zero():
    balances = compute_balances(_ledger(["A", "B"]))
    assert balances == {"A": Decimal("0"), "B": Decimal("0")}


def test_single_member_is_always_settled():
    balances = compute_balances(_ledger(["A"], ("A", "75")))
    assert balances == {"A": Decimal("0")}


def test_two_person_dinner():
    balances = compute_balances(_ledger(["A", "B"], ("A", "100")))
    assert balances == {"A": Decimal("50"), "B": Decimal("-50")}


def test_one_payer_of_three():
    balances = compute_balances(_ledger(["A", "B", "C"], ("A", "90")))
    assert balances == {"A": Decimal("60"), "B": Decimal("-30"), "C": Decimal("-30")}


def test_two_payers_of_three():
    balances = compute_balances(_ledger(["A", "B", "C"], ("A", "60"), ("B", "60")))
    assert balances == {"A": Decimal("20"), "B": Decimal("20"), "C": Decimal("-40")}


def test_balances_follow_roster_order():
    balances = compute_balances(_ledger(["C", "A", "B"], ("B", "9")))
    assert list(balances) == ["C", "A", "B"]


def test_repeating_share_sums_to_zero_within_tolerance():
    """100 / 3 does not terminate; the drift stays far below tolerance."""
    balances = compute_balances(_ledger(["A", "B", "C"], ("A", "100")))

    assert abs(balance_sum(balances)) <= DEFAULT_TOLERANCE
    assert balances["A"] > Decimal("66.6666")
    assert balances["B"] == balances["C"]


def test_multiple_expenses_by_same_payer_accumulate():
    ledger = _ledger(["A", "B"], ("A", "10"), ("A", "30"), ("B", "20"))
    assert compute_paid(ledger) == {"A": Decimal("40"), "B": Decimal("20")}
    assert compute_balances(ledger) == {"A": Decimal("10"), "B": Decimal("-10")}


def test_zero_amount_expense_changes_nothing():
    ledger = _ledger(["A", "B"], ("A", "0"))
    assert compute_balances(ledger) == {"A": Decimal("0"), "B": Decimal("0")}


def test_accepts_snapshot():
    ledger = _ledger(["A", "B"], ("B", "8"))
    assert compute_balances(ledger.snapshot()) == {"A": Decimal("-4"), "B": Decimal("4")}


def test_share_is_zero_for_empty_roster():
    assert compute_share(Ledger()) == Decimal("0")


def test_payer_outside_roster_is_reported_as_invariant_violation():
    """
    A hand-built ledger whose expense payer is not a member breaks the
    balance sum. The check must catch it rather than return bad numbers.
    """
    corrupt = SimpleNamespace(
        members=("A", "B"),
        expenses=(ExpenseEvent(id=1, payer="ghost", amount=Decimal("10")),),
        total_amount=lambda: Decimal("10"),
    )

    with pytest.raises(SettlementInvariantViolation) as exc_info:
        compute_balances(corrupt)

    err = exc_info.value
    assert err.code == ErrorCode.SETTLEMENT_INVARIANT_VIOLATION
    assert err.http_status == 500
    assert err.residual == {"balance_sum": Decimal("-10")}


def test_check_balance_sum_accepts_drift_within_tolerance():
    check_balance_sum({"A": Decimal("0.0005"), "B": Decimal("0")})


def test_check_balance_sum_rejects_drift_beyond_tolerance():
    with pytest.raises(SettlementInvariantViolation):
        check_balance_sum({"A": Decimal("0.01"), "B": Decimal("0")})
