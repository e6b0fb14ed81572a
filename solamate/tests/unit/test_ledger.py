"""
tests/unit/test_ledger.py: Unit tests for the Ledger model.

What this file proves:
  - Members are unique, kept in insertion order, and opaque strings
  - add_expense rejects unknown payers and negative or non-finite amounts
    without touching the ledger
  - Expense ids start at 1, increase, and are never reused after a delete
  - remove_member cascades to every expense the member paid
  - snapshot() is immutable and from_snapshot() restores ids and the counter

Unit test constraints:
  - No Flask, no store, no locks. Ledger is a plain object.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from solamate.app.errors import (
    DuplicateMember,
    ErrorCode,
    InvalidAmount,
    UnknownExpense,
    UnknownMember,
)
from solamate.app.models.ledger import Ledger


# ── Roster ─────────────────────────────────────────────────────────────────

def test_new_ledger_is_empty():
    ledger = Ledger(name="Dinner")
    assert ledger.members == ()
    assert ledger.expenses == ()
    assert ledger.total_amount() == Decimal("0")


def test_members_kept_in_insertion_order():
    ledger = Ledger(members=["carol", "alice", "bob"])
    assert ledger.members == ("carol", "alice", "bob")


def test_add_duplicate_member_raises_and_leaves_roster_unchanged():
    ledger = Ledger(members=["alice"])

    with pytest.raises(DuplicateMember) as exc_info:
        ledger.add_member("alice")

    assert exc_info.value.code == ErrorCode.DUPLICATE_MEMBER
    assert exc_info.value.http_status == 409
    assert ledger.members == ("alice",)


def test_members_are_case_sensitive_opaque_strings():
    """Wallet addresses are base58; "Abc" and "abc" are different keys."""
    ledger = Ledger(members=["Abc", "abc"])
    assert len(ledger.members) == 2


def test_remove_unknown_member_raises():
    ledger = Ledger(members=["alice"])
    with pytest.raises(UnknownMember) as exc_info:
        ledger.remove_member("bob")
    assert exc_info.value.http_status == 404


def test_remove_member_cascades_their_expenses():
    ledger = Ledger(members=["A", "B", "C"])
    ledger.add_expense("A", "60", "x")
    ledger.add_expense("C", "30", "z")
    ledger.add_expense("B", "60", "y")
    ledger.add_expense("C", "15", "w")

    removed = ledger.remove_member("C")

    assert [e.id for e in removed] == [2, 4]
    assert ledger.members == ("A", "B")
    assert [e.payer for e in ledger.expenses] == ["A", "B"]
    assert ledger.total_amount() == Decimal("120")


def test_readding_removed_member_starts_from_zero():
    ledger = Ledger(members=["A", "B"])
    ledger.add_expense("B", "40")
    ledger.remove_member("B")
    ledger.add_member("B")

    assert ledger.members == ("A", "B")
    assert ledger.expenses == ()


# ── Expenses ───────────────────────────────────────────────────────────────

def test_add_expense_assigns_increasing_ids():
    ledger = Ledger(members=["A", "B"])
    first = ledger.add_expense("A", "10", "coffee")
    second = ledger.add_expense("B", "5", "snack")

    assert (first.id, second.id) == (1, 2)
    assert first.amount == Decimal("10")
    assert first.description == "coffee"


def test_expense_ids_not_reused_after_delete():
    ledger = Ledger(members=["A"])
    ledger.add_expense("A", "1")
    ledger.add_expense("A", "2")
    ledger.remove_expense(2)

    third = ledger.add_expense("A", "3")

    assert third.id == 3


def test_add_expense_unknown_payer_raises_422():
    ledger = Ledger(members=["A"])

    with pytest.raises(UnknownMember) as exc_info:
        ledger.add_expense("Z", "10")

    assert exc_info.value.code == ErrorCode.UNKNOWN_MEMBER
    assert exc_info.value.http_status == 422
    assert exc_info.value.field == "payer"
    assert ledger.expenses == ()


def test_add_expense_negative_amount_raises():
    ledger = Ledger(members=["A"])

    with pytest.raises(InvalidAmount) as exc_info:
        ledger.add_expense("A", "-5")

    assert exc_info.value.code == ErrorCode.INVALID_AMOUNT
    assert ledger.expenses == ()


@pytest.mark.parametrize("amount", ["abc", "NaN", "Infinity", float("inf"), None, True])
def test_add_expense_non_numeric_amount_raises(amount):
    ledger = Ledger(members=["A"])
    with pytest.raises(InvalidAmount):
        ledger.add_expense("A", amount)
    assert ledger.expenses == ()


def test_failed_add_does_not_consume_an_id():
    ledger = Ledger(members=["A"])
    with pytest.raises(InvalidAmount):
        ledger.add_expense("A", "-1")

    assert ledger.add_expense("A", "1").id == 1


def test_zero_amount_expense_is_legal():
    ledger = Ledger(members=["A", "B"])
    expense = ledger.add_expense("A", 0, "free sample")
    assert expense.amount == Decimal("0")
    assert ledger.total_amount() == Decimal("0")


def test_float_amount_enters_as_its_repr():
    """0.1 must become Decimal("0.1"), not the binary expansion."""
    ledger = Ledger(members=["A"])
    assert ledger.add_expense("A", 0.1).amount == Decimal("0.1")


def test_remove_unknown_expense_raises():
    ledger = Ledger(members=["A"])
    ledger.add_expense("A", "1")

    with pytest.raises(UnknownExpense) as exc_info:
        ledger.remove_expense(99)

    assert exc_info.value.code == ErrorCode.UNKNOWN_EXPENSE
    assert len(ledger.expenses) == 1


def test_expense_events_are_immutable():
    ledger = Ledger(members=["A"])
    expense = ledger.add_expense("A", "1")
    with pytest.raises(AttributeError):
        expense.amount = Decimal("1000")


# ── Snapshots ──────────────────────────────────────────────────────────────

def test_snapshot_is_detached_from_later_mutations():
    ledger = Ledger(name="Trip", members=["A", "B"])
    ledger.add_expense("A", "10")
    snap = ledger.snapshot()

    ledger.add_expense("B", "20")
    ledger.add_member("C")

    assert snap.members == ("A", "B")
    assert len(snap.expenses) == 1
    assert snap.total_amount() == Decimal("10")


def test_from_snapshot_restores_ids_and_counter():
    ledger = Ledger(name="Trip", members=["A", "B"])
    ledger.add_expense("A", "10")
    ledger.add_expense("B", "20")
    ledger.remove_expense(2)

    restored = Ledger.from_snapshot(ledger.snapshot())

    assert restored.name == "Trip"
    assert restored.created_at == ledger.created_at
    assert [e.id for e in restored.expenses] == [1]
    assert restored.add_expense("A", "5").id == 3
