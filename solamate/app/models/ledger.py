"""
models/ledger.py: the Ledger, the record of members and expense events for
one settlement group.

Pure data. No balance or settlement computation lives here; those are
functions of a ledger in services/.

Key design points:
  - Members are opaque strings (wallet address or display name), unique
    within one ledger, listed in insertion order.
  - Removing a member cascades to every expense that member paid.
  - Every mutation validates first and mutates second, so a failed call
    leaves the ledger untouched.
  - A Ledger is not thread-safe. Hosts that share one across threads guard
    it with a lock per ledger (see extensions.LedgerStore) and read through
    snapshot().
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from solamate.app.amounts import ZERO, to_amount
from solamate.app.errors import (
    DuplicateMember,
    InvalidAmount,
    UnknownExpense,
    UnknownMember,
)
from solamate.app.models.expense import ExpenseEvent


@dataclass(frozen=True)
class LedgerSnapshot:
    """
    Immutable copy of a ledger's state.

    Exposes the same read API as Ledger (members, expenses, total_amount),
    so the balance calculator accepts either.
    """
    name: str
    members: tuple[str, ...]
    expenses: tuple[ExpenseEvent, ...]
    next_expense_id: int
    created_at: datetime

    def total_amount(self) -> Decimal:
        return sum((e.amount for e in self.expenses), ZERO)


class Ledger:

    def __init__(
            self,
            name: str = "",
            members=(),
            created_at: datetime | None = None,
    ) -> None:
        self.name = name
        self.created_at = created_at or datetime.now(timezone.utc)
        self._members: list[str] = []
        self._expenses: list[ExpenseEvent] = []
        self._next_expense_id = 1

        for member in members:
            self.add_member(member)

    def __repr__(self) -> str:
        return (
            f"Ledger(name={self.name!r}, members={len(self._members)}, "
            f"expenses={len(self._expenses)})"
        )

    # ── Read API ───────────────────────────────────────────────────────────

    @property
    def members(self) -> tuple[str, ...]:
        return tuple(self._members)

    @property
    def expenses(self) -> tuple[ExpenseEvent, ...]:
        return tuple(self._expenses)

    def has_member(self, member: str) -> bool:
        return member in self._members

    def get_expense(self, expense_id: int) -> ExpenseEvent:
        """Returns the expense with `expense_id` or raises UnknownExpense."""
        for expense in self._expenses:
            if expense.id == expense_id:
                return expense
        raise UnknownExpense(expense_id)

    def total_amount(self) -> Decimal:
        """Sum of every expense amount."""
        return sum((e.amount for e in self._expenses), ZERO)

    # ── Mutations ──────────────────────────────────────────────────────────

    def add_member(self, member: str) -> None:
        """
        Appends `member` to the roster. Has no effect on any balance until
        expenses are recorded.

        Raises:
            DuplicateMember -- `member` is already in the roster.
        """
        if member in self._members:
            raise DuplicateMember(member)
        self._members.append(member)

    def remove_member(self, member: str) -> list[ExpenseEvent]:
        """
        Removes `member` and every expense they paid.

        Returns the expenses removed by the cascade, in insertion order.

        Raises:
            UnknownMember -- `member` is not in the roster.
        """
        if member not in self._members:
            raise UnknownMember(member)

        removed = [e for e in self._expenses if e.payer == member]
        self._expenses = [e for e in self._expenses if e.payer != member]
        self._members.remove(member)
        return removed

    def add_expense(self, payer: str, amount, description: str = "") -> ExpenseEvent:
        """
        Records that `payer` paid `amount`.

        `amount` may be an int, str, float or Decimal; it is stored as Decimal.

        Raises:
            UnknownMember -- `payer` is not in the roster.
            InvalidAmount -- `amount` is negative or not a finite number.
        """
        if payer not in self._members:
            raise UnknownMember(payer, field="payer", http_status=422)

        try:
            value = to_amount(amount)
        except ValueError as exc:
            raise InvalidAmount(amount, str(exc)) from None
        if value < ZERO:
            raise InvalidAmount(amount)

        expense = ExpenseEvent(
            id=self._next_expense_id,
            payer=payer,
            amount=value,
            description=description,
        )
        self._expenses.append(expense)
        self._next_expense_id += 1
        return expense

    def remove_expense(self, expense_id: int) -> ExpenseEvent:
        """
        Deletes one expense and returns it.

        Raises:
            UnknownExpense -- no expense has `expense_id`.
        """
        expense = self.get_expense(expense_id)
        self._expenses.remove(expense)
        return expense

    # ── Snapshots ──────────────────────────────────────────────────────────

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            name=self.name,
            members=tuple(self._members),
            expenses=tuple(self._expenses),
            next_expense_id=self._next_expense_id,
            created_at=self.created_at,
        )

    @classmethod
    def from_snapshot(cls, snapshot: LedgerSnapshot) -> Ledger:
        """
        Rebuilds a mutable Ledger from a snapshot.

        Expense ids are preserved and the id counter resumes where the
        snapshot left off, so ids stay unique after a restore.
        """
        ledger = cls(name=snapshot.name, members=snapshot.members,
                     created_at=snapshot.created_at)
        for expense in snapshot.expenses:
            if expense.payer not in ledger._members:
                raise UnknownMember(expense.payer, field="payer", http_status=422)
            ledger._expenses.append(expense)

        highest_id = max((e.id for e in snapshot.expenses), default=0)
        ledger._next_expense_id = max(snapshot.next_expense_id, highest_id + 1)
        return ledger
