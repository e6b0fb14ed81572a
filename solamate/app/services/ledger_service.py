"""
services/ledger_service.py: ledger and roster operations over the LedgerStore.

Every function takes the store as an argument (the routes pass the app-wide
`store` from extensions.py) and resolves the ledger by id. Mutations run
under the ledger's lock; the Ledger model itself validates before it
mutates, so a failed call leaves the ledger unchanged.

Authorization rules:
  - None. Wallet identity is resolved by the host before it calls in.

Layer rules:
  - No Flask imports. No current_app, request, g, or HTTP knowledge.
  - Receives plain ints, strings and dicts; returns plain dicts or model
    objects, or raises AppError.
"""

from __future__ import annotations

from solamate.app.errors import AppError, ErrorCode
from solamate.app.models.expense import ExpenseEvent
from solamate.app.models.ledger import Ledger, LedgerSnapshot


# ── Private helpers ────────────────────────────────────────────────────────

def _get_entry_or_404(ledger_id: int, store):
    """Returns the LedgerEntry or raises LEDGER_NOT_FOUND (404)."""
    entry = store.get(ledger_id)
    if entry is None:
        raise AppError(
            ErrorCode.LEDGER_NOT_FOUND,
            f"Ledger {ledger_id} does not exist.",
            404,
        )
    return entry


def _build_ledger_dict(ledger_id: int, snapshot: LedgerSnapshot) -> dict:
    """Serialises a ledger snapshot (without expenses) to a plain dict."""
    return {
        "id": ledger_id,
        "name": snapshot.name,
        "created_at": snapshot.created_at.isoformat(),
        "members": list(snapshot.members),
        "expense_count": len(snapshot.expenses),
    }


# ── Ledgers ────────────────────────────────────────────────────────────────

def create_ledger(name: str, store, members=(), max_members: int | None = None) -> dict:
    """
    Creates a new ledger with an optional initial roster.

    Raises:
      AppError(LEDGER_FULL, 422)  -- more initial members than max_members
      DuplicateMember (409)       -- the initial roster repeats a member
    """
    members = list(members)
    _check_capacity(len(members), max_members)

    ledger = Ledger(name=name, members=members)
    entry = store.create(ledger)
    return _build_ledger_dict(entry.id, entry.snapshot())


def list_ledgers(store) -> list[dict]:
    """Returns every ledger in creation order."""
    return [_build_ledger_dict(entry.id, entry.snapshot()) for entry in store.entries()]


def get_ledger(ledger_id: int, store) -> dict:
    entry = _get_entry_or_404(ledger_id, store)
    return _build_ledger_dict(entry.id, entry.snapshot())


def get_snapshot(ledger_id: int, store) -> LedgerSnapshot:
    """
    Returns an immutable snapshot of the ledger, taken under its lock.

    Balance and plan queries read from this so they can run in parallel
    with each other and never see a half-applied mutation.
    """
    return _get_entry_or_404(ledger_id, store).snapshot()


def delete_ledger(ledger_id: int, store) -> None:
    if store.delete(ledger_id) is None:
        raise AppError(
            ErrorCode.LEDGER_NOT_FOUND,
            f"Ledger {ledger_id} does not exist.",
            404,
        )


# ── Roster ─────────────────────────────────────────────────────────────────

def _check_capacity(member_count: int, max_members: int | None) -> None:
    if max_members is not None and member_count > max_members:
        raise AppError(
            ErrorCode.LEDGER_FULL,
            f"A ledger may have at most {max_members} members.",
            422,
            field="member",
        )


def add_member(
        ledger_id: int,
        member: str,
        store,
        max_members: int | None = None,
) -> dict:
    """
    Adds a member to the ledger's roster.

    Raises:
      AppError(LEDGER_NOT_FOUND, 404) -- ledger does not exist
      AppError(LEDGER_FULL, 422)      -- roster is already at max_members
      DuplicateMember (409)           -- member is already in the roster
    """
    entry = _get_entry_or_404(ledger_id, store)

    with entry.lock:
        ledger = entry.ledger
        if not ledger.has_member(member):
            _check_capacity(len(ledger.members) + 1, max_members)
        ledger.add_member(member)
        member_count = len(ledger.members)

    return {
        "ledger_id": ledger_id,
        "member": member,
        "member_count": member_count,
    }


def remove_member(ledger_id: int, member: str, store) -> dict:
    """
    Removes a member and, by cascade, every expense they paid.

    Raises:
      AppError(LEDGER_NOT_FOUND, 404) -- ledger does not exist
      UnknownMember (404)             -- member is not in the roster
    """
    entry = _get_entry_or_404(ledger_id, store)

    with entry.lock:
        removed = entry.ledger.remove_member(member)

    return {
        "ledger_id": ledger_id,
        "member": member,
        "removed_expense_ids": [e.id for e in removed],
    }


# ── Expenses ───────────────────────────────────────────────────────────────

def add_expense(ledger_id: int, data: dict, store) -> ExpenseEvent:
    """
    Records an expense.

    Args:
        data: Validated dict from CreateExpenseSchema.
              Keys: payer (str), amount (Decimal), description (str).

    Raises:
      AppError(LEDGER_NOT_FOUND, 404) -- ledger does not exist
      UnknownMember (422)             -- payer is not in the roster
      InvalidAmount (422)             -- amount is negative
    """
    entry = _get_entry_or_404(ledger_id, store)

    with entry.lock:
        return entry.ledger.add_expense(
            payer=data["payer"],
            amount=data["amount"],
            description=data.get("description", ""),
        )


def list_expenses(ledger_id: int, store) -> list[ExpenseEvent]:
    """Returns the ledger's expenses in insertion order."""
    return list(get_snapshot(ledger_id, store).expenses)


def remove_expense(ledger_id: int, expense_id: int, store) -> ExpenseEvent:
    """
    Deletes one expense and returns it.

    Raises:
      AppError(LEDGER_NOT_FOUND, 404) -- ledger does not exist
      UnknownExpense (404)            -- no expense with that id
    """
    entry = _get_entry_or_404(ledger_id, store)

    with entry.lock:
        return entry.ledger.remove_expense(expense_id)
