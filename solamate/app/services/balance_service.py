"""
services/balance_service.py: balance computation and the settlement summary.

This file is the SINGLE SOURCE OF TRUTH for how balances are computed.
The equal-split formula must not be reimplemented elsewhere in the codebase.

Layer rules:
  - No Flask imports. No current_app, request, g, or HTTP knowledge.
  - compute_balances() accepts a Ledger or a LedgerSnapshot and nothing else.
  - Returns plain Python dicts with Decimal values.
  - Fully unit-testable without a Flask app.

Balance sum guarantee:
  - With share = total / member_count, the balances sum to zero up to
    Decimal context rounding (about 1e-26 for realistic ledgers).
  - compute_balances() verifies |sum| <= tolerance before returning and
    raises SettlementInvariantViolation otherwise. Drift beyond tolerance
    means the ledger data is corrupt, never a normal condition.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from solamate.app.amounts import (
    DEFAULT_AMOUNT_PLACES,
    DEFAULT_TOLERANCE,
    ZERO,
    format_amount,
)
from solamate.app.errors import SettlementInvariantViolation
from solamate.app.services.ledger_service import get_snapshot
from solamate.app.services.settlement_service import (
    compute_transfers,
    serialize_transfers,
)

logger = logging.getLogger(__name__)


# ── Core algorithms ────────────────────────────────────────────────────────

def compute_balances(
        ledger,
        tolerance: Decimal = DEFAULT_TOLERANCE,
) -> dict[str, Decimal]:
    """
    Equal-split balance computation.

    Returns {member: paid(member) - total / member_count} for every member,
    in roster order. Positive means the member is owed money, negative
    means the member owes.

    An empty roster returns {} (no division by zero).

    Raises:
        SettlementInvariantViolation -- the balances do not sum to zero
                                        within `tolerance`.
    """
    members = ledger.members
    if not members:
        return {}

    share = ledger.total_amount() / len(members)

    paid = compute_paid(ledger)
    balances = {member: paid[member] - share for member in members}
    check_balance_sum(balances, tolerance)
    return balances


def compute_paid(ledger) -> dict[str, Decimal]:
    """Total paid by each member, in roster order."""
    paid: dict[str, Decimal] = {member: ZERO for member in ledger.members}
    for expense in ledger.expenses:
        # A payer outside the roster cannot come from a Ledger; if one slips
        # in through a hand-built snapshot the balance sum check reports it.
        if expense.payer in paid:
            paid[expense.payer] += expense.amount
    return paid


def balance_sum(balances: dict[str, Decimal]) -> Decimal:
    return sum(balances.values(), ZERO)


def check_balance_sum(
        balances: dict[str, Decimal],
        tolerance: Decimal = DEFAULT_TOLERANCE,
) -> None:
    """Raises SettlementInvariantViolation if |sum(balances)| > tolerance."""
    total = balance_sum(balances)
    if abs(total) > tolerance:
        logger.error(
            "Balance integrity check failed: sum was %s across %d members "
            "(tolerance %s).",
            total, len(balances), tolerance,
        )
        raise SettlementInvariantViolation(
            f"Balance integrity check failed: sum was {total} (expected 0 "
            f"within {tolerance}).",
            residual={"balance_sum": total},
        )


def compute_share(ledger) -> Decimal:
    """Per-member share of the ledger total; zero for an empty roster."""
    members = ledger.members
    if not members:
        return ZERO
    return ledger.total_amount() / len(members)


# ── Response builders ──────────────────────────────────────────────────────

def build_summary(
        ledger,
        tolerance: Decimal = DEFAULT_TOLERANCE,
        places: int = DEFAULT_AMOUNT_PLACES,
) -> dict:
    """
    Builds the settlement summary for one ledger: totals, per-member
    balances, the transfer plan and an all-settled flag.

    Amounts are rendered as strings with `places` decimal places at most.
    """
    balances = compute_balances(ledger, tolerance)
    transfers = compute_transfers(balances, tolerance)

    paid = compute_paid(ledger)

    return {
        "name": ledger.name,
        "total_amount": format_amount(ledger.total_amount(), places),
        "member_count": len(ledger.members),
        "expense_count": len(ledger.expenses),
        "share": format_amount(compute_share(ledger), places),
        "balances": [
            {
                "member": member,
                "paid": format_amount(paid[member], places),
                "balance": format_amount(balance, places),
            }
            for member, balance in balances.items()
        ],
        "transfers": serialize_transfers(transfers, places),
        "balance_sum": format_amount(balance_sum(balances), places),
        "all_settled": not transfers,
    }


def get_balance_response(
        ledger_id: int,
        store,
        tolerance: Decimal = DEFAULT_TOLERANCE,
        places: int = DEFAULT_AMOUNT_PLACES,
) -> dict:
    """
    Builds the payload for GET /ledgers/:id/balances.

    The ledger is snapshotted under its lock; the computation runs on the
    snapshot without holding the lock.

    Raises:
        AppError(LEDGER_NOT_FOUND, 404)        -- no ledger with that id.
        SettlementInvariantViolation (500)     -- corrupt ledger data.
    """
    snapshot = get_snapshot(ledger_id, store)
    summary = build_summary(snapshot, tolerance, places)
    return {"ledger_id": ledger_id, **summary}
