"""
services/settlement_service.py: settlement planning and the execution boundary.

compute_transfers() turns a balance map into an ordered list of transfers
that brings every balance to zero, using greedy largest-debtor /
largest-creditor matching ("debt simplification"). The greedy walk advances
at least one side on every step, so a plan never has more than
(#debtors + #creditors - 1) transfers. The total amount moved is the same
for any zero-sum decomposition; only the transfer count is minimised.

The execution layer (wallet transaction submission) is external. This module
only defines the TransferExecutor contract and walks a plan through it:
each instruction is handed over once, in order, with no retry, reordering
or rollback. A partially executed plan is a normal outcome; the caller
recomputes the remaining balances and plans again.

Layer rules:
  - No Flask imports. No current_app, request, g, or HTTP knowledge.
  - Planning is pure: same balance map (same insertion order) in, same
    plan out.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, Protocol

from solamate.app.amounts import (
    DEFAULT_AMOUNT_PLACES,
    DEFAULT_TOLERANCE,
    ZERO,
    format_amount,
)
from solamate.app.errors import SettlementInvariantViolation
from solamate.app.models.transfer import ExecutionResult, TransferInstruction
from solamate.app.services.ledger_service import get_snapshot

logger = logging.getLogger(__name__)


# ── Core algorithm ─────────────────────────────────────────────────────────

def compute_transfers(
        balances: dict[str, Decimal],
        tolerance: Decimal = DEFAULT_TOLERANCE,
) -> list[TransferInstruction]:
    """
    Greedy two-pointer netting.

    Args:
        balances:  {member: net_balance}, positive = owed, negative = owes.
                   MUST sum to zero within `tolerance`; compute_balances()
                   guarantees this.
        tolerance: Balances within this distance of zero are settled, and
                   no transfer at or below it is emitted.

    Returns:
        TransferInstructions in emission order. An empty list means every
        balance is already settled.

    Raises:
        SettlementInvariantViolation -- the unpaired residual, netted
            against the signed sub-tolerance dust the walk set aside, is
            still above tolerance, i.e. the input did not sum to zero. This
            is a bug in whoever produced `balances`, never a user-facing
            condition.
    """
    # Sorting is stable, so equal amounts keep insertion order.
    debtors = sorted(
        [[member, -amount] for member, amount in balances.items() if amount < -tolerance],
        key=lambda x: x[1],
        reverse=True,
    )
    creditors = sorted(
        [[member, amount] for member, amount in balances.items() if amount > tolerance],
        key=lambda x: x[1],
        reverse=True,
    )

    # Signed sub-tolerance balance the walk treats as settled: excluded members
    # plus remainders dropped when a pointer advances. Same-sign dust must not
    # cancel a leftover of the same sign.
    dust = sum(
        (amount for amount in balances.values() if abs(amount) <= tolerance),
        ZERO,
    )

    transfers: list[TransferInstruction] = []
    i = j = 0

    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]

        amount = min(debtor[1], creditor[1])
        if amount > tolerance:
            transfers.append(TransferInstruction(
                from_member=debtor[0],
                to_member=creditor[0],
                amount=amount,
            ))

        debtor[1] -= amount
        creditor[1] -= amount

        if debtor[1] <= tolerance:
            dust -= debtor[1]
            i += 1
        if creditor[1] <= tolerance:
            dust += creditor[1]
            j += 1

    residual = {member: -remaining for member, remaining in debtors[i:]}
    residual.update({member: remaining for member, remaining in creditors[j:]})
    leftover = sum(residual.values(), ZERO)
    if residual and abs(leftover + dust) > tolerance:
        logger.error(
            "Settlement left %d unsettled balance(s): %s",
            len(residual), residual,
        )
        raise SettlementInvariantViolation(
            "Settlement did not reconcile all balances; the input balances "
            "do not sum to zero.",
            residual=residual,
        )
    if residual:
        logger.debug("Left %s of settled dust unassigned: %s", leftover, residual)

    logger.debug(
        "Planned %d transfer(s) for %d debtor(s) and %d creditor(s).",
        len(transfers), len(debtors), len(creditors),
    )
    return transfers


# ── Execution boundary ─────────────────────────────────────────────────────

class TransferExecutor(Protocol):
    """
    External collaborator that moves value for one instruction.

    Returns an opaque reference (e.g. a transaction signature) on success
    and raises on failure.
    """

    def execute(self, instruction: TransferInstruction) -> str | None:
        ...


def execute_plan(
        plan: Iterable[TransferInstruction],
        executor: TransferExecutor,
) -> list[ExecutionResult]:
    """
    Hands every instruction to `executor` once, in plan order.

    A failing instruction is recorded as a failed ExecutionResult and the
    walk continues with the next one; instructions are independent.
    """
    results: list[ExecutionResult] = []
    for instruction in plan:
        try:
            reference = executor.execute(instruction)
        except Exception as exc:  # any executor failure is per-instruction
            logger.warning(
                "Transfer %s -> %s of %s failed: %s",
                instruction.from_member,
                instruction.to_member,
                instruction.amount,
                exc,
            )
            results.append(ExecutionResult(
                instruction=instruction,
                succeeded=False,
                error=str(exc) or type(exc).__name__,
            ))
            continue

        results.append(ExecutionResult(
            instruction=instruction,
            succeeded=True,
            reference=reference,
        ))
    return results


def remaining_balances(
        balances: dict[str, Decimal],
        results: Iterable[ExecutionResult],
) -> dict[str, Decimal]:
    """
    Applies the successful transfers in `results` to a copy of `balances`.

    The payer's balance rises by the amount and the recipient's falls by it.
    Feeding the result back into compute_transfers() re-plans whatever the
    failed instructions left open.
    """
    remaining = dict(balances)
    for result in results:
        if not result.succeeded:
            continue
        t = result.instruction
        remaining[t.from_member] = remaining.get(t.from_member, ZERO) + t.amount
        remaining[t.to_member] = remaining.get(t.to_member, ZERO) - t.amount
    return remaining


# ── Response builders ──────────────────────────────────────────────────────

def serialize_transfers(
        transfers: list[TransferInstruction],
        places: int = DEFAULT_AMOUNT_PLACES,
) -> list[dict]:
    return [
        {
            "from": t.from_member,
            "to": t.to_member,
            "amount": format_amount(t.amount, places),
        }
        for t in transfers
    ]


def get_plan_response(
        ledger_id: int,
        store,
        tolerance: Decimal = DEFAULT_TOLERANCE,
        places: int = DEFAULT_AMOUNT_PLACES,
) -> dict:
    """
    Builds the payload for GET /ledgers/:id/settlements.

    Raises:
        AppError(LEDGER_NOT_FOUND, 404)     -- no ledger with that id.
        SettlementInvariantViolation (500)  -- corrupt ledger data.
    """
    # Local import: balance_service imports compute_transfers from here.
    from solamate.app.services.balance_service import compute_balances

    snapshot = get_snapshot(ledger_id, store)
    transfers = compute_transfers(compute_balances(snapshot, tolerance), tolerance)

    return {
        "ledger_id": ledger_id,
        "transfers": serialize_transfers(transfers, places),
        "transfer_count": len(transfers),
        "all_settled": not transfers,
    }


def plan_from_balances(
        balances: dict[str, Decimal],
        tolerance: Decimal = DEFAULT_TOLERANCE,
        places: int = DEFAULT_AMOUNT_PLACES,
) -> dict:
    """
    Builds the payload for POST /settlements/plan.

    `balances` has already been checked to sum to zero by
    PlanRequestSchema, so an invariant violation here is a genuine bug.
    """
    transfers = compute_transfers(balances, tolerance)
    return {
        "transfers": serialize_transfers(transfers, places),
        "transfer_count": len(transfers),
        "all_settled": not transfers,
    }
