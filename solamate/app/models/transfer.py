"""
models/transfer.py: TransferInstruction and ExecutionResult value types.

Both are ephemeral. A plan is recomputed whenever the ledger changes and
neither type has an identity or storage of its own.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class TransferInstruction:
    """`from_member` pays `to_member` a strictly positive `amount`."""
    from_member: str
    to_member: str
    amount: Decimal


@dataclass(frozen=True)
class ExecutionResult:
    """
    Outcome of handing one TransferInstruction to the execution layer.

    `reference` is whatever the executor returned on success (for a wallet
    this is the transaction signature). `error` holds the failure message.
    """
    instruction: TransferInstruction
    succeeded: bool
    reference: str | None = None
    error: str | None = None
