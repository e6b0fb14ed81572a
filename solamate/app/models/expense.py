"""
models/expense.py: ExpenseEvent value type.

No business logic. No imports from services or routes.

Key design points:
  - `id` is assigned by the owning Ledger, unique and increasing in creation
    order. Ids are never reused after a deletion.
  - `amount` is a Decimal, never a float. Zero is legal and contributes nothing.
  - Instances are frozen: an expense is immutable once created. The only
    lifecycle change is deletion from the ledger.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class ExpenseEvent:
    """One who-paid-what entry in a ledger."""
    id: int
    payer: str
    amount: Decimal
    description: str = ""
