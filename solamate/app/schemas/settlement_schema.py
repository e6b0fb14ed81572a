"""
schemas/settlement_schema.py: Marshmallow schema for stateless plan requests.

POST /settlements/plan accepts a balance map computed elsewhere (another
ledger host, a wallet indexer) and returns a transfer plan for it.

Validation responsibility:
  - This file: member keys are non-blank strings, trimmed and unique
    after trimming (DUPLICATE_MEMBER), values are finite Decimals, and
    the map sums to zero within the tolerance (UNBALANCED_BALANCES, 400).
    Rejecting an unbalanced map here keeps SettlementInvariantViolation
    reserved for genuine bugs.
  - services/settlement_service.py: the planning itself.

IMPORTANT: Inherits from marshmallow.Schema directly.
"""

from __future__ import annotations

from decimal import Decimal

from marshmallow import Schema, ValidationError, fields, post_load, validates

from solamate.app.amounts import DEFAULT_TOLERANCE, ZERO
from solamate.app.errors import ErrorCode
from solamate.app.schemas.ledger_schema import _member_field


class PlanRequestSchema(Schema):
    """
    Payload:
        {"balances": {"alice": "60", "bob": "-30", "carol": "-30"}}

    Key order is preserved and is the tie-break order of the plan.
    """

    def __init__(self, *args, tolerance: Decimal = DEFAULT_TOLERANCE, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.tolerance = tolerance

    balances = fields.Dict(
        keys=_member_field(),
        values=fields.Decimal(),
        required=True,
    )

    @validates("balances")
    def _validate_balances(self, value: dict, **kwargs) -> None:
        stripped = [member.strip() for member in value]
        if len(set(stripped)) != len(stripped):
            raise ValidationError(ErrorCode.DUPLICATE_MEMBER)

        total = sum(value.values(), ZERO)
        if abs(total) > self.tolerance:
            raise ValidationError(ErrorCode.UNBALANCED_BALANCES)

    @post_load
    def _normalise(self, data: dict, **kwargs) -> dict:
        data["balances"] = {
            member.strip(): amount for member, amount in data["balances"].items()
        }
        return data
