"""
schemas/expense_schema.py: Marshmallow schemas for expense input.

Validation responsibility:
  - This file:
      - Field types and lengths, non-empty-after-trim description
      - amount >= 0 (zero-amount expenses are legal)
      - INVALID_AMOUNT_PRECISION (400): more decimal places than the
        configured AMOUNT_PLACES
  - models/ledger.py:
      - UnknownMember (422): payer must be in the roster
      - InvalidAmount (422): the core repeats the sign check for callers
        that bypass this schema

IMPORTANT: Inherits from marshmallow.Schema directly. Schemas must be
           usable without a Flask application context (unit tests, CLI).
"""

from __future__ import annotations

from decimal import Decimal

from marshmallow import Schema, ValidationError, fields, post_load, validate, validates

from solamate.app.amounts import DEFAULT_AMOUNT_PLACES, ZERO, decimal_places
from solamate.app.errors import ErrorCode


def _validate_non_empty_after_trim(value: str) -> None:
    """Raises ValidationError if the string is blank or contains only whitespace."""
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


def _validate_non_negative(value: Decimal) -> None:
    if value < ZERO:
        raise ValidationError("Amount must not be negative.")


# ── One expense entry in a ledger file ─────────────────────────────────────

class ExpenseEntrySchema(Schema):
    """
    One entry of the `expenses` array in a ledger file (see LedgerFileSchema).

    Description is optional here; files produced by the chat command parser
    do not always carry one. The amount sign is left to the Ledger, but
    precision is held to the same `amount_places` rule as the HTTP API.
    """

    def __init__(self, *args, amount_places: int = DEFAULT_AMOUNT_PLACES, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.amount_places = amount_places

    payer = fields.Str(required=True, validate=_validate_non_empty_after_trim)
    amount = fields.Decimal(required=True)
    description = fields.Str(load_default="")

    @validates("amount")
    def _validate_precision(self, value: Decimal, **kwargs) -> None:
        if decimal_places(value) > self.amount_places:
            raise ValidationError(ErrorCode.INVALID_AMOUNT_PRECISION)

    @post_load
    def _normalise(self, data: dict, **kwargs) -> dict:
        data["payer"] = data["payer"].strip()
        return data


# ── Create expense ─────────────────────────────────────────────────────────

class CreateExpenseSchema(Schema):
    """
    POST /ledgers/:id/expenses

    Field rules:
      payer       : required, must name a roster member (checked by the ledger)
      amount      : required Decimal, >= 0, at most `amount_places` places
      description : required, 1-255 chars, non-blank

    Precision is REJECTED (INVALID_AMOUNT_PRECISION), never rounded.
    """

    def __init__(self, *args, amount_places: int = DEFAULT_AMOUNT_PLACES, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.amount_places = amount_places

    payer = fields.Str(
        required=True,
        validate=[
            validate.Length(min=1, max=64),
            _validate_non_empty_after_trim,
        ],
    )

    amount = fields.Decimal(
        required=True,
        validate=_validate_non_negative,
    )

    description = fields.Str(
        required=True,
        validate=[
            validate.Length(
                min=1,
                max=255,
                error="Description must be between 1 and 255 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
    )

    @validates("amount")
    def _validate_precision(self, value: Decimal, **kwargs) -> None:
        if decimal_places(value) > self.amount_places:
            raise ValidationError(ErrorCode.INVALID_AMOUNT_PRECISION)

    @post_load
    def _normalise(self, data: dict, **kwargs) -> dict:
        data["payer"] = data["payer"].strip()
        data["description"] = data["description"].strip()
        return data
