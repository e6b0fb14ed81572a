"""
schemas/ledger_schema.py: Marshmallow schemas for ledger and roster input.

Validation responsibility:
  - This file: field types, string lengths, non-empty-after-trim checks,
    trimming of member identifiers, duplicate members within one request.
  - models/ledger.py:
      - DuplicateMember against the existing roster
      - UnknownMember / UnknownExpense lookups
  - services/ledger_service.py:
      - LEDGER_NOT_FOUND and LEDGER_FULL

IMPORTANT: Inherits from marshmallow.Schema directly. Schemas must be
           usable without a Flask application context (unit tests, CLI).
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, post_load, validate, validates

from solamate.app.amounts import DEFAULT_AMOUNT_PLACES
from solamate.app.errors import ErrorCode
from solamate.app.schemas.expense_schema import ExpenseEntrySchema


# ── Shared validators ──────────────────────────────────────────────────────
#
# validate.Length(min=1) alone allows whitespace-only strings like "   "
# because len("   ") == 3 > 0. This validator strips first then checks.
# ──────────────────────────────────────────────────────────────────────────

def _validate_non_empty_after_trim(value: str) -> None:
    """Raises ValidationError if the string is blank or contains only whitespace."""
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


def _member_field(**kwargs) -> fields.Str:
    """A wallet address or display name: 1-64 chars, non-blank."""
    return fields.Str(
        validate=[
            validate.Length(
                min=1,
                max=64,
                error="Member identifiers must be between 1 and 64 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
        **kwargs,
    )


def _strip_members(members: list[str]) -> list[str]:
    return [m.strip() for m in members]


# ── Ledgers ────────────────────────────────────────────────────────────────

class CreateLedgerSchema(Schema):
    """
    POST /ledgers

    name    : required, 1-100 chars, non-blank.
    members : optional initial roster. Identifiers are trimmed and must be
              unique after trimming.
    """

    name = fields.Str(
        required=True,
        validate=[
            validate.Length(
                min=1,
                max=100,
                error="Ledger name must be between 1 and 100 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
    )

    members = fields.List(_member_field(), load_default=list)

    @validates("members")
    def _validate_unique_members(self, value: list[str], **kwargs) -> None:
        stripped = _strip_members(value)
        if len(set(stripped)) != len(stripped):
            raise ValidationError(ErrorCode.DUPLICATE_MEMBER)

    @post_load
    def _normalise(self, data: dict, **kwargs) -> dict:
        data["name"] = data["name"].strip()
        data["members"] = _strip_members(data["members"])
        return data


class AddMemberSchema(Schema):
    """
    POST /ledgers/:id/members

    member : required wallet address or display name, trimmed.
             Whether it is already in the roster is a ledger concern
             (DuplicateMember, 409).
    """

    member = _member_field(required=True)

    @post_load
    def _normalise(self, data: dict, **kwargs) -> dict:
        data["member"] = data["member"].strip()
        return data


# ── Ledger files (CLI input) ───────────────────────────────────────────────

class LedgerFileSchema(Schema):
    """
    A ledger written out by hand or by a host application:

        {
          "name": "Ski trip",
          "members": ["alice", "bob", "carol"],
          "expenses": [
            {"payer": "alice", "amount": "90", "description": "cabin"}
          ]
        }

    Payer membership and amount sign are left to the Ledger so the CLI
    reports them with the same errors the HTTP service uses. Amounts with
    more than `amount_places` decimal places are rejected
    (INVALID_AMOUNT_PRECISION).
    """

    def __init__(self, *args, amount_places: int = DEFAULT_AMOUNT_PLACES, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.amount_places = amount_places
        # Bound fields are per-instance copies, so this does not leak
        # into other LedgerFileSchema instances.
        self.fields["expenses"].inner.nested = ExpenseEntrySchema(amount_places=amount_places)

    name = fields.Str(load_default="Untitled ledger")
    members = fields.List(_member_field(), required=True)
    expenses = fields.List(fields.Nested(ExpenseEntrySchema), load_default=list)

    @validates("members")
    def _validate_unique_members(self, value: list[str], **kwargs) -> None:
        stripped = _strip_members(value)
        if len(set(stripped)) != len(stripped):
            raise ValidationError(ErrorCode.DUPLICATE_MEMBER)

    @post_load
    def _normalise(self, data: dict, **kwargs) -> dict:
        data["members"] = _strip_members(data["members"])
        return data
