"""
errors.py: AppError base class, error code registry and the ledger exceptions.

Every error the settlement engine reports uses a code defined here.
Do not raise strings or generic exceptions from ledger, service or route code.

Rules:
  - Error codes are a versioned contract. They do not change once published.
  - Error messages are human-readable prose. They may be improved at any time.
  - Ledger-mutation errors are caller-input problems. The ledger is left
    exactly as it was before the failed call.
  - SettlementInvariantViolation is a programming error, never a user error.
"""

from __future__ import annotations


class AppError(Exception):

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.field       = field  # which input field caused the error

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.field is not None:
            payload["field"] = self.field
        return {"error": payload}

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


# ── Error Code Registry ────────────────────────────────────────────────────
#
# Organised by category. HTTP status is indicated in the comment.
#
# IMPORTANT: these are the string values sent in the API response.
# Do not rename them without a major version bump.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Schema / Input Errors (400) ────────────────────────────────────────
    MISSING_FIELD                  = "MISSING_FIELD"
    INVALID_FIELD                  = "INVALID_FIELD"
    INVALID_AMOUNT_PRECISION       = "INVALID_AMOUNT_PRECISION"
    UNBALANCED_BALANCES            = "UNBALANCED_BALANCES"

    # ── Conflict Errors (409) ──────────────────────────────────────────────
    DUPLICATE_MEMBER               = "DUPLICATE_MEMBER"

    # ── Not Found Errors (404) ─────────────────────────────────────────────
    LEDGER_NOT_FOUND               = "LEDGER_NOT_FOUND"
    UNKNOWN_MEMBER                 = "UNKNOWN_MEMBER"     # 422 when it is the payer
    UNKNOWN_EXPENSE                = "UNKNOWN_EXPENSE"

    # ── Business Rule Violations (422) ────────────────────────────────────
    INVALID_AMOUNT                 = "INVALID_AMOUNT"
    LEDGER_FULL                    = "LEDGER_FULL"

    # ── System Errors (500) ────────────────────────────────────────────────
    SETTLEMENT_INVARIANT_VIOLATION = "SETTLEMENT_INVARIANT_VIOLATION"
    INTERNAL_ERROR                 = "INTERNAL_ERROR"


# ── Ledger exceptions ──────────────────────────────────────────────────────
#
# Thin AppError subclasses so the ledger core raises domain exceptions that
# callers can catch by type, while the HTTP layer renders them through the
# single AppError handler.
# ──────────────────────────────────────────────────────────────────────────

class DuplicateMember(AppError):

    def __init__(self, member: str) -> None:
        super().__init__(
            ErrorCode.DUPLICATE_MEMBER,
            f"Member {member!r} is already in the ledger.",
            409,
            field="member",
        )
        self.member = member


class UnknownMember(AppError):

    def __init__(
            self,
            member: str,
            field: str = "member",
            http_status: int = 404,
    ) -> None:
        super().__init__(
            ErrorCode.UNKNOWN_MEMBER,
            f"Member {member!r} is not in the ledger.",
            http_status,
            field=field,
        )
        self.member = member


class UnknownExpense(AppError):

    def __init__(self, expense_id) -> None:
        super().__init__(
            ErrorCode.UNKNOWN_EXPENSE,
            f"Expense {expense_id} does not exist.",
            404,
        )
        self.expense_id = expense_id


class InvalidAmount(AppError):

    def __init__(self, amount, reason: str = "Amount must not be negative.") -> None:
        super().__init__(
            ErrorCode.INVALID_AMOUNT,
            f"Invalid amount {amount!r}: {reason}",
            422,
            field="amount",
        )
        self.amount = amount


class SettlementInvariantViolation(AppError):

    def __init__(self, message: str, residual: dict | None = None) -> None:
        super().__init__(
            ErrorCode.SETTLEMENT_INVARIANT_VIOLATION,
            message,
            500,
        )
        self.residual = residual or {}


# ── Warning Code Registry ──────────────────────────────────────────────────
#
# Warnings are returned alongside a 2xx response in the `warnings` array.
# They do not block the request.
# ──────────────────────────────────────────────────────────────────────────

class WarningCode:

    # Removing a member removed the expenses that member paid.
    EXPENSES_REMOVED = "EXPENSES_REMOVED"
