"""
routes/expenses.py: expense route handlers.

Layer rules:
  - Parse, validate, call ONE service, return envelope.
  - No business logic.
  - _serialize_expense() is a pure data-shape helper, not business logic.

Endpoints (base url_prefix=/api/v1/ledgers):
  POST   /ledgers/:id/expenses        -> 201  record expense
  GET    /ledgers/:id/expenses        -> 200  list expenses (insertion order)
  DELETE /ledgers/:id/expenses/:eid   -> 200  delete expense
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from solamate.app.amounts import format_amount
from solamate.app.extensions import store
from solamate.app.models.expense import ExpenseEvent
from solamate.app.schemas.expense_schema import CreateExpenseSchema
from solamate.app.services import ledger_service

expenses_bp = Blueprint("expenses", __name__)


# ── Serialization helper ───────────────────────────────────────────────────
# Pure data-shaping. Amounts as strings so no precision is lost in JSON.

def _serialize_expense(expense: ExpenseEvent) -> dict:
    """Converts an ExpenseEvent to a plain dict for JSON output."""
    return {
        "id": expense.id,
        "payer": expense.payer,
        "amount": format_amount(expense.amount, current_app.config["AMOUNT_PLACES"]),
        "description": expense.description,
    }


# ── Route handlers ─────────────────────────────────────────────────────────

@expenses_bp.route("/<int:ledger_id>/expenses", methods=["POST"])
def create_expense(ledger_id: int):
    """POST /ledgers/:id/expenses - Record who paid what."""
    schema = CreateExpenseSchema(amount_places=current_app.config["AMOUNT_PLACES"])
    data = schema.load(request.get_json(force=True) or {})
    expense = ledger_service.add_expense(
        ledger_id=ledger_id,
        data=data,
        store=store,
    )
    return jsonify({"data": _serialize_expense(expense), "warnings": []}), 201


@expenses_bp.route("/<int:ledger_id>/expenses", methods=["GET"])
def list_expenses(ledger_id: int):
    """GET /ledgers/:id/expenses - List expenses in the order they were recorded."""
    expenses = ledger_service.list_expenses(ledger_id=ledger_id, store=store)
    return jsonify({
        "data": [_serialize_expense(e) for e in expenses],
        "warnings": [],
    }), 200


@expenses_bp.route("/<int:ledger_id>/expenses/<int:expense_id>", methods=["DELETE"])
def delete_expense(ledger_id: int, expense_id: int):
    """DELETE /ledgers/:id/expenses/:eid - Remove one expense."""
    expense = ledger_service.remove_expense(
        ledger_id=ledger_id,
        expense_id=expense_id,
        store=store,
    )
    return jsonify({
        "data": {
            "deleted": True,
            "expense": _serialize_expense(expense),
        },
        "warnings": [],
    }), 200
