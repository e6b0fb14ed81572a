"""
routes/balances.py: balance route handlers.

Layer rules:
  - Call ONE service, return envelope.
  - No business logic.

Endpoints (base url_prefix=/api/v1/ledgers):
  GET /ledgers/:id/balances  -> 200  totals, per-member balances, transfer plan
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from solamate.app.extensions import store
from solamate.app.services import balance_service

balances_bp = Blueprint("balances", __name__)


@balances_bp.route("/<int:ledger_id>/balances", methods=["GET"])
def get_balances(ledger_id: int):
    """
    GET /ledgers/:id/balances

    The service asserts that the balances sum to zero within
    SETTLEMENT_TOLERANCE and raises SETTLEMENT_INVARIANT_VIOLATION (500)
    otherwise.
    """
    result = balance_service.get_balance_response(
        ledger_id=ledger_id,
        store=store,
        tolerance=current_app.config["SETTLEMENT_TOLERANCE"],
        places=current_app.config["AMOUNT_PLACES"],
    )
    return jsonify({"data": result, "warnings": []}), 200
