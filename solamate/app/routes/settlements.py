"""
routes/settlements.py: settlement plan route handlers.

Layer rules:
  - Parse, validate, call ONE service, return envelope.
  - No business logic.

Plans are never stored. Every request recomputes the plan from the current
ledger state; executing it is the wallet's job.

Endpoints:
  GET  /api/v1/ledgers/:id/settlements  -> 200  transfer plan for a ledger
  POST /api/v1/settlements/plan         -> 200  transfer plan for a posted balance map
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from solamate.app.extensions import store
from solamate.app.schemas.settlement_schema import PlanRequestSchema
from solamate.app.services import settlement_service

settlements_bp = Blueprint("settlements", __name__)
planner_bp = Blueprint("planner", __name__)


@settlements_bp.route("/<int:ledger_id>/settlements", methods=["GET"])
def get_settlements(ledger_id: int):
    """GET /ledgers/:id/settlements - Minimal transfer plan for a ledger."""
    result = settlement_service.get_plan_response(
        ledger_id=ledger_id,
        store=store,
        tolerance=current_app.config["SETTLEMENT_TOLERANCE"],
        places=current_app.config["AMOUNT_PLACES"],
    )
    return jsonify({"data": result, "warnings": []}), 200


@planner_bp.route("/plan", methods=["POST"])
def plan_settlements():
    """
    POST /settlements/plan - Plan transfers for a balance map.

    The map must sum to zero within SETTLEMENT_TOLERANCE
    (UNBALANCED_BALANCES, 400).
    """
    tolerance = current_app.config["SETTLEMENT_TOLERANCE"]
    data = PlanRequestSchema(tolerance=tolerance).load(request.get_json(force=True) or {})
    result = settlement_service.plan_from_balances(
        balances=data["balances"],
        tolerance=tolerance,
        places=current_app.config["AMOUNT_PLACES"],
    )
    return jsonify({"data": result, "warnings": []}), 200
