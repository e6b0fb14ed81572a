"""
routes/ledgers.py: ledger and roster route handlers.

Layer rules:
  - Parse, validate, call ONE service, return envelope.
  - No business logic. No direct Ledger mutation.

Endpoints (base url_prefix=/api/v1/ledgers):
  POST   /ledgers                         -> 201  create ledger
  GET    /ledgers                         -> 200  list ledgers
  GET    /ledgers/:id                     -> 200  get ledger + roster
  DELETE /ledgers/:id                     -> 200  drop ledger
  POST   /ledgers/:id/members             -> 201  add member
  DELETE /ledgers/:id/members/:member     -> 200  remove member (cascades expenses)
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from solamate.app.errors import WarningCode
from solamate.app.extensions import store
from solamate.app.schemas.ledger_schema import AddMemberSchema, CreateLedgerSchema
from solamate.app.services import ledger_service

ledgers_bp = Blueprint("ledgers", __name__)


@ledgers_bp.route("/", methods=["POST"])
def create_ledger():
    """POST /ledgers - Create a ledger, optionally with an initial roster."""
    data = CreateLedgerSchema().load(request.get_json(force=True) or {})
    result = ledger_service.create_ledger(
        name=data["name"],
        members=data["members"],
        store=store,
        max_members=current_app.config["MAX_LEDGER_MEMBERS"],
    )
    current_app.logger.info("Created ledger %s (%r)", result["id"], result["name"])
    return jsonify({"data": result, "warnings": []}), 201


@ledgers_bp.route("/", methods=["GET"])
def list_ledgers():
    """GET /ledgers - List every ledger held by this process."""
    result = ledger_service.list_ledgers(store=store)
    return jsonify({"data": result, "warnings": []}), 200


@ledgers_bp.route("/<int:ledger_id>", methods=["GET"])
def get_ledger(ledger_id: int):
    """GET /ledgers/:id - Ledger details with roster."""
    result = ledger_service.get_ledger(ledger_id=ledger_id, store=store)
    return jsonify({"data": result, "warnings": []}), 200


@ledgers_bp.route("/<int:ledger_id>", methods=["DELETE"])
def delete_ledger(ledger_id: int):
    """DELETE /ledgers/:id - Drop a ledger and everything in it."""
    ledger_service.delete_ledger(ledger_id=ledger_id, store=store)
    current_app.logger.info("Deleted ledger %s", ledger_id)
    return jsonify({
        "data": {
            "deleted": True,
            "ledger_id": ledger_id,
        },
        "warnings": [],
    }), 200


@ledgers_bp.route("/<int:ledger_id>/members", methods=["POST"])
def add_member(ledger_id: int):
    """POST /ledgers/:id/members - Add a member to the roster."""
    data = AddMemberSchema().load(request.get_json(force=True) or {})
    result = ledger_service.add_member(
        ledger_id=ledger_id,
        member=data["member"],
        store=store,
        max_members=current_app.config["MAX_LEDGER_MEMBERS"],
    )
    return jsonify({"data": result, "warnings": []}), 201


@ledgers_bp.route("/<int:ledger_id>/members/<member>", methods=["DELETE"])
def remove_member(ledger_id: int, member: str):
    """
    DELETE /ledgers/:id/members/:member - Remove a member.
    Every expense the member paid is removed with them.
    """
    result = ledger_service.remove_member(
        ledger_id=ledger_id,
        member=member,
        store=store,
    )
    warnings = []
    if result["removed_expense_ids"]:
        warnings.append({
            "code": WarningCode.EXPENSES_REMOVED,
            "message": (
                f"{len(result['removed_expense_ids'])} expense(s) paid by "
                f"{member!r} were removed with the member."
            ),
        })
    return jsonify({"data": result, "warnings": warnings}), 200
