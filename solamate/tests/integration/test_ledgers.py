"""
tests/integration/test_ledgers.py: Integration tests for ledger and roster endpoints.

Endpoints covered:
  POST   /ledgers                      -> 201 / 400 / 422
  GET    /ledgers                      -> 200
  GET    /ledgers/:id                  -> 200 / 404
  DELETE /ledgers/:id                  -> 200 / 404
  POST   /ledgers/:id/members          -> 201 / 400 / 404 / 409 / 422
  DELETE /ledgers/:id/members/:member  -> 200 / 404

Properties verified:
  - Members are trimmed and kept in insertion order
  - Duplicate members are rejected (409) and the roster is unchanged
  - The roster is capped at MAX_LEDGER_MEMBERS (5 under TestingConfig)
  - Removing a member cascades their expenses and reports it as a warning
"""

from __future__ import annotations

from .conftest import add_member, make_expense, make_ledger


# ═══════════════════════════════════════════════════════════════════════════
# Ledgers
# ═══════════════════════════════════════════════════════════════════════════

class TestCreateLedger:

    def test_create_with_members(self, client):
        resp = client.post("/api/v1/ledgers/", json={"name": "Ski trip", "members": ["alice", " bob "]})

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["warnings"] == []
        assert body["data"]["id"] == 1
        assert body["data"]["name"] == "Ski trip"
        assert body["data"]["members"] == ["alice", "bob"]
        assert body["data"]["expense_count"] == 0
        assert "created_at" in body["data"]

    def test_create_without_members(self, client):
        ledger = make_ledger(client)
        assert ledger["members"] == []

    def test_missing_name(self, client):
        resp = client.post("/api/v1/ledgers/", json={})
        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "MISSING_FIELD"
        assert resp.get_json()["error"]["field"] == "name"

    def test_blank_name(self, client):
        resp = client.post("/api/v1/ledgers/", json={"name": "   "})
        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "INVALID_FIELD"

    def test_duplicate_initial_members(self, client):
        resp = client.post("/api/v1/ledgers/", json={"name": "x", "members": ["a", "a "]})
        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == "DUPLICATE_MEMBER"
        assert error["field"] == "members"

    def test_too_many_initial_members(self, client):
        resp = client.post(
            "/api/v1/ledgers/",
            json={"name": "x", "members": ["a", "b", "c", "d", "e", "f"]},
        )
        assert resp.status_code == 422
        assert resp.get_json()["error"]["code"] == "LEDGER_FULL"

    def test_malformed_json_body(self, client):
        resp = client.post(
            "/api/v1/ledgers/",
            data="{not json",
            content_type="application/json",
        )
        assert resp.status_code == 400


class TestReadAndDeleteLedger:

    def test_list_in_creation_order(self, client):
        make_ledger(client, "first")
        make_ledger(client, "second")

        resp = client.get("/api/v1/ledgers/")

        assert resp.status_code == 200
        assert [item["name"] for item in resp.get_json()["data"]] == ["first", "second"]

    def test_get_ledger(self, client):
        ledger = make_ledger(client, members=["A"])
        resp = client.get(f"/api/v1/ledgers/{ledger['id']}")
        assert resp.status_code == 200
        assert resp.get_json()["data"]["members"] == ["A"]

    def test_get_unknown_ledger(self, client):
        resp = client.get("/api/v1/ledgers/999")
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "LEDGER_NOT_FOUND"

    def test_delete_ledger(self, client):
        ledger = make_ledger(client)

        resp = client.delete(f"/api/v1/ledgers/{ledger['id']}")

        assert resp.status_code == 200
        assert resp.get_json()["data"] == {"deleted": True, "ledger_id": ledger["id"]}
        assert client.get(f"/api/v1/ledgers/{ledger['id']}").status_code == 404

    def test_delete_unknown_ledger(self, client):
        assert client.delete("/api/v1/ledgers/42").status_code == 404


# ═══════════════════════════════════════════════════════════════════════════
# Roster
# ═══════════════════════════════════════════════════════════════════════════

class TestMembers:

    def test_add_member(self, client):
        ledger = make_ledger(client, members=["A"])

        resp = add_member(client, ledger["id"], "  B  ")

        assert resp.status_code == 201
        assert resp.get_json()["data"] == {"ledger_id": ledger["id"], "member": "B", "member_count": 2}

    def test_add_duplicate_member(self, client):
        ledger = make_ledger(client, members=["A"])

        resp = add_member(client, ledger["id"], "A")

        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "DUPLICATE_MEMBER"
        roster = client.get(f"/api/v1/ledgers/{ledger['id']}").get_json()["data"]["members"]
        assert roster == ["A"]

    def test_add_blank_member(self, client):
        ledger = make_ledger(client)
        resp = add_member(client, ledger["id"], "   ")
        assert resp.status_code == 400

    def test_add_member_unknown_ledger(self, client):
        assert add_member(client, 77, "A").status_code == 404

    def test_roster_capacity(self, client):
        ledger = make_ledger(client, members=["a", "b", "c", "d", "e"])

        resp = add_member(client, ledger["id"], "f")

        assert resp.status_code == 422
        assert resp.get_json()["error"]["code"] == "LEDGER_FULL"

    def test_remove_member_without_expenses(self, client):
        ledger = make_ledger(client, members=["A", "B"])

        resp = client.delete(f"/api/v1/ledgers/{ledger['id']}/members/B")

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["data"]["removed_expense_ids"] == []
        assert body["warnings"] == []

    def test_remove_member_cascades_expenses_with_warning(self, client):
        ledger = make_ledger(client, members=["A", "B", "C"])
        make_expense(client, ledger["id"], "C", "30")
        make_expense(client, ledger["id"], "A", "60")

        resp = client.delete(f"/api/v1/ledgers/{ledger['id']}/members/C")

        body = resp.get_json()
        assert resp.status_code == 200
        assert body["data"]["removed_expense_ids"] == [1]
        assert body["warnings"][0]["code"] == "EXPENSES_REMOVED"

        expenses = client.get(f"/api/v1/ledgers/{ledger['id']}/expenses").get_json()["data"]
        assert [e["payer"] for e in expenses] == ["A"]

    def test_remove_unknown_member(self, client):
        ledger = make_ledger(client, members=["A"])
        resp = client.delete(f"/api/v1/ledgers/{ledger['id']}/members/Z")
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "UNKNOWN_MEMBER"
