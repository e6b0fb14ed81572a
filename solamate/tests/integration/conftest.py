"""
tests/integration/conftest.py: Fixtures and helpers for all integration tests.

Design:
  - The app is created once per session using create_app("testing").
  - Ledgers live in the process-wide LedgerStore. Between tests the store
    is cleared, so every test starts with no ledgers and ids start at 1.

Helper functions (not fixtures) are provided for common operations:
  - make_ledger(client, ...)   -> ledger dict
  - add_member(...)            -> HTTP response
  - make_expense(...)          -> HTTP response
  - get_balances(...)          -> HTTP response

These are plain functions (not pytest fixtures) so they can be called with
arbitrary arguments in any test without fixture parameterization overhead.
"""

from __future__ import annotations

import pytest

from solamate.app import create_app
from solamate.app.extensions import store as _store


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """Creates the Flask application in 'testing' mode once for the session."""
    flask_app = create_app("testing")
    yield flask_app


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_store(app):
    """
    Drops every ledger after each test.

    autouse=True means this runs around EVERY test in the integration suite
    without needing to be declared in each test function.
    """
    yield
    _store.clear()


# ═══════════════════════════════════════════════════════════════════════════
# Client fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (function-scoped)."""
    return app.test_client()


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def make_ledger(client, name: str = "Test Ledger", members: list[str] | None = None) -> dict:
    """Creates a ledger and returns the ledger data dict."""
    payload: dict = {"name": name}
    if members is not None:
        payload["members"] = members
    resp = client.post("/api/v1/ledgers/", json=payload)
    assert resp.status_code == 201, f"make_ledger failed: {resp.get_json()}"
    return resp.get_json()["data"]


def add_member(client, ledger_id: int, member: str):
    """Adds a member to a ledger. Returns the HTTP response."""
    return client.post(
        f"/api/v1/ledgers/{ledger_id}/members",
        json={"member": member},
    )


def make_expense(
    client,
    ledger_id: int,
    payer: str,
    amount,
    description: str = "Test Expense",
):
    """Records an expense and returns the HTTP response."""
    return client.post(
        f"/api/v1/ledgers/{ledger_id}/expenses",
        json={"payer": payer, "amount": amount, "description": description},
    )


def get_balances(client, ledger_id: int):
    return client.get(f"/api/v1/ledgers/{ledger_id}/balances")
