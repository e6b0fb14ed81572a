"""
extensions.py: process-wide singletons for the Flask host.

The only extension is the in-memory LedgerStore. The settlement core holds
no durable state, so the store lives as long as the process does; hosts that
need resumability snapshot ledgers themselves.

Pattern:
    1. Create the extension object here (no app attached yet).
    2. Call init_app(app) inside the app factory in app/__init__.py.
    3. Import `store` from here wherever needed.

    from solamate.app.extensions import store

Concurrency model:
  - One threading.Lock per ledger. Every mutation of a ledger runs under
    its lock, so mutations of the same ledger are serialised.
  - Reads (balances, plans) take a snapshot under the lock and compute
    outside it, so they never observe a half-applied mutation.
  - A separate registry lock guards creation and deletion of ledgers.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from solamate.app.models.ledger import Ledger, LedgerSnapshot


@dataclass
class LedgerEntry:
    id: int
    ledger: Ledger
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def snapshot(self) -> LedgerSnapshot:
        with self.lock:
            return self.ledger.snapshot()


class LedgerStore:

    def __init__(self) -> None:
        self._registry_lock = threading.Lock()
        self._entries: dict[int, LedgerEntry] = {}
        self._next_id = 1

    def init_app(self, app) -> None:
        app.extensions["solamate_ledger_store"] = self

    def create(self, ledger: Ledger) -> LedgerEntry:
        with self._registry_lock:
            entry = LedgerEntry(id=self._next_id, ledger=ledger)
            self._entries[entry.id] = entry
            self._next_id += 1
        return entry

    def get(self, ledger_id: int) -> LedgerEntry | None:
        with self._registry_lock:
            return self._entries.get(ledger_id)

    def entries(self) -> list[LedgerEntry]:
        """All entries in creation order."""
        with self._registry_lock:
            return list(self._entries.values())

    def delete(self, ledger_id: int) -> LedgerEntry | None:
        with self._registry_lock:
            return self._entries.pop(ledger_id, None)

    def clear(self) -> None:
        """Drops every ledger and restarts ids at 1. Used between tests."""
        with self._registry_lock:
            self._entries.clear()
            self._next_id = 1


store = LedgerStore()
