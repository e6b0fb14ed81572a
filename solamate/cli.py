"""
cli.py: SolaMate settlement CLI
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

Usage:
  solamate settle ledger.json            # balances + transfer plan for a ledger file
  solamate plan balances.json            # transfer plan for a balance map
  solamate settle ledger.json --tolerance 0.01 --places 2

Ledger file:
  {"name": "Ski trip", "members": ["alice", "bob"],
   "expenses": [{"payer": "alice", "amount": "90", "description": "cabin"}]}

Balance file:
  {"balances": {"alice": "45", "bob": "-45"}}

Exit codes: 0 on success, 1 when the file cannot be read or is rejected.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from decimal import Decimal, InvalidOperation

from marshmallow import ValidationError
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

from solamate.app.amounts import DEFAULT_AMOUNT_PLACES, DEFAULT_TOLERANCE, format_amount
from solamate.app.errors import AppError
from solamate.app.models.ledger import Ledger
from solamate.app.schemas.ledger_schema import LedgerFileSchema
from solamate.app.schemas.settlement_schema import PlanRequestSchema
from solamate.app.services.balance_service import build_summary
from solamate.app.services.settlement_service import compute_transfers

logger = logging.getLogger(__name__)

THEME = Theme({
    "hdr":    "bold bright_white",
    "good":   "bright_green",
    "bad":    "bright_red",
    "muted":  "bright_black",
    "accent": "bright_cyan",
})


# ─── Loading ───────────────────────────────────────────────────────────────

def _read_json(path: str):
    # Floats are parsed as Decimal so 0.1 stays 0.1.
    with open(path, encoding="utf-8") as fh:
        return json.load(fh, parse_float=Decimal)


def load_ledger(path: str, places: int = DEFAULT_AMOUNT_PLACES) -> Ledger:
    """
    Reads a ledger file and replays it into a Ledger. Amounts with more than
    `places` decimal places are rejected.

    Raises:
        OSError, UnicodeDecodeError,
        json.JSONDecodeError          -- unreadable file.
        ValidationError               -- malformed document.
        AppError                      -- unknown payer, negative amount.
    """
    data = LedgerFileSchema(amount_places=places).load(_read_json(path))
    ledger = Ledger(name=data["name"], members=data["members"])
    for entry in data["expenses"]:
        ledger.add_expense(entry["payer"], entry["amount"], entry["description"])
    logger.debug("Loaded %r from %s", ledger, path)
    return ledger


def load_balances(path: str, tolerance: Decimal) -> dict[str, Decimal]:
    data = PlanRequestSchema(tolerance=tolerance).load(_read_json(path))
    return data["balances"]


# ─── Rendering ─────────────────────────────────────────────────────────────

def _signed_style(amount: str) -> str:
    if amount == "0":
        return "muted"
    return "bad" if amount.startswith("-") else "good"


def render_summary(con: Console, summary: dict) -> None:
    con.print(f"[hdr]{escape(summary['name'])}[/]")
    con.print(
        f"[muted]total[/] {summary['total_amount']}  "
        f"[muted]members[/] {summary['member_count']}  "
        f"[muted]expenses[/] {summary['expense_count']}  "
        f"[muted]share[/] {summary['share']}"
    )

    tbl = Table(
        title="[muted]Balances[/]", title_justify="left",
        box=box.ROUNDED, show_header=True, header_style="bold dim",
    )
    tbl.add_column("Member", style="bold")
    tbl.add_column("Paid", justify="right")
    tbl.add_column("Balance", justify="right")
    for row in summary["balances"]:
        style = _signed_style(row["balance"])
        tbl.add_row(
            escape(row["member"]),
            row["paid"],
            f"[{style}]{row['balance']}[/]",
        )
    con.print(tbl)


def render_transfers(con: Console, transfers: list[dict]) -> None:
    if not transfers:
        con.print("[good]All settled![/]")
        return

    tbl = Table(
        title="[muted]Transfers[/]", title_justify="left",
        box=box.ROUNDED, show_header=True, header_style="bold dim",
    )
    tbl.add_column("#", justify="right", style="muted")
    tbl.add_column("From", style="bold")
    tbl.add_column("To", style="bold")
    tbl.add_column("Amount", justify="right", style="accent")
    for n, t in enumerate(transfers, start=1):
        tbl.add_row(str(n), escape(t["from"]), escape(t["to"]), t["amount"])
    con.print(tbl)


# ─── Commands ──────────────────────────────────────────────────────────────

def cmd_settle(args, con: Console) -> None:
    ledger = load_ledger(args.file, args.places)
    summary = build_summary(ledger, args.tolerance, args.places)
    render_summary(con, summary)
    render_transfers(con, summary["transfers"])


def cmd_plan(args, con: Console) -> None:
    balances = load_balances(args.file, args.tolerance)
    transfers = compute_transfers(balances, args.tolerance)
    render_transfers(con, [
        {
            "from": t.from_member,
            "to": t.to_member,
            "amount": format_amount(t.amount, args.places),
        }
        for t in transfers
    ])


def _decimal_arg(value: str) -> Decimal:
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"{value!r} is not a decimal number") from None
    if not amount.is_finite() or amount <= 0:
        raise argparse.ArgumentTypeError("tolerance must be a positive number")
    return amount


def _places_arg(value: str) -> int:
    places = int(value)
    if places < 0:
        raise argparse.ArgumentTypeError("places must not be negative")
    return places


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="solamate",
        description="SolaMate: equal-split balances and minimal transfer plans",
    )
    ap.add_argument("-v", "--verbose", action="store_true",
                    help="Log debug output to stderr")
    sub = ap.add_subparsers(dest="command", required=True)

    settle = sub.add_parser("settle", help="Balances and transfer plan for a ledger file")
    settle.set_defaults(handler=cmd_settle)
    plan = sub.add_parser("plan", help="Transfer plan for a balance map file")
    plan.set_defaults(handler=cmd_plan)

    for p in (settle, plan):
        p.add_argument("file", metavar="FILE", help="Path to a JSON file")
        p.add_argument("--tolerance", type=_decimal_arg, default=DEFAULT_TOLERANCE,
                       help=f"Settlement tolerance (default {DEFAULT_TOLERANCE})")
        p.add_argument("--places", type=_places_arg, default=DEFAULT_AMOUNT_PLACES,
                       help="Decimal places accepted in amounts and shown "
                            f"(default {DEFAULT_AMOUNT_PLACES})")
    return ap


def main(argv: list[str] | None = None, console: Console | None = None) -> int:
    args = build_parser().parse_args(argv)
    con = console or Console(highlight=False)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    with con.use_theme(THEME):
        try:
            args.handler(args, con)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            con.print(f"[bad]Cannot read {escape(args.file)}:[/] {escape(str(exc))}")
            return 1
        except ValidationError as exc:
            con.print(f"[bad]Invalid file {escape(args.file)}:[/] {escape(str(exc.messages))}")
            return 1
        except AppError as exc:
            con.print(f"[bad]{exc.code}:[/] {escape(exc.message)}")
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
