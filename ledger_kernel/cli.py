"""
Command-line interface for the ledger kernel.

    ledger-kernel [--config FILE] init-db
    ledger-kernel create-account --company ID --name NAME --type TYPE --group GROUP [--opening-balance N]
    ledger-kernel post --company ID --user ID --file BODY.json
    ledger-kernel accounts --company ID
    ledger-kernel journal --company ID [--page N] [--limit N] [--date YYYY-MM-DD]
    ledger-kernel check-balances --company ID

Commands print JSON to stdout.  The exit status is 0 on success, 1 when
the request was rejected or balances drifted, 2 on usage errors.
"""

import argparse
import json
import sys
from dataclasses import replace
from typing import Any, Sequence

import yaml

from ledger_kernel import api
from ledger_kernel.bootstrap import LedgerRuntime, bootstrap
from ledger_kernel.config import load_config
from ledger_kernel.db.types import format_money
from ledger_kernel.exceptions import LedgerKernelError
from ledger_kernel.selectors.ledger_selector import LedgerSelector


def _print_json(payload: Any, out=None) -> None:
    out = out or sys.stdout
    json.dump(payload, out, indent=2, default=str)
    out.write("\n")


def _emit(response: api.ApiResponse) -> int:
    _print_json(response.body)
    return 0 if response.status < 400 else 1


def _read_body(path: str) -> Any:
    if path == "-":
        return json.load(sys.stdin)
    with open(path) as f:
        return json.load(f)


def cmd_init_db(runtime: LedgerRuntime, args: argparse.Namespace) -> int:
    # bootstrap(create_schema=True) already created the tables
    _print_json({"database": runtime.config.database.url, "status": "initialized"})
    return 0


def cmd_create_account(runtime: LedgerRuntime, args: argparse.Namespace) -> int:
    body = {
        "name": args.name,
        "type": args.type,
        "group": args.group,
        "openingBalance": args.opening_balance,
    }
    return _emit(api.handle_create_account(runtime.unit_of_work, args.company, body))


def cmd_post(runtime: LedgerRuntime, args: argparse.Namespace) -> int:
    body = _read_body(args.file)
    return _emit(
        api.handle_post_transaction(runtime.posting_service, args.company, args.user, body)
    )


def cmd_accounts(runtime: LedgerRuntime, args: argparse.Namespace) -> int:
    return _emit(api.handle_list_accounts(runtime.session_factory, args.company))


def cmd_journal(runtime: LedgerRuntime, args: argparse.Namespace) -> int:
    query = {"page": args.page, "limit": args.limit, "date": args.date}
    return _emit(api.handle_list_transactions(runtime.session_factory, args.company, query))


def cmd_check_balances(runtime: LedgerRuntime, args: argparse.Namespace) -> int:
    company = api.parse_uuid(args.company, "company")
    with runtime.session_factory() as session:
        report = LedgerSelector(session).check_company(company)

    _print_json(
        {
            "company": str(company),
            "consistent": report.is_consistent,
            "accounts": [
                {
                    "id": str(c.account_id),
                    "name": c.name,
                    "currentBalance": format_money(c.current_balance),
                    "expectedBalance": format_money(c.expected_balance),
                    "drift": format_money(c.drift),
                    "entries": c.entry_count,
                }
                for c in report.checks
            ],
        }
    )
    return 0 if report.is_consistent else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ledger-kernel",
        description="Double-entry ledger posting kernel",
    )
    parser.add_argument("--config", help="YAML configuration file (default: $LEDGER_CONFIG)")
    parser.add_argument("--database-url", help="Override database.url")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init-db", help="Create the ledger tables")
    p.set_defaults(func=cmd_init_db)

    p = sub.add_parser("create-account", help="Create an account")
    p.add_argument("--company", required=True)
    p.add_argument("--name", required=True)
    p.add_argument("--type", required=True, help="asset, liability, equity, income or expense")
    p.add_argument("--group", required=True)
    p.add_argument("--opening-balance", default="0")
    p.set_defaults(func=cmd_create_account)

    p = sub.add_parser("post", help="Post a transaction from a JSON request body")
    p.add_argument("--company", required=True)
    p.add_argument("--user", required=True)
    p.add_argument("--file", required=True, help="JSON body file, or - for stdin")
    p.set_defaults(func=cmd_post)

    p = sub.add_parser("accounts", help="List active accounts")
    p.add_argument("--company", required=True)
    p.set_defaults(func=cmd_accounts)

    p = sub.add_parser("journal", help="List posted transactions")
    p.add_argument("--company", required=True)
    p.add_argument("--page", type=int, default=1)
    p.add_argument("--limit", type=int, default=10)
    p.add_argument("--date", help="Only transactions on this day (YYYY-MM-DD)")
    p.set_defaults(func=cmd_journal)

    p = sub.add_parser("check-balances", help="Recompute balances from posted entries")
    p.add_argument("--company", required=True)
    p.set_defaults(func=cmd_check_balances)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    if args.database_url:
        config = replace(config, database=replace(config.database, url=args.database_url))

    runtime = bootstrap(config, create_schema=True)
    try:
        return args.func(runtime, args)
    except LedgerKernelError as exc:
        _print_json({"error": str(exc), "code": exc.code})
        return 1


if __name__ == "__main__":
    sys.exit(main())
