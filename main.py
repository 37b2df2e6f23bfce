#!/usr/bin/env python3
"""
Account service -- operator command line.

Runs the same AuthService the HTTP API uses, directly against the configured
database, so operators can manage accounts without a bearer token.

Usage:
  python main.py create-account --first-name Ann --last-name Lee --email ann.lee@example.com
  python main.py list-accounts
  python main.py delete-account 42
  python main.py login --email ann.lee@example.com

Passwords are always read with getpass -- never from argv, where they would
land in shell history and the process table.

Environment variables:
  JWT_SECRET_KEY  Signing secret (>= 32 chars). Required unless DEBUG=true.
  DATABASE_URL    SQLAlchemy URL of the account database.
"""

import argparse
import getpass
import sys
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from auth.service import AuthService
from auth.store import AccountStore
from auth.tokens import TokenIssuer
from core.config import get_settings
from core.errors import AccountServiceError


def _build_service(db_url: Optional[str]) -> tuple[AuthService, AccountStore]:
    settings = get_settings()
    issuer = TokenIssuer.from_settings(settings)
    store = AccountStore(db_url or settings.database_url)
    return AuthService(store, issuer), store


def _read_password(confirm: bool) -> str:
    password = getpass.getpass("Password: ")
    if confirm and getpass.getpass("Confirm password: ") != password:
        raise SystemExit("  [!] Passwords do not match.")
    return password


def _cmd_create(service: AuthService, args: argparse.Namespace) -> None:
    account = service.create_account(args.first_name, args.last_name, args.email, _read_password(confirm=True))
    print(f"  Created account {account.id} ({account.email}).")


def _cmd_list(service: AuthService, args: argparse.Namespace) -> None:
    accounts = service.list_accounts()
    if not accounts:
        print("  No accounts.")
        return
    print(f"  {'ID':>5}  {'EMAIL':<40} {'NAME':<30} CREATED")
    for a in accounts:
        print(f"  {a.id:>5}  {a.email:<40} {a.first_name + ' ' + a.last_name:<30} {a.created_at}")


def _cmd_delete(service: AuthService, args: argparse.Namespace) -> None:
    service.delete_account(args.account_id)
    print(f"  Deleted account {args.account_id}.")


def _cmd_login(service: AuthService, args: argparse.Namespace) -> None:
    result = service.login(args.email, _read_password(confirm=False))
    print(result.token)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="account-service",
        description="Manage accounts of the account service.",
    )
    parser.add_argument(
        "--db",
        metavar="URL",
        default=None,
        help="SQLAlchemy database URL (default: DATABASE_URL / built-in SQLite file)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create-account", help="Create an account (prompts for the password)")
    create.add_argument("--first-name", required=True)
    create.add_argument("--last-name", required=True)
    create.add_argument("--email", required=True)
    create.set_defaults(handler=_cmd_create)

    listing = sub.add_parser("list-accounts", help="List all accounts")
    listing.set_defaults(handler=_cmd_list)

    delete = sub.add_parser("delete-account", help="Delete an account by id")
    delete.add_argument("account_id", type=int)
    delete.set_defaults(handler=_cmd_delete)

    login = sub.add_parser("login", help="Verify credentials and print a bearer token")
    login.add_argument("--email", required=True)
    login.set_defaults(handler=_cmd_login)

    args = parser.parse_args(argv)

    store: Optional[AccountStore] = None
    try:
        service, store = _build_service(args.db)
        args.handler(service, args)
    except AccountServiceError as exc:
        print(f"  [!] {exc.message}", file=sys.stderr)
        return 1
    except SQLAlchemyError as exc:
        # Never echo the URL: it may carry credentials.
        print(f"  [!] Could not open the account database ({type(exc).__name__}).", file=sys.stderr)
        return 1
    finally:
        if store is not None:
            store.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
