#!/usr/bin/env python3
"""
AccountStore -- administer a directory of user account records.

Usage:
  python main.py list
  python main.py show alice@example.com
  python main.py check alice@example.com
  python main.py --write passwd alice@example.com
  python main.py --write set alice@example.com lang=en theme=dark
  python main.py --write register bob@example.com
  python main.py --dir /srv/users list

Environment variables:
  ACCOUNTS_DIR              Record directory (default: ./users). --dir overrides it.
  ACCOUNTS_WRITE_PERMITTED  Allow changes (default: false). --write overrides it.
  BCRYPT_ROUNDS             bcrypt cost factor for new hashes (default: 12).
  LOG_LEVEL                 Logging level (default: INFO).
"""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path
from typing import Optional

from accounts.display import derive_display_name
from accounts.errors import AccountStoreError
from accounts.ledger import RegistrationLedger
from accounts.passwords import authenticate
from accounts.registration import register_account
from accounts.store import RecordStore
from core.config import get_settings

logger = logging.getLogger("accountstore.cli")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def _read_new_password() -> Optional[str]:
    """Prompt twice for a new password. Returns None if the entries differ."""
    first = getpass.getpass("New password: ")
    second = getpass.getpass("Repeat password: ")
    if first != second:
        print("  [!] Passwords do not match.")
        return None
    return first


def _parse_assignments(pairs: Sequence[str]) -> Optional[dict[str, str]]:
    changes: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            print(f"  [!] '{pair}' is not KEY=VALUE.")
            return None
        changes[key] = value
    return changes


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_list(store: RecordStore, args: argparse.Namespace) -> int:
    for email in store.list_users():
        print(email)
    return EXIT_OK


def cmd_show(store: RecordStore, args: argparse.Namespace) -> int:
    record = store.lookup(args.email)
    if record is None:
        print(f"  [!] No readable record for {args.email}.")
        return EXIT_FAILED
    name = derive_display_name(record.email)
    print(f"email:    {record.email}")
    print(f"display:  {name.plain_tag}")
    if record.properties:
        print("properties:")
        for key in sorted(record.properties, key=str):
            print(f"  {key} = {record.properties[key]}")
    return EXIT_OK


def cmd_check(store: RecordStore, args: argparse.Namespace) -> int:
    password = getpass.getpass("Password: ")
    if authenticate(store, args.email, password) is None:
        print("  [!] Authentication failed.")
        return EXIT_FAILED
    print("Password OK.")
    return EXIT_OK


def cmd_passwd(store: RecordStore, args: argparse.Namespace) -> int:
    record = store.lookup(args.email)
    if record is None:
        print(f"  [!] No readable record for {args.email}.")
        return EXIT_FAILED
    password = _read_new_password()
    if password is None:
        return EXIT_FAILED
    store.set_password(args.email, password)
    print(f"Password updated for {args.email}.")
    return EXIT_OK


def cmd_set(store: RecordStore, args: argparse.Namespace) -> int:
    changes = _parse_assignments(args.assignments)
    if changes is None:
        return EXIT_USAGE
    store.update_properties(args.email, changes)
    print(f"Updated {len(changes)} propert{'y' if len(changes) == 1 else 'ies'} for {args.email}.")
    return EXIT_OK


def cmd_register(store: RecordStore, args: argparse.Namespace) -> int:
    """Run the registration flow in one process.

    The code is printed here; a web front-end would email it instead.
    """
    ledger = RegistrationLedger()
    code = ledger.generate(args.email)
    print(f"Registration code for {args.email}: {code}")
    typed = input("Enter code: ")
    password = _read_new_password()
    if password is None:
        return EXIT_FAILED
    outcome, record = register_account(store, ledger, args.email, typed, password)
    if record is None:
        print(f"  [!] Registration failed: {outcome.value}.")
        return EXIT_FAILED
    print(f"Registered {record.email}.")
    return EXIT_OK


_COMMANDS = {
    "list": cmd_list,
    "show": cmd_show,
    "check": cmd_check,
    "passwd": cmd_passwd,
    "set": cmd_set,
    "register": cmd_register,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="accountstore",
        description="Inspect and maintain a directory of user account records.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py list
  python main.py --dir /srv/users show alice@example.com
  python main.py --write passwd alice@example.com
  python main.py --write set alice@example.com lang=en
  python main.py --write register bob@example.com
        """,
    )
    parser.add_argument(
        "--dir",
        metavar="PATH",
        type=Path,
        help="Record directory (default: $ACCOUNTS_DIR or ./users)",
    )
    parser.add_argument(
        "--write",
        action="store_true",
        help="Allow commands that change records (default: $ACCOUNTS_WRITE_PERMITTED)",
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.add_parser("list", help="List every account")
    for name, text in (
        ("show", "Show an account's display name and properties"),
        ("check", "Verify an account's password"),
        ("passwd", "Set an account's password"),
        ("register", "Create an account through the one-time code flow"),
    ):
        sub.add_parser(name, help=text).add_argument("email", metavar="EMAIL")
    set_parser = sub.add_parser("set", help="Set account properties")
    set_parser.add_argument("email", metavar="EMAIL")
    set_parser.add_argument("assignments", nargs="+", metavar="KEY=VALUE")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return EXIT_USAGE

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    config = settings.store_config()
    if args.dir is not None:
        config = replace(config, directory=args.dir)
    if args.write:
        config = replace(config, write_permitted=True)
    store = RecordStore(config)

    try:
        return _COMMANDS[args.command](store, args)
    except AccountStoreError as e:
        logger.error("%s failed: %s", args.command, e)
        print(f"  [!] {e}")
        return EXIT_FAILED
    except OSError as e:
        logger.error("%s failed: %s", args.command, e)
        print(f"  [!] {e}")
        return EXIT_FAILED
    except ValueError as e:
        print(f"  [!] {e}")
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
