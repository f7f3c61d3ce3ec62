#!/usr/bin/env python3
"""
Inventory API -- administrative command line.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080
  python main.py serve --reload
  python main.py create-user 01012345678
  python main.py purge-sessions

Configuration is read from the environment and .env (see core/config.py):
  SECRET_KEY     HS256 signing key, at least 32 characters. Required unless DEBUG=true.
  DATABASE_URL   SQLAlchemy URL. Defaults to a SQLite file next to this script.
"""

import argparse
import getpass
import re
import sys

from auth.errors import DuplicatePhoneNumberError
from auth.models import Credentials
from auth.passwords import MAX_PASSWORD_BYTES
from auth.service import AuthService
from auth.store import SessionStore, UserStore
from core.config import Settings, get_settings
from core.db import create_db_engine
from core.errors import ServiceError

_PHONE_RE = re.compile(r"^010[0-9]{8}$")


def _build_auth_service(settings: Settings) -> AuthService:
    engine = create_db_engine(settings.database_url)
    return AuthService(
        user_store=UserStore(engine),
        session_store=SessionStore(engine),
        secret_key=settings.secret_key,
        access_token_duration=settings.access_token_duration,
        refresh_token_duration=settings.refresh_token_duration,
    )


def _read_password() -> str:
    """Prompt twice for a password without echoing it. Returns "" on mismatch."""
    password = getpass.getpass("  Password: ")
    confirm = getpass.getpass("  Confirm password: ")
    if password != confirm:
        print("  [!] Passwords do not match.")
        return ""
    return password


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def cmd_create_user(args: argparse.Namespace) -> int:
    if not _PHONE_RE.match(args.phone_number):
        print(f"  [!] '{args.phone_number}' is not a valid phone number. Expected format: 010XXXXXXXX")
        return 1

    password = _read_password()
    if not password:
        print("  [!] A password is required.")
        return 1
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        print(f"  [!] Password must be at most {MAX_PASSWORD_BYTES} bytes.")
        return 1

    service = _build_auth_service(get_settings())
    try:
        user_id = service.register(Credentials(phone_number=args.phone_number, password=password))
    except DuplicatePhoneNumberError:
        print(f"  [!] {args.phone_number} is already registered.")
        return 1
    except ServiceError as exc:
        print(f"  [!] Could not create user: {exc.message}")
        return 1

    print(f"  Created user {user_id} ({args.phone_number}).")
    return 0


def cmd_purge_sessions(args: argparse.Namespace) -> int:
    settings = get_settings()
    service = _build_auth_service(settings)
    try:
        removed = service.purge_expired_sessions(settings.session_retention)
    except ServiceError as exc:
        print(f"  [!] Purge failed: {exc.message}")
        return 1
    print(f"  Purged {removed} expired session(s).")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="inventory-api",
        description="Run and administer the inventory API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --reload
  python main.py create-user 01012345678
  SESSION_RETENTION_SECONDS=604800 python main.py purge-sessions
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    serve.set_defaults(func=cmd_serve)

    create_user = sub.add_parser("create-user", help="Register a user; prompts for the password")
    create_user.add_argument("phone_number", metavar="PHONE", help="Phone number, e.g. 01012345678")
    create_user.set_defaults(func=cmd_create_user)

    purge = sub.add_parser("purge-sessions", help="Delete sessions past the retention window")
    purge.set_defaults(func=cmd_purge_sessions)

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
