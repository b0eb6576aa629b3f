#!/usr/bin/env python3
"""
Art Gallery -- management commands for the gallery catalog service.

Usage:
  python main.py seed
  python main.py create-user alice
  python main.py create-user curator --role admin
  python main.py purge-sessions
  python main.py serve --port 6868 --reload

Every command reads DATABASE_URL (and the rest of the settings) from the
environment or .env; --database-url overrides it for one invocation.
"""

import argparse
import getpass
import sys
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from auth.models import Role, User
from auth.service import USERNAME_MAX_LENGTH, USERNAME_MIN_LENGTH
from auth.store import SessionStore, UserStore
from auth.tokens import hash_password
from core.config import get_settings
from core.db import create_db_engine
from gallery.seed import seed_initial_data
from gallery.store import GalleryStore

DEFAULT_PORT = 6868


def cmd_seed(args: argparse.Namespace) -> int:
    """Populate baseline artists, the admin account and sample pictures."""
    settings = get_settings()
    engine = create_db_engine(args.database_url)
    try:
        report = seed_initial_data(
            UserStore(engine),
            GalleryStore(engine),
            admin_username=settings.seed_admin_username,
            admin_password=settings.seed_admin_password,
        )
    finally:
        engine.dispose()
    print(
        f"  Artists created: {report.artists_created}\n"
        f"  Admin created:   {'yes' if report.admin_created else 'no (already exists)'}\n"
        f"  Pictures created: {report.pictures_created}"
    )
    return 0


def _prompt_password() -> Optional[str]:
    password = getpass.getpass("Password: ")
    if not password:
        print("  [!] Password must not be empty.")
        return None
    if getpass.getpass("Confirm password: ") != password:
        print("  [!] Passwords do not match.")
        return None
    return password


def cmd_create_user(args: argparse.Namespace) -> int:
    """Create an account with an explicit role. Exit code 1 on any refusal."""
    username = args.username.strip()
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        print(f"  [!] Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters.")
        return 1
    password = _prompt_password()
    if password is None:
        return 1

    engine = create_db_engine(args.database_url)
    try:
        user_id = UserStore(engine).create_user(
            User(username=username, hashed_password=hash_password(password), role=Role(args.role))
        )
    finally:
        engine.dispose()
    if user_id is None:
        print(f"  [!] A user named '{username}' already exists.")
        return 1
    print(f"  Created {args.role} '{username}' (id={user_id}).")
    return 0


def cmd_purge_sessions(args: argparse.Namespace) -> int:
    engine = create_db_engine(args.database_url)
    try:
        removed = SessionStore(engine).purge_expired()
    finally:
        engine.dispose()
    print(f"  Removed {removed} expired session(s).")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the API and SPA with uvicorn.

    The server process reads DATABASE_URL itself, so --database-url does not
    apply here.
    """
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="main.py",
        description="Art Gallery management commands",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py seed
  python main.py create-user curator --role admin
  DATABASE_URL=sqlite:///prod.db python main.py purge-sessions
  python main.py serve --host 0.0.0.0 --port 8080
        """,
    )
    parser.add_argument(
        "--database-url",
        default=None,
        metavar="URL",
        help="SQLAlchemy database URL (default: DATABASE_URL setting)",
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    seed = sub.add_parser("seed", help="Insert baseline artists, admin account and pictures (idempotent)")
    seed.set_defaults(func=cmd_seed)

    create_user = sub.add_parser("create-user", help="Create a user account; prompts for the password")
    create_user.add_argument("username", help=f"{USERNAME_MIN_LENGTH}-{USERNAME_MAX_LENGTH} characters")
    create_user.add_argument(
        "--role",
        choices=[r.value for r in Role],
        default=Role.user.value,
        help="Account role (default: user)",
    )
    create_user.set_defaults(func=cmd_create_user)

    purge = sub.add_parser("purge-sessions", help="Delete expired sessions")
    purge.set_defaults(func=cmd_purge_sessions)

    serve = sub.add_parser("serve", help="Run the HTTP server with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=DEFAULT_PORT, help=f"Port (default: {DEFAULT_PORT})")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development)")
    serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 1
    if args.database_url is None:
        args.database_url = get_settings().database_url
    try:
        return args.func(args)
    except SQLAlchemyError as exc:
        print(f"  [!] Database error: {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
