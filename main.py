#!/usr/bin/env python3
"""
CampusDesk -- accounts, authentication and profile management for the campus portal.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 5001 --reload
  python main.py ensure-admin

Environment variables (see core/config.py for the full list):
  SECRET_KEY              JWT signing key, at least 32 characters. Required unless DEBUG=true.
  DATABASE_URL            SQLAlchemy URL. Defaults to a SQLite file next to this script.
  DEFAULT_ADMIN_EMAIL     Email of the admin created on first start.
  DEFAULT_ADMIN_PASSWORD  Password of that admin. Change it after first login.
"""

import argparse
import sys


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _ensure_admin(args: argparse.Namespace) -> int:
    """Run the startup admin bootstrap once, outside the web server."""
    from auth.bootstrap import ensure_default_admin
    from auth.store import AccountStore
    from core.config import get_settings

    settings = get_settings()
    store = AccountStore(settings.database_url)
    try:
        account = ensure_default_admin(store, settings)
        if account is not None:
            print(f"  [+] Default admin created: {account.user.email}")
        else:
            print(f"  [=] Nothing to do ({store.count_admins()} admin profile(s) present).")
    finally:
        store.close()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="CampusDesk -- campus accounts and profiles API.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=5001, help="Port (default: 5001)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")
    serve.set_defaults(func=_serve)

    ensure = sub.add_parser("ensure-admin", help="Create the default admin if no admin exists.")
    ensure.set_defaults(func=_ensure_admin)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
