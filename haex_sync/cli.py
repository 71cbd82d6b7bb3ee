"""
haex-sync CLI — entry point for all operations.

Usage:
    haex-sync serve                 # Start the API server
    haex-sync migrate status        # Show applied vs pending migrations
    haex-sync migrate apply         # Apply pending migrations
    haex-sync version               # Show version
"""

from __future__ import annotations

import argparse
import sys


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="haex-sync",
        description="haex sync server — encrypted change-log relay for multi-device CRDT sync.",
    )
    parser.add_argument("--version", action="store_true", help="Show version and exit")

    subparsers = parser.add_subparsers(dest="command")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: $HOST or 0.0.0.0)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (default: $PORT or 3000)")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes (development)")

    # migrate
    migrate_parser = subparsers.add_parser("migrate", help="Run database migrations")
    migrate_sub = migrate_parser.add_subparsers(dest="migrate_command")
    migrate_sub.add_parser("status", help="Show applied vs pending migrations")
    apply_parser = migrate_sub.add_parser("apply", help="Apply pending migrations")
    apply_parser.add_argument("version", nargs="?", default=None, help="Apply only this version")
    apply_parser.add_argument("--dry-run", action="store_true", help="List what would be applied")

    subparsers.add_parser("version", help="Show version")

    args = parser.parse_args(argv)

    if args.version or args.command == "version":
        from haex_sync import APP_NAME, __version__

        print(f"{APP_NAME} {__version__}")
        return 0

    if args.command == "serve":
        return _cmd_serve(args)
    elif args.command == "migrate":
        return _cmd_migrate(args)
    else:
        parser.print_help()
        return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from haex_sync.api.app import configure_logging
    from haex_sync.config import get_config

    cfg = get_config()
    configure_logging(cfg.log_level)

    if not cfg.auth.configured:
        print("Error: SUPABASE_URL and SUPABASE_ANON_KEY must be set.", file=sys.stderr)
        return 1

    host = args.host or cfg.host
    port = args.port or cfg.port
    uvicorn.run(
        "haex_sync.api.app:app",
        host=host,
        port=port,
        reload=args.reload,
        log_level=cfg.log_level.lower(),
    )
    return 0


def _cmd_migrate(args: argparse.Namespace) -> int:
    from haex_sync.api.app import configure_logging
    from haex_sync.config import get_config
    from haex_sync.db import migrate

    configure_logging(get_config().log_level)

    try:
        if args.migrate_command == "apply":
            applied = migrate.apply(version=args.version, dry_run=args.dry_run)
            verb = "Would apply" if args.dry_run else "Applied"
            print(f"{verb} {len(applied)} migration(s).")
            return 0

        rows = migrate.status()
    except Exception as e:
        print(f"Error: Migration failed: {e}", file=sys.stderr)
        print("Check DATABASE_URL and ensure PostgreSQL is running.", file=sys.stderr)
        return 1

    if not rows:
        print("No migration files found.")
        return 0
    print(f"{'Version':<10} {'Filename':<35} {'Status':<10} {'Applied At'}")
    print("-" * 80)
    for r in rows:
        at = str(r["applied_at"])[:19] if r["applied_at"] else ""
        print(f"{r['version']:<10} {r['filename']:<35} {r['status']:<10} {at}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
