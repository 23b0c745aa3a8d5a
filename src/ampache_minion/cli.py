"""
Ampache Minion CLI - Entry point

Runs the web server and the maintenance commands: library scanning, API key
management and session cleanup.
"""

import argparse
import sys
import time

from loguru import logger

from ampache_minion.core import (
    ensure_directories,
    get_db_connection,
    init_database,
    load_config,
    setup_loguru,
)
from ampache_minion.core.config import Config


def run_serve(config: Config, host: str = None, port: int = None) -> int:
    """Run the Ampache HTTP API with uvicorn."""
    import uvicorn

    from ampache_minion.web.main import create_app

    init_database()
    uvicorn.run(
        create_app(config),
        host=host or config.web.host,
        port=port or config.web.port,
        log_config=None,
    )
    return 0


def run_scan(config: Config) -> int:
    from ampache_minion.domain.library.scanner import scan_music_library

    with get_db_connection() as conn:
        init_database(conn)
        result = scan_music_library(conn, config)

    print(f"Added:     {result.added}")
    print(f"Updated:   {result.updated}")
    print(f"Unchanged: {result.unchanged}")
    print(f"Removed:   {result.removed}")
    return 0


def run_add_key(user: str, password: str, description: str = None) -> int:
    from ampache_minion.domain.ampache.sessions import UserKeyStore

    with get_db_connection() as conn:
        init_database(conn)
        key_id = UserKeyStore(conn).add_key(user, password, description)

    print(f"Added API key #{key_id} for {user}")
    return 0


def run_list_keys(user: str) -> int:
    from ampache_minion.domain.ampache.sessions import UserKeyStore

    with get_db_connection() as conn:
        init_database(conn)
        keys = UserKeyStore(conn).list_keys(user)

    if not keys:
        print(f"No API keys for {user}")
        return 0

    for key in keys:
        print(f"#{key.id}  {key.created or '-'}  {key.description or ''}")
    return 0


def run_remove_key(user: str, key_id: int) -> int:
    from ampache_minion.domain.ampache.sessions import UserKeyStore

    with get_db_connection() as conn:
        init_database(conn)
        removed = UserKeyStore(conn).remove_key(user, key_id)

    if not removed:
        print(f"API key #{key_id} not found for {user}", file=sys.stderr)
        return 1
    print(f"Removed API key #{key_id}")
    return 0


def run_cleanup_sessions() -> int:
    from ampache_minion.domain.ampache.sessions import SessionStore

    with get_db_connection() as conn:
        init_database(conn)
        removed = SessionStore(conn).cleanup_expired(int(time.time()))

    print(f"Removed {removed} expired session(s)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ampache-minion",
        description="Ampache Minion - Ampache API server for your music library",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the Ampache API server")
    serve_parser.add_argument("--host", help="Interface to bind (default from config)")
    serve_parser.add_argument("--port", type=int, help="Port to bind (default from config)")

    subparsers.add_parser("scan", help="Scan the configured library paths")

    add_key_parser = subparsers.add_parser("add-key", help="Add an Ampache API key")
    add_key_parser.add_argument("user", help="User id")
    add_key_parser.add_argument("password", help="Password clients will use")
    add_key_parser.add_argument("--description", help="Free-form note")

    list_keys_parser = subparsers.add_parser("list-keys", help="List API keys of a user")
    list_keys_parser.add_argument("user", help="User id")

    remove_key_parser = subparsers.add_parser("remove-key", help="Remove an API key")
    remove_key_parser.add_argument("user", help="User id")
    remove_key_parser.add_argument("key_id", type=int, help="Key id (see list-keys)")

    subparsers.add_parser("cleanup-sessions", help="Delete expired sessions")

    return parser


def main(argv: list[str] = None) -> None:
    """Main entry point for the ampache-minion command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.subcommand:
        parser.print_help()
        sys.exit(1)

    config = load_config()
    ensure_directories()
    setup_loguru(config.logging)

    try:
        if args.subcommand == "serve":
            sys.exit(run_serve(config, args.host, args.port))
        elif args.subcommand == "scan":
            sys.exit(run_scan(config))
        elif args.subcommand == "add-key":
            sys.exit(run_add_key(args.user, args.password, args.description))
        elif args.subcommand == "list-keys":
            sys.exit(run_list_keys(args.user))
        elif args.subcommand == "remove-key":
            sys.exit(run_remove_key(args.user, args.key_id))
        elif args.subcommand == "cleanup-sessions":
            sys.exit(run_cleanup_sessions())
    except KeyboardInterrupt:
        sys.exit(130)
    except Exception as e:
        logger.exception(f"Command '{args.subcommand}' failed")
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
