"""Command-line entry point: account administration and the HTTP server.

Account management is only reachable from here, never over HTTP.
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
import sys
from typing import Sequence

from .config import get_settings
from .errors import BlobVaultError, DuplicateAccountError
from .store import BlobStore

logger = logging.getLogger(__name__)


def _password(args: argparse.Namespace) -> str:
    if args.passwd is not None:
        return args.passwd
    return getpass.getpass(f"Password for {args.user}: ")


async def list_accounts(args: argparse.Namespace, store: BlobStore) -> int:
    """Print every username, one per line."""
    for username in await store.list_usernames():
        print(username)
    return 0


async def add_user(args: argparse.Namespace, store: BlobStore) -> int:
    """Register a user, prompting for the password if not given."""
    password = _password(args)
    if not password:
        print("Error: password cannot be empty", file=sys.stderr)
        return 1
    try:
        await store.register(args.user, password)
    except DuplicateAccountError:
        print(f"Error: user '{args.user}' already exists", file=sys.stderr)
        return 1
    print(f"add user {args.user} success")
    return 0


async def del_user(args: argparse.Namespace, store: BlobStore) -> int:
    await store.remove(args.user)
    print(f"del user {args.user} success")
    return 0


async def reset_password(args: argparse.Namespace, store: BlobStore) -> int:
    """Overwrite a user's password without asking for the old one."""
    password = _password(args)
    if not password:
        print("Error: password cannot be empty", file=sys.stderr)
        return 1
    await store.reset_credential(args.user, password)
    print(f"reset password for {args.user} success")
    return 0


COMMANDS = {
    "list": list_accounts,
    "adduser": add_user,
    "deluser": del_user,
    "passwd": reset_password,
}


async def run_command(args: argparse.Namespace, database_url: str) -> int:
    settings = get_settings()
    store = BlobStore.from_url(database_url, settings.hash_scheme, settings.hash_rounds)
    try:
        await store.init()
        return await COMMANDS[args.command](args, store)
    except BlobVaultError as exc:
        logger.debug("%s failed", args.command, exc_info=exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await store.close()


def serve(host: str, port: int, database_url: str, log_level: str) -> int:
    import uvicorn

    from .main import create_app

    settings = get_settings()
    store = BlobStore.from_url(database_url, settings.hash_scheme, settings.hash_rounds)

    async def _serve() -> None:
        await store.init()
        config = uvicorn.Config(
            create_app(store), host=host, port=port, log_level=log_level.lower()
        )
        try:
            await uvicorn.Server(config).serve()
        finally:
            await store.close()

    logger.info("Start HTTP server on %s:%d", host, port)
    try:
        asyncio.run(_serve())
    except BlobVaultError as exc:
        logger.error("could not start server: %s", exc)
        return 1
    except KeyboardInterrupt:
        pass
    return 0


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="blobvault",
        description="Serve password-gated blobs or manage their accounts.",
    )
    parser.add_argument(
        "--database-url",
        default=settings.database_url,
        help=f"SQLAlchemy database URL (default: {settings.database_url})",
    )
    parser.add_argument(
        "--log-level",
        "-l",
        default=settings.log_level.upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP server")
    serve_parser.add_argument("--host", default=settings.host, help="Host")
    serve_parser.add_argument("--port", type=int, default=settings.port, help="Port")

    subparsers.add_parser("list", help="Show user list")

    add_parser = subparsers.add_parser("adduser", help="Add user to database")
    add_parser.add_argument("--user", required=True, help="User name")
    add_parser.add_argument("--passwd", help="User password (prompted if omitted)")

    del_parser = subparsers.add_parser("deluser", help="Delete user from database")
    del_parser.add_argument("--user", required=True, help="User name")

    passwd_parser = subparsers.add_parser("passwd", help="Reset a user's password")
    passwd_parser.add_argument("--user", required=True, help="User name")
    passwd_parser.add_argument("--passwd", help="New password (prompted if omitted)")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Parse CLI arguments and dispatch to the requested command."""

    parser = build_parser()
    args = parser.parse_args(None if argv is None else list(argv))

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "serve":
        return serve(args.host, args.port, args.database_url, args.log_level)
    return asyncio.run(run_command(args, args.database_url))


if __name__ == "__main__":
    raise SystemExit(main())
