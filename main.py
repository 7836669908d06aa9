import argparse
import getpass
from pathlib import Path

from loguru import logger

from quickboard.service.config import get_settings
from quickboard.service.server import BoardServer
from quickboard.sync.client import AccountError, BoardClient, TransportError
from quickboard.sync.credentials import DEFAULT_CREDENTIALS_PATH, CredentialStore
from quickboard.utils.logging import setup_logger


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Quickboard task board")
    parser.add_argument("--log-level", default=None, help="Override the log level")
    parser.add_argument("--log-file", type=Path, default=None, help="Also log to this file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the board service")
    serve.add_argument("--host", default=None, help="Host to bind to")
    serve.add_argument("--port", type=int, default=None, help="Port to bind to")
    serve.add_argument("--database", type=Path, default=None, help="SQLite database path")

    for name in ("register", "login"):
        account = subparsers.add_parser(name, help=f"{name.title()} against a board service")
        account.add_argument("username")
        account.add_argument("--url", default="http://localhost:8765", help="Service URL")
        account.add_argument(
            "--credentials",
            type=Path,
            default=DEFAULT_CREDENTIALS_PATH,
            help="Where to keep the session credential",
        )

    logout = subparsers.add_parser("logout", help="Forget the saved credential")
    logout.add_argument("--credentials", type=Path, default=DEFAULT_CREDENTIALS_PATH)
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    settings = get_settings()
    setup_logger(level=args.log_level or settings.log_level, log_file=args.log_file)

    if args.command == "serve":
        overrides = {
            key: value
            for key, value in (
                ("host", args.host),
                ("port", args.port),
                ("database_path", args.database),
            )
            if value is not None
        }
        server = BoardServer(settings.model_copy(update=overrides))
        server.serve()
        return

    if args.command == "logout":
        CredentialStore(args.credentials).clear()
        logger.info("Credential removed")
        return

    client = BoardClient(args.url)
    password = getpass.getpass("Password: ")
    try:
        if args.command == "register":
            client.register(args.username, password)
            logger.success("Account created, please login")
        else:
            session = client.login(args.username, password)
            CredentialStore(args.credentials).save(session)
            logger.success(f"Logged in as {session.username}")
    except (AccountError, TransportError) as exc:
        logger.error(str(exc))
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
