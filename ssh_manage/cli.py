#!/usr/bin/env python3
"""
Command line interface for the SSH server registry.

Every invocation performs one operation against the store: it opens a
database manager, runs the command inside one session scope and disposes of
everything before exiting. JSON responses go to stdout, usage text and logs
to stderr. Exit code 0 means success, 1 means any error.
"""

import argparse
import sys
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, TextIO

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import AppConfig, get_config
from .constants import ExitCode, OperationStatus
from .db.db_config import DatabaseManager, get_database_config, init_db
from .exceptions import (
    BaseError,
    DbConnectionError,
    ErrorCode,
    ProfileNotFoundError,
    ServiceError,
    ValidationError,
    clear_correlation_id,
    set_correlation_id,
)
from .schemas.server_schemas import (
    AccountCreate,
    AuthKeyUpdate,
    ServerProfileCreate,
    parse_schema,
)
from .services.credential_store import CredentialStore
from .services.disclosure_gate import DisclosureGate
from .services.reachability_prober import ReachabilityProber
from .services.token_authority import TokenAuthority
from .utils.json_utils import dumps_payload
from .utils.logger import configure_logging, get_logger

AUTH_SET_MESSAGE = "auth set"


class CommandParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting with status 2."""

    def error(self, message):
        raise ValidationError(message, error_code=ErrorCode.MISSING_REQUIRED)


@dataclass
class CommandServices:
    """Services wired to the session of one invocation."""

    store: CredentialStore
    tokens: TokenAuthority
    gate: DisclosureGate
    prober: ReachabilityProber

    @classmethod
    def from_session(cls, session: Session, config: AppConfig) -> "CommandServices":
        store = CredentialStore(session)
        tokens = TokenAuthority(store, token_length=config.token.length)
        gate = DisclosureGate(
            store, token_authority=tokens, no_servers_message=config.servers.no_servers_message
        )
        prober = ReachabilityProber(store, config=config.probe)
        return cls(store=store, tokens=tokens, gate=gate, prober=prober)


@dataclass
class CommandResult:
    """What a command prints; ``text`` is emitted verbatim instead of JSON."""

    payload: Any = None
    text: Optional[str] = None
    exit_code: ExitCode = ExitCode.SUCCESS


# ==================== COMMAND HANDLERS ====================


def _cmd_list(args: argparse.Namespace, services: CommandServices, config: AppConfig):
    return CommandResult(payload=services.gate.list_names(args.account))


def _cmd_config(args: argparse.Namespace, services: CommandServices, config: AppConfig):
    server_config = services.gate.disclose(args.account, args.server, args.token)
    return CommandResult(payload=server_config)


def _cmd_add(args: argparse.Namespace, services: CommandServices, config: AppConfig):
    profile_create = parse_schema(
        ServerProfileCreate,
        {
            "name": args.name,
            "host": args.server,
            "username": args.username or config.servers.ssh_username,
            "port": args.port,
            "ssh_key": args.ssh_key,
            "auth_key": args.auth_key,
        },
    )
    profile = services.store.add_profile(args.account, profile_create)
    return CommandResult(payload={"status": OperationStatus.CREATED.value, "name": profile.name})


def _cmd_update_token(args: argparse.Namespace, services: CommandServices, config: AppConfig):
    return CommandResult(payload=services.tokens.issue(args.account))


def _cmd_update_authkey(args: argparse.Namespace, services: CommandServices, config: AppConfig):
    update = parse_schema(AuthKeyUpdate, {"auth_key": args.auth_key})
    services.store.set_auth_key(args.account, args.server, update.auth_key)
    return CommandResult(text=AUTH_SET_MESSAGE)


def _cmd_delete(args: argparse.Namespace, services: CommandServices, config: AppConfig):
    if not services.store.delete_profile(args.account, args.server):
        raise ProfileNotFoundError(external_id=args.account, name=args.server)
    return CommandResult(payload={"status": OperationStatus.DELETED.value, "name": args.server})


def _cmd_test(args: argparse.Namespace, services: CommandServices, config: AppConfig):
    result = services.prober.test_connection(args.account, args.server)
    return CommandResult(
        payload=result.to_payload(),
        exit_code=ExitCode.SUCCESS if result.reachable else ExitCode.FAILURE,
    )


def _cmd_add_account(args: argparse.Namespace, services: CommandServices, config: AppConfig):
    account_create = parse_schema(
        AccountCreate, {"external_id": args.account, "display_name": args.display_name}
    )
    account = services.store.create_account(account_create)
    return CommandResult(
        payload={"status": OperationStatus.CREATED.value, "account": account.external_id}
    )


COMMANDS: Dict[str, Callable[..., CommandResult]] = {
    "list": _cmd_list,
    "config": _cmd_config,
    "add": _cmd_add,
    "update-token": _cmd_update_token,
    "update-authkey": _cmd_update_authkey,
    "delete": _cmd_delete,
    "test": _cmd_test,
    "add-account": _cmd_add_account,
}


# ==================== PARSER ====================


def build_parser() -> CommandParser:
    parser = CommandParser(
        prog="ssh-manage",
        description="Manage SSH server profiles for chat accounts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List server names (no token required)
  ssh-manage list 123456789

  # Show full server config (token required)
  ssh-manage config 123456789 web1 --token <token>

  # Add a server
  ssh-manage add --account 123456789 --name web1 --server example.com --port 22 \\
      --ssh-key /keys/id_ed25519 --auth-key <key>

  # Generate a new token for all servers of an account
  ssh-manage update-token 123456789
        """,
    )
    parser.add_argument(
        "--database-url",
        help="SQLAlchemy database URL (default: DATABASE_URL / DB_* environment)",
    )

    subparsers = parser.add_subparsers(dest="command", parser_class=CommandParser)

    list_parser = subparsers.add_parser("list", help="List server names of an account")
    list_parser.add_argument("account", help="Account external id")

    config_parser = subparsers.add_parser("config", help="Show full server config")
    config_parser.add_argument("account", help="Account external id")
    config_parser.add_argument("server", help="Server name")
    config_parser.add_argument("--token", default=None, help="Account token")

    add_parser = subparsers.add_parser("add", help="Add a server")
    add_parser.add_argument("--account", required=True, help="Account external id")
    add_parser.add_argument("--name", required=True, help="Server name")
    add_parser.add_argument("--server", required=True, help="Hostname or IP address")
    add_parser.add_argument("--port", required=True, type=int, help="SSH port")
    add_parser.add_argument("--ssh-key", dest="ssh_key", required=True, help="Private key path")
    add_parser.add_argument("--auth-key", dest="auth_key", required=True, help="Auth key")
    add_parser.add_argument("--username", default=None, help="SSH username")

    token_parser = subparsers.add_parser("update-token", help="Generate a new account token")
    token_parser.add_argument("account", help="Account external id")

    authkey_parser = subparsers.add_parser("update-authkey", help="Replace a server's auth key")
    authkey_parser.add_argument("account", help="Account external id")
    authkey_parser.add_argument("server", help="Server name")
    authkey_parser.add_argument("auth_key", help="New auth key")

    delete_parser = subparsers.add_parser("delete", help="Delete a server")
    delete_parser.add_argument("account", help="Account external id")
    delete_parser.add_argument("server", help="Server name")

    test_parser = subparsers.add_parser("test", help="Test the SSH connection of a server")
    test_parser.add_argument("account", help="Account external id")
    test_parser.add_argument("server", help="Server name")

    account_parser = subparsers.add_parser("add-account", help="Register an account")
    account_parser.add_argument("account", help="Account external id")
    account_parser.add_argument("--display-name", dest="display_name", default=None)

    subparsers.add_parser("init-db", help="Create the database tables")

    return parser


# ==================== ENTRY POINT ====================


def _emit(result: CommandResult, stdout: TextIO) -> None:
    if result.text is not None:
        stdout.write(result.text + "\n")
    else:
        stdout.write(dumps_payload(result.payload) + "\n")


def run_command(
    args: argparse.Namespace, db_manager: DatabaseManager, config: AppConfig
) -> CommandResult:
    """Run one parsed command inside a single session scope."""
    if args.command == "init-db":
        init_db(db_manager)
        return CommandResult(payload={"status": OperationStatus.INITIALIZED.value})

    handler = COMMANDS[args.command]
    with db_manager.session_scope() as session:
        services = CommandServices.from_session(session, config)
        return handler(args, services, config)


def main(
    argv: Optional[List[str]] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> int:
    """Main CLI entry point."""
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr
    parser = build_parser()

    try:
        args = parser.parse_args(argv)
    except ValidationError as e:
        parser.print_usage(stderr)
        stderr.write(f"{parser.prog}: error: {e.message}\n")
        return ExitCode.FAILURE.value

    if not args.command:
        parser.print_help(stderr)
        return ExitCode.FAILURE.value

    try:
        config = get_config()
    except PydanticValidationError as e:
        stderr.write(f"Invalid configuration: {e.errors()[0].get('msg', 'invalid value')}\n")
        return ExitCode.FAILURE.value

    set_correlation_id(str(uuid.uuid4()))
    configure_logging(args.command.replace("-", "_"), stream=stderr)
    logger = get_logger()

    try:
        db_manager = DatabaseManager(get_database_config(args.database_url))
    except ValidationError as e:
        stderr.write(f"Invalid database configuration: {e.message}\n")
        clear_correlation_id()
        return ExitCode.FAILURE.value
    except (SQLAlchemyError, ImportError) as e:
        logger.error("Database engine could not be created", extra={"error_type": type(e).__name__})
        stderr.write("Invalid database configuration\n")
        clear_correlation_id()
        return ExitCode.FAILURE.value

    try:
        db_manager.check_connection()
        result = run_command(args, db_manager, config)
    except DbConnectionError as e:
        stderr.write(f"{e.message} (error_id={e.error_id})\n")
        return ExitCode.FAILURE.value
    except BaseError as e:
        _emit(CommandResult(payload=e.to_payload(), exit_code=ExitCode.FAILURE), stdout)
        return ExitCode.FAILURE.value
    except Exception as e:
        logger.exception(
            f"Unhandled error in {args.command}", extra={"error_type": type(e).__name__}
        )
        error = ServiceError("Internal error", operation=args.command, cause=e)
        _emit(CommandResult(payload=error.to_payload(), exit_code=ExitCode.FAILURE), stdout)
        return ExitCode.FAILURE.value
    finally:
        db_manager.close()
        clear_correlation_id()

    _emit(result, stdout)
    return result.exit_code.value


if __name__ == "__main__":
    sys.exit(main())
