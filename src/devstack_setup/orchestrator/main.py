"""CLI entrypoint for the dev environment orchestrator.

Grammar (one command per invocation):

    devstack-setup --init client
    devstack-setup --reset client [--yes]
    devstack-setup --remove client [--yes]
    devstack-setup --dev docker up|down|cleanup [--yes]
    devstack-setup --generate-admin-key
    devstack-setup [--help]

Exit codes: 0 success or cancelled, 1 failure or usage error, 2 invalid
configuration, 130 interrupted. Codes 2 and 130 deliberately extend the plain
0/1 contract.
"""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from dataclasses import dataclass

import requests
from pydantic import ValidationError

from devstack_setup import __version__
from devstack_setup.orchestrator.admin_key import AdminKeyService
from devstack_setup.orchestrator.config import ADMIN_KEY_ENV_NAME, DevstackSettings
from devstack_setup.orchestrator.docker.compose import ComposeClient
from devstack_setup.orchestrator.env_store import AdminKeyFile, EnvFile
from devstack_setup.orchestrator.errors import SetupError
from devstack_setup.orchestrator.lifecycle import DevEnvironment
from devstack_setup.orchestrator.logging import configure_logging
from devstack_setup.orchestrator.prompt import Confirm, always_yes, prompt_yes_no
from devstack_setup.orchestrator.runner import CommandRunner, SubprocessRunner
from devstack_setup.orchestrator.scaffold import ScaffoldService

logger = logging.getLogger(__name__)

PROG = "devstack-setup"
CLIENT_TARGET = "client"
DOCKER_ENGINE = "docker"
DOCKER_ACTIONS = ("up", "down", "cleanup")

HELP_LINES = [
    ("--init client", "Scaffold Next.js client"),
    ("--reset client", "Remove & re-scaffold client"),
    ("--remove client", "Remove client (no re-scaffold)"),
    ("--dev docker up", "Start dev Docker environment"),
    ("--dev docker down", "Stop containers (keeps volumes)"),
    ("--dev docker cleanup", "Remove containers and volumes"),
    ("--generate-admin-key", "Generate & save Convex admin key"),
    ("--yes", "Skip confirmation prompts"),
    ("--help", "Show this help"),
]


class UsageError(Exception):
    """Raised for malformed command lines."""


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog=PROG,
        description="Project template scaffold & dev Docker management",
        add_help=False,
    )
    parser.add_argument("-h", "--help", action="store_true", help="Show this help")
    parser.add_argument("--version", action="version", version=f"{PROG} {__version__}")
    parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Assume 'yes' for confirmation prompts",
    )

    commands = parser.add_mutually_exclusive_group()
    commands.add_argument("--init", nargs="?", const="", metavar="TARGET")
    commands.add_argument("--reset", nargs="?", const="", metavar="TARGET")
    commands.add_argument("--remove", nargs="?", const="", metavar="TARGET")
    commands.add_argument("--dev", nargs="*", metavar="ARG")
    commands.add_argument("--generate-admin-key", action="store_true")
    return parser


def print_help() -> None:
    print(f"{PROG} - Project template scaffold & dev management")
    print()
    for usage, description in HELP_LINES:
        print(f"  {PROG} {usage:<24} {description}")


@dataclass(frozen=True, slots=True)
class Handlers:
    scaffold: ScaffoldService
    admin_keys: AdminKeyService
    dev: DevEnvironment


def build_handlers(
    settings: DevstackSettings,
    *,
    runner: CommandRunner,
    confirm: Confirm,
    session: requests.Session | None = None,
    cancel: threading.Event | None = None,
) -> Handlers:
    compose = ComposeClient(
        runner=runner,
        compose_file=settings.compose_file,
        environment=settings.compose_environment(),
    )
    admin_keys = AdminKeyService(
        compose=compose,
        key_file=AdminKeyFile(settings.admin_key_file),
        env_file=EnvFile(settings.env_local_file),
        env_key=ADMIN_KEY_ENV_NAME,
        backend_service=settings.backend_service,
        command=settings.admin_key_command,
        dashboard_url=settings.dashboard_url,
    )
    return Handlers(
        scaffold=ScaffoldService(settings=settings, runner=runner, confirm=confirm),
        admin_keys=admin_keys,
        dev=DevEnvironment(
            settings=settings,
            runner=runner,
            compose=compose,
            admin_keys=admin_keys,
            confirm=confirm,
            session=session,
            cancel=cancel,
        ),
    )


def _require_target(value: str, flag: str) -> None:
    if value != CLIENT_TARGET:
        raise UsageError(f"Usage: {PROG} {flag} {CLIENT_TARGET}")


def _docker_action(values: list[str]) -> str:
    usage = f"Usage: {PROG} --dev {DOCKER_ENGINE} [{'|'.join(DOCKER_ACTIONS)}]"
    if not values or values[0] != DOCKER_ENGINE:
        raise UsageError(usage)
    if len(values) != 2 or values[1] not in DOCKER_ACTIONS:
        action = values[1] if len(values) > 1 else ""
        raise UsageError(
            f"Unknown action: {action} (expected {'|'.join(DOCKER_ACTIONS)})"
        )
    return values[1]


def resolve_command(args: argparse.Namespace) -> str | None:
    """Validate sub-arguments and return the command name, or None for help."""

    if args.init is not None:
        _require_target(args.init, "--init")
        return "init"
    if args.reset is not None:
        _require_target(args.reset, "--reset")
        return "reset"
    if args.remove is not None:
        _require_target(args.remove, "--remove")
        return "remove"
    if args.dev is not None:
        return _docker_action(args.dev)
    if args.generate_admin_key:
        return "generate-admin-key"
    return None


def main(
    argv: list[str] | None = None,
    *,
    runner: CommandRunner | None = None,
    confirm: Confirm | None = None,
    session: requests.Session | None = None,
) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except UsageError as e:
        print(f"Unknown command: {e}", file=sys.stderr)
        print_help()
        return 1

    try:
        command = resolve_command(args)
    except UsageError as e:
        print(str(e), file=sys.stderr)
        return 1

    if args.help or command is None:
        print_help()
        return 0

    try:
        settings = DevstackSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level, settings.log_format)

    if confirm is None:
        confirm = always_yes if args.yes else prompt_yes_no
    handlers = build_handlers(
        settings,
        runner=runner or SubprocessRunner(),
        confirm=confirm,
        session=session,
    )

    try:
        if command == "init":
            handlers.scaffold.scaffold()
        elif command == "reset":
            handlers.scaffold.reset()
        elif command == "remove":
            handlers.scaffold.remove()
        elif command == "up":
            handlers.dev.up()
        elif command == "down":
            handlers.dev.down()
        elif command == "cleanup":
            handlers.dev.cleanup()
        else:
            handlers.admin_keys.generate()
        return 0

    except SetupError as e:
        logger.error(str(e), extra={"error": type(e).__name__})
        return 1

    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
