"""Docker Compose client.

Wraps `docker compose -f <file>` so lifecycle code never builds argv by hand and
tests can assert on the exact commands issued.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from pathlib import Path

from devstack_setup.orchestrator.errors import CommandFailedError
from devstack_setup.orchestrator.runner import CommandResult, CommandRunner

logger = logging.getLogger(__name__)


class ComposeClient:
    """Small wrapper around the Docker Compose CLI for one compose file."""

    def __init__(
        self,
        *,
        runner: CommandRunner,
        compose_file: Path,
        environment: Mapping[str, str] | None = None,
    ) -> None:
        self._runner = runner
        self._compose_file = compose_file
        self._environment = dict(environment or {})

    def _argv(self, *args: str) -> list[str]:
        return ["docker", "compose", "-f", str(self._compose_file), *args]

    def _run(
        self,
        *args: str,
        capture: bool = False,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        merged = {**self._environment, **(env or {})}
        return self._runner.run(self._argv(*args), env=merged or None, capture=capture)

    def up(
        self,
        services: Sequence[str],
        *,
        build: bool = True,
        env: Mapping[str, str] | None = None,
        error_message: str = "Docker Compose failed. Check the output above for details.",
    ) -> None:
        """Start `services` detached, streaming Compose output to the terminal."""

        if not services:
            raise ValueError("At least one service is required")

        args = ["up", "-d"]
        if build:
            args.append("--build")
        result = self._run(*args, *services, env=env)
        if not result.ok:
            raise CommandFailedError.from_argv(result.argv, result.returncode, error_message)
        logger.debug("Services started", extra={"services": list(services)})

    def stop(self) -> None:
        """Stop every service, keeping containers and volumes."""

        result = self._run("stop")
        if not result.ok:
            raise CommandFailedError.from_argv(
                result.argv,
                result.returncode,
                "Docker Compose failed to stop. Check the output above.",
            )

    def down(self, *, volumes: bool = False) -> None:
        """Remove containers, and volumes too when `volumes` is set."""

        args = ["down", "-v"] if volumes else ["down"]
        result = self._run(*args)
        if not result.ok:
            raise CommandFailedError.from_argv(
                result.argv,
                result.returncode,
                "Docker Compose cleanup failed. Check the output above.",
            )

    def running_services(self) -> list[str]:
        """Names of services with a running container; empty if Compose fails."""

        result = self._run("ps", "--status", "running", "--services", capture=True)
        if not result.ok:
            logger.debug(
                "Unable to list running services",
                extra={"returncode": result.returncode, "stderr": result.stderr.strip()},
            )
            return []
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def is_running(self, service: str) -> bool:
        pattern = re.compile(rf"^{re.escape(service)}$")
        return any(pattern.match(name) for name in self.running_services())

    def exec(self, service: str, command: Sequence[str]) -> CommandResult:  # noqa: A003 (compose verb)
        """Run `command` inside the already-running `service` container, capturing output."""

        return self._run("exec", "-T", service, *command, capture=True)
