"""Prerequisite checks run before any command mutates state."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from devstack_setup.orchestrator.errors import MissingPrerequisitesError
from devstack_setup.orchestrator.runner import CommandRunner

logger = logging.getLogger(__name__)

COMPOSE_PLUGIN = "docker compose"


def find_missing_prerequisites(runner: CommandRunner, tools: Iterable[str]) -> list[str]:
    """Return every unavailable prerequisite, in check order."""

    missing: list[str] = []
    for tool in tools:
        if runner.which(tool) is None:
            logger.error(f"{tool} is not installed.")
            missing.append(tool)

    if not runner.run(["docker", "compose", "version"], capture=True).ok:
        logger.error("docker compose plugin is not available.")
        missing.append(COMPOSE_PLUGIN)

    return missing


def check_prerequisites(runner: CommandRunner, tools: Iterable[str]) -> None:
    """Raise :class:`MissingPrerequisitesError` listing all missing tools."""

    missing = find_missing_prerequisites(runner, tools)
    if missing:
        raise MissingPrerequisitesError(missing=tuple(missing))
