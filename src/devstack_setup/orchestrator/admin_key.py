"""Admin key generation for the self-hosted Convex backend."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from devstack_setup.orchestrator.docker.compose import ComposeClient
from devstack_setup.orchestrator.env_store import AdminKeyFile, EnvFile, format_assignment
from devstack_setup.orchestrator.errors import AdminKeyError, PreconditionError
from devstack_setup.orchestrator.logging import header, success

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


class AdminKeyService:
    """Generates a key inside the backend container and distributes it locally.

    After a successful :meth:`generate`, the admin key file and (if it exists)
    the client's env file both hold the new key.
    """

    def __init__(
        self,
        *,
        compose: ComposeClient,
        key_file: AdminKeyFile,
        env_file: EnvFile,
        env_key: str,
        backend_service: str = "backend",
        command: Sequence[str] = ("./generate_admin_key.sh",),
        dashboard_url: str = "",
    ) -> None:
        self._compose = compose
        self._key_file = key_file
        self._env_file = env_file
        self._env_key = env_key
        self._backend_service = backend_service
        self._command = tuple(command)
        self._dashboard_url = dashboard_url

    def generate(self) -> str:
        header(logger, "Generating Convex Admin Key")

        if not self._compose.is_running(self._backend_service):
            raise PreconditionError(
                message=f"{self._backend_service} container is not running.",
                remedy="devstack-setup --dev docker up",
            )

        logger.info(f"Generating admin key from {self._backend_service} container ...")
        result = self._compose.exec(self._backend_service, self._command)
        key = _WHITESPACE.sub("", result.stdout) if result.ok else ""
        if not key:
            logger.debug(
                "Key generation produced no output",
                extra={"returncode": result.returncode, "stderr": result.stderr.strip()},
            )
            raise AdminKeyError("Failed to generate admin key. Is the backend fully started?")

        try:
            format_assignment(self._env_key, key)
        except ValueError as e:
            raise AdminKeyError(f"Generated admin key cannot be stored: {e}") from e

        self._key_file.write(key)
        success(logger, f"Admin key saved to {self._key_file.path.name}")

        if self._env_file.exists():
            self._env_file.read().upsert(self._env_key, key)
            self._env_file.write()
            success(logger, f"Updated {self._env_file.path.name} with admin key")

        logger.info(f"Admin Key: {key}")
        if self._dashboard_url:
            logger.info(f"Use it to log into the dashboard at {self._dashboard_url}")
        return key
