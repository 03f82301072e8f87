"""Dev Docker lifecycle: up, down and cleanup.

`up` is a fixed sequence:
1. scaffold and prerequisite checks
2. build and start the core services
3. wait for the backend health endpoint
4. generate the admin key
5. start the deploy sidecar with the key in its process environment only

Running `up` against an already-running stack converges: Compose rebuilds and
recreates what changed, and a fresh key is generated and deployed.
"""

from __future__ import annotations

import logging
import threading

import requests

from devstack_setup.orchestrator.admin_key import AdminKeyService
from devstack_setup.orchestrator.config import DEPLOY_KEY_ENV_NAME, DevstackSettings
from devstack_setup.orchestrator.docker.compose import ComposeClient
from devstack_setup.orchestrator.docker.health import wait_for_healthy
from devstack_setup.orchestrator.errors import PreconditionError
from devstack_setup.orchestrator.logging import header, success
from devstack_setup.orchestrator.prerequisites import check_prerequisites
from devstack_setup.orchestrator.prompt import Confirm
from devstack_setup.orchestrator.runner import CommandRunner

logger = logging.getLogger(__name__)


class DevEnvironment:
    """Handlers for `--dev docker up|down|cleanup`."""

    def __init__(
        self,
        *,
        settings: DevstackSettings,
        runner: CommandRunner,
        compose: ComposeClient,
        admin_keys: AdminKeyService,
        confirm: Confirm,
        session: requests.Session | None = None,
        cancel: threading.Event | None = None,
    ) -> None:
        self._settings = settings
        self._runner = runner
        self._compose = compose
        self._admin_keys = admin_keys
        self._confirm = confirm
        self._session = session
        self._cancel = cancel

    def up(self) -> str:
        """Bring the stack up and deploy functions. Returns the generated admin key."""

        header(logger, "Starting Dev Docker Environment")
        if not self._settings.package_json.exists():
            name = self._settings.client_dir_name
            raise PreconditionError(
                message=f"{name}/package.json not found.",
                remedy="devstack-setup --init client",
            )
        check_prerequisites(self._runner, self._settings.required_tools)

        services = list(self._settings.core_services)
        already_running = [s for s in self._compose.running_services() if s in services]
        if already_running:
            logger.info(
                f"Already running: {', '.join(already_running)} - converging",
                extra={"services": already_running},
            )

        logger.info("Building and starting core containers ...")
        self._compose.up(services)
        success(logger, "Core containers started")
        self._print_endpoints()

        logger.info("Waiting for backend to be ready ...")
        attempts = wait_for_healthy(
            self._settings.health_url,
            session=self._session,
            poll_interval_seconds=self._settings.health_poll_seconds,
            timeout_seconds=self._settings.health_timeout_seconds,
            cancel=self._cancel,
        )
        success(logger, "Backend is up", attempts=attempts)

        key = self._admin_keys.generate()

        logger.info("Deploying Convex functions ...")
        self._compose.up(
            [self._settings.deploy_service],
            env={DEPLOY_KEY_ENV_NAME: key},
            error_message=f"Failed to start {self._settings.deploy_service} container.",
        )
        success(logger, "Convex functions deployed")
        return key

    def _print_endpoints(self) -> None:
        s = self._settings
        logger.info(f"Backend    - http://localhost:{s.backend_port}")
        logger.info(f"Actions    - http://localhost:{s.site_proxy_port}")
        logger.info(f"Dashboard  - {s.dashboard_url}")
        logger.info(f"Client     - {s.client_url}")

    def down(self) -> None:
        header(logger, "Stopping Dev Docker Environment")
        self._compose.stop()
        success(logger, "All containers stopped (volumes preserved)")

    def cleanup(self) -> bool:
        """Remove containers and volumes after confirmation. Returns False if cancelled."""

        header(logger, "Cleaning Up Dev Docker Environment")
        logger.warning("This will remove all containers AND volumes (including Convex data).")
        if not self._confirm("Are you sure?"):
            logger.info("Cancelled.")
            return False

        self._compose.down(volumes=True)
        success(logger, "All containers and volumes removed")
        return True
