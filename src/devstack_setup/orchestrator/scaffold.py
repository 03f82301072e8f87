"""Client scaffolding: create, reset and remove the Next.js project.

Scaffolding is idempotent where it can detect completed steps:
- the generator is skipped when `package.json` already exists
- the env template is only copied when `.env.local` does not exist yet
- Convex is only initialised when `convex/` does not exist yet

There is no rollback: a failure part-way leaves a partially scaffolded
directory, and rerunning resumes from the first undetectable step.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from devstack_setup.orchestrator.config import DevstackSettings
from devstack_setup.orchestrator.errors import CommandFailedError, PreconditionError
from devstack_setup.orchestrator.logging import header, success
from devstack_setup.orchestrator.prerequisites import check_prerequisites
from devstack_setup.orchestrator.prompt import Confirm
from devstack_setup.orchestrator.runner import CommandRunner

logger = logging.getLogger(__name__)

GENERATOR_PACKAGE = "create-next-app@latest"
GENERATOR_FLAGS: tuple[str, ...] = (
    "--ts",
    "--eslint",
    "--tailwind",
    "--src-dir",
    "--app",
    "--import-alias",
    "@/*",
    "--use-npm",
    "--no-git",
    "--yes",
)
SDK_PACKAGE = "convex@latest"
SDK_INIT_COMMAND: tuple[str, ...] = ("npx", "-y", "convex", "dev", "--once", "--configure=new")

ENV_TEMPLATE = "client.env.local"
DOCKERFILE_TEMPLATE = "client.Dockerfile"
DOCKERFILE_NAME = "Dockerfile.dev"


class ScaffoldService:
    """Handlers for `--init`, `--reset` and `--remove`."""

    def __init__(
        self,
        *,
        settings: DevstackSettings,
        runner: CommandRunner,
        confirm: Confirm,
    ) -> None:
        self._settings = settings
        self._runner = runner
        self._confirm = confirm

    @property
    def client_dir(self) -> Path:
        return self._settings.client_dir

    def _run(self, argv: list[str], *, cwd: Path | None, message: str) -> None:
        result = self._runner.run(argv, cwd=cwd)
        if not result.ok:
            raise CommandFailedError.from_argv(result.argv, result.returncode, message)

    def _copy_template(self, name: str, dest: Path) -> None:
        src = self._settings.templates_dir / name
        if not src.is_file():
            raise PreconditionError(message=f"Template file not found: {src}")
        shutil.copyfile(src, dest)

    def _check_prerequisites(self) -> None:
        check_prerequisites(self._runner, self._settings.required_tools)

    def scaffold(self) -> None:
        header(logger, "Project Template Setup")
        self._check_prerequisites()
        self._build_client()

    def _build_client(self) -> None:
        client = self.client_dir
        name = self._settings.client_dir_name

        if self._settings.package_json.exists():
            logger.warning(f"{name}/ already has a package.json - skipping Next.js scaffolding")
        else:
            logger.info(f"Creating Next.js app in {name}/ ...")
            self._run(
                ["npx", "-y", GENERATOR_PACKAGE, str(client), *GENERATOR_FLAGS],
                cwd=None,
                message="Next.js scaffolding failed",
            )
            success(logger, "Next.js app created")

        logger.info(f"Copying template files into {name}/ ...")
        client.mkdir(parents=True, exist_ok=True)
        env_local = self._settings.env_local_file
        if env_local.exists():
            logger.info(f"{name}/{env_local.name} already exists - keeping it")
        else:
            self._copy_template(ENV_TEMPLATE, env_local)
        self._copy_template(DOCKERFILE_TEMPLATE, client / DOCKERFILE_NAME)
        success(logger, "Template files copied")

        logger.info(f"Installing {SDK_PACKAGE} in {name}/ ...")
        self._run(["npm", "install", SDK_PACKAGE], cwd=client, message="npm install failed")
        success(logger, "Convex SDK installed")

        if not (client / "convex").is_dir():
            logger.info("Initializing Convex project ...")
            self._run(
                list(SDK_INIT_COMMAND), cwd=client, message="Convex initialization failed"
            )
            success(logger, "Convex project initialized")

        self._print_next_steps()

    def _print_next_steps(self) -> None:
        header(logger, "Setup Complete")
        steps = [
            ("Start dev", "devstack-setup --dev docker up"),
            ("Generate key", "devstack-setup --generate-admin-key"),
            ("Dashboard", self._settings.dashboard_url),
            ("Client", self._settings.client_url),
            ("Stop dev", "devstack-setup --dev docker down"),
        ]
        for i, (label, value) in enumerate(steps, start=1):
            logger.info(f"  {i}. {label + ':':<17} {value}")

    def _confirm_delete(
        self, title: str, verb: str, warning: str, *, needs_tools: bool = False
    ) -> bool:
        """Shared guard for destructive handlers. Returns True when deletion may proceed.

        With `needs_tools`, missing prerequisites are reported before the user
        is asked anything.
        """

        header(logger, title)
        name = self._settings.client_dir_name
        if not self.client_dir.is_dir():
            logger.warning(f"{name}/ does not exist. Nothing to {verb}.")
            return False

        if needs_tools:
            self._check_prerequisites()

        logger.warning(warning)
        if not self._confirm("Are you sure?"):
            logger.info("Cancelled.")
            return False
        return True

    def _delete_client(self) -> None:
        name = self._settings.client_dir_name
        logger.info(f"Removing {name}/ ...")
        shutil.rmtree(self.client_dir)
        success(logger, f"{name}/ removed")

    def reset(self) -> bool:
        """Delete the client and scaffold it again. Returns False if nothing was done."""

        name = self._settings.client_dir_name
        if not self._confirm_delete(
            "Reset Client",
            "reset",
            f"This will permanently delete everything in {name}/ and re-scaffold from scratch.",
            needs_tools=True,
        ):
            return False
        self._delete_client()
        header(logger, "Project Template Setup")
        self._build_client()
        return True

    def remove(self) -> bool:
        """Delete the client. Returns False if nothing was done."""

        name = self._settings.client_dir_name
        if not self._confirm_delete(
            "Remove Client",
            "remove",
            f"This will permanently delete everything in {name}/.",
        ):
            return False
        self._delete_client()
        return True
