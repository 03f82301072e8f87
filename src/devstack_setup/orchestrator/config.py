"""Configuration for the environment orchestrator.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Port overrides and the optional Postgres connection string are not interpreted
here beyond validation; they are passed through to Docker Compose.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ADMIN_KEY_ENV_NAME = "CONVEX_SELF_HOSTED_ADMIN_KEY"
DEPLOY_KEY_ENV_NAME = "CONVEX_ADMIN_KEY"


class DevstackSettings(BaseSettings):
    """Settings for the dev environment orchestrator.

    Environment variables:
    - DEVSTACK_PROJECT_ROOT            (optional, defaults to the working directory)
    - DEVSTACK_COMPOSE_FILE            (optional)
    - DEVSTACK_ADMIN_KEY_FILE          (optional)
    - DEVSTACK_HEALTH_URL              (optional)
    - DEVSTACK_HEALTH_POLL_SECONDS     (optional)
    - DEVSTACK_HEALTH_TIMEOUT_SECONDS  (optional, 0 waits forever)
    - DEVSTACK_LOG_FORMAT              (optional, console | json)
    - LOG_LEVEL                        (optional)
    - PORT_BACKEND, PORT_SITE_PROXY, PORT_DASHBOARD, PORT_CLIENT (optional)
    - POSTGRES_URL                     (optional)

    Notes:
        Relative paths are resolved against `project_root`.
        Tests can skip the `.env` file via `DevstackSettings(_env_file=None)`.
    """

    project_root: Path = Field(
        default_factory=Path.cwd,
        validation_alias="DEVSTACK_PROJECT_ROOT",
        description="Directory holding client/, docker/ and the admin key file",
    )
    client_dir_name: str = Field(
        default="client",
        validation_alias="DEVSTACK_CLIENT_DIR",
        description="Name of the scaffolded front-end directory",
    )
    compose_file_path: Path = Field(
        default=Path("docker/docker-compose.yml"),
        validation_alias="DEVSTACK_COMPOSE_FILE",
    )
    templates_path: Path = Field(
        default=Path("docker"),
        validation_alias="DEVSTACK_TEMPLATES_DIR",
        description="Directory containing client.env.local and client.Dockerfile",
    )
    admin_key_path: Path = Field(
        default=Path(".convex_admin_key"),
        validation_alias="DEVSTACK_ADMIN_KEY_FILE",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )
    log_format: Literal["console", "json"] = Field(
        default="console",
        validation_alias="DEVSTACK_LOG_FORMAT",
    )

    required_tools: list[str] = Field(
        default_factory=lambda: ["node", "npm", "docker"],
        validation_alias="DEVSTACK_REQUIRED_TOOLS",
    )
    core_services: list[str] = Field(
        default_factory=lambda: ["backend", "dashboard", "client"],
        validation_alias="DEVSTACK_CORE_SERVICES",
    )
    backend_service: str = Field(default="backend", validation_alias="DEVSTACK_BACKEND_SERVICE")
    deploy_service: str = Field(
        default="convex-push",
        validation_alias="DEVSTACK_DEPLOY_SERVICE",
        description="Compose service that pushes Convex functions using the admin key",
    )
    admin_key_command: list[str] = Field(
        default_factory=lambda: ["./generate_admin_key.sh"],
        validation_alias="DEVSTACK_ADMIN_KEY_COMMAND",
    )

    backend_port: int = Field(default=3210, validation_alias="PORT_BACKEND", gt=0, lt=65536)
    site_proxy_port: int = Field(default=3211, validation_alias="PORT_SITE_PROXY", gt=0, lt=65536)
    dashboard_port: int = Field(default=6791, validation_alias="PORT_DASHBOARD", gt=0, lt=65536)
    client_port: int = Field(default=3000, validation_alias="PORT_CLIENT", gt=0, lt=65536)
    postgres_url: str | None = Field(
        default=None,
        validation_alias="POSTGRES_URL",
        description="Alternative database for the backend instead of its bundled SQLite",
    )

    health_url_override: str | None = Field(default=None, validation_alias="DEVSTACK_HEALTH_URL")
    health_poll_seconds: float = Field(
        default=1.0,
        validation_alias="DEVSTACK_HEALTH_POLL_SECONDS",
        gt=0,
    )
    health_timeout_seconds: float = Field(
        default=300.0,
        validation_alias="DEVSTACK_HEALTH_TIMEOUT_SECONDS",
        ge=0,
        description="Deadline for the backend health poll (0 means no timeout)",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("client_dir_name")
    @classmethod
    def _single_path_component(cls, value: str) -> str:
        value = value.strip()
        if not value or "/" in value or value in {".", ".."}:
            raise ValueError("DEVSTACK_CLIENT_DIR must be a plain directory name")
        return value

    def _resolve(self, path: Path) -> Path:
        return path if path.is_absolute() else self.project_root / path

    @property
    def client_dir(self) -> Path:
        return self.project_root / self.client_dir_name

    @property
    def package_json(self) -> Path:
        """Project descriptor whose presence marks the client as scaffolded."""

        return self.client_dir / "package.json"

    @property
    def env_local_file(self) -> Path:
        return self.client_dir / ".env.local"

    @property
    def compose_file(self) -> Path:
        return self._resolve(self.compose_file_path)

    @property
    def templates_dir(self) -> Path:
        return self._resolve(self.templates_path)

    @property
    def admin_key_file(self) -> Path:
        return self._resolve(self.admin_key_path)

    @property
    def health_url(self) -> str:
        if self.health_url_override:
            return self.health_url_override
        return f"http://localhost:{self.backend_port}/version"

    @property
    def dashboard_url(self) -> str:
        return f"http://localhost:{self.dashboard_port}"

    @property
    def client_url(self) -> str:
        return f"http://localhost:{self.client_port}"

    def compose_environment(self) -> dict[str, str]:
        """Variables passed through to every Docker Compose invocation."""

        env = {
            "PORT_BACKEND": str(self.backend_port),
            "PORT_SITE_PROXY": str(self.site_proxy_port),
            "PORT_DASHBOARD": str(self.dashboard_port),
            "PORT_CLIENT": str(self.client_port),
        }
        if self.postgres_url:
            env["POSTGRES_URL"] = self.postgres_url
        return env
