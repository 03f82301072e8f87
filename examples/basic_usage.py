#!/usr/bin/env python3
"""Programmatic backend readiness + admin key rotation example.

This demonstrates using the orchestrator components directly:

* load settings from `.env`
* wait (with a deadline) for the backend health endpoint
* rotate the admin key and upsert it into `client/.env.local`

The deadline is passed as an argument (not read from `.env`).
"""

from __future__ import annotations

import argparse
from typing import Sequence

from devstack_setup.orchestrator.admin_key import AdminKeyService
from devstack_setup.orchestrator.config import ADMIN_KEY_ENV_NAME, DevstackSettings
from devstack_setup.orchestrator.docker.compose import ComposeClient
from devstack_setup.orchestrator.docker.health import wait_for_healthy
from devstack_setup.orchestrator.env_store import AdminKeyFile, EnvFile
from devstack_setup.orchestrator.errors import SetupError
from devstack_setup.orchestrator.logging import configure_logging
from devstack_setup.orchestrator.runner import SubprocessRunner


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Rotate the backend admin key (programmatic example).")
    parser.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="Seconds to wait for the backend to become healthy (0 means no timeout)",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = DevstackSettings()
    configure_logging(settings.log_level, settings.log_format)

    compose = ComposeClient(
        runner=SubprocessRunner(),
        compose_file=settings.compose_file,
        environment=settings.compose_environment(),
    )
    service = AdminKeyService(
        compose=compose,
        key_file=AdminKeyFile(settings.admin_key_file),
        env_file=EnvFile(settings.env_local_file),
        env_key=ADMIN_KEY_ENV_NAME,
        backend_service=settings.backend_service,
        dashboard_url=settings.dashboard_url,
    )

    try:
        attempts = wait_for_healthy(settings.health_url, timeout_seconds=args.timeout)
        key = service.generate()
    except SetupError as exc:
        print(str(exc))
        return 1

    print(f"Backend ready after {attempts} attempt(s)")
    print(f"Key length: {len(key)}")
    print(f"Persisted to: {settings.admin_key_file}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
