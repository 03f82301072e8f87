"""Unit tests for the Docker Compose client (scripted runner)."""

from __future__ import annotations

from pathlib import Path

import pytest

from devstack_setup.orchestrator.docker.compose import ComposeClient
from devstack_setup.orchestrator.errors import CommandFailedError

COMPOSE_FILE = Path("/proj/docker/docker-compose.yml")
PREFIX = ("docker", "compose", "-f", str(COMPOSE_FILE))


def _client(runner, environment: dict[str, str] | None = None) -> ComposeClient:
    return ComposeClient(runner=runner, compose_file=COMPOSE_FILE, environment=environment)


def test_up_builds_and_starts_services_with_streamed_output(runner) -> None:
    _client(runner, {"PORT_BACKEND": "3210"}).up(["backend", "dashboard"])

    (call,) = runner.calls
    assert call.argv == (*PREFIX, "up", "-d", "--build", "backend", "dashboard")
    assert call.capture is False
    assert call.env == {"PORT_BACKEND": "3210"}


def test_up_merges_per_call_environment(runner) -> None:
    _client(runner, {"PORT_BACKEND": "3210"}).up(["convex-push"], env={"CONVEX_ADMIN_KEY": "k"})

    assert runner.calls[0].env == {"PORT_BACKEND": "3210", "CONVEX_ADMIN_KEY": "k"}


def test_up_without_build_and_without_environment(runner) -> None:
    _client(runner).up(["client"], build=False)

    (call,) = runner.calls
    assert call.argv == (*PREFIX, "up", "-d", "client")
    assert call.env is None


def test_up_requires_services(runner) -> None:
    with pytest.raises(ValueError):
        _client(runner).up([])


def test_up_failure_raises_with_message(runner) -> None:
    runner.on("up", returncode=17)

    with pytest.raises(CommandFailedError) as exc_info:
        _client(runner).up(["backend"], error_message="boom")

    assert exc_info.value.returncode == 17
    assert exc_info.value.message == "boom"
    assert exc_info.value.argv[-1] == "backend"


def test_stop_keeps_volumes(runner) -> None:
    _client(runner).stop()

    assert runner.calls[0].argv == (*PREFIX, "stop")


def test_down_with_volumes(runner) -> None:
    _client(runner).down(volumes=True)

    assert runner.calls[0].argv == (*PREFIX, "down", "-v")


@pytest.mark.parametrize("method", ["stop", "down"])
def test_stop_and_down_failures_raise(runner, method: str) -> None:
    runner.on(method, returncode=1)

    with pytest.raises(CommandFailedError):
        getattr(_client(runner), method)()


def test_running_services_parses_service_names(runner) -> None:
    runner.on("ps", stdout="backend\n\n dashboard \n")

    client = _client(runner)

    assert client.running_services() == ["backend", "dashboard"]
    assert runner.calls[0].argv == (*PREFIX, "ps", "--status", "running", "--services")
    assert runner.calls[0].capture is True


def test_is_running_requires_exact_service_name(runner) -> None:
    runner.on("ps", stdout="backend-proxy\ndashboard\n")

    client = _client(runner)

    assert client.is_running("backend") is False
    assert client.is_running("dashboard") is True


def test_running_services_empty_when_compose_fails(runner) -> None:
    runner.on("ps", returncode=1, stderr="no configuration file provided")

    assert _client(runner).running_services() == []


def test_exec_captures_output_without_tty(runner) -> None:
    runner.on("exec", stdout="key\n")

    result = _client(runner).exec("backend", ["./generate_admin_key.sh"])

    assert result.stdout == "key\n"
    assert runner.calls[0].argv == (*PREFIX, "exec", "-T", "backend", "./generate_admin_key.sh")
    assert runner.calls[0].capture is True
