"""Test configuration and fixtures."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from devstack_setup.orchestrator.config import DevstackSettings
from devstack_setup.orchestrator.runner import CommandResult

ENV_TEMPLATE_TEXT = (
    "# Convex self-hosted\n"
    "CONVEX_SELF_HOSTED_URL='http://localhost:3210'\n"
    "CONVEX_SELF_HOSTED_ADMIN_KEY=''\n"
    "NEXT_PUBLIC_CONVEX_URL='http://localhost:3210'\n"
)


@dataclass(frozen=True, slots=True)
class Call:
    argv: tuple[str, ...]
    cwd: Path | None
    env: dict[str, str] | None
    capture: bool


@dataclass(slots=True)
class _Rule:
    tokens: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    effect: Callable[[Call], None] | None
    times: int | None


def _contains(argv: Sequence[str], tokens: Sequence[str]) -> bool:
    n = len(tokens)
    return any(tuple(argv[i : i + n]) == tuple(tokens) for i in range(len(argv) - n + 1))


@dataclass
class FakeRunner:
    """Records commands and returns scripted results.

    Rules match when their tokens appear contiguously in argv; the first
    matching rule wins. Unmatched commands succeed with empty output.
    """

    missing: set[str] = field(default_factory=set)
    calls: list[Call] = field(default_factory=list)
    _rules: list[_Rule] = field(default_factory=list)

    def on(
        self,
        *tokens: str,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
        effect: Callable[[Call], None] | None = None,
        times: int | None = None,
    ) -> FakeRunner:
        self._rules.append(_Rule(tokens, returncode, stdout, stderr, effect, times))
        return self

    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        capture: bool = False,
    ) -> CommandResult:
        call = Call(tuple(argv), cwd, dict(env) if env is not None else None, capture)
        self.calls.append(call)
        for rule in self._rules:
            if rule.times == 0 or not _contains(call.argv, rule.tokens):
                continue
            if rule.times is not None:
                rule.times -= 1
            if rule.effect is not None:
                rule.effect(call)
            return CommandResult(call.argv, rule.returncode, rule.stdout, rule.stderr)
        return CommandResult(call.argv, 0)

    def which(self, name: str) -> str | None:
        return None if name in self.missing else f"/usr/bin/{name}"

    def matching(self, *tokens: str) -> list[Call]:
        return [c for c in self.calls if _contains(c.argv, tokens)]


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    """`configure_logging` replaces root handlers; put the originals back."""

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """A project root with compose file and client templates."""

    root = tmp_path / "project"
    docker = root / "docker"
    docker.mkdir(parents=True)
    (docker / "docker-compose.yml").write_text("services: {}\n", encoding="utf-8")
    (docker / "client.env.local").write_text(ENV_TEMPLATE_TEXT, encoding="utf-8")
    (docker / "client.Dockerfile").write_text("FROM node:20-alpine\n", encoding="utf-8")
    return root


@pytest.fixture
def settings(project_root: Path) -> DevstackSettings:
    return DevstackSettings(
        _env_file=None,
        project_root=project_root,
        health_poll_seconds=0.01,
        health_timeout_seconds=5.0,
    )


@pytest.fixture
def scaffolded(settings: DevstackSettings) -> DevstackSettings:
    """Settings for a project whose client/ already exists with an env file."""

    settings.client_dir.mkdir(parents=True)
    settings.package_json.write_text('{"name": "client"}\n', encoding="utf-8")
    settings.env_local_file.write_text(ENV_TEMPLATE_TEXT, encoding="utf-8")
    return settings
