"""Unit tests for the subprocess-backed command runner."""

from __future__ import annotations

import sys
from pathlib import Path

from devstack_setup.orchestrator.runner import SubprocessRunner

SCRIPT = "import os, sys; print(os.getcwd()); print(os.environ['X_TEST']); sys.exit(3)"


def test_run_captures_output_and_exit_code(tmp_path: Path) -> None:
    result = SubprocessRunner().run(
        [sys.executable, "-c", SCRIPT],
        cwd=tmp_path,
        env={"X_TEST": "from-env"},
        capture=True,
    )

    assert result.returncode == 3
    assert result.ok is False
    assert result.stdout.splitlines() == [str(tmp_path), "from-env"]


def test_run_missing_executable_returns_127() -> None:
    result = SubprocessRunner().run(["definitely-not-a-real-tool-xyz"], capture=True)

    assert result.returncode == 127
    assert "not found" in result.stderr


def test_which_resolves_executables_on_path() -> None:
    runner = SubprocessRunner()

    assert runner.which("sh") is not None
    assert runner.which("definitely-not-a-real-tool-xyz") is None
