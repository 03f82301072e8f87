"""Command runner used for every external tool invocation.

Handlers never call `subprocess` directly; they receive a :class:`CommandRunner`
so tests can substitute scripted results.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of one external command."""

    argv: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner(Protocol):
    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        capture: bool = False,
    ) -> CommandResult:
        """Run `argv` to completion.

        With `capture=False` the child inherits the terminal so its output is
        shown verbatim; with `capture=True` stdout/stderr are returned instead.
        `env` entries are added on top of the current environment.
        """
        ...

    def which(self, name: str) -> str | None:
        """Resolve an executable on PATH."""
        ...


class SubprocessRunner:
    """:class:`CommandRunner` backed by :mod:`subprocess`."""

    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        capture: bool = False,
    ) -> CommandResult:
        argv = tuple(argv)
        child_env = None
        if env:
            child_env = {**os.environ, **env}

        logger.debug("Running command", extra={"argv": list(argv), "cwd": str(cwd or "")})
        try:
            completed = subprocess.run(
                argv,
                cwd=cwd,
                env=child_env,
                capture_output=capture,
                text=True,
                check=False,
            )
        except FileNotFoundError:
            # Mirrors the shell's "command not found" status.
            return CommandResult(argv=argv, returncode=127, stderr=f"{argv[0]}: not found")

        return CommandResult(
            argv=argv,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )

    def which(self, name: str) -> str | None:
        return shutil.which(name)
