"""Errors raised by the orchestrator handlers.

Every failure that should end a command with exit code 1 derives from
:class:`SetupError`. A declined confirmation is not an error.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass


class SetupError(Exception):
    """Base class for fatal, user-facing orchestration failures."""


@dataclass(frozen=True, slots=True)
class MissingPrerequisitesError(SetupError):
    """Raised when one or more required tools are unavailable."""

    missing: tuple[str, ...]

    def __str__(self) -> str:
        return "Missing prerequisites: " + ", ".join(self.missing)


@dataclass(frozen=True, slots=True)
class CommandFailedError(SetupError):
    """Raised when an external command exits non-zero."""

    argv: tuple[str, ...]
    returncode: int
    message: str

    @classmethod
    def from_argv(cls, argv: Sequence[str], returncode: int, message: str) -> CommandFailedError:
        return cls(argv=tuple(argv), returncode=returncode, message=message)

    def __str__(self) -> str:
        return f"{self.message} (exit code {self.returncode}: {' '.join(self.argv)})"


@dataclass(frozen=True, slots=True)
class PreconditionError(SetupError):
    """Raised when a command is run before the state it depends on exists."""

    message: str
    remedy: str = ""

    def __str__(self) -> str:
        if self.remedy:
            return f"{self.message} Run: {self.remedy}"
        return self.message


class AdminKeyError(SetupError):
    """Raised when the backend returns an empty admin key."""


class HealthCheckTimeoutError(SetupError):
    """Raised when the health endpoint does not report ready before the deadline."""


class HealthCheckCancelledError(SetupError):
    """Raised when a health poll is cancelled."""
