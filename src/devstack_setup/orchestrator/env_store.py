"""Persistence for the admin key and the client's `.env.local`.

`EnvFile` upserts a single `KEY='value'` assignment while preserving every other
line (comments, blanks, unrelated keys) exactly as written. The text backend is
pluggable so the upsert can be tested without touching the filesystem.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class TextBackend(Protocol):
    def exists(self, path: Path) -> bool: ...

    def read_text(self, path: Path) -> str: ...

    def write_text(self, path: Path, text: str) -> None: ...


class LocalTextBackend:
    """Filesystem-backed :class:`TextBackend`."""

    def exists(self, path: Path) -> bool:
        return path.is_file()

    def read_text(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")

    def write_text(self, path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")


class MemoryTextBackend:
    """In-memory :class:`TextBackend`, keyed by path."""

    def __init__(self, files: dict[Path, str] | None = None) -> None:
        self.files: dict[Path, str] = dict(files or {})

    def exists(self, path: Path) -> bool:
        return path in self.files

    def read_text(self, path: Path) -> str:
        try:
            return self.files[path]
        except KeyError:
            raise FileNotFoundError(str(path)) from None

    def write_text(self, path: Path, text: str) -> None:
        self.files[path] = text


def _assignment_pattern(key: str) -> re.Pattern[str]:
    return re.compile(rf"^\s*(?:export\s+)?{re.escape(key)}\s*=")


def format_assignment(key: str, value: str) -> str:
    if not _KEY_RE.match(key):
        raise ValueError(f"Invalid environment variable name: {key!r}")
    if "'" in value or "\n" in value:
        raise ValueError("Value must not contain single quotes or newlines")
    return f"{key}='{value}'"


class EnvFile:
    """A key/value environment file with one assignment per line."""

    def __init__(self, path: Path, backend: TextBackend | None = None) -> None:
        self._path = path
        self._backend = backend or LocalTextBackend()
        self._lines: list[str] = []

    @property
    def path(self) -> Path:
        return self._path

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    def exists(self) -> bool:
        return self._backend.exists(self._path)

    def read(self) -> EnvFile:
        """Load the file. A missing file reads as empty."""

        if self._backend.exists(self._path):
            self._lines = self._backend.read_text(self._path).splitlines(keepends=True)
        else:
            self._lines = []
        return self

    def upsert(self, key: str, value: str) -> bool:
        """Set `key` to `value`.

        The first existing assignment is replaced in place and any further
        assignments of the same key are dropped. Otherwise a new line is
        appended.

        Returns:
            True if an existing assignment was replaced, False if one was appended.
        """

        assignment = format_assignment(key, value)
        pattern = _assignment_pattern(key)

        updated: list[str] = []
        replaced = False
        for line in self._lines:
            if not pattern.match(line):
                updated.append(line)
                continue
            if replaced:
                logger.debug("Dropping duplicate assignment", extra={"key": key})
                continue
            ending = line[len(line.rstrip("\r\n")) :] or "\n"
            updated.append(assignment + ending)
            replaced = True

        if not replaced:
            if updated and not updated[-1].endswith(("\n", "\r")):
                updated[-1] += "\n"
            updated.append(assignment + "\n")

        self._lines = updated
        return replaced

    def write(self) -> None:
        self._backend.write_text(self._path, "".join(self._lines))


class AdminKeyFile:
    """Owner-only file holding the most recently generated admin key."""

    MODE = 0o600

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def write(self, key: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self._path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, self.MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(key + "\n")
        # O_CREAT's mode does not apply to a file that already existed.
        os.chmod(self._path, self.MODE)
