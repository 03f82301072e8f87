"""Interactive confirmation for destructive commands."""

from __future__ import annotations

from collections.abc import Callable

Confirm = Callable[[str], bool]


def prompt_yes_no(question: str, *, input_fn: Callable[[str], str] = input) -> bool:
    """Ask a `[y/N]` question. Only `y` (any case) counts as yes; EOF counts as no."""

    try:
        answer = input_fn(f"{question} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() == "y"


def always_yes(_question: str) -> bool:
    return True
