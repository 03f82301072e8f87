"""Console-script entrypoint.

The command implementation lives in `devstack_setup.orchestrator.main`.
"""

from __future__ import annotations

from devstack_setup.orchestrator.main import main

__all__ = ["main"]


if __name__ == "__main__":
    raise SystemExit(main())
