"""Docker Compose integration and backend health polling."""

from .compose import ComposeClient
from .health import wait_for_healthy

__all__ = ["ComposeClient", "wait_for_healthy"]
