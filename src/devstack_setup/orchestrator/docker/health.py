"""Backend readiness polling."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

import requests

from devstack_setup.orchestrator.errors import HealthCheckCancelledError, HealthCheckTimeoutError

logger = logging.getLogger(__name__)


def _probe(session: requests.Session, url: str, request_timeout_seconds: float) -> bool:
    try:
        resp = session.get(url, timeout=request_timeout_seconds)
    except requests.RequestException as e:
        logger.debug("Health probe failed", extra={"url": url, "error": str(e)})
        return False
    # Same success rule as `curl -f`: any status below 400.
    if not resp.ok:
        logger.debug("Health probe not ready", extra={"url": url, "status": resp.status_code})
    return bool(resp.ok)


def wait_for_healthy(
    url: str,
    *,
    session: requests.Session | None = None,
    poll_interval_seconds: float = 1.0,
    timeout_seconds: float = 300.0,
    cancel: threading.Event | None = None,
    request_timeout_seconds: float = 5.0,
    clock: Callable[[], float] = time.monotonic,
) -> int:
    """Poll `url` until it answers successfully.

    Args:
        url: Health endpoint to GET.
        session: Optional requests session (injected in tests).
        poll_interval_seconds: Delay between failed attempts.
        timeout_seconds: Overall deadline; 0 means wait forever.
        cancel: Event that aborts the wait when set.
        request_timeout_seconds: Per-request timeout.
        clock: Monotonic clock used for the deadline.

    Returns:
        The number of attempts made, including the successful one.

    Raises:
        HealthCheckTimeoutError: If the deadline passes first.
        HealthCheckCancelledError: If `cancel` is set first.
    """

    if poll_interval_seconds <= 0:
        raise ValueError("poll_interval_seconds must be > 0")
    if timeout_seconds < 0:
        raise ValueError("timeout_seconds must be >= 0")

    cancel = cancel or threading.Event()
    owns_session = session is None
    session = session or requests.Session()

    started = clock()
    attempts = 0
    try:
        while True:
            if cancel.is_set():
                raise HealthCheckCancelledError(f"Health check for {url} was cancelled")

            attempts += 1
            if _probe(session, url, request_timeout_seconds):
                logger.debug("Health probe succeeded", extra={"url": url, "attempts": attempts})
                return attempts

            if timeout_seconds and (clock() - started) >= timeout_seconds:
                logger.warning(
                    "Timed out waiting for backend",
                    extra={"url": url, "timeout_seconds": timeout_seconds, "attempts": attempts},
                )
                raise HealthCheckTimeoutError(
                    f"{url} did not become ready within {timeout_seconds:g}s"
                )

            if cancel.wait(poll_interval_seconds):
                raise HealthCheckCancelledError(f"Health check for {url} was cancelled")
    finally:
        if owns_session:
            session.close()
