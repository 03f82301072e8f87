"""Unit tests for backend health polling (mocked HTTP)."""

from __future__ import annotations

import threading
from unittest.mock import Mock

import pytest
import requests

from devstack_setup.orchestrator.docker.health import wait_for_healthy
from devstack_setup.orchestrator.errors import HealthCheckCancelledError, HealthCheckTimeoutError

URL = "http://localhost:3210/version"


def _response(status: int) -> Mock:
    resp = Mock(spec=requests.Response)
    resp.status_code = status
    resp.ok = status < 400
    return resp


def _never_cancelled() -> Mock:
    cancel = Mock(spec=threading.Event)
    cancel.is_set.return_value = False
    cancel.wait.return_value = False
    return cancel


@pytest.mark.parametrize("failures", [0, 1, 4])
def test_poll_makes_failures_plus_one_attempts(failures: int) -> None:
    session = Mock(spec=requests.Session)
    outcomes: list[object] = []
    for i in range(failures):
        outcomes.append(requests.ConnectionError("refused") if i % 2 == 0 else _response(502))
    outcomes.append(_response(200))
    session.get.side_effect = outcomes
    cancel = _never_cancelled()

    attempts = wait_for_healthy(
        URL, session=session, poll_interval_seconds=1.0, timeout_seconds=0, cancel=cancel
    )

    assert attempts == failures + 1
    assert session.get.call_count == failures + 1
    assert cancel.wait.call_count == failures
    session.get.assert_called_with(URL, timeout=5.0)
    session.close.assert_not_called()


def test_poll_times_out_at_deadline() -> None:
    session = Mock(spec=requests.Session)
    session.get.return_value = _response(503)
    ticks = iter([0.0, 1.0, 2.0, 3.0])

    with pytest.raises(HealthCheckTimeoutError):
        wait_for_healthy(
            URL,
            session=session,
            poll_interval_seconds=1.0,
            timeout_seconds=2.5,
            cancel=_never_cancelled(),
            clock=lambda: next(ticks),
        )

    assert session.get.call_count == 3


def test_poll_stops_when_cancelled_during_wait() -> None:
    session = Mock(spec=requests.Session)
    session.get.return_value = _response(500)
    cancel = Mock(spec=threading.Event)
    cancel.is_set.return_value = False
    cancel.wait.return_value = True

    with pytest.raises(HealthCheckCancelledError):
        wait_for_healthy(URL, session=session, timeout_seconds=0, cancel=cancel)

    assert session.get.call_count == 1


def test_poll_does_not_probe_when_already_cancelled() -> None:
    session = Mock(spec=requests.Session)
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(HealthCheckCancelledError):
        wait_for_healthy(URL, session=session, cancel=cancel)

    session.get.assert_not_called()


@pytest.mark.parametrize(
    ("interval", "timeout"),
    [(0.0, 10.0), (-1.0, 10.0), (1.0, -1.0)],
)
def test_poll_rejects_invalid_arguments(interval: float, timeout: float) -> None:
    with pytest.raises(ValueError):
        wait_for_healthy(URL, poll_interval_seconds=interval, timeout_seconds=timeout)
