"""Startup readiness polling.

The process is ready once its control script answers ``GET /ping`` with 200.
Until then connection failures are expected and simply retried on the next
tick; nothing else in pyphantom retries.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

import httpx

from ..errors import ProtocolError, ReadinessTimeoutError
from .rpc_transports import RPCTransport

logger = logging.getLogger(__name__)

Probe = Callable[[float], bool]


def make_probe(transport: RPCTransport) -> Probe:
    """Wrap ``transport.ping`` as a probe returning ``True`` once it succeeds."""

    def probe(timeout: float) -> bool:
        try:
            transport.ping(timeout=timeout)
        except (httpx.HTTPError, ProtocolError) as exc:
            logger.debug("[PyPhantom] Probe failed: %s", exc)
            return False
        return True

    return probe


def wait_until_ready(
    probe: Probe,
    timeout: float,
    interval: float,
    *,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Block until *probe* succeeds or *timeout* seconds have elapsed.

    Probes run on a fixed schedule of one per *interval*, starting one
    interval after the call. Ticks that fall due while a probe is still
    running are dropped. Each probe receives the time left before the
    deadline as its own timeout, and a tick landing exactly on the deadline
    is not probed.

    Returns:
        The number of probes issued, including the successful one.

    Raises:
        ReadinessTimeoutError: The deadline passed without a successful probe.
    """
    start = clock()
    deadline = start + timeout
    next_tick = start + interval
    attempts = 0

    while True:
        if next_tick >= deadline:
            remaining = deadline - clock()
            if remaining > 0:
                sleep(remaining)
            raise ReadinessTimeoutError(timeout, attempts)

        now = clock()
        if next_tick > now:
            sleep(next_tick - now)
            now = clock()
        if now >= deadline:
            raise ReadinessTimeoutError(timeout, attempts)

        attempts += 1
        if probe(deadline - now):
            logger.debug("[PyPhantom] Ready after %d probe(s)", attempts)
            return attempts

        now = clock()
        next_tick += interval
        while next_tick <= now:
            next_tick += interval
