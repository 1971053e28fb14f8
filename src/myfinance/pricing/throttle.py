#!/usr/bin/env python3
"""
Request Throttle

Blocking courtesy delay between requests to the price source.
"""

import logging
import threading
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


class RequestThrottle:
    """
    Guarantees at least `min_interval` seconds between consecutive calls to wait().

    The first call never waits. The clock and sleep functions are injectable
    so tests can drive the throttle without real delays.
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if min_interval < 0:
            raise ValueError(f"min_interval must be non-negative: {min_interval}")
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_request: float | None = None
        self._lock = threading.Lock()

    def wait(self) -> float:
        """
        Block until the next request may be sent.

        Returns:
            Seconds slept (0.0 when no wait was needed)
        """
        with self._lock:
            waited = 0.0
            if self._last_request is not None:
                remaining = self.min_interval - (self._clock() - self._last_request)
                if remaining > 0:
                    logger.debug(f"Throttling price request for {remaining:.2f}s")
                    self._sleep(remaining)
                    waited = remaining
            self._last_request = self._clock()
            return waited
