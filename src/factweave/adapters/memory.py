"""In-process debounce marker store."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

log = logging.getLogger(__name__)


class InMemoryDebounceStore:
    """TTL key set local to one process.

    Suitable for a single worker; a multi-instance deployment needs a shared
    implementation of the same port.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._expiry: dict[str, float] = {}
        self._lock = threading.Lock()

    def set_if_absent(self, key: str, ttl_seconds: float) -> bool:
        with self._lock:
            now = self._clock()
            self._purge(now)
            if key in self._expiry:
                log.debug("Debounce marker %s still active", key)
                return False
            self._expiry[key] = now + ttl_seconds
            return True

    def clear(self, key: str) -> None:
        with self._lock:
            self._expiry.pop(key, None)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            self._purge(self._clock())
            return key in self._expiry

    def _purge(self, now: float) -> None:
        expired = [key for key, deadline in self._expiry.items() if deadline <= now]
        for key in expired:
            del self._expiry[key]
