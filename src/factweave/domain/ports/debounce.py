"""Port for short-lived trigger markers."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class DebounceStore(Protocol):
    """Key-value store with per-key expiry.

    ``set_if_absent`` atomically creates ``key`` with a time-to-live and reports
    whether it was created. An existing, unexpired key is left untouched.
    """

    def set_if_absent(self, key: str, ttl_seconds: float) -> bool: ...

    def clear(self, key: str) -> None: ...
