"""Shared logging helpers for factweave."""

from __future__ import annotations

import logging
import os

LOG_LEVEL_ENV = "FACTWEAVE_LOG_LEVEL"


def configure_logging(*, level: int | str | None = None, force: bool = False) -> None:
    """Initialise the root logger once with a terse CLI format.

    ``level`` falls back to ``FACTWEAVE_LOG_LEVEL`` and then INFO. Pass ``force=True``
    to reconfigure during tests or specialised entry points.
    """

    logging.basicConfig(
        level=level if level is not None else resolve_log_level(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )


def resolve_log_level(default: int = logging.INFO) -> int:
    raw = os.getenv(LOG_LEVEL_ENV)
    if not raw or not raw.strip():
        return default
    value = raw.strip().upper()
    if value.isdigit():
        return int(value)
    resolved = logging.getLevelNamesMapping().get(value)
    return resolved if resolved is not None else default
