from __future__ import annotations

import logging

import pytest

from factweave.common.logging import configure_logging, resolve_log_level


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("debug", logging.DEBUG), ("WARNING", logging.WARNING), ("15", 15), ("nonsense", logging.INFO)],
)
def test_resolve_log_level(monkeypatch: pytest.MonkeyPatch, raw: str, expected: int) -> None:
    monkeypatch.setenv("FACTWEAVE_LOG_LEVEL", raw)

    assert resolve_log_level() == expected


def test_unset_level_uses_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("FACTWEAVE_LOG_LEVEL", raising=False)

    assert resolve_log_level(default=logging.ERROR) == logging.ERROR


def test_configure_logging_passes_resolved_level(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict[str, object]] = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    monkeypatch.setenv("FACTWEAVE_LOG_LEVEL", "warning")

    configure_logging()
    configure_logging(level="DEBUG", force=True)

    assert calls[0]["level"] == logging.WARNING
    assert calls[0]["force"] is False
    assert calls[1]["level"] == "DEBUG"
    assert calls[1]["force"] is True
