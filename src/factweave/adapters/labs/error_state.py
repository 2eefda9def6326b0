"""Detection of failed lab runs whose payload must not be proposed."""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Final, cast

from factweave.domain.model import ErrorState, RunStatus

if TYPE_CHECKING:
    from .base import RawMapping

ERROR_KEYWORDS: Final[tuple[str, ...]] = (
    "diagnostic failed",
    "failed to fetch",
    "http error",
    "access denied",
    "permission denied",
    "forbidden",
    "rate limit",
    "rate-limit",
    "too many requests",
    "authentication failed",
    "authorization failed",
    "connection refused",
    "connection timed out",
    "network error",
    "request failed",
    "could not complete",
    "unable to process",
    "retry later",
    "please try again",
)
HTTP_ERROR_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"\b([45]\d{2})\b.*\b(error|forbidden|unauthorized|not found|failed|denied|timeout)",
    re.IGNORECASE,
)
_HTTP_STATUS_PATTERN: Final[re.Pattern[str]] = re.compile(r"\b([45]\d{2})\b")
_FAILURE_STATUSES: Final[frozenset[str]] = frozenset(
    status.value for status in RunStatus if status.is_failure
)
_MESSAGE_FIELDS: Final[tuple[str, ...]] = (
    "error",
    "errorMessage",
    "err",
    "message",
    "status",
    "statusMessage",
    "reason",
)
_SUMMARY_FIELDS: Final[tuple[str, ...]] = ("summary", "executiveSummary", "result", "output")
_MAX_SUMMARY_LENGTH: Final[int] = 1000
_MAX_MESSAGE_LENGTH: Final[int] = 500


def detect_error_state(raw: RawMapping | None) -> ErrorState | None:
    """Return an ``ErrorState`` when ``raw`` looks like a failed diagnostic."""

    if raw is None:
        return None

    for name in _MESSAGE_FIELDS:
        value = raw.get(name)
        if value is None or isinstance(value, Mapping):
            continue
        if name == "status" and isinstance(value, str) and value.lower() in _FAILURE_STATUSES:
            return ErrorState(
                error_type="DIAGNOSTIC_FAILED",
                message=f"Diagnostic status: {value}",
                matched="status",
            )
        message = _error_message(value)
        if message is not None:
            status = (
                _http_status(value)
                or _http_status(raw.get("statusCode"))
                or _http_status(raw.get("httpStatus"))
            )
            return ErrorState(
                error_type=_classify(message, status),
                message=message,
                matched=name,
            )

    nested_value = raw.get("error")
    if isinstance(nested_value, Mapping):
        nested = cast(Mapping[str, Any], nested_value)
        text = nested.get("message") or nested.get("error") or nested.get("reason")
        message = _error_message(text) if text else None
        if message is not None:
            status = _http_status(nested.get("status")) or _http_status(nested.get("statusCode"))
            return ErrorState(
                error_type=_classify(message, status),
                message=message,
                matched="error",
            )

    for name in _SUMMARY_FIELDS:
        value = raw.get(name)
        if isinstance(value, str) and len(value) < _MAX_SUMMARY_LENGTH:
            message = _error_message(value)
            if message is not None:
                return ErrorState(error_type="DIAGNOSTIC_FAILED", message=message, matched=name)
    return None


def _error_message(value: object) -> str | None:
    if value is None:
        return None
    text = value if isinstance(value, str) else json.dumps(value, default=str)
    lowered = text.lower()
    if any(keyword in lowered for keyword in ERROR_KEYWORDS) or HTTP_ERROR_PATTERN.search(text):
        return text[:_MAX_MESSAGE_LENGTH]
    return None


def _http_status(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int) and 400 <= value < 600:  # noqa: PLR2004
        return value
    if isinstance(value, str):
        match = _HTTP_STATUS_PATTERN.search(value)
        if match:
            return int(match.group(1))
    return None


def _classify(message: str, status: int | None) -> str:
    lowered = message.lower()
    if status == 403:  # noqa: PLR2004
        return "FORBIDDEN"
    if status == 429 or "rate limit" in lowered or "too many requests" in lowered:  # noqa: PLR2004
        return "RATE_LIMITED"
    if status is not None:
        return "HTTP_ERROR"
    if "forbidden" in lowered:
        return "FORBIDDEN"
    if "failed" in lowered:
        return "DIAGNOSTIC_FAILED"
    return "UNKNOWN_ERROR"
