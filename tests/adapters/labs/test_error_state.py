from __future__ import annotations

import pytest

from factweave.adapters.labs import detect_error_state


@pytest.mark.parametrize("status", ["failed", "ERROR", "aborted", "timeout", "cancelled"])
def test_failure_statuses(status: str) -> None:
    state = detect_error_state({"status": status})

    assert state is not None
    assert state.error_type == "DIAGNOSTIC_FAILED"
    assert state.matched == "status"


def test_http_status_is_classified() -> None:
    state = detect_error_state({"error": "403 Forbidden while crawling", "statusCode": 403})

    assert state is not None
    assert state.error_type == "FORBIDDEN"


def test_rate_limit_message() -> None:
    state = detect_error_state({"message": "Rate limit exceeded, please try again"})

    assert state is not None
    assert state.error_type == "RATE_LIMITED"


def test_nested_error_object() -> None:
    state = detect_error_state({"error": {"message": "Request failed", "status": 502}})

    assert state is not None
    assert state.error_type == "HTTP_ERROR"


def test_failure_keyword_in_summary() -> None:
    state = detect_error_state({"summary": "Diagnostic failed: could not reach site"})

    assert state is not None
    assert state.matched == "summary"


def test_healthy_payload_has_no_error_state() -> None:
    assert detect_error_state({"status": "completed", "summary": "All good"}) is None
    assert detect_error_state(None) is None
