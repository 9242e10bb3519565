"""Errors: codes, HTTP statuses and the structured response envelope."""

from datetime import datetime, timezone

import pytest

from parley.core.errors import (
    AnalysisNotReadyError,
    AnalysisUnavailableError,
    ErrorContext,
    InputValidationError,
    InvalidSessionStateError,
    MalformedAnalysisResponseError,
    ParticipantMismatchError,
    ResourceNotFoundError,
    SessionExpiredError,
    SessionFullError,
    StoreUnavailableError,
    TurnNotAllowedError,
)


@pytest.mark.parametrize("error, code, status", [
    (ResourceNotFoundError("Session", "x"), "RESOURCE_NOT_FOUND", 404),
    (SessionExpiredError(datetime(2026, 1, 1, tzinfo=timezone.utc)), "SESSION_EXPIRED", 410),
    (InvalidSessionStateError("not anonymous"), "INVALID_SESSION_STATE", 400),
    (SessionFullError(), "SESSION_FULL", 409),
    (InputValidationError("bad", "content"), "VALIDATION_ERROR", 400),
    (AnalysisNotReadyError("too few"), "ANALYSIS_NOT_READY", 400),
    (AnalysisUnavailableError("down", "timeout"), "ANALYSIS_UNAVAILABLE", 500),
    (MalformedAnalysisResponseError("junk"), "MALFORMED_ANALYSIS_RESPONSE", 500),
    (StoreUnavailableError("db down", "commit"), "STORE_UNAVAILABLE", 503),
    (TurnNotAllowedError("A", "waiting"), "TURN_NOT_ALLOWED", 409),
    (ParticipantMismatchError("B"), "PARTICIPANT_MISMATCH", 403),
])
def test_error_codes_and_statuses(error, code, status):
    assert error.code == code
    assert error.http_status == status


def test_to_response_envelope():
    error = SessionFullError(ErrorContext(session_id="abc"))
    body = error.to_response()["error"]
    assert body["code"] == "SESSION_FULL"
    assert body["message"] == "Session is already full"
    assert body["category"] == "conflict"
    assert body["context"]["session_id"] == "abc"


def test_user_message_overrides_internal_message():
    error = InvalidSessionStateError(
        "internal detail", ErrorContext(user_message="Try again"),
    )
    assert error.to_response()["error"]["message"] == "Try again"


def test_analysis_unavailable_carries_reason_and_retry_after():
    error = AnalysisUnavailableError("slow down", "rate_limit", retry_after_ms=3000)
    assert error.reason == "rate_limit"
    assert error.to_response()["error"]["context"]["retry_after_ms"] == 3000
