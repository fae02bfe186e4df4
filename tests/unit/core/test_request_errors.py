"""Unit tests for the structured error hierarchy"""
import pytest

from core.exceptions import (
    DeadlineExceededError,
    RequestCancelledError,
    RequestError,
    ResponseStatusError,
    RetryExhaustedError,
    TransportError,
    UnexpectedStatusError,
)
from tests.fixtures.request_execution import status_response


@pytest.mark.unit
class TestRequestError:

    def test_str_renders_message_cause_and_status(self):
        err = RequestError("failed", cause=ValueError("bad"), status_code=502)

        assert str(err) == "message: failed\n cause: bad\n statusCode: 502"

    def test_str_omits_missing_parts(self):
        assert str(RequestError("plain")) == "message: plain"

    def test_cause_is_chained(self):
        cause = OSError("reset")
        err = TransportError("transport failed", cause=cause)

        assert err.__cause__ is cause
        assert err.cause is cause

    def test_all_pipeline_errors_share_a_base(self):
        for cls in (TransportError, UnexpectedStatusError, RequestCancelledError):
            assert issubclass(cls, RequestError)

    def test_response_status_error_keeps_body(self):
        err = ResponseStatusError("error calling x", status_code=400, body=b"{}")

        assert err.status_code == 400
        assert err.body == b"{}"


@pytest.mark.unit
class TestRetryExhaustedError:

    def test_status_code_taken_from_last_response(self):
        err = RetryExhaustedError(
            "GET x giving up after 3 attempt(s)",
            attempts=3,
            cause=UnexpectedStatusError("unexpected HTTP status 503", status_code=503),
            response=status_response(503),
        )

        assert err.attempts == 3
        assert err.status_code == 503
        assert "giving up after 3 attempt(s)" in str(err)
        assert "unexpected HTTP status 503" in str(err)

    def test_without_response_has_no_status(self):
        err = RetryExhaustedError("giving up", attempts=2, cause=TransportError("refused"))
        assert err.status_code is None


@pytest.mark.unit
class TestCancellationErrors:

    def test_default_messages(self):
        assert RequestCancelledError().message == "context canceled"
        assert DeadlineExceededError().message == "context deadline exceeded"

    def test_deadline_is_a_cancellation(self):
        assert isinstance(DeadlineExceededError(), RequestCancelledError)
