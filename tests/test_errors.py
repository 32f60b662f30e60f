"""Tests for upstream error classification."""

from casual_hub.errors import (
    ConfigValidationError,
    RateLimitError,
    UpstreamAuthError,
    UpstreamBadRequestError,
    classify_upstream_error,
)


class StatusError(Exception):
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class FakeResponse:
    status_code = 429


class ResponseError(Exception):
    response = FakeResponse()


class TestClassifyUpstreamError:
    def test_401_is_auth_error(self):
        result = classify_upstream_error(StatusError("nope", 401))

        assert isinstance(result, UpstreamAuthError)
        assert result.status_code == 401
        assert str(result) == "nope"

    def test_429_is_rate_limit(self):
        assert isinstance(classify_upstream_error(StatusError("slow", 429)), RateLimitError)

    def test_status_on_response(self):
        assert isinstance(classify_upstream_error(ResponseError("slow")), RateLimitError)

    def test_400_is_bad_request(self):
        assert isinstance(classify_upstream_error(StatusError("bad", 400)), UpstreamBadRequestError)

    def test_other_errors_are_unchanged(self):
        error = StatusError("server", 503)

        assert classify_upstream_error(error) is error

    def test_hub_errors_are_unchanged(self):
        error = ConfigValidationError("bad")

        assert classify_upstream_error(error) is error
