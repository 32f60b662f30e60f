"""Exception hierarchy for casual-hub.

Provider level failures (connection, protocol) are contained by the
registry and discovery service. Upstream failures raised by the agent's
model client are classified so the API can report them with a distinct
status.
"""

from typing import Any


class CasualHubError(Exception):
    """Base class for all casual-hub errors."""


class ConfigValidationError(CasualHubError, ValueError):
    """A request or provider configuration is malformed or incomplete."""


class ProviderConnectionError(CasualHubError):
    """A tool provider could not be reached or did not complete the handshake."""

    def __init__(self, provider: str, reason: str):
        super().__init__(f"Could not connect to provider '{provider}': {reason}")
        self.provider = provider
        self.reason = reason


class ProviderProtocolError(CasualHubError):
    """A tool provider returned something unusable for a tool request."""


class DiscoveryError(CasualHubError):
    """Tool discovery for a candidate provider failed."""


class UpstreamError(CasualHubError):
    """The model backend driving the agent rejected a request."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class UpstreamAuthError(UpstreamError):
    status_code = 401


class RateLimitError(UpstreamError):
    status_code = 429


class UpstreamBadRequestError(UpstreamError):
    status_code = 400


def _status_of(exc: BaseException) -> int | None:
    for attr in ("status_code", "status"):
        value: Any = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(exc, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def classify_upstream_error(exc: BaseException) -> BaseException:
    """Map an exception raised by the model client onto the upstream taxonomy.

    Exceptions that carry an HTTP status of 401, 429 or 400 are converted.
    Anything else, including errors that are already part of the
    hierarchy, is returned unchanged.
    """
    if isinstance(exc, CasualHubError):
        return exc

    status = _status_of(exc)
    message = str(exc) or type(exc).__name__
    if status == 401:
        return UpstreamAuthError(message)
    if status == 429:
        return RateLimitError(message)
    if status == 400:
        return UpstreamBadRequestError(message)
    return exc
