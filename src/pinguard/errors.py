"""Error taxonomy for the pinning gateway.

Every error carries an explicit ErrorKind tag. The backoff controller reads
the tag to decide between retrying and failing fast.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Retry classification attached at the point an error is raised."""

    TERMINAL = "terminal"
    RETRYABLE = "retryable"


class GatewayError(Exception):
    """Base class for every error raised by pinguard."""

    kind: ErrorKind = ErrorKind.TERMINAL
    code: str = "GATEWAY_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def retryable(self) -> bool:
        return self.kind is ErrorKind.RETRYABLE


class InvalidContentError(GatewayError):
    """Content, size, options or hash rejected before any network call."""

    INVALID_JSON = "INVALID_JSON"
    CIRCULAR_REFERENCE = "CIRCULAR_REFERENCE"
    SIZE_LIMIT_EXCEEDED = "SIZE_LIMIT_EXCEEDED"
    INVALID_FILE = "INVALID_FILE"
    INVALID_HASH = "INVALID_HASH"
    INVALID_OPTIONS = "INVALID_OPTIONS"

    def __init__(
        self, reason: str, message: str, details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.reason = reason
        self.code = reason


class ProviderError(GatewayError):
    """Non-2xx (or malformed) response from the pinning provider.

    5xx responses are retryable, every other status is terminal unless the
    caller overrides the classification.
    """

    code = "PROVIDER_ERROR"

    def __init__(
        self,
        status_code: int,
        message: str,
        details: dict[str, Any] | None = None,
        kind: ErrorKind | None = None,
    ) -> None:
        super().__init__(f"provider HTTP {status_code}: {message}", details)
        self.status_code = status_code
        self.provider_message = message
        if kind is not None:
            self.kind = kind
        elif status_code >= 500:
            self.kind = ErrorKind.RETRYABLE
        else:
            self.kind = ErrorKind.TERMINAL


class RateLimitedError(ProviderError):
    """HTTP 429 that persisted through the single rate-limit resubmission."""

    code = "RATE_LIMITED"

    def __init__(
        self, retry_after: float, message: str = "rate limited",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(429, message, details, kind=ErrorKind.RETRYABLE)
        self.retry_after = retry_after


class NetworkError(GatewayError):
    """Connection failure or request timeout."""

    kind = ErrorKind.RETRYABLE
    code = "NETWORK_ERROR"

    def __init__(
        self, message: str, timeout: bool = False, details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.timeout = timeout


class ExhaustedRetriesError(GatewayError):
    """Raised once every retry attempt has failed with a retryable error."""

    code = "EXHAUSTED_RETRIES"

    def __init__(self, last_error: BaseException, attempts: int) -> None:
        super().__init__(
            f"operation failed after {attempts} attempts: {last_error}",
            {"attempts": attempts, "last_error": str(last_error)},
        )
        self.last_error = last_error
        self.attempts = attempts
