from __future__ import annotations
"""Exception hierarchy raised by the S3 REST client."""
from typing import Mapping, Optional


class S3RestError(Exception):
    """Base class for every failure raised by :mod:`s3_rest`."""


class InvalidArgumentError(S3RestError, ValueError):
    """Raised when a caller passes an argument that is rejected before any I/O."""


class RequestBuildError(S3RestError, ValueError):
    """Raised when a request URL cannot be constructed from the configuration."""


class TransportError(S3RestError):
    """Raised when no HTTP response could be obtained."""

    def __init__(self, method: str, url: str, reason: str):
        super().__init__(f"{method} {url} failed: {reason}")
        self.method = method
        self.url = url
        self.reason = reason


class ResponseParseError(S3RestError):
    """Raised when a successful response body cannot be decoded."""


class S3Error(S3RestError):
    """A non-success HTTP response, decoded from the service's XML error body."""

    def __init__(
        self,
        operation: str,
        status: int,
        body: bytes = b"",
        headers: Optional[Mapping[str, str]] = None,
        *,
        code: str = "",
        message: str = "",
        request_id: str = "",
        bucket: str = "",
        use_endpoint: str = "",
    ):
        super().__init__(operation, status)
        self.operation = operation
        self.status = status
        self.body = body
        self.headers = dict(headers or {})
        self.code = code
        self.message = message
        self.request_id = request_id
        self.bucket = bucket
        self.use_endpoint = use_endpoint

    def __str__(self) -> str:
        if b"<Error>" in self.body:
            text = self.body.decode("utf-8", errors="replace")
            return f"s3.{self.operation}: status {self.status}: {text}"
        return f"s3.{self.operation}: status {self.status}"


class ListingValidationError(S3RestError):
    """A listing page that failed to decode or echoed unexpected request values."""


class ProtocolIntegrityError(S3RestError):
    """A listing page returned a key that sorts before the requested start key."""


class RetriesExhaustedError(S3RestError):
    """Raised when every attempt at fetching a listing page failed.

    ``last_error`` is the error of the final attempt; earlier attempts are only logged.
    """

    def __init__(self, operation: str, attempts: int, last_error: BaseException):
        super().__init__(f"{operation} failed after {attempts} attempt(s): {last_error}")
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error


class ListingCancelledError(S3RestError):
    """Raised when a bucket listing is cancelled by the caller."""
