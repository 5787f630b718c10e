"""Exception taxonomy shared by the executor, the facade and the HTTP layer."""

from __future__ import annotations


class UrlExtractorError(Exception):
    """Base class for errors raised by this package."""


class ValidationError(UrlExtractorError):
    """The caller supplied an unusable request (missing url, bad method, ...).

    Raised before any network activity and never retried.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NetworkError(UrlExtractorError):
    """A transport-level failure that survived every permitted attempt.

    Attributes:
        kind: Short machine-readable classification (``timeout``,
            ``connect_error``, ``protocol_error``, ``network_error``).
        message: The underlying transport message.
        attempts: Number of transport calls actually made.
    """

    def __init__(self, kind: str, message: str, attempts: int = 0) -> None:
        super().__init__(f"{kind}: {message}")
        self.kind = kind
        self.message = message
        self.attempts = attempts
