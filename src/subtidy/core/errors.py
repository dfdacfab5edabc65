"""Exception types raised by SubTidy components."""

from __future__ import annotations


class SubTidyError(Exception):
    """Base class for all SubTidy errors."""


class MetadataError(SubTidyError):
    """Container metadata could not be read or did not validate."""


class FingerprintError(SubTidyError):
    """A video fingerprint could not be computed."""


class ApiError(SubTidyError):
    """The subtitle catalogue returned an error or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(ApiError):
    """Credentials or bearer token were rejected (HTTP 401/403)."""


class RateLimitError(ApiError):
    """The catalogue asked us to slow down (HTTP 429).

    Attributes:
        retry_after: Seconds to wait as indicated by ``Retry-After``, if sent.
        reset_after: Seconds until the rate-limit window resets, if sent.
    """

    def __init__(
        self,
        message: str,
        retry_after: float | None = None,
        reset_after: float | None = None,
    ) -> None:
        super().__init__(message, status_code=429)
        self.retry_after = retry_after
        self.reset_after = reset_after
