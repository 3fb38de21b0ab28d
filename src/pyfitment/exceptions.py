"""Custom exception hierarchy for pyfitment."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pyfitment.errors import ErrorKind


class FitmentError(Exception):
    """Base exception for all pyfitment errors."""


class FitmentConfigError(FitmentError):
    """Invalid or missing configuration (token, endpoint URL)."""


class FitmentValidationError(FitmentError):
    """Local input problem detected before any network call."""


class FitmentStorageError(FitmentError):
    """Storage backend refused an operation (quota, disabled, unreadable)."""


class FitmentTransportError(FitmentError):
    """HTTP-level failure (non-2xx status, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        reason: str = "",
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        self.endpoint = endpoint
        super().__init__(message)


class FitmentApiError(FitmentError):
    """The service envelope carried a non-success status."""

    def __init__(
        self,
        message: str,
        *,
        status: str | int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status = status
        self.endpoint = endpoint
        super().__init__(message)


class FitmentRequestError(FitmentError):
    """A failed service call after classification.

    This is the only exception the transport lets escape.  ``retryable``
    tells the caller whether replaying the exact same request may succeed
    (timeouts, connection failures, 429/5xx).
    """

    def __init__(
        self,
        message: str,
        *,
        retryable: bool,
        kind: ErrorKind,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.retryable = retryable
        self.kind = kind
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)
