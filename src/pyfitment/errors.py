"""Failure classification for service calls.

Every failure raised while talking to the fitment service is reduced to a
:class:`ClassifiedError` before it reaches a caller.  The rules are applied
in priority order:

1. transport could not connect -> retryable, normalized network message
2. request exceeded the fixed timeout -> retryable, normalized message
3. HTTP 429 / 500 / 502 / 503 / 504 -> retryable
4. any other non-2xx status or a non-success envelope -> not retryable,
   message taken from the envelope's ``error.message`` when present
"""

from __future__ import annotations

import asyncio
from enum import StrEnum

import aiohttp
from pydantic import BaseModel, ConfigDict

from pyfitment._constants import NETWORK_ERROR_MESSAGE, RETRYABLE_STATUS_CODES, TIMEOUT_ERROR_MESSAGE
from pyfitment.exceptions import (
    FitmentApiError,
    FitmentConfigError,
    FitmentRequestError,
    FitmentTransportError,
    FitmentValidationError,
)


class ErrorKind(StrEnum):
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    TRANSIENT = "transient"
    PERMANENT = "permanent"


class ClassifiedError(BaseModel):
    """Normalized ``{message, retryable}`` view of a failure."""

    model_config = ConfigDict(frozen=True)

    message: str
    retryable: bool
    kind: ErrorKind


def _transient(message: str) -> ClassifiedError:
    return ClassifiedError(message=message, retryable=True, kind=ErrorKind.TRANSIENT)


def _permanent(message: str) -> ClassifiedError:
    return ClassifiedError(message=message, retryable=False, kind=ErrorKind.PERMANENT)


def is_retryable_status(status_code: int | None) -> bool:
    return status_code in RETRYABLE_STATUS_CODES


def classify_error(exc: BaseException) -> ClassifiedError:
    """Map any exception raised by a network attempt to a :class:`ClassifiedError`."""
    if isinstance(exc, FitmentRequestError):
        return ClassifiedError(message=str(exc), retryable=exc.retryable, kind=exc.kind)

    if isinstance(exc, aiohttp.ClientConnectionError) and not isinstance(exc, asyncio.TimeoutError):
        return _transient(NETWORK_ERROR_MESSAGE)

    if isinstance(exc, asyncio.TimeoutError):
        return _transient(TIMEOUT_ERROR_MESSAGE)

    if isinstance(exc, FitmentTransportError):
        if is_retryable_status(exc.status_code):
            return _transient(str(exc))
        return _permanent(str(exc))

    if isinstance(exc, FitmentApiError):
        return _permanent(str(exc) or "API returned a non-success status.")

    if isinstance(exc, FitmentConfigError):
        return ClassifiedError(message=str(exc), retryable=False, kind=ErrorKind.CONFIGURATION)

    if isinstance(exc, FitmentValidationError):
        return ClassifiedError(message=str(exc), retryable=False, kind=ErrorKind.VALIDATION)

    # Other aiohttp client errors (payload, redirects) are not worth replaying.
    return _permanent(str(exc) or exc.__class__.__name__)


def to_request_error(exc: BaseException, *, endpoint: str = "") -> FitmentRequestError:
    """Classify *exc* and wrap it in the single exception the transport raises."""
    if isinstance(exc, FitmentRequestError):
        return exc
    classified = classify_error(exc)
    status_code = exc.status_code if isinstance(exc, FitmentTransportError) else None
    return FitmentRequestError(
        classified.message,
        retryable=classified.retryable,
        kind=classified.kind,
        status_code=status_code,
        endpoint=endpoint,
    )
