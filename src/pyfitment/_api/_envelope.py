"""Fitment service response envelope.

The service wraps payloads as ``{"status": ..., "data": ..., "error":
{"message": ...}}`` but every field is optional: some endpoints return the
bare payload.  :func:`unwrap_envelope` is the one place that decides what
the caller actually receives.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from pyfitment._constants import ENVELOPE_SUCCESS_MARKERS
from pyfitment.exceptions import FitmentApiError

_DEFAULT_FAILURE_MESSAGE = "API returned a non-success status."


def _is_success_status(status: Any) -> bool:
    # An absent (or empty) status is treated as success.
    if status is None or status == "":
        return True
    return status in ENVELOPE_SUCCESS_MARKERS


class EnvelopeError(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    message: str | None = None

    @field_validator("message", mode="before")
    @classmethod
    def _coerce_message(cls, value: Any) -> str | None:
        if isinstance(value, str) or value is None:
            return value
        if isinstance(value, (int, float, bool)):
            return str(value)
        return None


class ServiceEnvelope(BaseModel):
    """Uniform wrapper around a fitment service payload."""

    model_config = ConfigDict(frozen=True, extra="allow")

    status: str | int | None = None
    data: Any = None
    error: EnvelopeError | str | None = None

    @property
    def is_success(self) -> bool:
        return _is_success_status(self.status)


def unwrap_envelope(body: Any, *, endpoint: str = "") -> Any:
    """Return the payload carried by *body*.

    * a non-success ``status`` raises :class:`FitmentApiError` with the
      envelope's error message
    * a present, non-null ``data`` field is returned as the payload
    * otherwise the raw body is returned
    """
    if not isinstance(body, dict):
        return body

    try:
        envelope = ServiceEnvelope.model_validate(body)
    except ValidationError:
        status = body.get("status")
        if isinstance(status, (str, int)) and not _is_success_status(status):
            raise FitmentApiError(_DEFAULT_FAILURE_MESSAGE, status=status, endpoint=endpoint) from None
        # Shape does not match an envelope at all; treat as a bare payload.
        return body

    if not envelope.is_success:
        error = envelope.error
        message = error.message if isinstance(error, EnvelopeError) else error
        raise FitmentApiError(
            message or _DEFAULT_FAILURE_MESSAGE,
            status=envelope.status,
            endpoint=endpoint,
        )

    if envelope.data is not None:
        return envelope.data
    return body
