from __future__ import annotations

import asyncio

import aiohttp
import pytest

from pyfitment.errors import ErrorKind, classify_error, is_retryable_status, to_request_error
from pyfitment.exceptions import (
    FitmentApiError,
    FitmentConfigError,
    FitmentRequestError,
    FitmentTransportError,
    FitmentValidationError,
)


def test_connection_failure_is_retryable_network_error() -> None:
    classified = classify_error(aiohttp.ClientConnectionError("refused"))
    assert classified.retryable is True
    assert classified.kind is ErrorKind.TRANSIENT
    assert classified.message == "Network error. Failed to connect to the API."


@pytest.mark.parametrize("exc", [asyncio.TimeoutError(), aiohttp.ServerTimeoutError("read timeout")])
def test_timeouts_are_retryable(exc: BaseException) -> None:
    classified = classify_error(exc)
    assert classified.retryable is True
    assert classified.message == "Request timed out."


@pytest.mark.parametrize(("status", "retryable"), [(429, True), (500, True), (504, True), (400, False), (404, False)])
def test_http_status_classification(status: int, retryable: bool) -> None:
    classified = classify_error(FitmentTransportError(f"API Error: {status}", status_code=status))
    assert classified.retryable is retryable
    assert is_retryable_status(status) is retryable


def test_envelope_failure_is_permanent_with_its_message() -> None:
    classified = classify_error(FitmentApiError("Invalid token", status="error"))
    assert classified.retryable is False
    assert classified.kind is ErrorKind.PERMANENT
    assert classified.message == "Invalid token"


def test_local_errors_keep_their_kind() -> None:
    assert classify_error(FitmentConfigError("no token")).kind is ErrorKind.CONFIGURATION
    assert classify_error(FitmentValidationError("pick a model")).kind is ErrorKind.VALIDATION


def test_unknown_errors_are_permanent() -> None:
    classified = classify_error(aiohttp.ClientPayloadError("Response payload is not completed"))
    assert classified.retryable is False


def test_to_request_error_carries_status_and_endpoint() -> None:
    error = to_request_error(
        FitmentTransportError("API Error: 503 Service Unavailable", status_code=503),
        endpoint="https://fitment.example.com/api/makes",
    )
    assert isinstance(error, FitmentRequestError)
    assert error.retryable is True
    assert error.status_code == 503
    assert error.endpoint == "https://fitment.example.com/api/makes"
    assert to_request_error(error) is error
