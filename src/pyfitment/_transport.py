"""Authenticated HTTP transport for the fitment service."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp
from yarl import URL

from pyfitment._api._envelope import unwrap_envelope
from pyfitment._redact import redact_for_log
from pyfitment.config import FitmentConfig
from pyfitment.errors import is_retryable_status, to_request_error
from pyfitment.exceptions import FitmentApiError, FitmentConfigError, FitmentTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules and the finder.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`FitmentTransport`) concrete.
    """

    async def request(
        self,
        url: str,
        *,
        method: str = "GET",
        params: Mapping[str, str] | None = None,
        body: Any = None,
    ) -> Any:
        ...


def validate_url(url: str | None) -> URL:
    """Parse *url*, requiring an absolute http(s) URL with a host."""
    if not url:
        raise FitmentConfigError(f"Invalid API endpoint URL: {url!r}")
    try:
        parsed = URL(url)
    except (TypeError, ValueError) as exc:
        raise FitmentConfigError(f"Invalid API endpoint URL: {url!r}") from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise FitmentConfigError(f"Invalid API endpoint URL: {url!r}")
    return parsed


def _envelope_message(text: str) -> str | None:
    """Best-effort extraction of ``error.message`` from an error body."""
    try:
        body = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    return None


class FitmentTransport:
    """HTTP transport adding bearer auth, a fixed timeout and envelope handling."""

    def __init__(self, config: FitmentConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _headers(self, with_body: bool) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {self._config.api_token}",
        }
        if with_body:
            headers["Content-Type"] = "application/json"
        return headers

    async def request(
        self,
        url: str,
        *,
        method: str = "GET",
        params: Mapping[str, str] | None = None,
        body: Any = None,
    ) -> Any:
        """Issue a request and return the unwrapped payload.

        Every failure, including a malformed URL detected before any I/O,
        is raised as :class:`~pyfitment.exceptions.FitmentRequestError`.
        A ``204 No Content`` response returns ``None``.
        """
        try:
            target = validate_url(url)
        except FitmentConfigError as exc:
            raise to_request_error(exc, endpoint=str(url)) from exc
        if params:
            target = target.update_query(dict(params))
        endpoint = str(target.with_query(None))

        headers = self._headers(body is not None)
        data = json.dumps(body) if body is not None else None
        _logger.debug("%s %s headers=%s", method, target, redact_for_log(headers))

        try:
            async with self._http.request(
                method,
                target,
                data=data,
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                if resp.status == 204:
                    return None
                try:
                    text = await resp.text()
                except UnicodeDecodeError as exc:
                    if 200 <= resp.status < 300:
                        raise FitmentTransportError(
                            f"Undecodable response body from {endpoint}",
                            endpoint=endpoint,
                        ) from exc
                    # The status alone decides an error response.
                    text = ""
                if not 200 <= resp.status < 300:
                    raise self._status_error(resp.status, resp.reason or "", text, endpoint)

            if not text.strip():
                return None
            try:
                payload = json.loads(text)
            except json.JSONDecodeError as exc:
                raise FitmentTransportError(
                    f"Invalid JSON from {endpoint}: {text[:200]}",
                    endpoint=endpoint,
                ) from exc

            return unwrap_envelope(payload, endpoint=endpoint)
        except (aiohttp.ClientError, asyncio.TimeoutError, FitmentTransportError, FitmentApiError) as exc:
            _logger.debug("%s %s failed: %r", method, endpoint, exc)
            raise to_request_error(exc, endpoint=endpoint) from exc

    @staticmethod
    def _status_error(status: int, reason: str, text: str, endpoint: str) -> FitmentTransportError:
        message = f"API Error: {status} {reason}".strip()
        if not is_retryable_status(status):
            message = _envelope_message(text) or message
        return FitmentTransportError(message, status_code=status, reason=reason, endpoint=endpoint)
