"""Helpers for safe debug logging.

Requests to the fitment service carry a bearer token in the
``Authorization`` header and query strings may echo it back in error
payloads.  Everything headed for a DEBUG log goes through
:func:`redact_for_log` first.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "authorization",
        "api_token",
        "apitoken",
        "token",
        "access_token",
        "accesstoken",
        "cookie",
        "set-cookie",
    }
)


def mask_secret(value: Any) -> str:
    """Mask a credential, keeping only its last four characters."""
    text = str(value or "")
    if text.lower().startswith("bearer "):
        return f"Bearer {mask_secret(text[7:])}"
    if len(text) <= 4:
        return "****"
    return f"****{text[-4:]}"


def redact_for_log(value: Any, *, max_string: int = 256, _depth: int = 0) -> Any:
    """Return a copy of *value* with credentials masked and long strings cut."""
    if _depth > 10:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, Mapping):
        return {
            str(k): (
                mask_secret(v)
                if str(k).lower() in _SENSITIVE_KEYS
                else redact_for_log(v, max_string=max_string, _depth=_depth + 1)
            )
            for k, v in value.items()
        }

    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)
