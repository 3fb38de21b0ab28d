"""Versioned, per-instance option cache.

Entries are JSON documents ``{"value": ..., "expiry": <epoch ms>}`` stored
under ``fitmentCache_<instance>_<key>`` in one of two storages.  The expiry
duration belongs to the scope, never to the caller.  Expired entries are
removed when they are read; nothing sweeps proactively.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from pyfitment._constants import (
    CACHE_PREFIX,
    CACHE_VERSION_KEY,
    CURRENT_CACHE_VERSION,
    DURABLE_CACHE_TTL_SECONDS,
    LAST_SELECTED_VEHICLE_KEY,
    SESSION_CACHE_TTL_SECONDS,
)
from pyfitment.exceptions import FitmentStorageError
from pyfitment.storage import Storage

_logger = logging.getLogger(__name__)

# Storage failures of any of these kinds degrade to miss / no-op.
_STORAGE_ERRORS = (FitmentStorageError, OSError)


class CacheScope(StrEnum):
    DURABLE = "durable"
    SESSION = "session"


class CacheEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: Any
    expiry: int
    """Absolute expiry, epoch milliseconds."""

    def is_expired(self, now_ms: int) -> bool:
        return now_ms > self.expiry


def validate_cache_version(
    durable: Storage,
    *others: Storage,
    version: str = CURRENT_CACHE_VERSION,
) -> int:
    """Purge every ``fitmentCache_`` key if the stamped version differs.

    The persisted vehicle selection is dropped as well since it may carry
    values the new service version no longer knows.  Returns the number of
    removed keys.
    """
    try:
        if durable.get_item(CACHE_VERSION_KEY) == version:
            return 0
        cleared = 0
        for storage in (durable, *others):
            for key in storage.keys():
                if key.startswith(CACHE_PREFIX):
                    storage.remove_item(key)
                    cleared += 1
        if durable.get_item(LAST_SELECTED_VEHICLE_KEY) is not None:
            durable.remove_item(LAST_SELECTED_VEHICLE_KEY)
            cleared += 1
        durable.set_item(CACHE_VERSION_KEY, version)
    except _STORAGE_ERRORS as exc:
        _logger.warning("Cache version validation failed: %s", exc)
        return 0
    _logger.info("Fitment cache version changed; cleared %d item(s), now %s", cleared, version)
    return cleared


class FitmentCache:
    """Cache for one finder instance.

    Parameters
    ----------
    instance_id : str
        Namespace for every key written by this cache.
    durable, session : Storage
        Backends for the two scopes.
    durable_ttl, session_ttl : float
        Scope lifetimes in seconds.
    version : str
        Expected global cache version, validated before the first operation.
    clock : callable
        Returns the current time in epoch seconds.
    """

    def __init__(
        self,
        instance_id: str,
        *,
        durable: Storage,
        session: Storage,
        durable_ttl: float = DURABLE_CACHE_TTL_SECONDS,
        session_ttl: float = SESSION_CACHE_TTL_SECONDS,
        version: str = CURRENT_CACHE_VERSION,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._instance_id = instance_id
        self._storages = {CacheScope.DURABLE: durable, CacheScope.SESSION: session}
        self._ttls = {CacheScope.DURABLE: durable_ttl, CacheScope.SESSION: session_ttl}
        self._version = version
        self._clock = clock
        self._version_checked = False

    @property
    def instance_id(self) -> str:
        return self._instance_id

    @property
    def key_prefix(self) -> str:
        return f"{CACHE_PREFIX}{self._instance_id}_"

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _ensure_version(self) -> None:
        if self._version_checked:
            return
        validate_cache_version(
            self._storages[CacheScope.DURABLE],
            self._storages[CacheScope.SESSION],
            version=self._version,
        )
        self._version_checked = True

    def get(self, key: str, scope: CacheScope = CacheScope.SESSION) -> Any | None:
        """Return the cached value or ``None`` when absent or expired."""
        self._ensure_version()
        storage = self._storages[scope]
        cache_key = self.key_prefix + key
        try:
            raw = storage.get_item(cache_key)
            if not raw:
                return None
            entry = CacheEntry.model_validate_json(raw)
            if entry.is_expired(self._now_ms()):
                storage.remove_item(cache_key)
                return None
        except _STORAGE_ERRORS as exc:
            _logger.warning("Fitment cache: error reading %s storage: %s", scope, exc)
            return None
        except ValidationError:
            _logger.debug("Fitment cache: unreadable entry %s", cache_key, exc_info=True)
            return None
        return entry.value

    def set(self, key: str, value: Any, scope: CacheScope = CacheScope.SESSION) -> None:
        """Store *value* with the scope's expiry.  Failures are logged and ignored."""
        self._ensure_version()
        expiry = self._now_ms() + int(self._ttls[scope] * 1000)
        try:
            payload = json.dumps({"value": value, "expiry": expiry}, separators=(",", ":"))
            self._storages[scope].set_item(self.key_prefix + key, payload)
        except (TypeError, ValueError) as exc:
            _logger.warning("Fitment cache: value for %s is not JSON-serializable: %s", key, exc)
        except _STORAGE_ERRORS as exc:
            _logger.warning("Fitment cache: error writing %s storage: %s", scope, exc)

    def clear(self, scope: CacheScope | None = None) -> int:
        """Remove this instance's entries from *scope* (both scopes when ``None``)."""
        self._ensure_version()
        scopes = [scope] if scope is not None else list(CacheScope)
        removed = 0
        for current in scopes:
            storage = self._storages[current]
            try:
                for key in storage.keys():
                    if key.startswith(self.key_prefix):
                        storage.remove_item(key)
                        removed += 1
            except _STORAGE_ERRORS as exc:
                _logger.warning("Fitment cache: error clearing %s storage: %s", current, exc)
        return removed
