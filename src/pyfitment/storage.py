"""Key/value storage backends.

The cache and the persisted vehicle selection sit on top of a tiny
string-to-string store modelled after browser Web Storage.  Two backends
ship with the library:

* :class:`MemoryStorage` lives as long as the process (session scope)
* :class:`FileStorage` keeps a JSON document on disk (durable scope)

Backends raise :class:`~pyfitment.exceptions.FitmentStorageError` when they
cannot serve a request; callers in this package degrade instead of
propagating.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from pyfitment._constants import LAST_SELECTED_VEHICLE_KEY
from pyfitment.exceptions import FitmentStorageError
from pyfitment.models.vehicle import VehicleSelection

_logger = logging.getLogger(__name__)


class Storage(Protocol):
    """Structural interface of a string key/value store."""

    def get_item(self, key: str) -> str | None:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...

    def keys(self) -> list[str]:
        ...


class MemoryStorage:
    """In-process storage with an optional item quota."""

    def __init__(self, *, max_items: int | None = None) -> None:
        self._items: dict[str, str] = {}
        self._max_items = max_items

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self._max_items is not None and key not in self._items and len(self._items) >= self._max_items:
            raise FitmentStorageError(f"Storage quota of {self._max_items} items exceeded")
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)


class FileStorage:
    """Storage persisted as a single JSON object on disk.

    The file is read lazily on first access and rewritten atomically on
    every mutation.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        self._items: dict[str, str] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if self._items is not None:
            return self._items
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            self._items = {}
            return self._items
        except OSError as exc:
            raise FitmentStorageError(f"Cannot read {self._path}: {exc}") from exc
        try:
            data = json.loads(text) if text.strip() else {}
        except json.JSONDecodeError as exc:
            raise FitmentStorageError(f"Corrupt storage file {self._path}") from exc
        if not isinstance(data, dict):
            raise FitmentStorageError(f"Corrupt storage file {self._path}")
        self._items = {str(k): str(v) for k, v in data.items()}
        return self._items

    def _flush(self, items: dict[str, str]) -> None:
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(items, separators=(",", ":")), encoding="utf-8")
            os.replace(tmp, self._path)
        except OSError as exc:
            raise FitmentStorageError(f"Cannot write {self._path}: {exc}") from exc

    def get_item(self, key: str) -> str | None:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = dict(self._load())
        items[key] = value
        self._flush(items)
        self._items = items

    def remove_item(self, key: str) -> None:
        items = self._load()
        if key not in items:
            return
        updated = {k: v for k, v in items.items() if k != key}
        self._flush(updated)
        self._items = updated

    def keys(self) -> list[str]:
        return list(self._load())


class LastVehicleStore:
    """Persists the most recently completed :class:`VehicleSelection`.

    The record lives under ``lastSelectedVehicle`` in durable storage and is
    read by other storefront components to report per-product fit.
    """

    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    def save(self, selection: VehicleSelection, *, with_category: bool = True) -> bool:
        """Write *selection* if complete.  Returns whether it was written."""
        if not selection.is_complete(with_category=with_category):
            return False
        payload = selection.model_dump_json(by_alias=True)
        try:
            self._storage.set_item(LAST_SELECTED_VEHICLE_KEY, payload)
        except (FitmentStorageError, OSError) as exc:
            _logger.warning("Could not save selected vehicle: %s", exc)
            return False
        return True

    def load(self) -> VehicleSelection | None:
        try:
            payload = self._storage.get_item(LAST_SELECTED_VEHICLE_KEY)
        except (FitmentStorageError, OSError) as exc:
            _logger.warning("Could not read selected vehicle: %s", exc)
            return None
        if not payload:
            return None
        try:
            return VehicleSelection.model_validate_json(payload)
        except ValidationError:
            _logger.debug("Discarding unreadable selected vehicle record", exc_info=True)
            return None

    def clear(self) -> None:
        try:
            self._storage.remove_item(LAST_SELECTED_VEHICLE_KEY)
        except (FitmentStorageError, OSError) as exc:
            _logger.warning("Could not clear selected vehicle: %s", exc)
