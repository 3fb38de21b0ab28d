"""High-level async client for the fitment service."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

import aiohttp

from pyfitment._api.catalog import CatalogLookup, StorefrontCatalog
from pyfitment._api.fitment import fetch_part_fitments
from pyfitment._cache import FitmentCache, validate_cache_version
from pyfitment._transport import FitmentTransport, Transport
from pyfitment.config import FitmentConfig
from pyfitment.exceptions import FitmentConfigError, FitmentError
from pyfitment.finder import FitmentFinder
from pyfitment.models.product import PartFitment, ReconciliationResult
from pyfitment.models.vehicle import VehicleSelection
from pyfitment.reconcile import find_parts
from pyfitment.storage import FileStorage, LastVehicleStore, MemoryStorage, Storage

_logger = logging.getLogger(__name__)


class FitmentClient:
    """Async client for the fitment service and storefront catalog.

    Usage::

        async with FitmentClient(config) as client:
            finder = client.create_finder("main")
            await finder.initialize()

    Parameters
    ----------
    config : FitmentConfig
        Token, endpoints and cache tuning.
    session : aiohttp.ClientSession, optional
        Externally owned HTTP session; it is not closed on exit.
    durable_storage, session_storage : Storage, optional
        Backends for the two cache scopes.  Defaults to a
        :class:`FileStorage` at ``config.durable_cache_path`` (or memory)
        and a fresh :class:`MemoryStorage`.
    transport, catalog : optional
        Replacements for the HTTP transport and SKU resolver, mainly for
        tests.
    clock : callable
        Epoch seconds source for cache expiry.
    """

    def __init__(
        self,
        config: FitmentConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        durable_storage: Storage | None = None,
        session_storage: Storage | None = None,
        transport: Transport | None = None,
        catalog: CatalogLookup | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._durable: Storage = durable_storage or (
            FileStorage(config.durable_cache_path) if config.durable_cache_path else MemoryStorage()
        )
        self._session_storage: Storage = session_storage or MemoryStorage()
        self._vehicle_store = LastVehicleStore(self._durable)
        self._injected_transport = transport
        self._injected_catalog = catalog
        self._transport: Transport | None = transport
        self._catalog: CatalogLookup | None = catalog
        self._clock = clock
        self._finders: dict[str, FitmentFinder] = {}

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FitmentClient:
        if self._http_session is None and (self._injected_transport is None or self._injected_catalog is None):
            self._http_session = aiohttp.ClientSession()
        if self._transport is None:
            assert self._http_session is not None  # noqa: S101
            self._transport = FitmentTransport(self._config, self._http_session)
        if self._catalog is None and self._config.catalog_base_url:
            assert self._http_session is not None  # noqa: S101
            try:
                self._catalog = StorefrontCatalog(
                    self._config.catalog_base_url,
                    self._http_session,
                    timeout=self._config.request_timeout,
                )
            except FitmentConfigError:
                # Surfaces through the finder's configuration check instead.
                _logger.warning("Ignoring invalid catalog base URL %r", self._config.catalog_base_url)
        validate_cache_version(self._durable, self._session_storage, version=self._config.cache_version)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self._finders.clear()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
        self._http_session = None
        self._transport = self._injected_transport
        self._catalog = self._injected_catalog

    # ------------------------------------------------------------------
    # Finders
    # ------------------------------------------------------------------

    def create_finder(self, instance_id: str, *, with_category: bool = True) -> FitmentFinder:
        """Create (or replace) the finder registered under *instance_id*."""
        finder = FitmentFinder(
            instance_id,
            config=self._config,
            transport=self._require_transport(),
            cache=self._cache_for(instance_id),
            catalog=self._catalog,
            vehicle_store=self._vehicle_store,
            with_category=with_category,
        )
        self._finders[instance_id] = finder
        return finder

    def get_finder(self, instance_id: str) -> FitmentFinder | None:
        return self._finders.get(instance_id)

    @property
    def finders(self) -> dict[str, FitmentFinder]:
        return dict(self._finders)

    # ------------------------------------------------------------------
    # One-shot operations
    # ------------------------------------------------------------------

    async def find_parts(self, selection: VehicleSelection, *, with_category: bool = True) -> ReconciliationResult:
        """Fetch and reconcile the parts fitting *selection*."""
        return await find_parts(
            self._require_transport(),
            self._config.products_url,
            self._catalog,
            selection,
            with_category=with_category,
        )

    async def get_part_fitments(self, item_number: str) -> list[PartFitment]:
        """Return every vehicle *item_number* fits, sorted by make."""
        if not self._config.part_fitments_url:
            raise FitmentConfigError("Part fitments API endpoint is missing.")
        return await fetch_part_fitments(self._require_transport(), self._config.part_fitments_url, item_number)

    @property
    def last_selected_vehicle(self) -> VehicleSelection | None:
        """The last complete selection made by any finder, if any."""
        return self._vehicle_store.load()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _cache_for(self, instance_id: str) -> FitmentCache:
        return FitmentCache(
            instance_id,
            durable=self._durable,
            session=self._session_storage,
            durable_ttl=self._config.durable_ttl,
            session_ttl=self._config.session_ttl,
            version=self._config.cache_version,
            clock=self._clock,
        )

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise FitmentError("Client not initialized. Use 'async with FitmentClient(...) as client:'")
        return self._transport
