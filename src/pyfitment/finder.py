"""Cascading vehicle finder.

A finder walks a dependent chain of selectors, Type -> [Category] -> Make ->
Year -> Model, where each level's options are fetched from the fitment
service using every earlier level's value.  All mutable state for one finder
lives in its :class:`FinderState`; nothing is shared between finders except
the storages behind the cache and the persisted vehicle selection.

Usage::

    finder = client.create_finder("main")
    await finder.initialize()
    await finder.select(Level.TYPE, "ATV")
    ...
    result = await finder.confirm()

Every load takes a fresh request token from the state.  When a load
completes with a token that is no longer current, a later action has
superseded it and its outcome is dropped.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum

from pyfitment._api.catalog import CatalogLookup
from pyfitment._api.fitment import fetch_options
from pyfitment._cache import CacheScope, FitmentCache
from pyfitment._constants import KEY_CATEGORIES, KEY_MAKES, KEY_MODELS, KEY_TYPES, KEY_YEARS
from pyfitment._transport import Transport
from pyfitment.config import FitmentConfig
from pyfitment.errors import ClassifiedError, ErrorKind, classify_error
from pyfitment.exceptions import FitmentConfigError, FitmentError, FitmentValidationError
from pyfitment.models.product import ReconciliationResult
from pyfitment.models.vehicle import VehicleSelection
from pyfitment.normalize import shape_categories, shape_years, sort_options, split_category
from pyfitment.reconcile import find_parts
from pyfitment.storage import LastVehicleStore

_logger = logging.getLogger(__name__)


class Level(StrEnum):
    TYPE = "type"
    CATEGORY = "category"
    MAKE = "make"
    YEAR = "year"
    MODEL = "model"


class LevelStatus(StrEnum):
    DISABLED = "disabled"
    LOADING = "loading"
    POPULATED = "populated"
    EMPTY = "empty"
    """Loaded successfully with zero options; stays disabled."""
    ERROR = "error"


PLACEHOLDERS: dict[Level, str] = {
    Level.TYPE: "-- Select Type --",
    Level.CATEGORY: "-- Select Category --",
    Level.MAKE: "-- Select Make --",
    Level.YEAR: "-- Select Year --",
    Level.MODEL: "-- Select Model --",
}

_LABELS: dict[Level, str] = {
    Level.TYPE: "types",
    Level.CATEGORY: "categories",
    Level.MAKE: "makes",
    Level.YEAR: "years",
    Level.MODEL: "models",
}

_RESPONSE_KEYS: dict[Level, str] = {
    Level.TYPE: KEY_TYPES,
    Level.CATEGORY: KEY_CATEGORIES,
    Level.MAKE: KEY_MAKES,
    Level.YEAR: KEY_YEARS,
    Level.MODEL: KEY_MODELS,
}

_SHAPERS: dict[Level, Callable[[list], list]] = {
    Level.TYPE: sort_options,
    Level.CATEGORY: shape_categories,
    Level.MAKE: sort_options,
    Level.YEAR: shape_years,
    Level.MODEL: sort_options,
}

FULL_LEVELS: tuple[Level, ...] = (Level.TYPE, Level.CATEGORY, Level.MAKE, Level.YEAR, Level.MODEL)
SHORT_LEVELS: tuple[Level, ...] = (Level.TYPE, Level.MAKE, Level.YEAR, Level.MODEL)

INCOMPLETE_SELECTION_MESSAGE = "Please ensure all fields are selected."


@dataclass
class LevelState:
    """One selector of the cascade."""

    level: Level
    status: LevelStatus = LevelStatus.DISABLED
    options: list[str | int] = field(default_factory=list)
    value: str = ""

    @property
    def placeholder(self) -> str:
        return PLACEHOLDERS[self.level]

    @property
    def enabled(self) -> bool:
        return self.status is LevelStatus.POPULATED

    def reset(self) -> None:
        self.status = LevelStatus.DISABLED
        self.options = []
        self.value = ""


@dataclass
class FinderState:
    """All mutable state of one finder instance."""

    instance_id: str
    levels: dict[Level, LevelState]
    error: ClassifiedError | None = None
    """The single current error; a new one replaces it."""
    notice: str | None = None
    """Not-found message (empty option list); never offers a retry."""
    results: ReconciliationResult | None = None
    searching: bool = False
    pending_action: Callable[[], Awaitable[object]] | None = None
    """Replays the last failed request when the error is retryable."""
    request_token: int = 0

    def next_token(self) -> int:
        self.request_token += 1
        return self.request_token

    def is_current(self, token: int) -> bool:
        return token == self.request_token


@dataclass(frozen=True)
class _LevelRequest:
    level: Level
    url: str
    params: dict[str, str]
    cache_key: str
    scope: CacheScope


class FitmentFinder:
    """Cascade state machine for one finder instance.

    Parameters
    ----------
    instance_id : str
        Identifier namespacing this finder's cache entries.
    config : FitmentConfig
        Endpoint URLs and token.
    transport : Transport
        Authenticated fitment service transport.
    cache : FitmentCache
        Cache namespaced to *instance_id*.
    catalog : CatalogLookup or None
        SKU resolver used by :meth:`confirm`.
    vehicle_store : LastVehicleStore
        Durable record of the last complete selection.
    with_category : bool
        ``False`` drops the category level (four-level cascade).
    """

    def __init__(
        self,
        instance_id: str,
        *,
        config: FitmentConfig,
        transport: Transport,
        cache: FitmentCache,
        catalog: CatalogLookup | None,
        vehicle_store: LastVehicleStore,
        with_category: bool = True,
    ) -> None:
        self._config = config
        self._transport = transport
        self._cache = cache
        self._catalog = catalog
        self._vehicle_store = vehicle_store
        self._with_category = with_category
        self._levels = FULL_LEVELS if with_category else SHORT_LEVELS
        self._state = FinderState(
            instance_id=instance_id,
            levels={level: LevelState(level) for level in self._levels},
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> FinderState:
        return self._state

    @property
    def instance_id(self) -> str:
        return self._state.instance_id

    @property
    def levels(self) -> tuple[Level, ...]:
        return self._levels

    @property
    def with_category(self) -> bool:
        return self._with_category

    def level(self, level: Level) -> LevelState:
        return self._state.levels[level]

    @property
    def can_confirm(self) -> bool:
        if self._state.searching:
            return False
        return all(self._state.levels[level].value for level in self._levels)

    def current_selection(self) -> VehicleSelection:
        values = {level: slot.value for level, slot in self._state.levels.items()}
        category, sub_category = split_category(values.get(Level.CATEGORY, ""))
        return VehicleSelection(
            type=values[Level.TYPE],
            make=values[Level.MAKE],
            year=values[Level.YEAR],
            model=values[Level.MODEL],
            category=category,
            sub_category=sub_category,
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Disable every level and load the vehicle types."""
        state = self._state
        state.next_token()
        state.searching = False
        state.error = None
        state.notice = None
        for slot in state.levels.values():
            slot.reset()

        try:
            self._config.require(with_category=self._with_category)
        except FitmentConfigError as exc:
            state.pending_action = None
            self._fail(exc)
            return

        await self._run_load(self._request_for(Level.TYPE))

    async def select(self, level: Level, value: str | int) -> None:
        """Choose *value* at *level* and load the next level.

        Raises :class:`FitmentValidationError` when *level* is not part of
        this finder, is not populated, or *value* is not one of its options.
        """
        if level not in self._state.levels:
            raise FitmentValidationError(f"{level} is not a level of this finder")
        state = self._state
        slot = state.levels[level]
        if slot.status is not LevelStatus.POPULATED:
            raise FitmentValidationError(f"{level} has no options to select from")
        text = str(value).strip()
        if text and text not in {str(option) for option in slot.options}:
            raise FitmentValidationError(f"{text!r} is not a valid {level}")

        # Anything still in flight belongs to the previous selection.
        state.next_token()
        state.searching = False
        slot.value = text
        index = self._levels.index(level)
        for later in self._levels[index + 1 :]:
            state.levels[later].reset()

        is_terminal = index == len(self._levels) - 1
        state.error = None
        state.notice = None
        state.pending_action = None
        if not is_terminal:
            state.results = None

        self._vehicle_store.save(self.current_selection(), with_category=self._with_category)

        if text and not is_terminal:
            request = self._request_for(self._levels[index + 1])
            if request is not None:
                await self._run_load(request)

    async def confirm(self) -> ReconciliationResult | None:
        """Search parts for the current selection.

        Returns the reconciled result, or ``None`` when the selection is
        incomplete or the search failed (see ``state.error``).
        """
        state = self._state
        selection = self.current_selection()
        self._vehicle_store.save(selection, with_category=self._with_category)
        if not selection.is_complete(with_category=self._with_category):
            state.pending_action = None
            self._fail(FitmentValidationError(INCOMPLETE_SELECTION_MESSAGE))
            return None
        return await self._search(selection)

    async def retry(self) -> bool:
        """Replay the pending action if the current error is retryable."""
        state = self._state
        action = state.pending_action
        if action is None or state.error is None or not state.error.retryable:
            return False
        state.error = None
        await action()
        return True

    async def reset(self) -> None:
        """Forget everything for this instance and start over."""
        state = self._state
        state.next_token()
        self._cache.clear()
        self._vehicle_store.clear()
        for slot in state.levels.values():
            slot.reset()
        state.results = None
        state.error = None
        state.notice = None
        state.pending_action = None
        state.searching = False
        await self.initialize()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _search(self, selection: VehicleSelection) -> ReconciliationResult | None:
        """Fetch and reconcile parts for *selection*; a retry replays the same one."""
        state = self._state
        token = state.next_token()
        state.pending_action = functools.partial(self._search, selection)
        state.error = None
        state.notice = None
        state.searching = True
        try:
            result = await find_parts(
                self._transport,
                self._config.products_url,
                self._catalog,
                selection,
                with_category=self._with_category,
            )
        except FitmentError as exc:
            if state.is_current(token):
                state.results = None
                self._fail(exc, prefix="Failed to find parts")
            return None
        finally:
            if state.is_current(token):
                state.searching = False

        if state.is_current(token):
            state.results = result
            state.notice = result.summary
            state.pending_action = None
        return result

    def _fail(self, exc: BaseException, *, prefix: str | None = None) -> None:
        classified = classify_error(exc)
        if prefix:
            classified = classified.model_copy(update={"message": f"{prefix}: {classified.message}"})
        self._state.error = classified
        if classified.kind is ErrorKind.CONFIGURATION:
            for slot in self._state.levels.values():
                slot.reset()
        _logger.warning("Fitment finder %s: %s", self._state.instance_id, classified.message)

    def _endpoint(self, level: Level) -> str:
        urls = {
            Level.TYPE: self._config.types_url,
            Level.CATEGORY: self._config.categories_url,
            Level.MAKE: self._config.makes_url,
            Level.YEAR: self._config.years_url,
            Level.MODEL: self._config.models_url,
        }
        return urls[level] or ""

    def _request_for(self, level: Level) -> _LevelRequest | None:
        """Build the load request for *level* from the ancestor values.

        Returns ``None`` when an ancestor is still empty.
        """
        if level is Level.TYPE:
            return _LevelRequest(level, self._endpoint(level), {}, "types", CacheScope.DURABLE)

        values = {lvl: slot.value for lvl, slot in self._state.levels.items()}
        ancestors = self._levels[: self._levels.index(level)]
        if not all(values[ancestor] for ancestor in ancestors):
            return None

        params = {"type": values[Level.TYPE]}
        key_parts = [values[Level.TYPE]]
        if Level.CATEGORY in ancestors:
            category, sub_category = split_category(values[Level.CATEGORY])
            params["category"] = category
            if sub_category:
                params["subCategory"] = sub_category
            key_parts.append(values[Level.CATEGORY])
        for ancestor in (Level.MAKE, Level.YEAR):
            if ancestor in ancestors:
                params[ancestor.value] = values[ancestor]
                key_parts.append(values[ancestor])

        cache_key = f"{_LABELS[level]}_{'_'.join(key_parts)}"
        return _LevelRequest(level, self._endpoint(level), params, cache_key, CacheScope.SESSION)

    async def _run_load(self, request: _LevelRequest) -> None:
        """Fill one level, cache first, then the service."""
        state = self._state
        level = request.level
        label = _LABELS[level]
        token = state.next_token()
        state.pending_action = functools.partial(self._run_load, request)
        state.error = None
        state.notice = None
        slot = state.levels[level]
        slot.reset()
        slot.status = LevelStatus.LOADING

        try:
            raw = self._cache.get(request.cache_key, request.scope)
            if not isinstance(raw, list):
                if not request.url:
                    raise FitmentConfigError(f"{label.capitalize()} API endpoint is missing.")
                raw = await fetch_options(
                    self._transport,
                    request.url,
                    response_key=_RESPONSE_KEYS[level],
                    label=label,
                    params=request.params,
                )
                self._cache.set(request.cache_key, raw, request.scope)
            options = _SHAPERS[level](raw)
        except FitmentError as exc:
            if not state.is_current(token):
                return
            slot.reset()
            slot.status = LevelStatus.ERROR
            prefix = "Initialization failed" if level is Level.TYPE else f"Failed to load {label}"
            self._fail(exc, prefix=prefix)
            return

        if not state.is_current(token):
            _logger.debug("Dropping superseded %s load for %s", label, state.instance_id)
            return

        state.pending_action = None
        if not options:
            slot.status = LevelStatus.EMPTY
            state.notice = (
                "No vehicle types are available."
                if level is Level.TYPE
                else f"No {label} found for the current selection."
            )
            return
        slot.options = list(options)
        slot.status = LevelStatus.POPULATED
