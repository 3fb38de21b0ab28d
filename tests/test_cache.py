from __future__ import annotations

import json

from pyfitment._cache import CacheScope, FitmentCache, validate_cache_version
from pyfitment.exceptions import FitmentStorageError
from pyfitment.storage import MemoryStorage


class _Clock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class _BrokenStorage:
    """Storage whose every operation fails, like a disabled browser store."""

    def get_item(self, key: str) -> str | None:
        raise FitmentStorageError("storage disabled")

    def set_item(self, key: str, value: str) -> None:
        raise FitmentStorageError("storage disabled")

    def remove_item(self, key: str) -> None:
        raise FitmentStorageError("storage disabled")

    def keys(self) -> list[str]:
        raise FitmentStorageError("storage disabled")


def _cache(
    instance_id: str = "main",
    *,
    durable: MemoryStorage | None = None,
    session: MemoryStorage | None = None,
    clock: _Clock | None = None,
) -> FitmentCache:
    return FitmentCache(
        instance_id,
        durable=durable if durable is not None else MemoryStorage(),
        session=session if session is not None else MemoryStorage(),
        clock=clock or _Clock(),
    )


def test_set_then_get_returns_value_unchanged() -> None:
    cache = _cache()
    value = [{"category": "Engine", "subCategory": "Filters"}]

    cache.set("categories_ATV", value)

    assert cache.get("categories_ATV") == value


def test_session_entry_expires_and_is_removed() -> None:
    clock = _Clock()
    session = MemoryStorage()
    cache = _cache(session=session, clock=clock)
    cache.set("makes_ATV", ["Yamaha"], CacheScope.SESSION)

    clock.now += 30 * 60
    assert cache.get("makes_ATV") == ["Yamaha"]

    clock.now += 1
    assert cache.get("makes_ATV") is None
    assert "fitmentCache_main_makes_ATV" not in session.keys()


def test_durable_entry_outlives_session_expiry() -> None:
    clock = _Clock()
    cache = _cache(clock=clock)
    cache.set("types", ["ATV"], CacheScope.DURABLE)

    clock.now += 60 * 60
    assert cache.get("types", CacheScope.DURABLE) == ["ATV"]

    clock.now += 24 * 60 * 60
    assert cache.get("types", CacheScope.DURABLE) is None


def test_entries_are_stored_with_epoch_millisecond_expiry() -> None:
    clock = _Clock(1000.0)
    session = MemoryStorage()
    cache = _cache(session=session, clock=clock)

    cache.set("years_ATV__Yamaha", [2020])

    raw = json.loads(session.get_item("fitmentCache_main_years_ATV__Yamaha") or "{}")
    assert raw == {"value": [2020], "expiry": 1000 * 1000 + 30 * 60 * 1000}


def test_scopes_are_separate() -> None:
    cache = _cache()
    cache.set("types", ["ATV"], CacheScope.DURABLE)

    assert cache.get("types", CacheScope.SESSION) is None


def test_version_change_purges_prefixed_keys_only() -> None:
    durable = MemoryStorage()
    session = MemoryStorage()
    durable.set_item("fitmentGlobalCacheVersion", "v1.0.1")
    durable.set_item("fitmentCache_main_types", "{}")
    durable.set_item("lastSelectedVehicle", "{}")
    durable.set_item("cartToken", "abc")
    session.set_item("fitmentCache_other_makes_ATV", "{}")
    session.set_item("recentlyViewed", "[]")

    cleared = validate_cache_version(durable, session, version="v1.0.2")

    assert cleared == 3
    assert sorted(durable.keys()) == ["cartToken", "fitmentGlobalCacheVersion"]
    assert durable.get_item("fitmentGlobalCacheVersion") == "v1.0.2"
    assert session.keys() == ["recentlyViewed"]


def test_same_version_leaves_entries_alone() -> None:
    durable = MemoryStorage()
    durable.set_item("fitmentGlobalCacheVersion", "v1.0.2")
    durable.set_item("fitmentCache_main_types", "{}")

    assert validate_cache_version(durable, version="v1.0.2") == 0
    assert "fitmentCache_main_types" in durable.keys()


def test_cache_validates_version_before_first_use() -> None:
    durable = MemoryStorage()
    durable.set_item("fitmentCache_main_types", json.dumps({"value": ["Stale"], "expiry": 10**15}))

    cache = _cache(durable=durable)

    assert cache.get("types", CacheScope.DURABLE) is None
    assert durable.get_item("fitmentGlobalCacheVersion") == "v1.0.2"


def test_unusable_storage_degrades_to_miss() -> None:
    cache = FitmentCache("main", durable=_BrokenStorage(), session=_BrokenStorage())

    cache.set("types", ["ATV"], CacheScope.DURABLE)

    assert cache.get("types", CacheScope.DURABLE) is None
    assert cache.clear() == 0


def test_quota_exceeded_write_is_ignored() -> None:
    session = MemoryStorage(max_items=1)
    cache = _cache(session=session)

    cache.set("makes_ATV", ["Yamaha"])
    cache.set("makes_UTV", ["Polaris"])

    assert cache.get("makes_ATV") == ["Yamaha"]
    assert cache.get("makes_UTV") is None


def test_unreadable_entry_is_a_miss() -> None:
    session = MemoryStorage()
    cache = _cache(session=session)
    session.set_item("fitmentCache_main_makes_ATV", "not json")

    assert cache.get("makes_ATV") is None


def test_clear_only_touches_own_instance() -> None:
    durable = MemoryStorage()
    session = MemoryStorage()
    main = _cache("main", durable=durable, session=session)
    side = _cache("side", durable=durable, session=session)
    main.set("types", ["ATV"], CacheScope.DURABLE)
    main.set("makes_ATV", ["Yamaha"])
    side.set("makes_ATV", ["Honda"])

    assert main.clear() == 2

    assert main.get("makes_ATV") is None
    assert main.get("types", CacheScope.DURABLE) is None
    assert side.get("makes_ATV") == ["Honda"]


def test_clear_single_scope() -> None:
    cache = _cache()
    cache.set("types", ["ATV"], CacheScope.DURABLE)
    cache.set("makes_ATV", ["Yamaha"])

    assert cache.clear(CacheScope.SESSION) == 1
    assert cache.get("types", CacheScope.DURABLE) == ["ATV"]
