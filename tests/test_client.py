from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from pyfitment.client import FitmentClient
from pyfitment.config import FitmentConfig
from pyfitment.exceptions import FitmentConfigError, FitmentError
from pyfitment.finder import Level, LevelStatus
from pyfitment.models.product import CatalogMatch
from pyfitment.models.vehicle import VehicleSelection
from pyfitment.storage import FileStorage, MemoryStorage

FITMENTS_URL = "https://fitment.example.com/api/part-fitments"


def _config(**overrides: Any) -> FitmentConfig:
    values: dict[str, Any] = {
        "api_token": "token-1234",
        "types_url": "https://fitment.example.com/api/types",
        "categories_url": "https://fitment.example.com/api/categories",
        "makes_url": "https://fitment.example.com/api/makes",
        "years_url": "https://fitment.example.com/api/years",
        "models_url": "https://fitment.example.com/api/models",
        "products_url": "https://fitment.example.com/api/products",
        "part_fitments_url": FITMENTS_URL,
        "catalog_base_url": "https://shop.example.com",
    }
    values.update(overrides)
    return FitmentConfig(**values)


class _FakeBackend:
    """Answers every fitment endpoint from canned payloads."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, str]]] = []

    async def request(self, url: str, *, method: str = "GET", params: Any = None, body: Any = None) -> Any:
        query = dict(params or {})
        self.calls.append((url, query))
        if url.endswith("/types"):
            return {"types": ["ATV"]}
        if url == FITMENTS_URL:
            return {
                "fitments": [
                    {"fitmentMake": "yamaha", "fitmentModel": "Raptor 700", "fitmentYears": "2006-2020"},
                    {"fitmentMake": "Honda", "fitmentModel": "TRX450R", "fitmentYears": "2004-2009"},
                    {"fitmentMake": "Arctic Cat", "fitmentModel": "DVX400", "fitmentYears": "2004-2008"},
                ]
            }
        if url.endswith("/products"):
            return {"fitmentProducts": [{"itemNumber": "ABC-1"}]}
        raise AssertionError(f"unexpected request {url}")


class _NoCatalog:
    async def find_by_sku(self, sku: str) -> CatalogMatch | None:
        return None


def test_client_requires_context_manager() -> None:
    client = FitmentClient(_config())

    with pytest.raises(FitmentError, match="not initialized"):
        client.create_finder("main")


@pytest.mark.asyncio
async def test_finders_share_storage_but_not_state() -> None:
    backend = _FakeBackend()
    async with FitmentClient(_config(), transport=backend, catalog=_NoCatalog()) as client:
        first = client.create_finder("header")
        second = client.create_finder("sidebar", with_category=False)
        await first.initialize()
        await second.initialize()

        assert client.get_finder("header") is first
        assert set(client.finders) == {"header", "sidebar"}
        assert first.level(Level.TYPE).status is LevelStatus.POPULATED
        assert second.levels == (Level.TYPE, Level.MAKE, Level.YEAR, Level.MODEL)
        assert first.state is not second.state
    # Type caches are namespaced per instance.
    assert sum(1 for url, _ in backend.calls if url.endswith("/types")) == 2


@pytest.mark.asyncio
async def test_get_part_fitments_sorted_by_make() -> None:
    backend = _FakeBackend()
    async with FitmentClient(_config(), transport=backend, catalog=_NoCatalog()) as client:
        fitments = await client.get_part_fitments("ABC-1")

    assert [f.fitment_make for f in fitments] == ["Arctic Cat", "Honda", "yamaha"]
    assert backend.calls == [(FITMENTS_URL, {"itemNumber": "ABC-1"})]


@pytest.mark.asyncio
async def test_get_part_fitments_needs_endpoint() -> None:
    async with FitmentClient(_config(part_fitments_url=None), transport=_FakeBackend(), catalog=_NoCatalog()) as client:
        with pytest.raises(FitmentConfigError):
            await client.get_part_fitments("ABC-1")


@pytest.mark.asyncio
async def test_find_parts_one_shot() -> None:
    async with FitmentClient(_config(), transport=_FakeBackend(), catalog=_NoCatalog()) as client:
        selection = VehicleSelection(type="ATV", make="Yamaha", year="2019", model="Raptor")
        result = await client.find_parts(selection, with_category=False)

    assert [item.source_record.item_number for item in result.items] == ["ABC-1"]
    assert result.matched_count == 0


@pytest.mark.asyncio
async def test_entering_purges_stale_cache_version() -> None:
    durable = MemoryStorage()
    durable.set_item("fitmentGlobalCacheVersion", "v0.9")
    durable.set_item("fitmentCache_header_types", "{}")
    durable.set_item("lastSelectedVehicle", '{"type":"ATV"}')

    async with FitmentClient(_config(), durable_storage=durable, transport=_FakeBackend(), catalog=_NoCatalog()):
        pass

    assert durable.keys() == ["fitmentGlobalCacheVersion"]
    assert durable.get_item("fitmentGlobalCacheVersion") == "v1.0.2"


@pytest.mark.asyncio
async def test_last_selected_vehicle_persists_in_durable_file(tmp_path: Path) -> None:
    path = tmp_path / "fitment.json"
    selection = VehicleSelection(type="ATV", make="Yamaha", year="2019", model="Raptor")
    FileStorage(path).set_item("lastSelectedVehicle", selection.model_dump_json(by_alias=True))
    FileStorage(path).set_item("fitmentGlobalCacheVersion", "v1.0.2")

    config = _config(durable_cache_path=str(path))
    async with FitmentClient(config, transport=_FakeBackend(), catalog=_NoCatalog()) as client:
        assert client.last_selected_vehicle == selection
