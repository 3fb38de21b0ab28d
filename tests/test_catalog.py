from __future__ import annotations

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from pyfitment._api.catalog import StorefrontCatalog, match_variant, normalize_sku, suggest_params
from pyfitment._constants import NO_IMAGE_URL
from pyfitment.exceptions import FitmentConfigError

OIL_FILTER = {
    "handle": "oil-filter",
    "title": "Oil Filter",
    "featured_image": "https://cdn.example.com/oil-filter.jpg",
    "variants": [
        {"id": 41, "sku": "XYZ-9", "title": "Large", "price": 1999, "available": True},
        {
            "id": 42,
            "sku": "ABC-1 ",
            "title": "Default Title",
            "price": 4299,
            "available": True,
            "featured_image": {"src": "https://cdn.example.com/abc-1.jpg", "alt": "ABC-1 filter"},
        },
    ],
}


def _app(queries: list[str], *, suggest_status: int = 200) -> web.Application:
    async def suggest(request: web.Request) -> web.Response:
        queries.append(request.query["q"])
        if suggest_status != 200:
            return web.Response(status=suggest_status)
        products = [{"handle": "oil-filter"}] if "abc-1" in request.query["q"] else []
        if "broken" in request.query["q"]:
            products = [{"handle": "broken"}]
        return web.json_response({"resources": {"results": {"products": products}}})

    async def product(request: web.Request) -> web.Response:
        handle = request.match_info["handle"]
        if handle == "oil-filter.js":
            return web.json_response(OIL_FILTER)
        return web.Response(text="{not json", content_type="application/javascript")

    app = web.Application()
    app.router.add_get("/search/suggest.json", suggest)
    app.router.add_get("/products/{handle}", product)
    return app


@pytest.mark.asyncio
async def test_find_by_sku_resolves_exact_variant() -> None:
    queries: list[str] = []
    async with TestServer(_app(queries)) as server, aiohttp.ClientSession() as session:
        catalog = StorefrontCatalog(str(server.make_url("/")), session)

        match = await catalog.find_by_sku("  ABC-1 ")

    assert queries == ['variants.sku:"abc-1"']
    assert match is not None
    assert match.variant.sku == "ABC-1"
    assert match.url == "/products/oil-filter?variant=42"
    assert match.display_title == "Oil Filter"
    assert match.display_price == "$42.99"
    assert match.image_url == "https://cdn.example.com/abc-1.jpg"
    assert match.image_alt == "ABC-1 filter"


@pytest.mark.asyncio
async def test_unknown_sku_is_none() -> None:
    async with TestServer(_app([])) as server, aiohttp.ClientSession() as session:
        catalog = StorefrontCatalog(str(server.make_url("/")), session)

        assert await catalog.find_by_sku("NOPE-0") is None


@pytest.mark.asyncio
async def test_server_error_is_indistinguishable_from_absence() -> None:
    async with TestServer(_app([], suggest_status=500)) as server, aiohttp.ClientSession() as session:
        catalog = StorefrontCatalog(str(server.make_url("/")), session)

        assert await catalog.find_by_sku("ABC-1") is None


@pytest.mark.asyncio
async def test_malformed_product_record_is_none() -> None:
    async with TestServer(_app([])) as server, aiohttp.ClientSession() as session:
        catalog = StorefrontCatalog(str(server.make_url("/")), session)

        assert await catalog.find_by_sku("broken") is None


@pytest.mark.asyncio
async def test_blank_sku_makes_no_request() -> None:
    queries: list[str] = []
    async with TestServer(_app(queries)) as server, aiohttp.ClientSession() as session:
        catalog = StorefrontCatalog(str(server.make_url("/")), session)

        assert await catalog.find_by_sku("   ") is None

    assert queries == []


@pytest.mark.asyncio
async def test_invalid_base_url_is_rejected() -> None:
    async with aiohttp.ClientSession() as session:
        with pytest.raises(FitmentConfigError):
            StorefrontCatalog("shop.example.com", session)


def test_suggest_params_constrain_to_one_product() -> None:
    params = suggest_params("abc-1")
    assert params["q"] == 'variants.sku:"abc-1"'
    assert params["resources[limit]"] == "1"
    assert params["resources[options][unavailable_products]"] == "show"


def test_match_variant_requires_exact_sku() -> None:
    assert match_variant(OIL_FILTER, normalize_sku("ABC")) is None
    assert match_variant({"variants": "nope"}, "abc-1") is None


def test_match_falls_back_to_product_image_then_placeholder() -> None:
    match = match_variant(OIL_FILTER, "xyz-9")
    assert match is not None
    assert match.display_title == "Oil Filter Large"
    assert match.image_url == "https://cdn.example.com/oil-filter.jpg"
    assert match.image_alt == "Oil Filter"

    bare = match_variant({"handle": "bolt", "variants": [{"sku": "B-1"}]}, "b-1")
    assert bare is not None
    assert bare.image_url == NO_IMAGE_URL
    assert bare.display_price == "N/A"
    assert bare.display_title == "Product Title Missing"
    assert bare.url == "/products/bolt"
