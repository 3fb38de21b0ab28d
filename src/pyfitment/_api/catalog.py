"""Unauthenticated storefront catalog lookup by SKU.

A part number is resolved in two steps:

1. ``/search/suggest.json`` constrained to an exact ``variants.sku`` match,
   returning at most one product handle
2. ``/products/<handle>.js`` for the full record, from which the variant
   whose SKU equals the requested one (trimmed, case-insensitive) is picked

Any failure along the way (non-2xx, timeout, malformed JSON, no exact
match) yields ``None``.  Callers cannot tell a transport failure from a
part the store does not sell.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Protocol

import aiohttp
from yarl import URL

from pyfitment._constants import DEFAULT_REQUEST_TIMEOUT
from pyfitment._transport import validate_url
from pyfitment.models.product import CatalogMatch, CatalogProduct, CatalogVariant

_logger = logging.getLogger(__name__)


class CatalogLookup(Protocol):
    """Structural interface of a SKU -> catalog match resolver."""

    async def find_by_sku(self, sku: str) -> CatalogMatch | None:
        ...


def normalize_sku(sku: Any) -> str:
    if sku is None:
        return ""
    return str(sku).strip().lower()


def suggest_params(normalized_sku: str) -> dict[str, str]:
    return {
        "q": f'variants.sku:"{normalized_sku}"',
        "resources[type]": "product",
        "resources[limit]": "1",
        "resources[options][unavailable_products]": "show",
        "resources[fields]": "handle",
    }


def _first_handle(suggestions: Any) -> str | None:
    if not isinstance(suggestions, dict):
        return None
    resources = suggestions.get("resources")
    results = resources.get("results") if isinstance(resources, dict) else None
    products = results.get("products") if isinstance(results, dict) else None
    if not isinstance(products, list) or not products or not isinstance(products[0], dict):
        return None
    handle = products[0].get("handle")
    return str(handle) if handle else None


def match_variant(product_data: Any, normalized_sku: str, *, handle: str = "") -> CatalogMatch | None:
    """Build a :class:`CatalogMatch` for the variant whose SKU equals *normalized_sku*."""
    if not isinstance(product_data, dict):
        return None
    variants = product_data.get("variants")
    if not isinstance(variants, list):
        return None
    for variant in variants:
        if not isinstance(variant, dict):
            continue
        if normalize_sku(variant.get("sku")) != normalized_sku:
            continue
        product = CatalogProduct(
            handle=str(product_data.get("handle") or handle),
            title=str(product_data.get("title") or ""),
            featured_image=product_data.get("featured_image"),
        )
        return CatalogMatch(product=product, variant=CatalogVariant.model_validate(variant))
    return None


class StorefrontCatalog:
    """Resolves part numbers against a storefront's public JSON endpoints."""

    def __init__(
        self,
        base_url: str,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self._base = validate_url(base_url.rstrip("/"))
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def _get_json(self, url: URL) -> Any | None:
        async with self._http.get(url, headers={"Accept": "application/json"}, timeout=self._timeout) as resp:
            if not 200 <= resp.status < 300:
                _logger.debug("Catalog request %s returned HTTP %s", url, resp.status)
                return None
            text = await resp.text()
        return json.loads(text)

    async def find_by_sku(self, sku: str) -> CatalogMatch | None:
        normalized = normalize_sku(sku)
        if not normalized:
            return None
        try:
            suggest_url = (self._base / "search" / "suggest.json").update_query(suggest_params(normalized))
            handle = _first_handle(await self._get_json(suggest_url))
            if handle is None:
                return None
            product_data = await self._get_json(self._base / "products" / f"{handle}.js")
            return match_variant(product_data, normalized, handle=handle)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            # ValueError covers json.JSONDecodeError and pydantic validation.
            _logger.debug("Catalog lookup for SKU %s failed: %r", normalized, exc)
            return None
