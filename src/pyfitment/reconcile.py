"""Fan-out reconciliation of fitment records against the storefront catalog."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from pyfitment._api.catalog import CatalogLookup
from pyfitment._api.fitment import fetch_fitment_records
from pyfitment._transport import Transport
from pyfitment.exceptions import FitmentConfigError
from pyfitment.models.product import CatalogMatch, FitmentRecord, ReconciledItem, ReconciliationResult
from pyfitment.models.vehicle import VehicleSelection

_logger = logging.getLogger(__name__)


async def _lookup(catalog: CatalogLookup, record: FitmentRecord) -> CatalogMatch | None:
    """Resolve one record; a failing lookup counts as "not found"."""
    if not record.item_number:
        return None
    try:
        return await catalog.find_by_sku(record.item_number)
    except Exception:
        _logger.debug("Catalog lookup for %s raised", record.item_number, exc_info=True)
        return None


async def reconcile_records(records: Sequence[FitmentRecord], catalog: CatalogLookup) -> ReconciliationResult:
    """Look up every record concurrently and merge in the original order.

    Returns only once every lookup has settled.  One lookup failing never
    affects another.
    """
    outcomes = await asyncio.gather(
        *(_lookup(catalog, record) for record in records),
        return_exceptions=True,
    )
    items: list[ReconciledItem] = []
    for record, outcome in zip(records, outcomes, strict=True):
        match = outcome if isinstance(outcome, CatalogMatch) else None
        items.append(ReconciledItem(source_record=record, catalog_match=match))
    _logger.debug("Reconciled %d record(s), %d matched", len(items), sum(item.is_matched for item in items))
    return ReconciliationResult(items=items)


async def find_parts(
    transport: Transport,
    products_url: str | None,
    catalog: CatalogLookup | None,
    selection: VehicleSelection,
    *,
    with_category: bool = True,
) -> ReconciliationResult:
    """Resolve the compatible parts for *selection* and reconcile them.

    A failure fetching the fitment records raises
    :class:`~pyfitment.exceptions.FitmentRequestError`; catalog lookups never
    raise.
    """
    if not products_url:
        raise FitmentConfigError("Products API endpoint is missing.")
    if catalog is None:
        raise FitmentConfigError("Catalog base URL is missing.")
    records = await fetch_fitment_records(transport, products_url, selection, with_category=with_category)
    return await reconcile_records(records, catalog)
