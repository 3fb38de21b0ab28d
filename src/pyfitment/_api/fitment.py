"""Fitment service endpoints: cascading options, products and part fitments."""

from __future__ import annotations

import logging
from typing import Any

from pyfitment._constants import KEY_PART_FITMENTS, KEY_PRODUCTS
from pyfitment._transport import Transport
from pyfitment.errors import ErrorKind
from pyfitment.exceptions import FitmentRequestError
from pyfitment.models.product import FitmentRecord, PartFitment
from pyfitment.models.vehicle import VehicleSelection

_logger = logging.getLogger(__name__)


def extract_list(payload: Any, key: str, *, label: str, endpoint: str = "") -> list[Any]:
    """Pull the list stored under *key* out of an unwrapped payload.

    ``None`` (e.g. 204 No Content) is an empty list and a bare list is
    accepted as-is.  Anything else is a permanent format error.
    """
    if payload is None:
        return []
    data = payload.get(key) if isinstance(payload, dict) else payload
    if data is None and isinstance(payload, dict) and not payload:
        return []
    if not isinstance(data, list):
        raise FitmentRequestError(
            f"Invalid {label} data format.",
            retryable=False,
            kind=ErrorKind.PERMANENT,
            endpoint=endpoint,
        )
    return data


async def fetch_options(
    transport: Transport,
    url: str,
    *,
    response_key: str,
    label: str,
    params: dict[str, str] | None = None,
) -> list[Any]:
    """Fetch the raw option list for one cascade level."""
    payload = await transport.request(url, params=params)
    return extract_list(payload, response_key, label=label, endpoint=url)


async def fetch_fitment_records(
    transport: Transport,
    url: str,
    selection: VehicleSelection,
    *,
    with_category: bool = True,
) -> list[FitmentRecord]:
    """Fetch every part compatible with a fully specified vehicle."""
    payload = await transport.request(url, params=selection.to_query_params(with_category=with_category))
    items = extract_list(payload, KEY_PRODUCTS, label="product", endpoint=url)
    records = [FitmentRecord.model_validate(item) for item in items if isinstance(item, dict)]
    if len(records) != len(items):
        _logger.debug("Skipped %d malformed fitment product row(s)", len(items) - len(records))
    return records


async def fetch_part_fitments(transport: Transport, url: str, item_number: str) -> list[PartFitment]:
    """Fetch the vehicles a single part fits, sorted by make (case-insensitive)."""
    payload = await transport.request(url, params={"itemNumber": item_number})
    items = extract_list(payload, KEY_PART_FITMENTS, label="fitment", endpoint=url)
    fitments = [PartFitment.model_validate(item) for item in items if isinstance(item, dict)]
    return sorted(fitments, key=lambda fitment: fitment.fitment_make.casefold())
