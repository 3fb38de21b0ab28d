"""Client configuration for pyfitment."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyfitment._constants import (
    CURRENT_CACHE_VERSION,
    DEFAULT_REQUEST_TIMEOUT,
    DURABLE_CACHE_TTL_SECONDS,
    SESSION_CACHE_TTL_SECONDS,
)
from pyfitment.exceptions import FitmentConfigError


@dataclasses.dataclass(frozen=True)
class FitmentConfig:
    """Client configuration.

    Parameters
    ----------
    api_token : str
        Bearer token for the fitment service.
    types_url : str or None
        Endpoint returning ``{"types": [...]}``.
    categories_url : str or None
        Endpoint returning ``{"fitmentCategories": [...]}``.  Only
        required by finders that include the category level.
    makes_url : str or None
        Endpoint returning ``{"makes": [...]}``.
    years_url : str or None
        Endpoint returning ``{"years": [...]}``.
    models_url : str or None
        Endpoint returning ``{"models": [...]}``.
    products_url : str or None
        Endpoint returning ``{"fitmentProducts": [...]}`` for a fully
        specified vehicle.
    part_fitments_url : str or None
        Endpoint returning ``{"fitments": [...]}`` for a single part
        number.  Optional; only used by
        :meth:`pyfitment.FitmentClient.get_part_fitments`.
    catalog_base_url : str
        Storefront base URL used for unauthenticated SKU lookups.
    request_timeout : float
        Fixed per-request budget in seconds.
    durable_ttl : float
        Lifetime of durable cache entries (vehicle types) in seconds.
    session_ttl : float
        Lifetime of session cache entries (categories, makes, years,
        models) in seconds.
    cache_version : str
        Expected global cache version.  A different stamped value purges
        every cached entry on first use.
    durable_cache_path : str or None
        JSON file backing the durable scope.  ``None`` keeps durable
        entries in memory for the lifetime of the client.
    """

    api_token: str = ""
    types_url: str | None = None
    categories_url: str | None = None
    makes_url: str | None = None
    years_url: str | None = None
    models_url: str | None = None
    products_url: str | None = None
    part_fitments_url: str | None = None
    catalog_base_url: str = ""
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    durable_ttl: float = DURABLE_CACHE_TTL_SECONDS
    session_ttl: float = SESSION_CACHE_TTL_SECONDS
    cache_version: str = CURRENT_CACHE_VERSION
    durable_cache_path: str | None = None

    def require(self, *, with_category: bool = True) -> None:
        """Raise :class:`FitmentConfigError` if a required value is missing."""
        if not self.api_token or not self.api_token.strip():
            raise FitmentConfigError("API Token is missing. Please configure it.")

        required = ["types_url", "makes_url", "years_url", "models_url", "products_url", "catalog_base_url"]
        if with_category:
            required.insert(1, "categories_url")
        missing = [name for name in required if not getattr(self, name)]
        if missing:
            raise FitmentConfigError(f"Missing fitment endpoint(s): {', '.join(missing)}")

    @classmethod
    def from_env(cls, **overrides: Any) -> FitmentConfig:
        """Create configuration from environment variables.

        Reads ``FITMENT_API_TOKEN``, the ``FITMENT_*_URL`` endpoint
        variables and the optional tuning variables.  Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        FitmentConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "FITMENT_API_TOKEN": "api_token",
            "FITMENT_TYPES_URL": "types_url",
            "FITMENT_CATEGORIES_URL": "categories_url",
            "FITMENT_MAKES_URL": "makes_url",
            "FITMENT_YEARS_URL": "years_url",
            "FITMENT_MODELS_URL": "models_url",
            "FITMENT_PRODUCTS_URL": "products_url",
            "FITMENT_PART_FITMENTS_URL": "part_fitments_url",
            "FITMENT_CATALOG_BASE_URL": "catalog_base_url",
            "FITMENT_CACHE_VERSION": "cache_version",
            "FITMENT_DURABLE_CACHE_PATH": "durable_cache_path",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        # numeric values, handled separately
        _ENV_FLOAT_MAP = {
            "FITMENT_REQUEST_TIMEOUT": "request_timeout",
            "FITMENT_DURABLE_TTL": "durable_ttl",
            "FITMENT_SESSION_TTL": "session_ttl",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                try:
                    config_kwargs[field_name] = float(val)
                except ValueError as exc:
                    raise FitmentConfigError(f"{env_key} must be a number, got {val!r}") from exc

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
