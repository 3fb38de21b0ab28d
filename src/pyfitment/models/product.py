"""Fitment records, catalog matches and reconciliation results."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pyfitment._constants import NO_IMAGE_URL
from pyfitment.models._base import FitmentBaseModel, coerce_str
from pyfitment.normalize import safe_int


class FitmentRecord(FitmentBaseModel):
    """One compatibility row from ``fitmentProducts``.

    Additional service fields are available through ``raw``.
    """

    item_number: str = ""
    """Part number / SKU used for the catalog lookup."""
    description: str = ""
    category: str = ""
    sub_category: str = ""
    type: str = ""

    @field_validator("item_number", "description", "category", "sub_category", "type", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return coerce_str(value)


class PartFitment(FitmentBaseModel):
    """One vehicle a given part fits (``fitments`` of the part lookup)."""

    fitment_make: str = ""
    fitment_model: str = ""
    fitment_years: str = ""

    @field_validator("fitment_make", "fitment_model", "fitment_years", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return coerce_str(value)


def _image_url(image: Any) -> str | None:
    if isinstance(image, str):
        return image or None
    if isinstance(image, dict):
        url = image.get("url") or image.get("src")
        return str(url) if url else None
    return None


def _image_alt(image: Any) -> str | None:
    if isinstance(image, dict):
        alt = image.get("altText") or image.get("alt")
        return str(alt) if alt else None
    return None


class CatalogProduct(BaseModel):
    """Storefront product as returned by ``/products/<handle>.js``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    handle: str
    title: str = ""
    featured_image: Any = None


class CatalogVariant(BaseModel):
    """The product variant whose SKU matched the requested part number."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = ""
    sku: str = ""
    title: str = ""
    price: int | None = None
    """Price in minor currency units (cents)."""
    available: bool = False
    featured_image: Any = None

    @field_validator("id", "sku", "title", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return coerce_str(value)

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_price(cls, value: Any) -> int | None:
        return safe_int(value)

    @field_validator("available", mode="before")
    @classmethod
    def _coerce_available(cls, value: Any) -> bool:
        return bool(value)

    @property
    def numeric_id(self) -> str:
        """Trailing segment of the id (``gid://shop/ProductVariant/42`` -> ``42``)."""
        return self.id.rsplit("/", 1)[-1]


class CatalogMatch(BaseModel):
    """A part number resolved to a purchasable catalog product variant."""

    model_config = ConfigDict(frozen=True)

    product: CatalogProduct
    variant: CatalogVariant

    @property
    def url(self) -> str:
        """Storefront path for the matched variant."""
        base = f"/products/{self.product.handle}"
        variant_id = self.variant.numeric_id
        return f"{base}?variant={variant_id}" if variant_id else base

    @property
    def display_title(self) -> str:
        title = self.product.title or "Product Title Missing"
        variant_title = self.variant.title
        if variant_title and variant_title.lower() != "default title":
            return f"{title} {variant_title}"
        return title

    @property
    def display_price(self) -> str:
        """Price rendered in major units, e.g. ``"$42.99"``."""
        if self.variant.price is None:
            return "N/A"
        return f"${self.variant.price / 100:.2f}"

    @property
    def image_url(self) -> str:
        return (
            _image_url(self.variant.featured_image)
            or _image_url(self.product.featured_image)
            or NO_IMAGE_URL
        )

    @property
    def image_alt(self) -> str:
        return (
            _image_alt(self.variant.featured_image)
            or _image_alt(self.product.featured_image)
            or self.product.title
        )


class ReconciledItem(BaseModel):
    """A fitment record paired with its catalog match, if any.

    ``catalog_match is None`` means the part exists in the fitment data but
    is not sold in this catalog.  That is an expected outcome.
    """

    model_config = ConfigDict(frozen=True)

    source_record: FitmentRecord
    catalog_match: CatalogMatch | None = None

    @property
    def is_matched(self) -> bool:
        return self.catalog_match is not None


class ReconciliationResult(BaseModel):
    """Ordered outcome of a parts search for one vehicle."""

    model_config = ConfigDict(frozen=True)

    items: list[ReconciledItem] = Field(default_factory=list)

    @property
    def matched(self) -> list[ReconciledItem]:
        return [item for item in self.items if item.is_matched]

    @property
    def unmatched(self) -> list[ReconciledItem]:
        return [item for item in self.items if not item.is_matched]

    @property
    def matched_count(self) -> int:
        return len(self.matched)

    @property
    def summary(self) -> str | None:
        """Shopper-facing note for empty or fully unmatched results."""
        if not self.items:
            return "No matching part numbers found for the selected vehicle."
        if self.matched_count == 0:
            return f"Found {len(self.items)} part number(s), but they are not currently available in this store."
        return None
