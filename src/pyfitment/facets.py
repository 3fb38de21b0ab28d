"""In-memory filters over reconciled results and part fitments.

Nothing here touches the network or the cache.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from pydantic import BaseModel, ConfigDict

from pyfitment.models.product import PartFitment, ReconciledItem


class FacetOptions(BaseModel):
    """Distinct category / sub-category values present in a result set."""

    model_config = ConfigDict(frozen=True)

    categories: list[str]
    sub_categories: list[str]


def facet_options(items: Iterable[ReconciledItem]) -> FacetOptions:
    categories: set[str] = set()
    sub_categories: set[str] = set()
    for item in items:
        record = item.source_record
        if record.category:
            categories.add(record.category)
        if record.sub_category:
            sub_categories.add(record.sub_category)
    return FacetOptions(categories=sorted(categories), sub_categories=sorted(sub_categories))


def apply_facets(
    items: Iterable[ReconciledItem],
    *,
    category: str | None = None,
    sub_category: str | None = None,
) -> list[ReconciledItem]:
    """Keep items matching the selected category AND sub-category.

    An unset (``None`` or empty) facet does not filter.
    """
    return [
        item
        for item in items
        if (not category or item.source_record.category == category)
        and (not sub_category or item.source_record.sub_category == sub_category)
    ]


class FacetFilter:
    """Holds a full reconciled set and the shopper's current facet choices.

    The displayed subset is always recomputed from the full set, never
    from a previously filtered one.
    """

    def __init__(self, items: Sequence[ReconciledItem] = ()) -> None:
        self._items: tuple[ReconciledItem, ...] = tuple(items)
        self.category: str | None = None
        self.sub_category: str | None = None

    def load(self, items: Sequence[ReconciledItem]) -> None:
        """Replace the full set and drop any facet choices."""
        self._items = tuple(items)
        self.category = None
        self.sub_category = None

    @property
    def options(self) -> FacetOptions:
        return facet_options(self._items)

    @property
    def items(self) -> tuple[ReconciledItem, ...]:
        return self._items

    def select(self, *, category: str | None = None, sub_category: str | None = None) -> list[ReconciledItem]:
        self.category = category or None
        self.sub_category = sub_category or None
        return self.displayed

    @property
    def displayed(self) -> list[ReconciledItem]:
        return apply_facets(self._items, category=self.category, sub_category=self.sub_category)


def filter_part_fitments(fitments: Iterable[PartFitment], term: str | None) -> list[PartFitment]:
    """Keep fitments whose make, model or years contain *term* (case-insensitive)."""
    needle = (term or "").strip().casefold()
    if not needle:
        return list(fitments)
    return [
        fitment
        for fitment in fitments
        if needle in fitment.fitment_make.casefold()
        or needle in fitment.fitment_model.casefold()
        or needle in fitment.fitment_years.casefold()
    ]
