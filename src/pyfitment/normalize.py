"""Normalization helpers.

Centralizes tolerant numeric parsing and the per-level shaping applied to option
lists returned by the fitment service.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from typing import Any

from pyfitment._constants import CATEGORY_SEPARATOR


def safe_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


# ------------------------------------------------------------------
# Category composites
# ------------------------------------------------------------------


def join_category(category: str | None, sub_category: str | None = None) -> str:
    """Build the composite ``"category - subCategory"`` option value.

    Returns just the category when there is no sub-category, and ``""``
    when the category itself is blank.
    """
    main = (category or "").strip()
    if not main:
        return ""
    sub = (sub_category or "").strip()
    return f"{main}{CATEGORY_SEPARATOR}{sub}" if sub else main


def split_category(value: str | None) -> tuple[str, str]:
    """Split a composite option value back into ``(category, sub_category)``.

    The first segment is the category and everything after the first
    separator is the sub-category.  A category that itself contains the
    separator therefore does not survive a join/split round trip.
    """
    parts = (value or "").split(CATEGORY_SEPARATOR)
    category = parts[0].strip()
    sub_category = CATEGORY_SEPARATOR.join(parts[1:]).strip()
    return category, sub_category


# ------------------------------------------------------------------
# Option shaping
# ------------------------------------------------------------------


def sort_options(values: Iterable[Any]) -> list[str]:
    """Lexicographically sorted text options; blanks dropped."""
    options = [str(value).strip() for value in values if value is not None]
    return sorted(option for option in options if option)


def shape_years(values: Iterable[Any]) -> list[int]:
    """Parse years as integers, drop zero/invalid entries, newest first."""
    years = [safe_int(value) for value in values]
    return sorted((year for year in years if year), reverse=True)


def shape_categories(records: Iterable[Any]) -> list[str]:
    """Distinct, sorted ``"category - subCategory"`` composites.

    Records with a blank category are skipped.  Comparison is
    case-sensitive, so ``"Brakes"`` and ``"brakes"`` stay distinct.
    """
    composites: set[str] = set()
    for record in records:
        if not isinstance(record, dict):
            continue
        category = record.get("category")
        sub_category = record.get("subCategory")
        composite = join_category(
            str(category) if category is not None else None,
            str(sub_category) if sub_category is not None else None,
        )
        if composite:
            composites.add(composite)
    return sorted(composites)
