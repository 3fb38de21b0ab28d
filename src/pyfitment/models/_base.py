"""Base model for fitment service and catalog records.

Every record model inherits from :class:`FitmentBaseModel` which provides:

* ``alias_generator=to_camel`` so camelCase service keys map
  automatically to snake_case fields (``itemNumber`` -> ``item_number``).
* A ``model_validator(mode="before")`` that drops ``None`` values so the
  field default is used.
* A ``raw`` dict that captures the original payload, including fields the
  model does not declare.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


def coerce_str(value: Any) -> str:
    """Render scalars as trimmed text; ``None`` becomes ``""``."""
    if value is None:
        return ""
    return str(value).strip()


class FitmentBaseModel(BaseModel):
    """Base for records received from the fitment service or the catalog."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)
    """Original payload dict."""

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        cleaned = {key: value for key, value in values.items() if value is not None}
        # Keep the caller's raw when constructing with kwargs.
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
