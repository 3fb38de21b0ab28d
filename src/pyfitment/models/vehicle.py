"""Vehicle selection model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from pyfitment.models._base import coerce_str
from pyfitment.normalize import join_category


class VehicleSelection(BaseModel):
    """A fully or partially selected vehicle.

    This is also the persisted ``lastSelectedVehicle`` record read by
    other storefront components, hence the camelCase aliases on dump.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    type: str = ""
    make: str = ""
    year: str = ""
    model: str = ""
    category: str = ""
    sub_category: str = Field(default="")

    @field_validator("type", "make", "year", "model", "category", "sub_category", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return coerce_str(value)

    @property
    def combined_category(self) -> str:
        """Composite ``"category - subCategory"`` value."""
        return join_category(self.category, self.sub_category)

    @property
    def display_name(self) -> str:
        """Human-readable name, e.g. ``"2019 Yamaha Raptor"``."""
        return " ".join(part for part in (self.year, self.make, self.model) if part)

    def is_complete(self, *, with_category: bool = True) -> bool:
        required = [self.type, self.make, self.year, self.model]
        if with_category:
            required.append(self.category)
        return all(required)

    def to_query_params(self, *, with_category: bool = True) -> dict[str, str]:
        """Query parameters for the products endpoint.

        ``subCategory`` is only sent when non-empty.
        """
        params = {"type": self.type, "make": self.make, "year": self.year, "model": self.model}
        if with_category:
            params["category"] = self.category
            if self.sub_category:
                params["subCategory"] = self.sub_category
        return params
