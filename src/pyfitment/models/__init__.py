"""Data models for fitment service and catalog records."""

from pyfitment.models._base import FitmentBaseModel
from pyfitment.models.product import (
    CatalogMatch,
    CatalogProduct,
    CatalogVariant,
    FitmentRecord,
    PartFitment,
    ReconciledItem,
    ReconciliationResult,
)
from pyfitment.models.vehicle import VehicleSelection

__all__ = [
    "CatalogMatch",
    "CatalogProduct",
    "CatalogVariant",
    "FitmentBaseModel",
    "FitmentRecord",
    "PartFitment",
    "ReconciledItem",
    "ReconciliationResult",
    "VehicleSelection",
]
