"""pyfitment - Async vehicle fitment finder and storefront part reconciliation."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyfitment")
except PackageNotFoundError:
    __version__ = "0+local"
from pyfitment._cache import CacheScope, FitmentCache
from pyfitment.client import FitmentClient
from pyfitment.config import FitmentConfig
from pyfitment.errors import ClassifiedError, ErrorKind, classify_error
from pyfitment.exceptions import (
    FitmentApiError,
    FitmentConfigError,
    FitmentError,
    FitmentRequestError,
    FitmentStorageError,
    FitmentTransportError,
    FitmentValidationError,
)
from pyfitment.facets import FacetFilter, FacetOptions, apply_facets, facet_options, filter_part_fitments
from pyfitment.finder import FinderState, FitmentFinder, Level, LevelState, LevelStatus
from pyfitment.models import (
    CatalogMatch,
    CatalogProduct,
    CatalogVariant,
    FitmentRecord,
    PartFitment,
    ReconciledItem,
    ReconciliationResult,
    VehicleSelection,
)
from pyfitment.storage import FileStorage, MemoryStorage

__all__ = [
    "__version__",
    "CacheScope",
    "CatalogMatch",
    "CatalogProduct",
    "CatalogVariant",
    "ClassifiedError",
    "ErrorKind",
    "FacetFilter",
    "FacetOptions",
    "FileStorage",
    "FinderState",
    "FitmentApiError",
    "FitmentCache",
    "FitmentClient",
    "FitmentConfig",
    "FitmentConfigError",
    "FitmentError",
    "FitmentFinder",
    "FitmentRecord",
    "FitmentRequestError",
    "FitmentStorageError",
    "FitmentTransportError",
    "FitmentValidationError",
    "Level",
    "LevelState",
    "LevelStatus",
    "MemoryStorage",
    "PartFitment",
    "ReconciledItem",
    "ReconciliationResult",
    "VehicleSelection",
    "apply_facets",
    "classify_error",
    "facet_options",
    "filter_part_fitments",
]
