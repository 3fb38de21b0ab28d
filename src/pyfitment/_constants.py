"""Internal constants shared across the library."""

# ------------------------------------------------------------------
# Cache layout
# ------------------------------------------------------------------

CACHE_VERSION_KEY = "fitmentGlobalCacheVersion"
CURRENT_CACHE_VERSION = "v1.0.2"
CACHE_PREFIX = "fitmentCache_"
LAST_SELECTED_VEHICLE_KEY = "lastSelectedVehicle"

DURABLE_CACHE_TTL_SECONDS: float = 24 * 60 * 60
SESSION_CACHE_TTL_SECONDS: float = 30 * 60

# ------------------------------------------------------------------
# HTTP
# ------------------------------------------------------------------

DEFAULT_REQUEST_TIMEOUT: float = 15.0
RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({429, 500, 502, 503, 504})
ENVELOPE_SUCCESS_MARKERS: frozenset[str | int] = frozenset({"success", 200})

NETWORK_ERROR_MESSAGE = "Network error. Failed to connect to the API."
TIMEOUT_ERROR_MESSAGE = "Request timed out."

# ------------------------------------------------------------------
# Fitment service response keys
# ------------------------------------------------------------------

KEY_TYPES = "types"
KEY_CATEGORIES = "fitmentCategories"
KEY_MAKES = "makes"
KEY_YEARS = "years"
KEY_MODELS = "models"
KEY_PRODUCTS = "fitmentProducts"
KEY_PART_FITMENTS = "fitments"

# ------------------------------------------------------------------
# Category composite values ("Engine - Filters")
# ------------------------------------------------------------------

CATEGORY_SEPARATOR = " - "

# Shown when neither the variant nor the product carries an image.
NO_IMAGE_URL = "https://placehold.co/180x120/e9ecef/6c757d?text=No+Image"
