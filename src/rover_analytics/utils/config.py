"""Configuration constants for the rover analytics engine."""

# Version tag written into structured log records
LOG_VERSION: str = "v1"

# =============================================================================
# Panorama Detection
# =============================================================================

# Maximum mast elevation drift from a sequence's first member (degrees)
PANORAMA_ELEVATION_TOLERANCE_DEG: float = 2.0

# Maximum spacecraft clock gap between consecutive members (seconds)
PANORAMA_MAX_TIME_DELTA_S: float = 300.0

# Minimum azimuth sweep for a sequence to count as a panorama (degrees)
PANORAMA_MIN_AZIMUTH_RANGE_DEG: float = 30.0

# Minimum number of photos in a panorama
PANORAMA_MIN_PHOTOS: int = 3

# Prefix of panorama identifiers ("pano_curiosity_1000_14")
PANORAMA_ID_PREFIX: str = "pano"

# =============================================================================
# Query Windows and Batching
# =============================================================================

# Most recent sols scanned when a panorama query gives no sol bounds
DEFAULT_SOL_WINDOW: int = 500

# Sols per batch when streaming positions into the traverse builder
TRAVERSE_SOL_BATCH_SIZE: int = 50

# =============================================================================
# Traverse Building
# =============================================================================

# Decimal places used to collapse near-duplicate positions (~1 cm)
POSITION_DEDUP_DECIMALS: int = 2

# Output rounding applied during resource assembly
COORDINATE_OUTPUT_DECIMALS: int = 3
DISTANCE_OUTPUT_DECIMALS: int = 1
SEGMENT_OUTPUT_DECIMALS: int = 3
BEARING_OUTPUT_DECIMALS: int = 1

# =============================================================================
# Pagination
# =============================================================================

DEFAULT_PAGE_SIZE: int = 25
MAX_PAGE_SIZE: int = 100

# =============================================================================
# Resource Links
# =============================================================================

API_BASE_PATH: str = "/api/v2"
