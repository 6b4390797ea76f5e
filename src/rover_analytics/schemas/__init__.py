"""Data contracts for the rover analytics engine."""

from rover_analytics.schemas.panorama import (
    format_panorama_id,
    PanoramaId,
    PanoramaLocation,
    PanoramaSequence,
    parse_panorama_id,
)
from rover_analytics.schemas.resources import (
    api_page,
    ApiPage,
    GeoJsonFeatureCollection,
    panorama_resource,
    PanoramaResource,
    to_geojson,
    traverse_resource,
    TraverseResource,
)
from rover_analytics.schemas.stops import StopSummary
from rover_analytics.schemas.telemetry import (
    extract_local_time,
    parse_xyz,
    Position,
    TelemetryRecord,
)
from rover_analytics.schemas.traverse import (
    BoundingBox,
    SolRange,
    TraversePoint,
    TraverseResult,
    TraverseSegment,
    TraverseSummary,
)

__all__ = [
    # Telemetry
    "extract_local_time",
    "parse_xyz",
    "Position",
    "TelemetryRecord",
    # Panorama
    "format_panorama_id",
    "PanoramaId",
    "PanoramaLocation",
    "PanoramaSequence",
    "parse_panorama_id",
    # Traverse
    "BoundingBox",
    "SolRange",
    "TraversePoint",
    "TraverseResult",
    "TraverseSegment",
    "TraverseSummary",
    # Stops
    "StopSummary",
    # Resources
    "api_page",
    "ApiPage",
    "GeoJsonFeatureCollection",
    "panorama_resource",
    "PanoramaResource",
    "to_geojson",
    "traverse_resource",
    "TraverseResource",
]
