"""Module implementations."""

from rover_analytics.modules.geometry import (
    bearing_2d,
    distance_3d,
    perpendicular_distance,
    simplify,
)
from rover_analytics.modules.grouping import (
    AnalysisCancelled,
    CancellationToken,
    group_for_panoramas,
    PanoramaGroupKey,
    PositionAccumulator,
    resolve_sol_window,
    SolWindow,
    summarize_stops,
)
from rover_analytics.modules.panorama_detector import detect_panoramas, PanoramaDetector
from rover_analytics.modules.traverse_builder import build_traverse, TraverseBuilder

__all__ = [
    # Geometry
    "bearing_2d",
    "distance_3d",
    "perpendicular_distance",
    "simplify",
    # Grouping
    "AnalysisCancelled",
    "CancellationToken",
    "group_for_panoramas",
    "PanoramaGroupKey",
    "PositionAccumulator",
    "resolve_sol_window",
    "SolWindow",
    "summarize_stops",
    # Detection and building
    "build_traverse",
    "detect_panoramas",
    "PanoramaDetector",
    "TraverseBuilder",
]
