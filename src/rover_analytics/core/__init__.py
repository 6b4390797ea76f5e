"""Core orchestration and interfaces."""

from rover_analytics.core.interfaces import RecordRequirement, TelemetryRepository
from rover_analytics.core.services import (
    build_cache_key,
    PanoramaPage,
    PanoramaService,
    TraverseService,
)

__all__ = [
    "build_cache_key",
    "PanoramaPage",
    "PanoramaService",
    "RecordRequirement",
    "TelemetryRepository",
    "TraverseService",
]
