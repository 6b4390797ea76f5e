"""Telemetry storage implementations and file loading."""

from rover_analytics.storage.loader import load_records, load_store
from rover_analytics.storage.stubs import InMemoryTelemetryStore, SyntheticTelemetry

__all__ = [
    "InMemoryTelemetryStore",
    "SyntheticTelemetry",
    "load_records",
    "load_store",
]
