"""Stub storage implementations."""

from rover_analytics.storage.stubs.synthetic import SyntheticTelemetry
from rover_analytics.storage.stubs.telemetry_store import InMemoryTelemetryStore

__all__ = [
    "InMemoryTelemetryStore",
    "SyntheticTelemetry",
]
