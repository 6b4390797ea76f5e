"""Geometric analytics over planetary-rover image telemetry."""

__version__ = "0.1.0"
