"""Utility functions and configuration."""

from rover_analytics.utils.config import DEFAULT_SOL_WINDOW, PANORAMA_MIN_PHOTOS
from rover_analytics.utils.logging import (
    create_session_logger,
    get_logger,
    LogCategory,
    LogEntry,
    LogLevel,
    SessionLogger,
    set_logger,
    StructuredLogger,
)

__all__ = [
    "DEFAULT_SOL_WINDOW",
    "PANORAMA_MIN_PHOTOS",
    "create_session_logger",
    "get_logger",
    "LogCategory",
    "LogEntry",
    "LogLevel",
    "SessionLogger",
    "set_logger",
    "StructuredLogger",
]
