"""Structured logging for the rover analytics engine.

Every query-level decision (window defaulting, batch boundaries, detected
sequences, invariant checks) can be recorded with enough context to replay
or audit a result after the fact.

This module provides:
- LogCategory: Predefined log categories for consistent filtering
- StructuredLogger: Category-prefixed logging with timestamps and context
- SessionLogger: Session-aware logging to files
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, TextIO

from rover_analytics.utils.config import LOG_VERSION

# =============================================================================
# LOG CATEGORIES
# =============================================================================

class LogCategory(str, Enum):
    """Log categories for structured filtering and analysis.

    Categories name engine components, not content types.
    """
    TELEMETRY = "TELEMETRY"        # Record parsing at the boundary
    STORAGE = "STORAGE"            # Repository reads and sol windows
    PANORAMA = "PANORAMA"          # Panorama grouping and detection
    TRAVERSE = "TRAVERSE"          # Traverse deduplication and statistics
    GEOMETRY = "GEOMETRY"          # Simplification and geometric helpers
    INVARIANT = "INVARIANT"        # Invariant checks and violations
    SYSTEM = "SYSTEM"              # System-level operations


# =============================================================================
# LOG LEVELS
# =============================================================================

class LogLevel(str, Enum):
    """Log levels for filtering."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# Map to standard logging levels
_LEVEL_MAP = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.CRITICAL: logging.CRITICAL,
}


# =============================================================================
# LOG ENTRY
# =============================================================================

class LogEntry:
    """A structured log entry.

    Contains category, level, message, and optional query context
    (vehicle, sol, panorama id) plus arbitrary keyword context.
    """

    def __init__(
        self,
        category: LogCategory,
        level: LogLevel,
        message: str,
        vehicle: str | None = None,
        sol: int | None = None,
        panorama_id: str | None = None,
        extras: dict[str, Any] | None = None,
        **kwargs: Any,
    ):
        self.timestamp = datetime.now()
        self.category = category
        self.level = level
        self.message = message
        self.vehicle = vehicle
        self.sol = sol
        self.panorama_id = panorama_id
        self.extras = extras or {}
        self.context = dict(kwargs)
        if vehicle is not None:
            self.context["vehicle"] = vehicle
        if sol is not None:
            self.context["sol"] = sol
        if panorama_id is not None:
            self.context["panorama_id"] = panorama_id

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        d = {
            "version": LOG_VERSION,
            "timestamp": self.timestamp.isoformat(),
            "category": self.category.value,
            "level": self.level.value,
            "message": self.message,
        }
        if self.vehicle is not None:
            d["vehicle"] = self.vehicle
        if self.sol is not None:
            d["sol"] = self.sol
        if self.panorama_id is not None:
            d["panorama_id"] = self.panorama_id
        if self.extras:
            d["extras"] = self.extras
        if self.context:
            d["context"] = self.context
        return d

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    def format_console(self) -> str:
        """Format for console output with category prefix."""
        ts = self.timestamp.strftime("%H:%M:%S.%f")[:-3]
        prefix = f"[{self.category.value}]"

        context_parts = []
        if self.vehicle:
            context_parts.append(f"vehicle={self.vehicle}")
        if self.sol is not None:
            context_parts.append(f"sol={self.sol}")
        if self.panorama_id:
            context_parts.append(f"pano={self.panorama_id}")

        context_str = f" ({', '.join(context_parts)})" if context_parts else ""

        return f"{ts} {prefix:12} {self.message}{context_str}"


# =============================================================================
# STRUCTURED LOGGER
# =============================================================================

class StructuredLogger:
    """Category-prefixed structured logger.

    All entries carry a category prefix so post-run analysis can filter
    per component.
    """

    def __init__(
        self,
        name: str = "rover_analytics",
        level: LogLevel = LogLevel.INFO,
        console_output: bool = True,
        file_output: TextIO | None = None,
        json_output: bool = False,
    ):
        """Initialize the structured logger.

        Args:
            name: Logger name
            level: Minimum log level
            console_output: Whether to output to the console (stderr)
            file_output: Optional file handle for output
            json_output: Whether to use JSON format for file output
        """
        self._name = name
        self._level = level
        self._console_output = console_output
        self._file_output = file_output
        self._json_output = json_output

        # Statistics
        self._counts: dict[LogCategory, int] = {cat: 0 for cat in LogCategory}
        self._error_count = 0
        self._warning_count = 0

        # Entry history for filtering/retrieval
        self._entries: list[LogEntry] = []
        self._max_history = 10000

        # Category filters (None = all enabled)
        self._enabled_categories: set[LogCategory] | None = None
        self._disabled_categories: set[LogCategory] = set()

    @property
    def name(self) -> str:
        return self._name

    def log(
        self,
        category: LogCategory,
        level: LogLevel,
        message: str,
        **kwargs: Any,
    ) -> LogEntry:
        """Log a structured entry.

        Args:
            category: Log category
            level: Log level
            message: Log message
            **kwargs: Additional context (vehicle, sol, panorama_id, ...)

        Returns:
            The created LogEntry
        """
        entry = LogEntry(category, level, message, **kwargs)

        if _LEVEL_MAP[level] < _LEVEL_MAP[self._level]:
            return entry

        if self._enabled_categories is not None:
            if category not in self._enabled_categories:
                return entry
        if category in self._disabled_categories:
            return entry

        self._counts[category] += 1
        if level == LogLevel.ERROR or level == LogLevel.CRITICAL:
            self._error_count += 1
        elif level == LogLevel.WARNING:
            self._warning_count += 1

        self._entries.append(entry)
        if len(self._entries) > self._max_history:
            self._entries = self._entries[-self._max_history:]

        if self._console_output:
            self._write_console(entry)

        if self._file_output:
            self._write_file(entry)

        return entry

    def _write_console(self, entry: LogEntry) -> None:
        """Write entry to stderr so JSON on stdout stays clean."""
        output = entry.format_console()

        if sys.stderr.isatty():
            colors = {
                LogLevel.DEBUG: "\033[90m",    # Gray
                LogLevel.INFO: "\033[0m",       # Default
                LogLevel.WARNING: "\033[93m",   # Yellow
                LogLevel.ERROR: "\033[91m",     # Red
                LogLevel.CRITICAL: "\033[91;1m",  # Bold red
            }
            reset = "\033[0m"
            output = f"{colors.get(entry.level, '')}{output}{reset}"

        print(output, file=sys.stderr)

    def _write_file(self, entry: LogEntry) -> None:
        """Write entry to file."""
        if self._json_output:
            self._file_output.write(entry.to_json() + "\n")
        else:
            self._file_output.write(entry.format_console() + "\n")
        self._file_output.flush()

    # -------------------------------------------------------------------------
    # CONVENIENCE METHODS
    # -------------------------------------------------------------------------

    def debug(self, category: LogCategory, message: str, **kwargs: Any) -> LogEntry:
        return self.log(category, LogLevel.DEBUG, message, **kwargs)

    def info(self, category: LogCategory, message: str, **kwargs: Any) -> LogEntry:
        return self.log(category, LogLevel.INFO, message, **kwargs)

    def warning(self, category: LogCategory, message: str, **kwargs: Any) -> LogEntry:
        return self.log(category, LogLevel.WARNING, message, **kwargs)

    def error(self, category: LogCategory, message: str, **kwargs: Any) -> LogEntry:
        return self.log(category, LogLevel.ERROR, message, **kwargs)

    # -------------------------------------------------------------------------
    # CATEGORY-SPECIFIC METHODS
    # -------------------------------------------------------------------------

    def telemetry(self, message: str, level: LogLevel = LogLevel.DEBUG, **kwargs: Any) -> LogEntry:
        """Log record parsing."""
        return self.log(LogCategory.TELEMETRY, level, message, **kwargs)

    def storage(self, message: str, level: LogLevel = LogLevel.DEBUG, **kwargs: Any) -> LogEntry:
        """Log repository reads."""
        return self.log(LogCategory.STORAGE, level, message, **kwargs)

    def panorama(self, message: str, level: LogLevel = LogLevel.INFO, **kwargs: Any) -> LogEntry:
        """Log panorama detection."""
        return self.log(LogCategory.PANORAMA, level, message, **kwargs)

    def traverse(self, message: str, level: LogLevel = LogLevel.INFO, **kwargs: Any) -> LogEntry:
        """Log traverse building."""
        return self.log(LogCategory.TRAVERSE, level, message, **kwargs)

    def geometry(self, message: str, level: LogLevel = LogLevel.DEBUG, **kwargs: Any) -> LogEntry:
        """Log geometric operations."""
        return self.log(LogCategory.GEOMETRY, level, message, **kwargs)

    def invariant(self, message: str, level: LogLevel = LogLevel.WARNING, **kwargs: Any) -> LogEntry:
        """Log invariant checks."""
        return self.log(LogCategory.INVARIANT, level, message, **kwargs)

    def system(self, message: str, level: LogLevel = LogLevel.INFO, **kwargs: Any) -> LogEntry:
        """Log system operations."""
        return self.log(LogCategory.SYSTEM, level, message, **kwargs)

    # -------------------------------------------------------------------------
    # INVARIANT LOGGING
    # -------------------------------------------------------------------------

    def check_invariant(
        self,
        condition: bool,
        invariant_name: str,
        message: str,
        **kwargs: Any,
    ) -> LogEntry:
        """Check and log an invariant.

        Passing checks are logged at DEBUG, failures at ERROR.
        """
        extras = {"invariant": invariant_name, **kwargs.pop("extras", {})}
        if condition:
            extras["result"] = "pass"
            return self.invariant(
                f"PASS: {invariant_name} - {message}",
                level=LogLevel.DEBUG,
                extras=extras,
                **kwargs,
            )
        extras["result"] = "fail"
        return self.invariant(
            f"FAIL: {invariant_name} - {message}",
            level=LogLevel.ERROR,
            extras=extras,
            **kwargs,
        )

    # -------------------------------------------------------------------------
    # CONFIGURATION
    # -------------------------------------------------------------------------

    def set_level(self, level: LogLevel) -> None:
        """Set minimum log level."""
        self._level = level

    def enable_categories(self, categories: list[LogCategory]) -> None:
        """Enable only specific categories."""
        self._enabled_categories = set(categories)

    def disable_categories(self, categories: list[LogCategory]) -> None:
        """Disable specific categories."""
        self._disabled_categories.update(categories)

    def enable_all_categories(self) -> None:
        """Enable all categories."""
        self._enabled_categories = None
        self._disabled_categories.clear()

    # -------------------------------------------------------------------------
    # STATISTICS
    # -------------------------------------------------------------------------

    def get_statistics(self) -> dict[str, Any]:
        """Get logging statistics."""
        return {
            "total": sum(self._counts.values()),
            "by_category": {cat.value: count for cat, count in self._counts.items()},
            "errors": self._error_count,
            "warnings": self._warning_count,
        }

    def get_recent_entries(self, count: int = 100) -> list[LogEntry]:
        """Get the most recent log entries."""
        return self._entries[-count:]

    def filter_by_category(self, category: LogCategory) -> list[LogEntry]:
        """Get all recorded entries of a specific category."""
        return [e for e in self._entries if e.category == category]


# =============================================================================
# SESSION LOGGER
# =============================================================================

class SessionLogger(StructuredLogger):
    """Structured logger that writes a session directory.

    Creates ``<runs_dir>/<session_id>/logs/main.log`` (console format) and
    ``main.jsonl`` (one JSON entry per line).
    """

    def __init__(
        self,
        session_id: str,
        runs_dir: str | Path = "runs",
        console_output: bool = False,
        level: LogLevel = LogLevel.INFO,
    ):
        self._session_id = session_id
        self._logs_dir = Path(runs_dir) / session_id / "logs"
        self._logs_dir.mkdir(parents=True, exist_ok=True)

        self._main_log_file = open(self._logs_dir / "main.log", "a", encoding="utf-8")
        self._json_log_file = open(self._logs_dir / "main.jsonl", "a", encoding="utf-8")

        super().__init__(
            name=f"session_{session_id}",
            level=level,
            console_output=console_output,
            file_output=self._main_log_file,
            json_output=False,
        )
        self.system(f"Session started: {session_id}")

    def _write_file(self, entry: LogEntry) -> None:
        self._main_log_file.write(entry.format_console() + "\n")
        self._main_log_file.flush()
        self._json_log_file.write(entry.to_json() + "\n")
        self._json_log_file.flush()

    def close(self) -> None:
        """Close log files."""
        self.system(f"Session ended: {self._session_id}")
        self._main_log_file.close()
        self._json_log_file.close()
        self._file_output = None

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def logs_dir(self) -> Path:
        return self._logs_dir


# =============================================================================
# GLOBAL LOGGER INSTANCE
# =============================================================================

_global_logger: StructuredLogger | None = None


def get_logger() -> StructuredLogger:
    """Get the global structured logger, creating a quiet default."""
    global _global_logger
    if _global_logger is None:
        _global_logger = StructuredLogger(console_output=False)
    return _global_logger


def set_logger(logger: StructuredLogger) -> None:
    """Set the global structured logger."""
    global _global_logger
    _global_logger = logger


def create_session_logger(
    session_id: str | None = None,
    runs_dir: str | Path = "runs",
    console_output: bool = False,
    level: LogLevel = LogLevel.INFO,
) -> SessionLogger:
    """Create a session logger and install it as the global logger."""
    if session_id is None:
        session_id = datetime.now().strftime("%Y%m%d_%H%M%S")

    logger = SessionLogger(
        session_id=session_id,
        runs_dir=runs_dir,
        console_output=console_output,
        level=level,
    )
    set_logger(logger)
    return logger


__all__ = [
    "LogCategory",
    "LogLevel",
    "LogEntry",
    "StructuredLogger",
    "SessionLogger",
    "get_logger",
    "set_logger",
    "create_session_logger",
]
