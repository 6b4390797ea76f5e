"""Telemetry file loading.

Reads telemetry rows from JSONL (one object per line), JSON (an array of
objects) or CSV (header row) and parses each row once into a
TelemetryRecord. Rows that cannot be parsed are logged and skipped.
"""

from __future__ import annotations

import csv
import json
import logging
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from rover_analytics.schemas import TelemetryRecord
from rover_analytics.storage.stubs.telemetry_store import InMemoryTelemetryStore

logger = logging.getLogger(__name__)


def _iter_rows(path: Path) -> Iterator[tuple[int, Mapping[str, Any] | None]]:
    """Yield (row number, row) pairs; row is None for undecodable lines."""
    suffix = path.suffix.lower()

    if suffix == ".csv":
        with open(path, "r", encoding="utf-8", newline="") as f:
            for lineno, row in enumerate(csv.DictReader(f), 2):
                yield lineno, row
        return

    if suffix == ".json":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"Expected a JSON array of records in {path}")
        for index, row in enumerate(data, 1):
            yield index, row if isinstance(row, Mapping) else None
        return

    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                row = json.loads(line)
            except json.JSONDecodeError as exc:
                logger.warning("Telemetry: skip line %d: %s", lineno, exc)
                continue
            yield lineno, row if isinstance(row, Mapping) else None


def parse_rows(rows: Iterable[tuple[int, Mapping[str, Any] | None]]) -> list[TelemetryRecord]:
    """Parse numbered rows, skipping any that fail validation."""
    records: list[TelemetryRecord] = []
    for lineno, row in rows:
        if row is None:
            logger.warning("Telemetry: skip row %d: not an object", lineno)
            continue
        try:
            records.append(TelemetryRecord.from_raw(row))
        except ValidationError as exc:
            logger.warning(
                "Telemetry: skip row %d: %d validation error(s)", lineno, exc.error_count()
            )
    return records


def load_records(file_path: str | Path) -> list[TelemetryRecord]:
    """Load telemetry records from a ``.jsonl``, ``.json`` or ``.csv`` file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Telemetry file not found: {file_path}")

    records = parse_rows(_iter_rows(path))
    logger.info("Telemetry: loaded %d records from %s", len(records), path)
    return records


def load_store(file_path: str | Path) -> InMemoryTelemetryStore:
    """Load a telemetry file into a fresh in-memory store."""
    return InMemoryTelemetryStore(load_records(file_path))
