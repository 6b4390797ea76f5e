"""Shared grouping and aggregation helpers.

This module provides:
- PanoramaGroupKey / group_for_panoramas: partitioning for panorama detection
- PositionAccumulator: incremental exact-string grouping of positions
- SolWindow / resolve_sol_window: bounded sol ranges for wide queries
- iter_sol_batches: independent batches of sols
- CancellationToken / AnalysisCancelled: cooperative cancellation
- summarize_stops: per (vehicle, site, drive) aggregation
"""

from __future__ import annotations

import logging
import math
import threading
from collections import defaultdict
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import NamedTuple

from rover_analytics.schemas.stops import StopSummary
from rover_analytics.schemas.telemetry import Position, TelemetryRecord
from rover_analytics.utils.config import DEFAULT_SOL_WINDOW

logger = logging.getLogger(__name__)


# =============================================================================
# PANORAMA GROUPING
# =============================================================================

class PanoramaGroupKey(NamedTuple):
    """Records sharing this key may belong to the same panorama."""

    vehicle: str
    sol: int
    site: int
    drive: int
    camera: str


def panorama_group_key(record: TelemetryRecord) -> PanoramaGroupKey:
    return PanoramaGroupKey(
        vehicle=record.vehicle,
        sol=record.sol,
        site=record.site or 0,
        drive=record.drive or 0,
        camera=record.camera,
    )


def group_for_panoramas(
    records: Iterable[TelemetryRecord],
    min_size: int = 1,
) -> list[tuple[PanoramaGroupKey, list[TelemetryRecord]]]:
    """Partition orientation-complete records into panorama groups.

    Groups smaller than ``min_size`` are dropped. Groups come back in sorted
    key order so downstream numbering does not depend on input order;
    records inside a group keep their input order.
    """
    groups: dict[PanoramaGroupKey, list[TelemetryRecord]] = defaultdict(list)
    for record in records:
        if record.has_orientation:
            groups[panorama_group_key(record)].append(record)

    return [(key, groups[key]) for key in sorted(groups) if len(groups[key]) >= min_size]


# =============================================================================
# POSITION ACCUMULATION
# =============================================================================

@dataclass
class PositionObservation:
    """All sightings of one exact position string."""

    position: Position
    sol_first: int
    sol_last: int
    # Earliest clock seen on sol_first (inf when no clock was reported)
    first_clock: float = math.inf


class PositionAccumulator:
    """Groups positions by their exact text, batch by batch.

    Only one observation per distinct position string is held, so callers
    can stream a long sol range through it without materializing every
    record.
    """

    def __init__(self) -> None:
        self._by_text: dict[str, PositionObservation] = {}
        self._records_seen = 0

    def add(self, records: Iterable[TelemetryRecord]) -> int:
        """Fold records into the accumulator.

        Returns:
            Number of records that carried a usable position.
        """
        added = 0
        for record in records:
            if record.position is None:
                continue
            added += 1
            key = record.xyz if record.xyz is not None else repr(record.position)
            clock = record.spacecraft_clock if record.spacecraft_clock is not None else math.inf

            observation = self._by_text.get(key)
            if observation is None:
                self._by_text[key] = PositionObservation(
                    position=record.position,
                    sol_first=record.sol,
                    sol_last=record.sol,
                    first_clock=clock,
                )
                continue

            if record.sol < observation.sol_first:
                observation.sol_first = record.sol
                observation.first_clock = clock
            elif record.sol == observation.sol_first:
                observation.first_clock = min(observation.first_clock, clock)
            observation.sol_last = max(observation.sol_last, record.sol)

        self._records_seen += added
        return added

    def observations(self) -> list[PositionObservation]:
        return list(self._by_text.values())

    @property
    def records_seen(self) -> int:
        return self._records_seen

    def __len__(self) -> int:
        return len(self._by_text)


# =============================================================================
# SOL WINDOWS AND BATCHES
# =============================================================================

@dataclass(frozen=True)
class SolWindow:
    """Inclusive sol bounds for one query (None = unbounded)."""

    start: int | None
    end: int | None
    defaulted: bool = False

    def contains(self, sol: int) -> bool:
        if self.start is not None and sol < self.start:
            return False
        if self.end is not None and sol > self.end:
            return False
        return True


def resolve_sol_window(
    sol_min: int | None,
    sol_max: int | None,
    latest_sol: int | None,
    default_span: int = DEFAULT_SOL_WINDOW,
) -> SolWindow:
    """Resolve the sol bounds for a query.

    When neither bound is given, the window defaults to the most recent
    ``default_span`` sols ending at ``latest_sol``.
    """
    if sol_min is not None or sol_max is not None or latest_sol is None:
        return SolWindow(start=sol_min, end=sol_max)

    start = max(0, latest_sol - default_span)
    logger.info(
        "No sol range specified, defaulting to recent %d sols (sol %d to %d)",
        default_span, start, latest_sol,
    )
    return SolWindow(start=start, end=latest_sol, defaulted=True)


def iter_sol_batches(sols: Sequence[int], batch_size: int) -> Iterator[list[int]]:
    """Split ordered sols into consecutive batches of at most ``batch_size``."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    for start in range(0, len(sols), batch_size):
        yield list(sols[start:start + batch_size])


# =============================================================================
# CANCELLATION
# =============================================================================

class AnalysisCancelled(Exception):
    """Raised when a computation is cancelled between batches."""


class CancellationToken:
    """Cooperative cancellation signal shared with a running computation."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, stage: str = "") -> None:
        if self._event.is_set():
            raise AnalysisCancelled(f"cancelled during {stage}" if stage else "cancelled")


def check_cancelled(token: CancellationToken | None, stage: str = "") -> None:
    """Raise AnalysisCancelled if ``token`` has fired."""
    if token is not None:
        token.raise_if_cancelled(stage)


# =============================================================================
# STOP SUMMARIES
# =============================================================================

def summarize_stops(records: Iterable[TelemetryRecord]) -> list[StopSummary]:
    """Aggregate records by (vehicle, site, drive).

    Records without site or drive are skipped. Summaries are ordered by
    record count, largest first, then by key.
    """
    counts: dict[tuple[str, int, int], int] = defaultdict(int)
    sol_bounds: dict[tuple[str, int, int], tuple[int, int]] = {}
    earliest: dict[tuple[str, int, int], tuple[int, float, Position]] = {}

    for record in records:
        if record.site is None or record.drive is None:
            continue
        key = (record.vehicle, record.site, record.drive)
        counts[key] += 1

        low, high = sol_bounds.get(key, (record.sol, record.sol))
        sol_bounds[key] = (min(low, record.sol), max(high, record.sol))

        if record.position is not None:
            clock = record.spacecraft_clock if record.spacecraft_clock is not None else math.inf
            candidate = (record.sol, clock, record.position)
            if key not in earliest or candidate[:2] < earliest[key][:2]:
                earliest[key] = candidate

    ordered = sorted(counts, key=lambda k: (-counts[k], k))
    return [
        StopSummary(
            vehicle=key[0],
            site=key[1],
            drive=key[2],
            record_count=counts[key],
            sol_first=sol_bounds[key][0],
            sol_last=sol_bounds[key][1],
            position=earliest[key][2] if key in earliest else None,
        )
        for key in ordered
    ]
