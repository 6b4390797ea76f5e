"""Traverse path reconstruction.

Turns position telemetry into an ordered, deduplicated path:

1. Group records by exact position text, tracking first/last sol.
2. Round coordinates to ~1 cm and merge groups that collide.
3. Order unique points by first sol (first-visit order, not a full walk
   that revisits positions). Points first seen on the same sol are ordered
   by the earliest clock seen there, then by coordinates.
4. Optionally simplify with Douglas-Peucker.
5. Accumulate distance, elevation gain/loss, bounding box and, on request,
   per-segment distance/bearing/elevation metadata.

All arithmetic stays at full precision; rounding for display happens when
the result is assembled into a resource.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from rover_analytics.modules.geometry import bearing_2d, distance_3d, simplify
from rover_analytics.modules.grouping import PositionAccumulator, PositionObservation
from rover_analytics.schemas.telemetry import Position, TelemetryRecord
from rover_analytics.schemas.traverse import (
    BoundingBox,
    SolRange,
    TraversePoint,
    TraverseResult,
    TraverseSegment,
    TraverseSummary,
)
from rover_analytics.utils.config import POSITION_DEDUP_DECIMALS

if TYPE_CHECKING:
    from rover_analytics.utils.logging import StructuredLogger


logger = logging.getLogger(__name__)


@dataclass
class _UniquePoint:
    position: Position
    sol_first: int
    sol_last: int
    first_clock: float

    @property
    def order_key(self) -> tuple[int, float, Position]:
        return (self.sol_first, self.first_clock, self.position)


def _round_position(position: Position, decimals: int) -> Position:
    # + 0.0 folds -0.0 into 0.0
    return (
        round(position[0], decimals) + 0.0,
        round(position[1], decimals) + 0.0,
        round(position[2], decimals) + 0.0,
    )


class TraverseBuilder:
    """Builds deduplicated traverse paths from position telemetry.

    Records can be supplied in one call to :meth:`build`, or streamed in
    batches through :meth:`accumulate` followed by :meth:`finish`; only one
    entry per distinct position string is retained between batches.
    """

    def __init__(
        self,
        *,
        dedup_decimals: int = POSITION_DEDUP_DECIMALS,
        structured_logger: "StructuredLogger | None" = None,
    ) -> None:
        self._dedup_decimals = dedup_decimals
        self._log = structured_logger
        self._accumulator = PositionAccumulator()

    # -------------------------------------------------------------------------
    # INPUT
    # -------------------------------------------------------------------------

    def accumulate(self, records: Iterable[TelemetryRecord]) -> int:
        """Fold a batch of records into the pending path.

        Returns:
            Number of records that carried a usable position.
        """
        return self._accumulator.add(records)

    def reset(self) -> None:
        """Discard all accumulated positions."""
        self._accumulator = PositionAccumulator()

    @property
    def pending_positions(self) -> int:
        """Distinct position strings accumulated so far."""
        return len(self._accumulator)

    # -------------------------------------------------------------------------
    # BUILD
    # -------------------------------------------------------------------------

    def build(
        self,
        records: Iterable[TelemetryRecord],
        simplify_tolerance_m: float = 0.0,
        include_segments: bool = False,
    ) -> TraverseResult:
        """Build a traverse from records in one call."""
        self.reset()
        self.accumulate(records)
        return self.finish(simplify_tolerance_m, include_segments)

    def finish(
        self,
        simplify_tolerance_m: float = 0.0,
        include_segments: bool = False,
    ) -> TraverseResult:
        """Build a traverse from everything accumulated so far.

        Args:
            simplify_tolerance_m: Douglas-Peucker tolerance in meters;
                0 disables simplification.
            include_segments: Attach segment metadata to non-first points.

        Returns:
            The traverse. Empty input yields an empty, valid result.
        """
        if simplify_tolerance_m < 0 or math.isnan(simplify_tolerance_m):
            raise ValueError(f"simplify tolerance must be >= 0, got {simplify_tolerance_m}")

        unique = self._deduplicate(self._accumulator.observations())
        if not unique:
            logger.debug("No positioned records; returning empty traverse")
            return TraverseResult()

        sol_range = SolRange(
            start=min(p.sol_first for p in unique),
            end=max(p.sol_last for p in unique),
        )
        point_count = len(unique)
        simplified_count: int | None = None

        if simplify_tolerance_m > 0 and len(unique) > 2:
            kept = simplify([p.position for p in unique], simplify_tolerance_m)
            unique = [unique[i] for i in kept]
            simplified_count = len(unique)
            if self._log:
                self._log.geometry(
                    f"Simplified {point_count} points to {simplified_count} "
                    f"at {simplify_tolerance_m} m tolerance",
                )

        points, total, gain, loss = self._walk(unique, include_segments)

        coords = np.array([p.position for p in unique], dtype=np.float64)
        bounding_box = BoundingBox(
            min=tuple(float(v) for v in coords.min(axis=0)),
            max=tuple(float(v) for v in coords.max(axis=0)),
        )

        summary = TraverseSummary(
            total_distance_m=total,
            elevation_gain_m=gain,
            elevation_loss_m=loss,
            point_count=point_count,
            simplified_point_count=simplified_count,
            bounding_box=bounding_box,
            sol_range=sol_range,
        )

        if self._log:
            self._log.traverse(
                f"Built traverse: {len(points)} points, {total:.1f} m",
                sols=[sol_range.start, sol_range.end],
            )

        return TraverseResult(points=points, summary=summary)

    # -------------------------------------------------------------------------
    # INTERNALS
    # -------------------------------------------------------------------------

    def _deduplicate(self, observations: list[PositionObservation]) -> list[_UniquePoint]:
        """Merge observations whose rounded coordinates collide."""
        merged: dict[Position, _UniquePoint] = {}

        for observation in observations:
            key = _round_position(observation.position, self._dedup_decimals)
            existing = merged.get(key)
            if existing is None:
                merged[key] = _UniquePoint(
                    position=key,
                    sol_first=observation.sol_first,
                    sol_last=observation.sol_last,
                    first_clock=observation.first_clock,
                )
                continue

            if observation.sol_first < existing.sol_first:
                existing.sol_first = observation.sol_first
                existing.first_clock = observation.first_clock
            elif observation.sol_first == existing.sol_first:
                existing.first_clock = min(existing.first_clock, observation.first_clock)
            existing.sol_last = max(existing.sol_last, observation.sol_last)

        return sorted(merged.values(), key=lambda p: p.order_key)

    def _walk(
        self,
        unique: list[_UniquePoint],
        include_segments: bool,
    ) -> tuple[list[TraversePoint], float, float, float]:
        """Single pass over ordered points accumulating path statistics."""
        points: list[TraversePoint] = []
        cumulative = 0.0
        gain = 0.0
        loss = 0.0

        for i, point in enumerate(unique):
            segment = None
            if i > 0:
                previous = unique[i - 1]
                distance = distance_3d(previous.position, point.position)
                cumulative += distance

                elevation_change = point.position[2] - previous.position[2]
                if elevation_change > 0:
                    gain += elevation_change
                else:
                    loss += -elevation_change

                if include_segments:
                    segment = TraverseSegment(
                        distance_m=distance,
                        bearing_deg=bearing_2d(previous.position, point.position),
                        elevation_change_m=elevation_change,
                    )

            x, y, z = point.position
            points.append(
                TraversePoint(
                    x=x,
                    y=y,
                    z=z,
                    sol_first=point.sol_first,
                    sol_last=point.sol_last,
                    cumulative_distance_m=cumulative,
                    segment=segment,
                )
            )

        return points, cumulative, gain, loss


def build_traverse(
    records: Iterable[TelemetryRecord],
    simplify_tolerance_m: float = 0.0,
    include_segments: bool = False,
) -> TraverseResult:
    """Build a traverse with default settings."""
    return TraverseBuilder().build(records, simplify_tolerance_m, include_segments)
