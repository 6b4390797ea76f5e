"""Panorama sequence detection.

Groups orientation-complete telemetry by (vehicle, sol, site, drive, camera)
and splits each group into runs whose mast elevation stays near the run's
first member and whose clock advances by a positive, bounded step. A run is
emitted as a panorama when it is long enough and sweeps enough azimuth.

Detection is pure and synchronous. Sequence indices are counted per
(vehicle, sol) in detection order, so detecting one sol at a time yields
the same identifiers as detecting a whole range at once.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from typing import TYPE_CHECKING

from rover_analytics.modules.grouping import group_for_panoramas
from rover_analytics.schemas.panorama import PanoramaSequence
from rover_analytics.schemas.telemetry import TelemetryRecord
from rover_analytics.utils.config import (
    PANORAMA_ELEVATION_TOLERANCE_DEG,
    PANORAMA_MAX_TIME_DELTA_S,
    PANORAMA_MIN_AZIMUTH_RANGE_DEG,
    PANORAMA_MIN_PHOTOS,
)

if TYPE_CHECKING:
    from rover_analytics.utils.logging import StructuredLogger


logger = logging.getLogger(__name__)


class PanoramaDetector:
    """Detects panoramic sweeps in telemetry.

    A record continues the open run iff
    ``|elevation - run_base_elevation| <= elevation_tolerance_deg`` and
    ``0 < clock - previous_clock <= max_time_delta_s``. A zero clock delta
    always breaks the run, so two captures sharing a clock value never
    land in the same panorama.
    """

    def __init__(
        self,
        *,
        elevation_tolerance_deg: float = PANORAMA_ELEVATION_TOLERANCE_DEG,
        max_time_delta_s: float = PANORAMA_MAX_TIME_DELTA_S,
        min_azimuth_range_deg: float = PANORAMA_MIN_AZIMUTH_RANGE_DEG,
        structured_logger: "StructuredLogger | None" = None,
    ) -> None:
        """Initialize the detector.

        Args:
            elevation_tolerance_deg: Allowed drift from the run's first elevation.
            max_time_delta_s: Largest clock step that keeps a run open.
            min_azimuth_range_deg: Smallest azimuth sweep accepted as a panorama.
            structured_logger: Optional structured logger for detection records.
        """
        self._elevation_tolerance = elevation_tolerance_deg
        self._max_time_delta = max_time_delta_s
        self._min_azimuth_range = min_azimuth_range_deg
        self._log = structured_logger

    def detect(
        self,
        records: Iterable[TelemetryRecord],
        min_photos: int = PANORAMA_MIN_PHOTOS,
    ) -> list[PanoramaSequence]:
        """Detect panoramic sequences.

        Args:
            records: Telemetry in any order. Records missing site, drive,
                azimuth, elevation or clock are ignored.
            min_photos: Minimum members per panorama (>= 1).

        Returns:
            Sequences in detection order: group key order, then clock order
            within each group.
        """
        if min_photos < 1:
            raise ValueError(f"min_photos must be >= 1, got {min_photos}")

        counters: dict[tuple[str, int], int] = defaultdict(int)
        panoramas: list[PanoramaSequence] = []

        groups = group_for_panoramas(records, min_size=min_photos)
        for key, group in groups:
            # sorted() is stable: equal clocks keep their encountered order
            ordered = sorted(group, key=lambda r: r.spacecraft_clock)
            for run in self.split_runs(ordered):
                if not self.is_panorama(run, min_photos):
                    continue
                counter_key = (key.vehicle, key.sol)
                sequence = PanoramaSequence(
                    vehicle=key.vehicle,
                    sol=key.sol,
                    index=counters[counter_key],
                    members=run,
                )
                counters[counter_key] += 1
                panoramas.append(sequence)

                if self._log:
                    self._log.panorama(
                        f"Detected {sequence.photo_count}-photo panorama "
                        f"covering {sequence.azimuth_coverage:.1f} deg",
                        vehicle=key.vehicle,
                        sol=key.sol,
                        panorama_id=sequence.panorama_id,
                        camera=key.camera,
                    )

        logger.debug(
            "Detected %d panoramas across %d candidate groups",
            len(panoramas), len(groups),
        )
        return panoramas

    def split_runs(self, ordered: list[TelemetryRecord]) -> list[list[TelemetryRecord]]:
        """Split clock-ordered records of one group into candidate runs."""
        runs: list[list[TelemetryRecord]] = []
        current: list[TelemetryRecord] = []
        base_elevation = 0.0

        for record in ordered:
            if not current:
                current = [record]
                base_elevation = record.mast_el
                continue

            elevation_diff = abs(record.mast_el - base_elevation)
            time_delta = record.spacecraft_clock - current[-1].spacecraft_clock

            if (
                elevation_diff <= self._elevation_tolerance
                and 0 < time_delta <= self._max_time_delta
            ):
                current.append(record)
            else:
                runs.append(current)
                current = [record]
                base_elevation = record.mast_el

        if current:
            runs.append(current)
        return runs

    def is_panorama(self, run: list[TelemetryRecord], min_photos: int) -> bool:
        """Check whether a closed run qualifies as a panorama."""
        if len(run) < min_photos:
            return False
        azimuths = [record.mast_az for record in run]
        return max(azimuths) - min(azimuths) >= self._min_azimuth_range


def detect_panoramas(
    records: Iterable[TelemetryRecord],
    min_photos: int = PANORAMA_MIN_PHOTOS,
) -> list[PanoramaSequence]:
    """Detect panoramas with the default tolerances."""
    return PanoramaDetector().detect(records, min_photos)
