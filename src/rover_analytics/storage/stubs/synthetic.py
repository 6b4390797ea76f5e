"""Deterministic synthetic telemetry for tests and demos.

Clocks are built from an integer base plus integer steps, so every
generated delta is exactly representable at float64 width. Adding small
fractional steps to a large float base can collapse two captures onto the
same clock value, which the panorama detector treats as a break.
"""

from __future__ import annotations

import math
import random

from rover_analytics.schemas import TelemetryRecord


class SyntheticTelemetry:
    """Generates repeatable telemetry for one vehicle.

    Record ids are unique across all calls on the same generator.
    """

    def __init__(
        self,
        vehicle: str = "curiosity",
        seed: int = 42,
        base_clock: int = 813_073_000,
    ) -> None:
        """Initialize the generator.

        Args:
            vehicle: Vehicle name for generated records.
            seed: Random seed for deterministic jitter.
            base_clock: Integer clock value of the first capture.
        """
        self._vehicle = vehicle
        self._rng = random.Random(seed)
        self._base_clock = int(base_clock)
        self._serial = 0

    def _next_id(self, sol: int, camera: str) -> str:
        self._serial += 1
        return f"{self._vehicle}_{sol}_{camera}_{self._serial:06d}"

    def panorama_sweep(
        self,
        sol: int,
        site: int,
        drive: int,
        *,
        count: int = 5,
        camera: str = "MAST",
        start_azimuth: float = 45.0,
        azimuth_step: float = 10.0,
        elevation: float = -10.0,
        elevation_jitter: float = 0.0,
        clock_offset: int = 0,
        clock_step: int = 100,
        xyz: str | None = "(35.4362,22.5714,-9.46445)",
        local_hour: int = 14,
    ) -> list[TelemetryRecord]:
        """Generate one sweep of ``count`` captures at a single stop.

        Args:
            sol: Sol of capture.
            site: Site index.
            drive: Drive index.
            count: Number of captures.
            camera: Imaging device.
            start_azimuth: Azimuth of the first capture.
            azimuth_step: Azimuth increment per capture.
            elevation: Mast elevation.
            elevation_jitter: Maximum random elevation offset per capture.
            clock_offset: Integer seconds added to the base clock.
            clock_step: Integer seconds between captures.
            xyz: Position text attached to every capture.
            local_hour: Local solar hour of the first capture.
        """
        records = []
        for i in range(count):
            jitter = self._rng.uniform(-elevation_jitter, elevation_jitter) if elevation_jitter else 0.0
            clock = self._base_clock + clock_offset + i * clock_step
            minutes = (i * clock_step) // 60
            records.append(
                TelemetryRecord(
                    record_id=self._next_id(sol, camera),
                    vehicle=self._vehicle,
                    sol=sol,
                    camera=camera,
                    site=site,
                    drive=drive,
                    xyz=xyz,
                    mast_az=(start_azimuth + i * azimuth_step) % 360.0,
                    mast_el=elevation + jitter,
                    spacecraft_clock=float(clock),
                    local_time=(
                        f"Sol-{sol:05d}M{(local_hour + minutes // 60) % 24:02d}:"
                        f"{minutes % 60:02d}:00.000"
                    ),
                )
            )
        return records

    def traverse(
        self,
        sols: range | list[int],
        *,
        points_per_sol: int = 3,
        step_m: float = 5.0,
        max_turn_deg: float = 20.0,
        max_climb_m: float = 0.5,
        camera: str = "NAV_LEFT_B",
        start: tuple[float, float, float] = (0.0, 0.0, 0.0),
    ) -> list[TelemetryRecord]:
        """Generate a wandering drive with ``points_per_sol`` stops per sol.

        Positions carry no orientation telemetry, so they only feed
        traverse building.
        """
        x, y, z = start
        heading = self._rng.uniform(0.0, 360.0)
        records = []
        for sol in sols:
            for k in range(points_per_sol):
                heading = (heading + self._rng.uniform(-max_turn_deg, max_turn_deg)) % 360.0
                x += step_m * math.sin(math.radians(heading))
                y += step_m * math.cos(math.radians(heading))
                z += self._rng.uniform(-max_climb_m, max_climb_m)
                records.append(
                    TelemetryRecord(
                        record_id=self._next_id(sol, camera),
                        vehicle=self._vehicle,
                        sol=sol,
                        camera=camera,
                        site=sol // 10,
                        drive=k,
                        xyz=f"({x:.4f},{y:.4f},{z:.4f})",
                        spacecraft_clock=float(self._base_clock + sol * 88_775 + k * 600),
                    )
                )
        return records
