"""Panorama sequence contracts.

A panorama is a contiguous run of images from one camera at one stop,
sweeping a wide azimuth range within a short time window. Sequences are
derived per query and never persisted.

Identifiers are positional: (vehicle, sol, index) where index counts the
sequences emitted for that vehicle and sol in detection order. They are
stable for the same input because detection order is deterministic.
"""

from __future__ import annotations

from dataclasses import dataclass
from statistics import fmean

from pydantic import BaseModel, Field, model_validator

from rover_analytics.schemas.telemetry import Position, TelemetryRecord
from rover_analytics.utils.config import PANORAMA_ID_PREFIX


@dataclass(frozen=True)
class PanoramaId:
    """Parsed panorama identifier."""

    vehicle: str
    sol: int
    index: int

    def __str__(self) -> str:
        return format_panorama_id(self.vehicle, self.sol, self.index)


def format_panorama_id(vehicle: str, sol: int, index: int) -> str:
    """Format an identifier such as ``pano_curiosity_1000_14``."""
    return f"{PANORAMA_ID_PREFIX}_{vehicle.lower()}_{sol}_{index}"


def parse_panorama_id(panorama_id: str) -> PanoramaId | None:
    """Parse a panorama identifier.

    The vehicle part may itself contain underscores; sol and index are the
    last two fields. Returns None for anything malformed.
    """
    prefix, sep, rest = panorama_id.strip().partition("_")
    if prefix != PANORAMA_ID_PREFIX or not sep:
        return None

    parts = rest.rsplit("_", 2)
    if len(parts) != 3:
        return None

    vehicle, sol_text, index_text = parts
    if not vehicle or not sol_text.isdecimal() or not index_text.isdecimal():
        return None

    return PanoramaId(vehicle=vehicle.lower(), sol=int(sol_text), index=int(index_text))


class PanoramaLocation(BaseModel):
    """Where a panorama was captured (taken from its first member)."""

    site: int | None = None
    drive: int | None = None
    position: Position | None = None

    model_config = {"frozen": True}


class PanoramaSequence(BaseModel):
    """A validated panoramic sequence.

    Members share vehicle, sol, site, drive and camera, and are ordered by
    strictly increasing spacecraft clock.
    """

    vehicle: str = Field(..., description="Vehicle name")
    sol: int = Field(..., ge=0, description="Sol of capture")
    index: int = Field(..., ge=0, description="Position among the sol's emitted sequences")
    members: list[TelemetryRecord] = Field(..., min_length=1)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_members(self) -> PanoramaSequence:
        first = self.members[0]
        for record in self.members:
            if not record.has_orientation:
                raise ValueError(f"record {record.record_id} lacks orientation telemetry")
            if (record.vehicle, record.sol, record.site, record.drive, record.camera) != (
                first.vehicle, first.sol, first.site, first.drive, first.camera
            ):
                raise ValueError("panorama members must share vehicle, sol, site, drive and camera")
        if first.vehicle != self.vehicle or first.sol != self.sol:
            raise ValueError("panorama vehicle/sol must match its members")
        clocks = [record.spacecraft_clock for record in self.members]
        if any(later <= earlier for earlier, later in zip(clocks, clocks[1:])):
            raise ValueError("panorama members must have strictly increasing clocks")
        return self

    @property
    def panorama_id(self) -> str:
        return format_panorama_id(self.vehicle, self.sol, self.index)

    @property
    def camera(self) -> str:
        return self.members[0].camera

    @property
    def site(self) -> int | None:
        return self.members[0].site

    @property
    def drive(self) -> int | None:
        return self.members[0].drive

    @property
    def photo_count(self) -> int:
        return len(self.members)

    @property
    def azimuth_coverage(self) -> float:
        """Azimuth sweep in degrees (max minus min, no wrap-around)."""
        azimuths = [record.mast_az for record in self.members]
        return max(azimuths) - min(azimuths)

    @property
    def average_elevation(self) -> float:
        return fmean(record.mast_el for record in self.members)

    @property
    def local_time_start(self) -> str | None:
        return self.members[0].local_time

    @property
    def local_time_end(self) -> str | None:
        return self.members[-1].local_time

    @property
    def location(self) -> PanoramaLocation:
        first = self.members[0]
        return PanoramaLocation(site=first.site, drive=first.drive, position=first.position)

    @property
    def record_ids(self) -> list[str]:
        return [record.record_id for record in self.members]
