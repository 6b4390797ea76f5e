"""Telemetry record contract and boundary parsing.

Telemetry arrives from the storage collaborator as loosely typed text
(positions as "(x,y,z)", clocks and angles as strings or numbers).
Everything is parsed exactly once, here, when a TelemetryRecord is built.
Detectors only ever see typed fields.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

Position = tuple[float, float, float]

# "M15:18:15", "15:18:15", "M15:18:15.866"
_LOCAL_TIME_RE = re.compile(r"^M?(\d{1,2}):(\d{2}):(\d{2})(?:\.(\d+))?$")

# Accepted spellings for each field when parsing raw rows
_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "record_id": ("record_id", "id", "nasa_id"),
    "vehicle": ("vehicle", "rover"),
    "sol": ("sol",),
    "camera": ("camera", "instrument"),
    "site": ("site",),
    "drive": ("drive",),
    "xyz": ("xyz", "position"),
    "mast_az": ("mast_az", "azimuth"),
    "mast_el": ("mast_el", "elevation"),
    "spacecraft_clock": ("spacecraft_clock", "sclk"),
    "local_time": ("local_time", "date_taken_mars"),
}


# =============================================================================
# FIELD PARSERS
# =============================================================================

def parse_xyz(text: str | None) -> Position | None:
    """Parse a textual "(x,y,z)" position.

    Parentheses are optional. Returns None for anything that is not three
    finite numbers, which callers treat as "no position".
    """
    if text is None:
        return None
    cleaned = text.strip().strip("()")
    if not cleaned:
        return None
    parts = cleaned.split(",")
    if len(parts) != 3:
        return None
    try:
        x, y, z = (float(part.strip()) for part in parts)
    except ValueError:
        return None
    if not all(math.isfinite(v) for v in (x, y, z)):
        return None
    return (x, y, z)


def extract_local_time(text: str | None) -> str | None:
    """Extract local solar time from a timestamp like "Sol-01646M15:18:15.866".

    Returns the normalized "MHH:MM:SS" form, or None when no valid time
    of day can be found.
    """
    if text is None:
        return None
    text = text.strip()
    if not text:
        return None

    m_index = text.find("M")
    candidate = text[m_index:] if m_index != -1 else text

    match = _LOCAL_TIME_RE.match(candidate)
    if not match:
        return None

    hours, minutes, seconds = (int(match.group(i)) for i in (1, 2, 3))
    if hours > 23 or minutes > 59 or seconds > 59:
        return None
    return f"M{hours:02d}:{minutes:02d}:{seconds:02d}"


def _to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


def _to_int(value: Any) -> int | None:
    as_float = _to_float(value)
    if as_float is None or not as_float.is_integer():
        return None
    return int(as_float)


def _in_range(value: float | None, low: float, high: float) -> float | None:
    if value is None or not (low <= value <= high):
        return None
    return value


# =============================================================================
# TELEMETRY RECORD
# =============================================================================

class TelemetryRecord(BaseModel):
    """Telemetry attached to one captured image.

    Immutable and externally owned. A record missing site, drive, azimuth,
    elevation or clock never takes part in panorama grouping, but it can
    still contribute its position to a traverse.
    """

    # Identity
    record_id: str = Field(..., min_length=1, description="Unique record identifier")
    vehicle: str = Field(..., min_length=1, description="Vehicle name, lower case")
    sol: int = Field(..., ge=0, description="Mission sol of capture")
    camera: str = Field(..., min_length=1, description="Imaging device identifier")

    # Location
    site: int | None = Field(default=None, description="Site index")
    drive: int | None = Field(default=None, description="Drive index within the site")
    xyz: str | None = Field(
        default=None,
        description="Position text as delivered, kept for exact-string grouping",
    )
    position: Position | None = Field(
        default=None,
        description="Parsed local Cartesian position in meters",
    )

    # Orientation
    mast_az: float | None = Field(
        default=None, ge=0.0, le=360.0, allow_inf_nan=False,
        description="Mast azimuth in degrees",
    )
    mast_el: float | None = Field(
        default=None, ge=-90.0, le=90.0, allow_inf_nan=False,
        description="Mast elevation in degrees",
    )

    # Timing
    spacecraft_clock: float | None = Field(
        default=None, allow_inf_nan=False,
        description="Onboard clock in seconds",
    )
    local_time: str | None = Field(
        default=None,
        description="Local solar time of day, normalized to MHH:MM:SS",
    )

    model_config = {"frozen": True}

    @field_validator("vehicle")
    @classmethod
    def _normalize_vehicle(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("local_time", mode="before")
    @classmethod
    def _normalize_local_time(cls, value: Any) -> str | None:
        if value is None:
            return None
        return extract_local_time(str(value))

    @model_validator(mode="before")
    @classmethod
    def _parse_position(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("position") is None and data.get("xyz"):
            data = {**data, "position": parse_xyz(str(data["xyz"]))}
        return data

    @property
    def has_orientation(self) -> bool:
        """Whether the record carries everything panorama grouping needs."""
        return (
            self.site is not None
            and self.drive is not None
            and self.mast_az is not None
            and self.mast_el is not None
            and self.spacecraft_clock is not None
        )

    @property
    def has_position(self) -> bool:
        """Whether the record can contribute to a traverse."""
        return self.position is not None

    @classmethod
    def from_raw(cls, row: Mapping[str, Any]) -> TelemetryRecord:
        """Build a record from a loosely typed row.

        Optional fields that are empty, unparseable or out of range become
        None. Missing identity fields raise ``pydantic.ValidationError``.
        """
        def pick(field: str) -> Any:
            for key in _FIELD_ALIASES[field]:
                if key in row and row[key] is not None:
                    return row[key]
            return None

        xyz = pick("xyz")
        if isinstance(xyz, (list, tuple)):
            xyz = "(" + ",".join(str(v) for v in xyz) + ")"
        local_time = pick("local_time")
        sol = pick("sol")
        parsed_sol = _to_int(sol)
        record_id = pick("record_id")

        return cls(
            record_id=str(record_id) if record_id is not None else "",
            vehicle=str(pick("vehicle") or ""),
            sol=parsed_sol if parsed_sol is not None else sol,
            camera=str(pick("camera") or ""),
            site=_to_int(pick("site")),
            drive=_to_int(pick("drive")),
            xyz=str(xyz) if xyz is not None else None,
            mast_az=_in_range(_to_float(pick("mast_az")), 0.0, 360.0),
            mast_el=_in_range(_to_float(pick("mast_el")), -90.0, 90.0),
            spacecraft_clock=_to_float(pick("spacecraft_clock")),
            local_time=str(local_time) if local_time is not None else None,
        )
