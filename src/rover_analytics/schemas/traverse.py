"""Traverse path contracts.

Values here are kept at full precision. Rounding for presentation happens
only when results are assembled into API resources.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class TraverseSegment(BaseModel):
    """Metadata for the segment ending at a point."""

    distance_m: float = Field(..., ge=0.0, description="3D length of the segment")
    bearing_deg: float = Field(..., ge=0.0, lt=360.0, description="Compass bearing of the segment")
    elevation_change_m: float = Field(..., description="z delta from the previous point")

    model_config = {"frozen": True}


class TraversePoint(BaseModel):
    """A deduplicated position on the traverse path."""

    x: float
    y: float
    z: float
    sol_first: int = Field(..., ge=0, description="First sol the position was observed")
    sol_last: int = Field(..., ge=0, description="Last sol the position was observed")
    cumulative_distance_m: float = Field(
        default=0.0,
        ge=0.0,
        description="Path distance from the first point",
    )
    segment: TraverseSegment | None = Field(
        default=None,
        description="Segment metadata (non-first points, when requested)",
    )

    model_config = {"frozen": True}

    @property
    def position(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


class BoundingBox(BaseModel):
    """Componentwise min/max over the path."""

    min: tuple[float, float, float]
    max: tuple[float, float, float]

    model_config = {"frozen": True}


class SolRange(BaseModel):
    """Inclusive sol range."""

    start: int
    end: int

    model_config = {"frozen": True}


class TraverseSummary(BaseModel):
    """Summary statistics for a traverse."""

    total_distance_m: float = Field(default=0.0, ge=0.0)
    elevation_gain_m: float = Field(default=0.0, ge=0.0)
    elevation_loss_m: float = Field(default=0.0, ge=0.0)
    point_count: int = Field(default=0, ge=0, description="Unique positions before simplification")
    simplified_point_count: int | None = Field(
        default=None,
        description="Points kept by simplification, None when it did not run",
    )
    bounding_box: BoundingBox | None = None
    sol_range: SolRange | None = Field(
        default=None,
        description="Sols spanned by all unique positions, including any dropped by simplification",
    )

    model_config = {"frozen": True}

    @property
    def net_elevation_change_m(self) -> float:
        return self.elevation_gain_m - self.elevation_loss_m


class TraverseResult(BaseModel):
    """Ordered traverse points plus summary statistics."""

    points: list[TraversePoint] = Field(default_factory=list)
    summary: TraverseSummary = Field(default_factory=TraverseSummary)

    model_config = {"frozen": True}

    @property
    def is_empty(self) -> bool:
        return not self.points
