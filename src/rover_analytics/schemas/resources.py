"""API-facing resource contracts and their assembly.

These are the shapes handed to the request-routing layer. Display rounding
happens here and nowhere else. Serialize with
``model_dump(mode="json", exclude_none=True)`` so optional members are
omitted rather than written as null.
"""

from __future__ import annotations

import math
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, Field

from rover_analytics.schemas.panorama import PanoramaSequence
from rover_analytics.schemas.telemetry import Position
from rover_analytics.schemas.traverse import TraversePoint, TraverseResult
from rover_analytics.utils.config import (
    API_BASE_PATH,
    BEARING_OUTPUT_DECIMALS,
    COORDINATE_OUTPUT_DECIMALS,
    DISTANCE_OUTPUT_DECIMALS,
    SEGMENT_OUTPUT_DECIMALS,
)

T = TypeVar("T")


# =============================================================================
# SHARED
# =============================================================================

class Coordinates(BaseModel):
    """Local Cartesian coordinates in meters."""

    x: float
    y: float
    z: float


class ResponseMeta(BaseModel):
    total_count: int = Field(..., ge=0)
    returned_count: int = Field(..., ge=0)


class PaginationInfo(BaseModel):
    page: int = Field(..., ge=1)
    per_page: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)


class ApiPage(BaseModel, Generic[T]):
    """One page of a paginated collection."""

    data: list[T] = Field(default_factory=list)
    meta: ResponseMeta
    pagination: PaginationInfo


# =============================================================================
# PANORAMAS
# =============================================================================

class PanoramaLocationResource(BaseModel):
    site: int | None = None
    drive: int | None = None
    coordinates: Coordinates | None = None


class PanoramaAttributes(BaseModel):
    vehicle: str
    sol: int
    local_time_start: str | None = None
    local_time_end: str | None = None
    total_photos: int
    coverage_degrees: float
    location: PanoramaLocationResource | None = None
    camera: str | None = None
    avg_elevation: float | None = None


class PanoramaLinks(BaseModel):
    download_set: str | None = None


class PanoramaResource(BaseModel):
    """An auto-detected panoramic sequence."""

    id: str
    type: Literal["panorama"] = "panorama"
    attributes: PanoramaAttributes
    photos: list[str] | None = Field(
        default=None,
        description="Record ids of the member images, in capture order",
    )
    links: PanoramaLinks | None = None


# =============================================================================
# TRAVERSE
# =============================================================================

class SolRangeResource(BaseModel):
    start: int
    end: int


class BoundingBoxResource(BaseModel):
    min: Coordinates
    max: Coordinates


class PathSegment(BaseModel):
    distance_m: float
    bearing_deg: float
    elevation_change_m: float


class PathPoint(BaseModel):
    x: float
    y: float
    z: float
    sol_first: int
    sol_last: int
    cumulative_distance_m: float
    segment: PathSegment | None = None


class TraverseAttributes(BaseModel):
    vehicle: str
    sol_range: SolRangeResource
    total_distance_m: float = 0.0
    total_elevation_gain_m: float = 0.0
    total_elevation_loss_m: float = 0.0
    net_elevation_change_m: float = 0.0
    point_count: int = 0
    simplified_point_count: int | None = None
    bounding_box: BoundingBoxResource | None = None


class TraverseLinks(BaseModel):
    geojson: str | None = None


class TraverseResource(BaseModel):
    """Deduplicated path data optimized for map display."""

    type: Literal["traverse"] = "traverse"
    attributes: TraverseAttributes
    path: list[PathPoint] = Field(default_factory=list)
    links: TraverseLinks | None = None


# =============================================================================
# GEOJSON
# =============================================================================

class GeoJsonLineString(BaseModel):
    type: Literal["LineString"] = "LineString"
    coordinates: list[list[float]] = Field(
        default_factory=list,
        description="Ordered [x, y, z] positions",
    )


class GeoJsonProperties(BaseModel):
    vehicle: str
    sol_range: list[int]
    total_distance_m: float
    total_elevation_gain_m: float
    total_elevation_loss_m: float
    point_count: int
    simplified_point_count: int | None = None


class GeoJsonFeature(BaseModel):
    type: Literal["Feature"] = "Feature"
    geometry: GeoJsonLineString
    properties: GeoJsonProperties


class GeoJsonFeatureCollection(BaseModel):
    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: list[GeoJsonFeature] = Field(default_factory=list)


# =============================================================================
# ASSEMBLY
# =============================================================================

def _coordinates(position: Position | None, decimals: int = COORDINATE_OUTPUT_DECIMALS) -> Coordinates | None:
    if position is None:
        return None
    x, y, z = position
    return Coordinates(x=round(x, decimals), y=round(y, decimals), z=round(z, decimals))


def panorama_resource(sequence: PanoramaSequence, include_photos: bool = True) -> PanoramaResource:
    """Assemble the API resource for one panorama."""
    location = sequence.location
    panorama_id = sequence.panorama_id
    return PanoramaResource(
        id=panorama_id,
        attributes=PanoramaAttributes(
            vehicle=sequence.vehicle,
            sol=sequence.sol,
            local_time_start=sequence.local_time_start,
            local_time_end=sequence.local_time_end,
            total_photos=sequence.photo_count,
            coverage_degrees=round(sequence.azimuth_coverage, BEARING_OUTPUT_DECIMALS),
            location=PanoramaLocationResource(
                site=location.site,
                drive=location.drive,
                coordinates=_coordinates(location.position),
            ),
            camera=sequence.camera,
            avg_elevation=round(sequence.average_elevation, BEARING_OUTPUT_DECIMALS),
        ),
        photos=sequence.record_ids if include_photos else None,
        links=PanoramaLinks(download_set=f"{API_BASE_PATH}/panoramas/{panorama_id}/download"),
    )


def api_page(
    data: list[T],
    total_count: int,
    page: int,
    per_page: int,
    item_type: type[T] | None = None,
) -> ApiPage[T]:
    """Wrap one page of already-sliced resources.

    Pass ``item_type`` to get a parametrized page (``ApiPage[item_type]``)
    that validates and serializes its items as that model.
    """
    page_model = ApiPage[item_type] if item_type is not None else ApiPage
    return page_model(
        data=data,
        meta=ResponseMeta(total_count=total_count, returned_count=len(data)),
        pagination=PaginationInfo(
            page=page,
            per_page=per_page,
            total_pages=math.ceil(total_count / per_page),
        ),
    )


def _bearing(value: float) -> float:
    # 359.96 rounds up to 360.0
    return round(value, BEARING_OUTPUT_DECIMALS) % 360.0


def _path_point(point: TraversePoint) -> PathPoint:
    segment = None
    if point.segment is not None:
        segment = PathSegment(
            distance_m=round(point.segment.distance_m, SEGMENT_OUTPUT_DECIMALS),
            bearing_deg=_bearing(point.segment.bearing_deg),
            elevation_change_m=round(point.segment.elevation_change_m, SEGMENT_OUTPUT_DECIMALS),
        )
    return PathPoint(
        x=round(point.x, COORDINATE_OUTPUT_DECIMALS),
        y=round(point.y, COORDINATE_OUTPUT_DECIMALS),
        z=round(point.z, COORDINATE_OUTPUT_DECIMALS),
        sol_first=point.sol_first,
        sol_last=point.sol_last,
        cumulative_distance_m=round(point.cumulative_distance_m, DISTANCE_OUTPUT_DECIMALS),
        segment=segment,
    )


def _sol_range(result: TraverseResult, sol_min: int | None, sol_max: int | None) -> SolRangeResource:
    """Observed sol range, falling back to the requested bounds when empty."""
    sol_range = result.summary.sol_range
    if sol_range is not None:
        return SolRangeResource(start=sol_range.start, end=sol_range.end)
    return SolRangeResource(start=sol_min or 0, end=sol_max or 0)


def traverse_resource(
    result: TraverseResult,
    vehicle: str,
    sol_min: int | None = None,
    sol_max: int | None = None,
) -> TraverseResource:
    """Assemble the API resource for a traverse, rounding for display."""
    summary = result.summary
    vehicle = vehicle.lower()

    bounding_box = None
    if summary.bounding_box is not None:
        bounding_box = BoundingBoxResource(
            min=_coordinates(summary.bounding_box.min),
            max=_coordinates(summary.bounding_box.max),
        )

    return TraverseResource(
        attributes=TraverseAttributes(
            vehicle=vehicle,
            sol_range=_sol_range(result, sol_min, sol_max),
            total_distance_m=round(summary.total_distance_m, DISTANCE_OUTPUT_DECIMALS),
            total_elevation_gain_m=round(summary.elevation_gain_m, DISTANCE_OUTPUT_DECIMALS),
            total_elevation_loss_m=round(summary.elevation_loss_m, DISTANCE_OUTPUT_DECIMALS),
            net_elevation_change_m=round(summary.net_elevation_change_m, DISTANCE_OUTPUT_DECIMALS),
            point_count=summary.point_count,
            simplified_point_count=summary.simplified_point_count,
            bounding_box=bounding_box,
        ),
        path=[_path_point(point) for point in result.points],
        links=TraverseLinks(geojson=f"{API_BASE_PATH}/rovers/{vehicle}/traverse?format=geojson"),
    )


def to_geojson(
    result: TraverseResult,
    vehicle: str,
    sol_min: int | None = None,
    sol_max: int | None = None,
) -> GeoJsonFeatureCollection:
    """Render a traverse as a FeatureCollection holding one LineString."""
    summary = result.summary
    sol_range = _sol_range(result, sol_min, sol_max)
    coordinates = [
        [
            round(point.x, COORDINATE_OUTPUT_DECIMALS),
            round(point.y, COORDINATE_OUTPUT_DECIMALS),
            round(point.z, COORDINATE_OUTPUT_DECIMALS),
        ]
        for point in result.points
    ]
    feature = GeoJsonFeature(
        geometry=GeoJsonLineString(coordinates=coordinates),
        properties=GeoJsonProperties(
            vehicle=vehicle.lower(),
            sol_range=[sol_range.start, sol_range.end],
            total_distance_m=round(summary.total_distance_m, DISTANCE_OUTPUT_DECIMALS),
            total_elevation_gain_m=round(summary.elevation_gain_m, DISTANCE_OUTPUT_DECIMALS),
            total_elevation_loss_m=round(summary.elevation_loss_m, DISTANCE_OUTPUT_DECIMALS),
            point_count=summary.point_count,
            simplified_point_count=summary.simplified_point_count,
        ),
    )
    return GeoJsonFeatureCollection(features=[feature])
