"""Stop (site/drive) summary contract."""

from __future__ import annotations

from pydantic import BaseModel, Field

from rover_analytics.schemas.telemetry import Position


class StopSummary(BaseModel):
    """Aggregate of all records captured at one (vehicle, site, drive) stop."""

    vehicle: str
    site: int
    drive: int
    record_count: int = Field(..., ge=1)
    sol_first: int = Field(..., ge=0)
    sol_last: int = Field(..., ge=0)
    position: Position | None = Field(
        default=None,
        description="Earliest parseable position observed at the stop",
    )

    model_config = {"frozen": True}

    @property
    def stop_id(self) -> str:
        return f"{self.vehicle}_{self.site}_{self.drive}"

    @property
    def sols_spanned(self) -> int:
        return self.sol_last - self.sol_first + 1
