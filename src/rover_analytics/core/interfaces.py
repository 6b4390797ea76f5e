"""Abstract boundary to the telemetry storage collaborator.

The analytics services depend only on this interface and the schemas,
never on a concrete store. Implementations perform the coarse filtering
(vehicle, sol bounds, "has position/orientation") before records reach
the engine.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rover_analytics.schemas import TelemetryRecord


class RecordRequirement(str, Enum):
    """Which telemetry a record must carry to be returned."""

    ANY = "any"
    ORIENTATION = "orientation"   # site, drive, azimuth, elevation and clock
    POSITION = "position"         # parseable 3D position

    def accepts(self, record: TelemetryRecord) -> bool:
        if self is RecordRequirement.ORIENTATION:
            return record.has_orientation
        if self is RecordRequirement.POSITION:
            return record.has_position
        return True


class TelemetryRepository(ABC):
    """Read-only access to telemetry records.

    Implementations might include:
    - A relational database with per-sol indexes
    - An in-memory store for tests and file replay
    """

    @abstractmethod
    def vehicles(self) -> list[str]:
        """List known vehicle names (lower case, sorted)."""
        ...

    @abstractmethod
    def list_sols(
        self,
        vehicle: str,
        sol_min: int | None = None,
        sol_max: int | None = None,
        require: RecordRequirement = RecordRequirement.ANY,
    ) -> list[int]:
        """List distinct sols, ascending, that have matching records.

        Args:
            vehicle: Vehicle name (case-insensitive).
            sol_min: Inclusive lower bound, or None.
            sol_max: Inclusive upper bound, or None.
            require: Telemetry the records must carry.
        """
        ...

    @abstractmethod
    def get_records(
        self,
        vehicle: str,
        sol_min: int | None = None,
        sol_max: int | None = None,
        require: RecordRequirement = RecordRequirement.ANY,
    ) -> list[TelemetryRecord]:
        """Fetch matching records for one vehicle within inclusive sol bounds."""
        ...

    def latest_sol(
        self,
        vehicle: str,
        require: RecordRequirement = RecordRequirement.ANY,
    ) -> int | None:
        """Most recent sol with matching records, or None."""
        sols = self.list_sols(vehicle, require=require)
        return sols[-1] if sols else None

    @abstractmethod
    def data_fingerprint(
        self,
        vehicle: str,
        sol_min: int | None = None,
        sol_max: int | None = None,
    ) -> str:
        """Opaque token that changes whenever the matching data changes.

        Used by callers to key caches of engine output.
        """
        ...
