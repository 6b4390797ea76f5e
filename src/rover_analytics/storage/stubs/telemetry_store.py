"""In-memory telemetry store."""

from __future__ import annotations

import hashlib
from collections import defaultdict
from collections.abc import Iterable

from rover_analytics.core.interfaces import RecordRequirement, TelemetryRepository
from rover_analytics.schemas import TelemetryRecord


class InMemoryTelemetryStore(TelemetryRepository):
    """Simple in-memory telemetry storage.

    Records are indexed by vehicle and sol and keep insertion order within
    a sol. Not persisted across runs. Suitable for testing and for replaying
    telemetry files through the CLI.
    """

    def __init__(self, records: Iterable[TelemetryRecord] = ()) -> None:
        """Initialize the store, optionally with records."""
        self._by_vehicle: dict[str, dict[int, list[TelemetryRecord]]] = defaultdict(
            lambda: defaultdict(list)
        )
        self._count = 0
        self.add_many(records)

    def add(self, record: TelemetryRecord) -> None:
        """Store one record."""
        self._by_vehicle[record.vehicle][record.sol].append(record)
        self._count += 1

    def add_many(self, records: Iterable[TelemetryRecord]) -> None:
        for record in records:
            self.add(record)

    def count(self) -> int:
        """Total number of stored records."""
        return self._count

    def clear(self) -> None:
        self._by_vehicle.clear()
        self._count = 0

    # -------------------------------------------------------------------------
    # TelemetryRepository
    # -------------------------------------------------------------------------

    def vehicles(self) -> list[str]:
        return sorted(self._by_vehicle)

    def _sols_in_range(
        self,
        vehicle: str,
        sol_min: int | None,
        sol_max: int | None,
    ) -> list[int]:
        by_sol = self._by_vehicle.get(vehicle.lower(), {})
        return sorted(
            sol for sol in by_sol
            if (sol_min is None or sol >= sol_min) and (sol_max is None or sol <= sol_max)
        )

    def list_sols(
        self,
        vehicle: str,
        sol_min: int | None = None,
        sol_max: int | None = None,
        require: RecordRequirement = RecordRequirement.ANY,
    ) -> list[int]:
        by_sol = self._by_vehicle.get(vehicle.lower(), {})
        return [
            sol for sol in self._sols_in_range(vehicle, sol_min, sol_max)
            if any(require.accepts(record) for record in by_sol[sol])
        ]

    def get_records(
        self,
        vehicle: str,
        sol_min: int | None = None,
        sol_max: int | None = None,
        require: RecordRequirement = RecordRequirement.ANY,
    ) -> list[TelemetryRecord]:
        by_sol = self._by_vehicle.get(vehicle.lower(), {})
        return [
            record
            for sol in self._sols_in_range(vehicle, sol_min, sol_max)
            for record in by_sol[sol]
            if require.accepts(record)
        ]

    def data_fingerprint(
        self,
        vehicle: str,
        sol_min: int | None = None,
        sol_max: int | None = None,
    ) -> str:
        records = self.get_records(vehicle, sol_min, sol_max)
        digest = hashlib.sha256()
        digest.update(str(len(records)).encode())
        for record_id in sorted(record.record_id for record in records):
            digest.update(b"\x00" + record_id.encode("utf-8"))
        return digest.hexdigest()[:16]
