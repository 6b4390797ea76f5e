"""Query-scoped orchestration over the telemetry repository.

Each query reads from the repository in bounded slices (one sol at a time
for panoramas, sol batches for traverses), checks for cancellation between
slices and keeps no state once it returns. The engine holds no cache;
build_cache_key gives callers a deterministic key for caching results.
"""

from __future__ import annotations

import hashlib
import json
import logging
import math
from collections import defaultdict
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING

from rover_analytics.core.interfaces import RecordRequirement
from rover_analytics.modules.grouping import (
    check_cancelled,
    iter_sol_batches,
    resolve_sol_window,
)
from rover_analytics.modules.panorama_detector import PanoramaDetector
from rover_analytics.modules.traverse_builder import TraverseBuilder
from rover_analytics.schemas.panorama import PanoramaSequence, parse_panorama_id
from rover_analytics.schemas.resources import (
    ApiPage,
    api_page,
    panorama_resource,
    PanoramaResource,
)
from rover_analytics.schemas.traverse import TraverseResult
from rover_analytics.utils.config import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_SOL_WINDOW,
    MAX_PAGE_SIZE,
    PANORAMA_MIN_PHOTOS,
    TRAVERSE_SOL_BATCH_SIZE,
)
from rover_analytics.utils.logging import get_logger, LogLevel

if TYPE_CHECKING:
    from rover_analytics.core.interfaces import TelemetryRepository
    from rover_analytics.modules.grouping import CancellationToken
    from rover_analytics.utils.logging import StructuredLogger


logger = logging.getLogger(__name__)


def _validate_pagination(page: int, per_page: int) -> None:
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if not 1 <= per_page <= MAX_PAGE_SIZE:
        raise ValueError(f"per_page must be between 1 and {MAX_PAGE_SIZE}, got {per_page}")


# =============================================================================
# PANORAMAS
# =============================================================================

@dataclass
class PanoramaPage:
    """One page of detected panoramas plus the total before slicing."""

    items: list[PanoramaSequence] = field(default_factory=list)
    total_count: int = 0
    page: int = 1
    per_page: int = DEFAULT_PAGE_SIZE

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.per_page)

    def to_resource(self, include_photos: bool = True) -> ApiPage:
        """Assemble the paginated API response."""
        return api_page(
            [panorama_resource(sequence, include_photos) for sequence in self.items],
            total_count=self.total_count,
            page=self.page,
            per_page=self.per_page,
            item_type=PanoramaResource,
        )


class PanoramaService:
    """Lists and looks up panoramas by re-detecting them on demand."""

    def __init__(
        self,
        repository: TelemetryRepository,
        detector: PanoramaDetector | None = None,
        structured_logger: StructuredLogger | None = None,
        default_sol_window: int = DEFAULT_SOL_WINDOW,
    ) -> None:
        """Initialize the service.

        Args:
            repository: Source of telemetry records.
            detector: Detector to use; defaults to the standard tolerances.
            structured_logger: Structured logger for query decisions;
                defaults to the global logger.
            default_sol_window: Sols scanned when a query gives no bounds.
        """
        self._repository = repository
        self._log = structured_logger if structured_logger is not None else get_logger()
        self._detector = detector or PanoramaDetector(structured_logger=self._log)
        self._default_sol_window = default_sol_window

    def _resolve_vehicles(self, vehicles: str | Iterable[str] | None) -> list[str]:
        if vehicles is None:
            return self._repository.vehicles()
        if isinstance(vehicles, str):
            vehicles = vehicles.split(",")
        names = {v.strip().lower() for v in vehicles if v and v.strip()}
        return sorted(names)

    def detect_range(
        self,
        vehicles: str | Iterable[str] | None = None,
        sol_min: int | None = None,
        sol_max: int | None = None,
        min_photos: int = PANORAMA_MIN_PHOTOS,
        cancel: CancellationToken | None = None,
    ) -> list[PanoramaSequence]:
        """Detect every panorama for the given vehicles and sol bounds.

        ``vehicles`` is a list of names or a comma-separated string; None
        means every vehicle in the repository. Sols are processed one at a
        time in ascending order (vehicles in name order within a sol). With
        no bounds, only the most recent
        ``default_sol_window`` sols up to the latest sol with orientation
        telemetry are scanned.

        Raises:
            ValueError: If min_photos < 1.
            AnalysisCancelled: If ``cancel`` fires between sols.
        """
        if min_photos < 1:
            raise ValueError(f"min_photos must be >= 1, got {min_photos}")

        require = RecordRequirement.ORIENTATION
        names = self._resolve_vehicles(vehicles)

        latest_sol = None
        if sol_min is None and sol_max is None:
            latest = [self._repository.latest_sol(name, require) for name in names]
            latest = [sol for sol in latest if sol is not None]
            latest_sol = max(latest) if latest else None

        window = resolve_sol_window(sol_min, sol_max, latest_sol, self._default_sol_window)
        if window.defaulted:
            self._log.storage(
                f"Defaulted sol window to {window.start}..{window.end}",
                level=LogLevel.INFO,
                sols=[window.start, window.end],
            )

        vehicles_by_sol: dict[int, list[str]] = defaultdict(list)
        for name in names:
            for sol in self._repository.list_sols(name, window.start, window.end, require):
                vehicles_by_sol[sol].append(name)

        panoramas: list[PanoramaSequence] = []
        for sol in sorted(vehicles_by_sol):
            check_cancelled(cancel, f"panorama detection at sol {sol}")
            for name in vehicles_by_sol[sol]:
                records = self._repository.get_records(name, sol, sol, require)
                panoramas.extend(self._detector.detect(records, min_photos))

        logger.info(
            "Detected %d panoramas across %d sols for %s",
            len(panoramas), len(vehicles_by_sol), ", ".join(names) or "no vehicles",
        )
        return panoramas

    def list_panoramas(
        self,
        vehicles: str | Iterable[str] | None = None,
        sol_min: int | None = None,
        sol_max: int | None = None,
        min_photos: int = PANORAMA_MIN_PHOTOS,
        page: int = 1,
        per_page: int = DEFAULT_PAGE_SIZE,
        cancel: CancellationToken | None = None,
    ) -> PanoramaPage:
        """Detect panoramas and return one page of them.

        Raises:
            ValueError: For invalid pagination or min_photos.
            AnalysisCancelled: If ``cancel`` fires between sols.
        """
        _validate_pagination(page, per_page)
        panoramas = self.detect_range(vehicles, sol_min, sol_max, min_photos, cancel)

        start = (page - 1) * per_page
        return PanoramaPage(
            items=panoramas[start:start + per_page],
            total_count=len(panoramas),
            page=page,
            per_page=per_page,
        )

    def get_panorama(
        self,
        panorama_id: str,
        min_photos: int = PANORAMA_MIN_PHOTOS,
    ) -> PanoramaSequence | None:
        """Look up a panorama by identifier.

        Re-detects the identifier's (vehicle, sol). An identifier resolves to
        the same sequence only when ``min_photos`` matches the value used when
        it was listed. Malformed or unknown identifiers return None.
        """
        parsed = parse_panorama_id(panorama_id)
        if parsed is None:
            logger.debug("Malformed panorama id: %r", panorama_id)
            return None

        records = self._repository.get_records(
            parsed.vehicle, parsed.sol, parsed.sol, RecordRequirement.ORIENTATION
        )
        for sequence in self._detector.detect(records, min_photos):
            if sequence.index == parsed.index:
                return sequence
        return None


# =============================================================================
# TRAVERSE
# =============================================================================

class TraverseService:
    """Builds traverses by streaming position telemetry in sol batches."""

    def __init__(
        self,
        repository: TelemetryRepository,
        builder_factory: Callable[[], TraverseBuilder] | None = None,
        batch_size: int = TRAVERSE_SOL_BATCH_SIZE,
        structured_logger: StructuredLogger | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            repository: Source of telemetry records.
            builder_factory: Creates a fresh builder per query.
            batch_size: Sols fetched per repository read.
            structured_logger: Structured logger for query decisions;
                defaults to the global logger.
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self._repository = repository
        self._log = structured_logger if structured_logger is not None else get_logger()
        self._builder_factory = builder_factory or (
            lambda: TraverseBuilder(structured_logger=self._log)
        )
        self._batch_size = batch_size

    def get_traverse(
        self,
        vehicle: str,
        sol_min: int | None = None,
        sol_max: int | None = None,
        simplify: float = 0.0,
        include_segments: bool = False,
        cancel: CancellationToken | None = None,
    ) -> TraverseResult:
        """Build the traverse of one vehicle over an inclusive sol range.

        Raises:
            ValueError: If ``simplify`` is negative.
            AnalysisCancelled: If ``cancel`` fires between batches.
        """
        if simplify < 0 or math.isnan(simplify):
            raise ValueError(f"simplify tolerance must be >= 0, got {simplify}")

        require = RecordRequirement.POSITION
        sols = self._repository.list_sols(vehicle, sol_min, sol_max, require)
        builder = self._builder_factory()

        for batch_number, batch in enumerate(iter_sol_batches(sols, self._batch_size), 1):
            check_cancelled(cancel, f"traverse batch {batch_number}")
            records = self._repository.get_records(vehicle, batch[0], batch[-1], require)
            added = builder.accumulate(records)
            logger.debug(
                "Traverse batch %d (sols %d-%d): %d positioned records, %d distinct so far",
                batch_number, batch[0], batch[-1], added, builder.pending_positions,
            )

        check_cancelled(cancel, "traverse build")
        result = builder.finish(simplify, include_segments)

        self._log.check_invariant(
            not result.points
            or math.isclose(
                result.points[-1].cumulative_distance_m,
                result.summary.total_distance_m,
            ),
            "cumulative_distance",
            "final cumulative distance equals total distance",
            vehicle=vehicle.lower(),
        )
        return result


# =============================================================================
# CACHE KEYS
# =============================================================================

def build_cache_key(
    kind: str,
    vehicle: str | Iterable[str] | None,
    sol_min: int | None,
    sol_max: int | None,
    params: dict[str, Any] | None = None,
    fingerprint: str = "",
) -> str:
    """Deterministic cache key for an engine result.

    Covers the query kind, vehicle(s), sol bounds, remaining parameters and
    a data fingerprint from the repository, so any change in the underlying
    records yields a new key.
    """
    if vehicle is None:
        vehicles: list[str] = []
    elif isinstance(vehicle, str):
        vehicles = [vehicle.lower()]
    else:
        vehicles = sorted({v.lower() for v in vehicle})

    payload = {
        "kind": kind,
        "vehicles": vehicles,
        "sol_min": sol_min,
        "sol_max": sol_max,
        "params": params or {},
        "fingerprint": fingerprint,
    }
    digest = hashlib.sha256(json.dumps(payload, sort_keys=True, default=str).encode("utf-8"))
    return f"{kind}:{','.join(vehicles) or '*'}:{digest.hexdigest()[:32]}"
