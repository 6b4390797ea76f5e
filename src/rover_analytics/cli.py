"""CLI entry point for the rover analytics engine."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer

from rover_analytics.core.services import PanoramaService, TraverseService
from rover_analytics.modules.grouping import summarize_stops
from rover_analytics.schemas.resources import panorama_resource, to_geojson, traverse_resource
from rover_analytics.storage import InMemoryTelemetryStore, load_store, SyntheticTelemetry
from rover_analytics.utils.config import (
    DEFAULT_PAGE_SIZE,
    PANORAMA_MIN_PHOTOS,
    TRAVERSE_SOL_BATCH_SIZE,
)
from rover_analytics.utils.logging import (
    create_session_logger,
    get_logger,
    SessionLogger,
    set_logger,
    StructuredLogger,
)

app = typer.Typer(
    name="rover-analytics",
    help="Panorama detection and traverse reconstruction over rover telemetry",
    add_completion=False,
)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _load(telemetry_file: Path) -> InMemoryTelemetryStore:
    try:
        return load_store(telemetry_file)
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _session(log_dir: Optional[Path]) -> SessionLogger | None:
    if log_dir is None:
        return None
    return create_session_logger(runs_dir=log_dir)


def _end_session(session: SessionLogger | None, previous: StructuredLogger) -> None:
    if session is not None:
        session.close()
        set_logger(previous)


def _emit(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2))


@app.command()
def panoramas(
    telemetry_file: Path = typer.Argument(..., help="Telemetry file (.jsonl, .json or .csv)"),
    vehicle: Optional[list[str]] = typer.Option(
        None,
        "--vehicle",
        "-r",
        help="Vehicle to scan (repeatable; default: all)",
    ),
    sol_min: Optional[int] = typer.Option(None, "--sol-min", help="First sol (inclusive)"),
    sol_max: Optional[int] = typer.Option(None, "--sol-max", help="Last sol (inclusive)"),
    min_photos: int = typer.Option(
        PANORAMA_MIN_PHOTOS,
        "--min-photos",
        "-m",
        help="Minimum photos per panorama",
    ),
    page: int = typer.Option(1, "--page", help="Page number (1-based)"),
    per_page: int = typer.Option(DEFAULT_PAGE_SIZE, "--per-page", help="Results per page"),
    log_dir: Optional[Path] = typer.Option(
        None,
        "--log-dir",
        help="Write a structured session log under this directory",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """List detected panoramas as a paginated JSON response.

    With no sol bounds, only the most recent sols are scanned.

    Examples:

        rover-analytics panoramas telemetry.jsonl --vehicle curiosity --sol-min 1000 --sol-max 1010
    """
    setup_logging(verbose)
    store = _load(telemetry_file)
    previous = get_logger()
    session = _session(log_dir)

    try:
        service = PanoramaService(store)
        result = service.list_panoramas(
            vehicles=vehicle or None,
            sol_min=sol_min,
            sol_max=sol_max,
            min_photos=min_photos,
            page=page,
            per_page=per_page,
        )
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    finally:
        _end_session(session, previous)

    _emit(result.to_resource().model_dump(mode="json", exclude_none=True))


@app.command()
def panorama(
    telemetry_file: Path = typer.Argument(..., help="Telemetry file (.jsonl, .json or .csv)"),
    panorama_id: str = typer.Argument(..., help="Identifier such as pano_curiosity_1000_0"),
    min_photos: int = typer.Option(
        PANORAMA_MIN_PHOTOS,
        "--min-photos",
        "-m",
        help="Minimum photos per panorama (use the value the id was listed with)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Show one panorama by identifier."""
    setup_logging(verbose)
    store = _load(telemetry_file)

    try:
        sequence = PanoramaService(store).get_panorama(panorama_id, min_photos=min_photos)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if sequence is None:
        typer.echo(f"Error: panorama not found: {panorama_id}", err=True)
        raise typer.Exit(1)

    _emit(panorama_resource(sequence).model_dump(mode="json", exclude_none=True))


@app.command()
def traverse(
    telemetry_file: Path = typer.Argument(..., help="Telemetry file (.jsonl, .json or .csv)"),
    vehicle: str = typer.Argument(..., help="Vehicle name"),
    sol_min: Optional[int] = typer.Option(None, "--sol-min", help="First sol (inclusive)"),
    sol_max: Optional[int] = typer.Option(None, "--sol-max", help="Last sol (inclusive)"),
    simplify: float = typer.Option(
        0.0,
        "--simplify",
        "-s",
        help="Douglas-Peucker tolerance in meters (0 = off)",
    ),
    segments: bool = typer.Option(False, "--segments", help="Include per-segment metadata"),
    geojson: bool = typer.Option(False, "--geojson", help="Emit a GeoJSON FeatureCollection"),
    batch_size: int = typer.Option(
        TRAVERSE_SOL_BATCH_SIZE,
        "--batch-size",
        help="Sols read per batch",
    ),
    log_dir: Optional[Path] = typer.Option(
        None,
        "--log-dir",
        help="Write a structured session log under this directory",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Reconstruct a vehicle's traverse.

    Examples:

        rover-analytics traverse telemetry.jsonl curiosity --simplify 0.5 --geojson
    """
    setup_logging(verbose)
    store = _load(telemetry_file)
    previous = get_logger()
    session = _session(log_dir)

    try:
        service = TraverseService(store, batch_size=batch_size)
        result = service.get_traverse(
            vehicle,
            sol_min=sol_min,
            sol_max=sol_max,
            simplify=simplify,
            include_segments=segments,
        )
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    finally:
        _end_session(session, previous)

    if geojson:
        output = to_geojson(result, vehicle, sol_min, sol_max)
    else:
        output = traverse_resource(result, vehicle, sol_min, sol_max)
    _emit(output.model_dump(mode="json", exclude_none=True))


@app.command()
def stops(
    telemetry_file: Path = typer.Argument(..., help="Telemetry file (.jsonl, .json or .csv)"),
    limit: int = typer.Option(0, "--limit", "-n", help="Show at most this many stops (0 = all)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Summarize stops (site/drive pairs), busiest first."""
    setup_logging(verbose)
    store = _load(telemetry_file)

    records = [
        record
        for name in store.vehicles()
        for record in store.get_records(name)
    ]
    summaries = summarize_stops(records)
    if limit > 0:
        summaries = summaries[:limit]

    _emit([
        {"id": summary.stop_id, **summary.model_dump(mode="json", exclude_none=True)}
        for summary in summaries
    ])


@app.command()
def generate(
    output: Path = typer.Argument(..., help="Output JSONL file"),
    vehicle: str = typer.Option("curiosity", "--vehicle", "-r", help="Vehicle name"),
    sols: int = typer.Option(20, "--sols", help="Number of sols to generate"),
    start_sol: int = typer.Option(1000, "--start-sol", help="First generated sol"),
    seed: int = typer.Option(42, "--seed", help="Random seed for deterministic output"),
) -> None:
    """Write deterministic synthetic telemetry for demos."""
    generator = SyntheticTelemetry(vehicle=vehicle, seed=seed)
    sol_range = range(start_sol, start_sol + sols)

    records = generator.traverse(sol_range)
    # Last position reached on each sol
    stop_xyz = {record.sol: record.xyz for record in records}
    for offset, sol in enumerate(sol_range):
        if offset % 2 == 0:
            records.extend(
                generator.panorama_sweep(
                    sol,
                    site=sol // 10,
                    drive=100 + offset,
                    clock_offset=sol * 88_775 + 7_200,
                    xyz=stop_xyz[sol],
                )
            )

    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w", encoding="utf-8") as f:
        for record in records:
            f.write(record.model_dump_json(exclude={"position"}) + "\n")

    typer.echo(f"Wrote {len(records)} records to {output}")


@app.command()
def version() -> None:
    """Show version information."""
    from rover_analytics import __version__
    typer.echo(f"rover-analytics v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
