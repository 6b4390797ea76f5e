"""Configuration for pytest."""

import pytest


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


@pytest.fixture
def make_record():
    """Factory for telemetry records with panorama-ready defaults."""
    from rover_analytics.schemas import TelemetryRecord

    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = {
            "record_id": f"rec_{counter['n']:04d}",
            "vehicle": "curiosity",
            "sol": 1000,
            "camera": "MAST",
            "site": 50,
            "drive": 1200,
            "xyz": "(35.4362,22.5714,-9.46445)",
            "mast_az": 0.0,
            "mast_el": -10.0,
            "spacecraft_clock": 500_000_000.0,
            "local_time": "Sol-01000M14:00:00.000",
        }
        fields.update(overrides)
        return TelemetryRecord(**fields)

    return _make


@pytest.fixture
def position_record(make_record):
    """Factory for position-only records (no orientation telemetry)."""

    def _make(xyz, sol=1000, clock=None, **overrides):
        return make_record(
            xyz=xyz,
            sol=sol,
            camera="NAV_LEFT_B",
            mast_az=None,
            mast_el=None,
            spacecraft_clock=clock,
            local_time=None,
            **overrides,
        )

    return _make


@pytest.fixture
def synthetic():
    """Deterministic synthetic telemetry generator."""
    from rover_analytics.storage import SyntheticTelemetry

    return SyntheticTelemetry(vehicle="curiosity", seed=7)


@pytest.fixture
def sweep_records(synthetic):
    """Two panorama sweeps on sol 1000 plus one on sol 1001."""
    records = synthetic.panorama_sweep(1000, site=50, drive=1200, count=5)
    records += synthetic.panorama_sweep(1000, site=50, drive=1202, count=4, clock_offset=5_000)
    records += synthetic.panorama_sweep(1001, site=51, drive=10, count=6, clock_offset=90_000)
    return records


@pytest.fixture
def store(sweep_records, synthetic):
    """In-memory store with sweeps and a short traverse."""
    from rover_analytics.storage import InMemoryTelemetryStore

    traverse = synthetic.traverse(range(1000, 1004), points_per_sol=3)
    return InMemoryTelemetryStore(sweep_records + traverse)
