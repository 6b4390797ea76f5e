"""Tests for the command line interface."""

import json

import pytest
from typer.testing import CliRunner

from rover_analytics.cli import app

runner = CliRunner()

pytestmark = pytest.mark.integration


@pytest.fixture
def telemetry_file(tmp_path):
    """Synthetic telemetry written by the generate command."""
    path = tmp_path / "telemetry.jsonl"
    result = runner.invoke(app, ["generate", str(path), "--sols", "20", "--start-sol", "1000"])
    assert result.exit_code == 0, result.output
    return path


class TestGenerate:
    """Tests for synthetic data generation."""

    def test_writes_jsonl(self, telemetry_file):
        lines = telemetry_file.read_text(encoding="utf-8").splitlines()
        # 20 sols x 3 traverse stops + 10 sweeps x 5 captures
        assert len(lines) == 110
        first = json.loads(lines[0])
        assert first["vehicle"] == "curiosity"
        assert "position" not in first


class TestPanoramaCommands:
    """Tests for panorama listing and lookup."""

    def test_list(self, telemetry_file):
        result = runner.invoke(
            app, ["panoramas", str(telemetry_file), "--sol-min", "1000", "--per-page", "4"]
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["meta"] == {"total_count": 10, "returned_count": 4}
        assert data["pagination"] == {"page": 1, "per_page": 4, "total_pages": 3}
        assert data["data"][0]["id"] == "pano_curiosity_1000_0"
        assert data["data"][1]["id"] == "pano_curiosity_1002_0"

    def test_default_window(self, telemetry_file):
        result = runner.invoke(app, ["panoramas", str(telemetry_file)])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["meta"]["total_count"] == 10

    def test_invalid_page(self, telemetry_file):
        result = runner.invoke(app, ["panoramas", str(telemetry_file), "--page", "0"])
        assert result.exit_code == 1

    def test_lookup(self, telemetry_file):
        result = runner.invoke(app, ["panorama", str(telemetry_file), "pano_curiosity_1004_0"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["id"] == "pano_curiosity_1004_0"
        assert data["attributes"]["total_photos"] == 5
        assert len(data["photos"]) == 5

    def test_lookup_unknown(self, telemetry_file):
        result = runner.invoke(app, ["panorama", str(telemetry_file), "pano_curiosity_1001_0"])
        assert result.exit_code == 1

    def test_session_log(self, telemetry_file, tmp_path):
        from rover_analytics.utils.logging import get_logger

        previous = get_logger()
        result = runner.invoke(
            app,
            ["panoramas", str(telemetry_file), "--log-dir", str(tmp_path / "runs")],
        )

        assert result.exit_code == 0, result.output
        assert get_logger() is previous
        (log_file,) = (tmp_path / "runs").glob("*/logs/main.jsonl")
        entries = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
        categories = [entry["category"] for entry in entries]
        assert "STORAGE" in categories
        assert "PANORAMA" in categories


class TestTraverseCommand:
    """Tests for traverse output."""

    def test_resource(self, telemetry_file):
        result = runner.invoke(app, ["traverse", str(telemetry_file), "curiosity", "--segments"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["type"] == "traverse"
        assert data["attributes"]["point_count"] == 60
        assert data["attributes"]["sol_range"] == {"start": 1000, "end": 1019}
        assert "segment" not in data["path"][0]
        assert "segment" in data["path"][1]

    def test_simplified_geojson(self, telemetry_file):
        result = runner.invoke(
            app,
            ["traverse", str(telemetry_file), "Curiosity", "--simplify", "2.0", "--geojson"],
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["type"] == "FeatureCollection"
        feature = data["features"][0]
        assert feature["geometry"]["type"] == "LineString"
        assert feature["properties"]["point_count"] == 60
        assert len(feature["geometry"]["coordinates"]) == feature["properties"]["simplified_point_count"]

    def test_sol_range(self, telemetry_file):
        result = runner.invoke(
            app,
            ["traverse", str(telemetry_file), "curiosity", "--sol-min", "1005", "--sol-max", "1006"],
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["attributes"]["point_count"] == 6

    def test_negative_simplify(self, telemetry_file):
        result = runner.invoke(
            app, ["traverse", str(telemetry_file), "curiosity", "--simplify", "-1"]
        )
        assert result.exit_code == 1


class TestMiscCommands:
    """Tests for stops, version and error handling."""

    def test_stops(self, telemetry_file):
        result = runner.invoke(app, ["stops", str(telemetry_file), "--limit", "3"])

        assert result.exit_code == 0, result.output
        stops = json.loads(result.stdout)
        assert len(stops) == 3
        assert stops[0]["record_count"] >= stops[1]["record_count"] >= stops[2]["record_count"]
        assert stops[0]["id"] == f"curiosity_{stops[0]['site']}_{stops[0]['drive']}"

    def test_version(self):
        from rover_analytics import __version__

        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["panoramas", str(tmp_path / "absent.jsonl")])
        assert result.exit_code == 1
