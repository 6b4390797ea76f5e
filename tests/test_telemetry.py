"""Tests for telemetry record parsing at the storage boundary."""

import json

import pytest
from pydantic import ValidationError

from rover_analytics.schemas import TelemetryRecord, extract_local_time, parse_xyz
from rover_analytics.storage import load_records, load_store


class TestParseXYZ:
    """Tests for position text parsing."""

    def test_parenthesized(self):
        assert parse_xyz("(35.4362,22.5714,-9.46445)") == (35.4362, 22.5714, -9.46445)

    def test_bare_with_whitespace(self):
        assert parse_xyz("  1.5, -2 ,3e1 ") == (1.5, -2.0, 30.0)

    @pytest.mark.parametrize(
        "text",
        [None, "", "()", "(1,2)", "(1,2,3,4)", "(a,b,c)", "(1,,3)", "(nan,1,2)", "(1,inf,2)"],
    )
    def test_unusable_text_is_no_position(self, text):
        assert parse_xyz(text) is None


class TestExtractLocalTime:
    """Tests for local solar time extraction."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Sol-01646M15:18:15.866", "M15:18:15"),
            ("M09:05:00", "M09:05:00"),
            ("9:05:00", "M09:05:00"),
            ("Sol-1000M14:03:00", "M14:03:00"),
        ],
    )
    def test_valid(self, text, expected):
        assert extract_local_time(text) == expected

    @pytest.mark.parametrize(
        "text",
        [None, "", "Sol-01646", "M25:00:00", "M12:60:00", "2015-05-30T10:00:00Z", "M1:2:3"],
    )
    def test_invalid(self, text):
        assert extract_local_time(text) is None


class TestTelemetryRecord:
    """Tests for the typed record contract."""

    def test_position_parsed_once_from_xyz(self, make_record):
        record = make_record(xyz="(1,2,3)")
        assert record.position == (1.0, 2.0, 3.0)
        assert record.has_position

    def test_bad_xyz_means_no_position(self, make_record):
        record = make_record(xyz="(1,2)")
        assert record.position is None
        assert not record.has_position
        assert record.xyz == "(1,2)"

    def test_vehicle_lowercased(self, make_record):
        assert make_record(vehicle=" Curiosity ").vehicle == "curiosity"

    def test_local_time_normalized(self, make_record):
        assert make_record(local_time="Sol-01000M14:00:00.000").local_time == "M14:00:00"

    def test_orientation_requires_all_fields(self, make_record):
        assert make_record().has_orientation
        assert not make_record(site=None).has_orientation
        assert not make_record(drive=None).has_orientation
        assert not make_record(mast_az=None).has_orientation
        assert not make_record(mast_el=None).has_orientation
        assert not make_record(spacecraft_clock=None).has_orientation

    def test_rejects_out_of_range_angles(self, make_record):
        with pytest.raises(ValidationError):
            make_record(mast_az=400.0)
        with pytest.raises(ValidationError):
            make_record(mast_el=-95.0)

    def test_rejects_non_finite_clock(self, make_record):
        with pytest.raises(ValidationError):
            make_record(spacecraft_clock=float("nan"))

    def test_frozen(self, make_record):
        record = make_record()
        with pytest.raises(ValidationError):
            record.sol = 5


class TestFromRaw:
    """Tests for loosely typed row parsing."""

    def test_aliases_and_string_numbers(self):
        record = TelemetryRecord.from_raw({
            "id": 123,
            "rover": "Perseverance",
            "sol": "200",
            "instrument": "NAVCAM_LEFT",
            "site": "3",
            "drive": "1.0",
            "position": "(1.0,2.0,3.0)",
            "azimuth": "90.5",
            "elevation": "-4",
            "sclk": "667123456.25",
            "date_taken_mars": "Sol-00200M10:11:12.000",
        })
        assert record.record_id == "123"
        assert record.vehicle == "perseverance"
        assert record.sol == 200
        assert record.camera == "NAVCAM_LEFT"
        assert (record.site, record.drive) == (3, 1)
        assert record.position == (1.0, 2.0, 3.0)
        assert record.mast_az == pytest.approx(90.5)
        assert record.mast_el == pytest.approx(-4.0)
        assert record.spacecraft_clock == pytest.approx(667123456.25)
        assert record.local_time == "M10:11:12"

    def test_list_position(self):
        record = TelemetryRecord.from_raw({
            "record_id": "a", "vehicle": "curiosity", "sol": 1, "camera": "MAST",
            "xyz": [1, 2, 3],
        })
        assert record.position == (1.0, 2.0, 3.0)

    def test_bad_optional_fields_become_none(self):
        record = TelemetryRecord.from_raw({
            "record_id": "a", "vehicle": "curiosity", "sol": 1, "camera": "MAST",
            "site": "", "drive": "x", "mast_az": "720", "mast_el": "nan",
            "spacecraft_clock": True, "local_time": "garbage",
        })
        assert record.site is None
        assert record.drive is None
        assert record.mast_az is None
        assert record.mast_el is None
        assert record.spacecraft_clock is None
        assert record.local_time is None
        assert not record.has_orientation

    @pytest.mark.parametrize("missing", ["record_id", "vehicle", "sol", "camera"])
    def test_missing_identity_raises(self, missing):
        row = {"record_id": "a", "vehicle": "curiosity", "sol": 1, "camera": "MAST"}
        del row[missing]
        with pytest.raises(ValidationError):
            TelemetryRecord.from_raw(row)

    def test_fractional_sol_rejected(self):
        with pytest.raises(ValidationError):
            TelemetryRecord.from_raw(
                {"record_id": "a", "vehicle": "curiosity", "sol": "1.5", "camera": "MAST"}
            )


class TestLoader:
    """Tests for telemetry file loading."""

    def test_jsonl_skips_bad_lines(self, tmp_path):
        path = tmp_path / "telemetry.jsonl"
        rows = [
            {"record_id": "a", "vehicle": "curiosity", "sol": 1, "camera": "MAST", "xyz": "(1,2,3)"},
            {"vehicle": "curiosity", "sol": 1, "camera": "MAST"},
            {"record_id": "b", "vehicle": "curiosity", "sol": 2, "camera": "MAST"},
        ]
        lines = [json.dumps(rows[0]), "{not json", "", json.dumps(rows[1]), "[1, 2]", json.dumps(rows[2])]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")

        records = load_records(path)
        assert [r.record_id for r in records] == ["a", "b"]
        assert records[0].position == (1.0, 2.0, 3.0)

    def test_json_array(self, tmp_path):
        path = tmp_path / "telemetry.json"
        path.write_text(json.dumps([
            {"record_id": "a", "vehicle": "curiosity", "sol": 1, "camera": "MAST"},
            {"record_id": "b", "vehicle": "spirit", "sol": 3, "camera": "PANCAM"},
        ]), encoding="utf-8")

        store = load_store(path)
        assert store.count() == 2
        assert store.vehicles() == ["curiosity", "spirit"]

    def test_json_object_rejected(self, tmp_path):
        path = tmp_path / "telemetry.json"
        path.write_text(json.dumps({"record_id": "a"}), encoding="utf-8")
        with pytest.raises(ValueError):
            load_records(path)

    def test_csv(self, tmp_path):
        path = tmp_path / "telemetry.csv"
        path.write_text(
            "record_id,vehicle,sol,camera,site,drive,xyz,mast_az,mast_el,spacecraft_clock\n"
            'a,curiosity,10,MAST,5,100,"(1.0,2.0,3.0)",45,-10,1000\n'
            "b,curiosity,10,MAST,,,,,,\n",
            encoding="utf-8",
        )
        records = load_records(path)
        assert len(records) == 2
        assert records[0].has_orientation
        assert records[0].position == (1.0, 2.0, 3.0)
        assert records[1].site is None
        assert records[1].position is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_records(tmp_path / "absent.jsonl")
