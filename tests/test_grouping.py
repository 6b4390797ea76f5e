"""Tests for shared grouping helpers: sol windows, batches, cancellation and stops."""

import pytest

from rover_analytics.modules.grouping import (
    AnalysisCancelled,
    CancellationToken,
    check_cancelled,
    group_for_panoramas,
    iter_sol_batches,
    PositionAccumulator,
    resolve_sol_window,
    summarize_stops,
)


class TestGroupForPanoramas:
    """Tests for panorama partitioning."""

    def test_key_fields(self, make_record):
        record = make_record()
        key, members = group_for_panoramas([record])[0]
        assert (key.vehicle, key.sol, key.site, key.drive, key.camera) == (
            "curiosity", 1000, 50, 1200, "MAST"
        )
        assert members == [record]

    def test_small_groups_dropped(self, make_record):
        records = [make_record(drive=1), make_record(drive=2), make_record(drive=2)]
        groups = group_for_panoramas(records, min_size=2)
        assert [key.drive for key, _ in groups] == [2]

    def test_sorted_keys_keep_input_order_inside(self, make_record):
        a = make_record(drive=9, spacecraft_clock=3.0)
        b = make_record(drive=1, spacecraft_clock=2.0)
        c = make_record(drive=9, spacecraft_clock=1.0)
        groups = group_for_panoramas([a, b, c])
        assert [key.drive for key, _ in groups] == [1, 9]
        assert groups[1][1] == [a, c]


class TestPositionAccumulator:
    """Tests for incremental exact-string position grouping."""

    def test_groups_by_text(self, position_record):
        acc = PositionAccumulator()
        added = acc.add([
            position_record("(1,2,3)", sol=5, clock=50.0),
            position_record("(1,2,3)", sol=2, clock=90.0),
            position_record("(1,2,3)", sol=2, clock=20.0),
            position_record("(1.0,2.0,3.0)", sol=1),
        ])

        assert added == 4
        assert len(acc) == 2
        by_sol = {obs.sol_first: obs for obs in acc.observations()}
        assert (by_sol[2].sol_first, by_sol[2].sol_last, by_sol[2].first_clock) == (2, 5, 20.0)
        assert by_sol[1].position == (1.0, 2.0, 3.0)

    def test_skips_records_without_position(self, position_record):
        acc = PositionAccumulator()
        assert acc.add([position_record("bad"), position_record(None)]) == 0
        assert acc.records_seen == 0
        assert len(acc) == 0


class TestSolWindow:
    """Tests for sol window resolution."""

    def test_explicit_bounds_kept(self):
        window = resolve_sol_window(10, 20, latest_sol=4000)
        assert (window.start, window.end, window.defaulted) == (10, 20, False)

    def test_single_bound_not_defaulted(self):
        window = resolve_sol_window(None, 20, latest_sol=4000)
        assert (window.start, window.end, window.defaulted) == (None, 20, False)

    def test_default_window_ends_at_latest(self):
        window = resolve_sol_window(None, None, latest_sol=4000)
        assert (window.start, window.end, window.defaulted) == (3500, 4000, True)

    def test_default_window_clamped_at_zero(self):
        window = resolve_sol_window(None, None, latest_sol=120, default_span=500)
        assert window.start == 0

    def test_no_data(self):
        window = resolve_sol_window(None, None, latest_sol=None)
        assert (window.start, window.end) == (None, None)

    def test_contains(self):
        window = resolve_sol_window(5, None, latest_sol=None)
        assert not window.contains(4)
        assert window.contains(5)
        assert window.contains(10_000)


class TestSolBatches:
    """Tests for sol batching."""

    def test_batches(self):
        assert list(iter_sol_batches([1, 2, 3, 5, 8], 2)) == [[1, 2], [3, 5], [8]]

    def test_empty(self):
        assert list(iter_sol_batches([], 50)) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            list(iter_sol_batches([1], 0))


class TestCancellation:
    """Tests for cooperative cancellation."""

    def test_token_fires(self):
        token = CancellationToken()
        token.raise_if_cancelled("stage")
        token.cancel()
        assert token.cancelled
        with pytest.raises(AnalysisCancelled, match="stage"):
            token.raise_if_cancelled("stage")

    def test_no_token_never_raises(self):
        check_cancelled(None, "anything")


class TestSummarizeStops:
    """Tests for per (vehicle, site, drive) stop summaries."""

    def test_counts_and_ordering(self, make_record):
        records = [
            make_record(site=1, drive=10, sol=5),
            make_record(site=2, drive=20, sol=6),
            make_record(site=2, drive=20, sol=8),
            make_record(site=None, drive=20, sol=9),
        ]

        stops = summarize_stops(records)

        assert [s.stop_id for s in stops] == ["curiosity_2_20", "curiosity_1_10"]
        assert (stops[0].record_count, stops[0].sol_first, stops[0].sol_last) == (2, 6, 8)
        assert stops[0].sols_spanned == 3

    def test_position_from_earliest_capture(self, make_record):
        records = [
            make_record(site=1, drive=1, sol=7, xyz="(7,7,7)"),
            make_record(site=1, drive=1, sol=3, xyz="(3,3,3)", spacecraft_clock=200.0),
            make_record(site=1, drive=1, sol=3, xyz="(1,1,1)", spacecraft_clock=100.0),
            make_record(site=1, drive=1, sol=2, xyz=None),
        ]

        stop = summarize_stops(records)[0]

        assert stop.position == (1.0, 1.0, 1.0)
        assert stop.sol_first == 2

    def test_empty(self):
        assert summarize_stops([]) == []
