"""End-to-end tests for the parse -> continuity -> window -> emit pipeline."""

import io

import numpy as np
import pandas as pd
import pytest

from ohlcv_window import (
    CsvSink,
    GapExceeded,
    InvalidConfiguration,
    TooManyMalformedRecords,
    WindowConfig,
    WindowPipeline,
    compute_window_stats,
)
from ohlcv_window.reference import rolling_reference


class TestScenarios:
    def test_window_three_closes(self, ohlcv_lines):
        rows = list(compute_window_stats(ohlcv_lines([10, 20, 30, 40], header=True), WindowConfig(window_size=3)))
        assert len(rows) == 2
        assert rows[0].ts == 120
        assert rows[0].moving_average == pytest.approx(20.0)
        assert (rows[0].rolling_min, rows[0].rolling_max) == (10.0, 30.0)
        assert rows[1].moving_average == pytest.approx(30.0)
        assert (rows[1].rolling_min, rows[1].rolling_max) == (20.0, 40.0)

    def test_malformed_line_skipped(self, ohlcv_lines):
        clean = ohlcv_lines([10, 20, 30, 40, 50])
        dirty = clean[:2] + ["abc,x,y"] + clean[2:]

        clean_pipe = WindowPipeline(WindowConfig(window_size=3))
        dirty_pipe = WindowPipeline(WindowConfig(window_size=3))
        clean_rows = list(clean_pipe.run(clean))
        dirty_rows = list(dirty_pipe.run(dirty))

        assert dirty_rows == clean_rows
        assert dirty_pipe.stats.malformed == 1
        assert clean_pipe.stats.malformed == 0
        assert dirty_pipe.stats.lines_seen == 6

    def test_skip_gaps_drops_gap_record(self):
        lines = ["0,1,1,1,1,1", "60,2,2,2,2,1", "180,3,3,3,3,1"]
        pipe = WindowPipeline(WindowConfig(window_size=2, gap_policy="skip_gaps"))
        rows = list(pipe.run(lines))
        assert [r.ts for r in rows] == [60]
        assert rows[0].moving_average == pytest.approx(1.5)
        assert pipe.stats.gaps_skipped == 1
        assert pipe.stats.admitted == 2

    def test_forward_fill_feeds_window(self):
        lines = ["0,10,10,10,10,1", "60,20,20,20,20,1", "240,40,40,40,40,1"]
        pipe = WindowPipeline(WindowConfig(window_size=3, gap_policy="forward_fill", max_forward_fill=5))
        rows = list(pipe.run(lines))
        # windows: [10,20,20] @120, [20,20,20] @180, [20,20,40] @240
        assert [r.ts for r in rows] == [120, 180, 240]
        assert rows[0].moving_average == pytest.approx(50.0 / 3.0)
        assert rows[1].rolling_std == 0.0
        assert rows[2].rolling_max == 40.0
        assert pipe.stats.records_filled == 2
        assert pipe.stats.admitted == 5
        assert pipe.stats.emitted == 3


class TestErrorPropagation:
    def test_strict_gap_stops_output_but_keeps_emitted_rows(self, ohlcv_lines):
        lines = ohlcv_lines([1, 2, 3]) + ["600,4,4,4,4,1"]
        pipe = WindowPipeline(WindowConfig(window_size=2))
        produced = []
        with pytest.raises(GapExceeded) as exc_info:
            for row in pipe.run(lines):
                produced.append(row)
        assert [r.ts for r in produced] == [60, 120]
        assert exc_info.value.line_no == 4
        assert exc_info.value.ts == 600

    def test_forward_fill_over_cap_is_fatal(self):
        lines = ["0,1,1,1,1,1", "600,1,1,1,1,1"]
        pipe = WindowPipeline(WindowConfig(window_size=2, gap_policy="forward_fill", max_forward_fill=3))
        with pytest.raises(GapExceeded, match="max_forward_fill=3"):
            list(pipe.run(lines))

    def test_duplicates_and_out_of_order_are_not_fatal(self, ohlcv_lines):
        lines = ohlcv_lines([1, 2, 3])
        lines = lines[:2] + [lines[1], "0,9,9,9,9,1"] + lines[2:]
        pipe = WindowPipeline(WindowConfig(window_size=2))
        rows = list(pipe.run(lines))
        assert [r.ts for r in rows] == [60, 120]
        assert pipe.stats.duplicates == 1
        assert pipe.stats.out_of_order == 1
        assert pipe.stats.dropped == 2

    def test_too_many_malformed_lines(self, ohlcv_lines):
        lines = ohlcv_lines([1, 2]) + ["bad"] * 3
        cfg = WindowConfig(window_size=2, max_skip_ratio=0.5, skip_ratio_min_lines=4)
        pipe = WindowPipeline(cfg)
        with pytest.raises(TooManyMalformedRecords) as exc_info:
            list(pipe.run(lines))
        # 2 of 4 is not above 0.5; 3 of 5 is
        assert exc_info.value.line_no == 5
        assert pipe.stats.malformed == 3

    def test_skip_ratio_disabled_by_default(self, ohlcv_lines):
        lines = ["bad"] * 500 + ohlcv_lines([1, 2])
        pipe = WindowPipeline(WindowConfig(window_size=2))
        assert len(list(pipe.run(lines))) == 1
        assert pipe.stats.malformed == 500

    def test_invalid_window_rejected_before_run(self):
        with pytest.raises(InvalidConfiguration, match="window_size"):
            WindowPipeline(WindowConfig(window_size=0))


class TestStreaming:
    def test_header_and_blank_lines_ignored(self, ohlcv_lines):
        lines = ohlcv_lines([1, 2, 3], header=True)
        lines.insert(2, "")
        pipe = WindowPipeline(WindowConfig(window_size=3))
        rows = list(pipe.run(lines))
        assert len(rows) == 1
        assert pipe.stats.header_lines == 1
        assert pipe.stats.lines_seen == 3
        assert pipe.stats.malformed == 0

    def test_window_occupancy_bounded(self, ohlcv_lines):
        pipe = WindowPipeline(WindowConfig(window_size=7))
        for line_no, line in enumerate(ohlcv_lines(range(1, 200)), start=1):
            pipe.feed_line(line, line_no)
            assert len(pipe.window) <= 7

    def test_cold_start_count(self, ohlcv_lines):
        pipe = WindowPipeline(WindowConfig(window_size=14))
        rows = list(pipe.run(ohlcv_lines(range(1, 31))))
        assert pipe.stats.admitted == 30
        assert len(rows) == 30 - 13
        assert rows[0].ts == 13 * 60

    def test_matches_pandas_reference(self, ohlcv_lines):
        rng = np.random.default_rng(3)
        closes = list(np.round(30000 + np.cumsum(rng.normal(0, 50, size=400)), 2))
        rows = list(compute_window_stats(ohlcv_lines(closes), WindowConfig(window_size=14)))
        ref = rolling_reference(closes, 14)

        got = pd.DataFrame([r.as_tuple()[1:] for r in rows], columns=ref.columns)
        assert len(got) == len(ref)
        np.testing.assert_allclose(got["moving_average"], ref["moving_average"], rtol=1e-9)
        np.testing.assert_allclose(got["rolling_std"], ref["rolling_std"], rtol=1e-5, atol=1e-6)
        np.testing.assert_array_equal(got["rolling_min"], ref["rolling_min"])
        np.testing.assert_array_equal(got["rolling_max"], ref["rolling_max"])

    def test_monotonic_extrema_matches_rescan(self, ohlcv_lines):
        rng = np.random.default_rng(11)
        closes = list(np.round(100 + np.cumsum(rng.normal(0, 1, size=300)), 2))
        rescan = list(compute_window_stats(ohlcv_lines(closes), WindowConfig(window_size=9)))
        mono = list(compute_window_stats(ohlcv_lines(closes), WindowConfig(window_size=9, extrema="monotonic")))
        assert [(r.rolling_min, r.rolling_max) for r in rescan] == [(r.rolling_min, r.rolling_max) for r in mono]

    def test_run_file_and_sink(self, ohlcv_lines, write_csv):
        path = write_csv(ohlcv_lines([1, 2, 3, 4], header=True))
        pipe = WindowPipeline(WindowConfig(window_size=2))
        buf = io.StringIO()
        with open(path, newline="") as f:
            stats = pipe.run_to_sink(f, CsvSink(buf))
        assert stats.emitted == 3
        out = buf.getvalue().splitlines()
        assert out[0] == "timestamp,moving_average,rolling_std,rolling_min,rolling_max"
        assert out[1] == "60,1.5,0.5,1.0,2.0"
        assert len(out) == 4

    def test_run_file_reads_path(self, ohlcv_lines, write_csv):
        path = write_csv(ohlcv_lines([5, 5, 5]))
        rows = list(WindowPipeline(WindowConfig(window_size=3)).run_file(path))
        assert len(rows) == 1
        assert rows[0].moving_average == 5.0


class TestRecoverableInput:
    def test_early_malformed_burst_trips_at_min_lines(self, ohlcv_lines):
        lines = ["abc,x,y"] * 50 + ohlcv_lines(range(1, 1001))
        cfg = WindowConfig(window_size=3, max_skip_ratio=0.01, skip_ratio_min_lines=100)
        pipe = WindowPipeline(cfg)
        with pytest.raises(TooManyMalformedRecords) as exc_info:
            list(pipe.run(lines))
        assert exc_info.value.line_no == 100
        assert pipe.stats.lines_seen == 100

    def test_ratio_under_limit_at_min_lines_passes(self, ohlcv_lines):
        lines = ["bad"] + ohlcv_lines(range(1, 20))
        pipe = WindowPipeline(WindowConfig(window_size=2, max_skip_ratio=0.25, skip_ratio_min_lines=4))
        assert len(list(pipe.run(lines))) == 18
        assert pipe.stats.malformed == 1

    def test_undecodable_line_counted_as_malformed(self, tmp_path, ohlcv_lines):
        good = ohlcv_lines([1, 2, 3, 4])
        path = tmp_path / "garbled.csv"
        payload = "\n".join(good[:3]).encode() + b"\n\xff\xfe,1,1,1,1,1\n" + good[3].encode() + b"\n"
        path.write_bytes(payload)
        pipe = WindowPipeline(WindowConfig(window_size=2))
        rows = list(pipe.run_file(path))
        assert [r.ts for r in rows] == [60, 120, 180]
        assert pipe.stats.malformed == 1
        assert pipe.stats.last_ts == 180
        assert pipe.stats.as_dict()["last_ts"] == 180
