import pytest

from experiments.metrics import RunResult
from experiments.report import (
    COLUMNS,
    SummaryRow,
    format_run_lines,
    format_table,
    pstdev,
    summarize_runs,
)


def _runs(objectives, times=None):
    times = times or [0.5] * len(objectives)
    return [
        RunResult("inst", r, r, obj, t, iterations=10)
        for r, (obj, t) in enumerate(zip(objectives, times))
    ]


class TestSummarizeRuns:
    def test_equal_objectives_have_zero_std(self):
        row = summarize_runs("inst", _runs([4, 4, 4]), exact_bins=4)
        assert row.std_objective == 0.0
        assert row.mean_objective == 4.0
        assert row.gap_percent == 0.0

    def test_statistics(self):
        row = summarize_runs("inst", _runs([4, 5, 6, 5], [0.4, 0.1, 0.3, 0.2]), exact_bins=4)
        assert row.mean_objective == pytest.approx(5.0)
        assert row.best_objective == 4
        assert row.std_objective == pytest.approx(pstdev([4, 5, 6, 5]))
        assert row.std_objective == pytest.approx((0.5) ** 0.5)
        assert row.mean_time == pytest.approx(0.25)
        assert row.best_time == pytest.approx(0.1)

    def test_gap_uses_best_run(self):
        row = summarize_runs("inst", _runs([6, 5]), exact_bins=4)
        assert row.gap_percent == pytest.approx(25.0)

    def test_unknown_exact(self):
        row = summarize_runs("inst", _runs([5]), exact_bins=None)
        assert row.exact is None
        assert row.gap_percent is None

    def test_failed_runs_excluded(self):
        results = _runs([5, 7]) + [RunResult("inst", 2, 2, None, 0.0, error="boom")]
        row = summarize_runs("inst", results)
        assert row.runs == 3
        assert row.failed_runs == 1
        assert row.mean_objective == 6.0


class TestFormatTable:
    def _rows(self):
        return [
            summarize_runs("u120_00", _runs([48, 49]), exact_bins=48),
            summarize_runs("synthetic-60", _runs([33, 33]), exact_bins=None),
            SummaryRow("all_failed", None, None, None, None, None, None, None, runs=2, failed_runs=2),
        ]

    def test_header_lines(self):
        lines = format_table(self._rows()).splitlines()
        assert lines[0].split() == list(COLUMNS)
        assert set(lines[1]) == {"-"}
        assert len(lines) == 2 + 3

    def test_rows_have_eight_fields(self):
        lines = format_table(self._rows()).splitlines()
        for line in lines[2:]:
            assert len(line.split()) == 8

    def test_field_formats(self):
        lines = format_table(self._rows()).splitlines()
        assert lines[2].split() == [
            "u120_00", "48", "48.50", "48", "0.50", "0.5000", "0.5000", "0.00",
        ]
        unknown = lines[3].split()
        assert unknown[1] == "-"
        assert unknown[7] == "-"
        assert lines[4].split() == ["all_failed"] + ["-"] * 7

    def test_long_names_stay_separated(self):
        row = summarize_runs("a" * 40, _runs([3]), exact_bins=3)
        [line] = format_table([row]).splitlines()[2:]
        assert len(line.split()) == 8


def test_run_lines():
    results = _runs([5]) + [RunResult("inst", 1, 1, None, 0.0, error="boom", failure_type="other")]
    lines = format_run_lines(results, exact_bins=4)
    assert "found_bins=5 gap_percent=25.00" in lines[0]
    assert "FAILED [other] boom" in lines[1]
