"""Aggregation of run results into per-instance summary rows and tables."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from experiments.exact import gap_percent
from experiments.metrics import RunResult

UNAVAILABLE = "-"

COLUMNS = ("instance", "exact", "mean", "best", "std", "mean_time", "best_time", "gap")


@dataclass(frozen=True)
class SummaryRow:
    """Statistics over the successful runs of one instance.

    Numeric fields are None when no run succeeded; ``exact`` and
    ``gap_percent`` are None when no exact reference is known.
    """

    instance: str
    exact: int | None
    mean_objective: float | None
    best_objective: int | None
    std_objective: float | None
    mean_time: float | None
    best_time: float | None
    gap_percent: float | None
    runs: int
    failed_runs: int = 0


def mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def pstdev(values: Sequence[float]) -> float:
    """Population standard deviation (divides by n)."""
    mu = mean(values)
    return math.sqrt(sum((v - mu) ** 2 for v in values) / len(values))


def summarize_runs(
    instance_name: str,
    results: Sequence[RunResult],
    exact_bins: int | None = None,
) -> SummaryRow:
    ok = [r for r in results if r.ok]
    failed = len(results) - len(ok)
    if not ok:
        return SummaryRow(
            instance=instance_name,
            exact=exact_bins,
            mean_objective=None,
            best_objective=None,
            std_objective=None,
            mean_time=None,
            best_time=None,
            gap_percent=None,
            runs=len(results),
            failed_runs=failed,
        )

    objectives = [float(r.objective) for r in ok]
    times = [r.elapsed_s for r in ok]
    best = min(r.objective for r in ok)
    return SummaryRow(
        instance=instance_name,
        exact=exact_bins,
        mean_objective=mean(objectives),
        best_objective=best,
        std_objective=pstdev(objectives),
        mean_time=mean(times),
        best_time=min(times),
        gap_percent=gap_percent(best, exact_bins),
        runs=len(results),
        failed_runs=failed,
    )


def _fmt(value: float | int | None, fmt: str = "") -> str:
    if value is None:
        return UNAVAILABLE
    return format(value, fmt)


def _cells(row: SummaryRow) -> list[str]:
    return [
        "_".join(row.instance.split()) or UNAVAILABLE,
        _fmt(row.exact),
        _fmt(row.mean_objective, ".2f"),
        _fmt(row.best_objective),
        _fmt(row.std_objective, ".2f"),
        _fmt(row.mean_time, ".4f"),
        _fmt(row.best_time, ".4f"),
        _fmt(row.gap_percent, ".2f"),
    ]


def format_table(rows: Sequence[SummaryRow]) -> str:
    """Render rows as a fixed-width table.

    The first line holds the column titles and the second a dash rule; every
    following line is one instance with exactly ``len(COLUMNS)``
    whitespace-separated fields.
    """
    body = [_cells(row) for row in rows]
    name_width = max([18] + [len(cells[0]) + 2 for cells in body])
    widths = [name_width, 7, 10, 8, 10, 14, 14, 10]

    def render(cells: Sequence[str]) -> str:
        first = f"{cells[0]:<{widths[0]}}"
        rest = "".join(f"{cell:>{width}}" for cell, width in zip(cells[1:], widths[1:]))
        return first + rest

    header = render(COLUMNS)
    lines = [header, "-" * len(header)]
    lines.extend(render(cells) for cells in body)
    return "\n".join(lines) + "\n"


def format_run_line(result: RunResult, exact_bins: int | None = None) -> str:
    if not result.ok:
        return (
            f"    run {result.run_index + 1} seed={result.seed}: FAILED "
            f"[{result.failure_type}] {result.error}"
        )
    gap = gap_percent(result.objective, exact_bins)
    gap_str = f"{gap:.2f}" if gap is not None else "N/A"
    return (
        f"    run {result.run_index + 1} seed={result.seed}: found_bins={result.objective} "
        f"gap_percent={gap_str} time={result.elapsed_s:.4f}s iters={result.iterations}"
    )


def format_run_lines(results: Sequence[RunResult], exact_bins: int | None = None) -> list[str]:
    """Per-run detail lines, one per repetition."""
    return [format_run_line(r, exact_bins) for r in results]
