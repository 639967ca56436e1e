"""CLI interface for running bin packing experiments."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Optional

import typer

from bpp.datasets import (
    BinPackingDataset,
    dataset_summary,
    default_batch_instances,
    example_instance,
    load_dataset,
    load_dataset_from_dir,
)
from bpp.errors import BinPackingError, EngineInvariantError
from bpp.packing import exact_min_bins, format_packing, validate_packing
from search_core.schemas import SearchParams
from search_core.search import tabu_search
from search_core.trace import SearchTracer

from experiments.config import ExperimentConfig, load_config
from experiments.report import format_run_lines, format_table
from experiments.runner import ExperimentReport, ExperimentRunner

app = typer.Typer(help="Tabu search bin packing benchmark CLI")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Tabu search for one-dimensional bin packing."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _error(message: str) -> typer.Exit:
    typer.secho(f"❌ {message}", fg=typer.colors.RED, err=True)
    return typer.Exit(1)


def _build_config(config_path: Optional[str], **overrides: object) -> ExperimentConfig:
    """YAML configuration (or defaults) with command-line values applied on top."""
    try:
        config = load_config(config_path) if config_path else ExperimentConfig()
        return config.with_overrides(**overrides)
    except FileNotFoundError as e:
        raise _error(f"Config file not found: {e}")
    except ValueError as e:
        raise _error(f"Invalid config: {e}")


def _load(path: str, directory: bool = False, max_items: Optional[int] = None) -> BinPackingDataset:
    try:
        dataset = load_dataset_from_dir(path) if directory else load_dataset(path)
    except BinPackingError as e:
        raise _error(f"Failed to load {path}: {e}")
    if max_items is not None:
        dataset = dataset.filter_by_size(max_items=max_items)
    return dataset


def _export(report: ExperimentReport, config: ExperimentConfig) -> None:
    if config.results_jsonl:
        report.collector.export_jsonl(config.results_jsonl)
        typer.echo(f"   Results JSONL: {config.results_jsonl}")
    if config.results_csv:
        report.collector.export_csv(config.results_csv)
        typer.echo(f"   Results CSV:   {config.results_csv}")


def _run_and_report(
    dataset: BinPackingDataset,
    config: ExperimentConfig,
    title: str,
) -> ExperimentReport:
    for skipped in dataset.skipped:
        typer.secho(f"⚠️  Skipped {skipped.path}: {skipped.error}", fg=typer.colors.YELLOW, err=True)

    limit = config.search.time_limit_s
    typer.secho(
        f"\n📊 {title}: runs={config.runs} seed0={config.seed0} "
        f"time_limit_s={limit if limit is not None else 'none'}\n",
        fg=typer.colors.BLUE,
    )

    runner = ExperimentRunner(config)
    report = runner.run(dataset)

    typer.echo(format_table(report.rows), nl=False)

    failed = len(report.collector.failed())
    if failed:
        typer.secho(f"\n⚠️  {failed} run(s) failed", fg=typer.colors.YELLOW)
    _export(report, config)
    return report


@app.command("run-example")
def run_example(
    seed: int = typer.Option(0, help="Random seed"),
    iters: int = typer.Option(2_000, help="Maximum tabu iterations"),
    samples: int = typer.Option(150, help="Neighbourhood samples per iteration"),
    tenure: int = typer.Option(20, help="Tabu tenure"),
) -> None:
    """Solve the bundled reference instance once and print the packing."""
    instance = example_instance()
    params = SearchParams(
        max_iters=iters,
        neighborhood_samples=samples,
        tabu_tenure=tenure,
        stagnation_limit=400,
        time_limit_s=None,
    )
    exact = exact_min_bins(instance)
    try:
        result = tabu_search(instance, seed, params)
        validate_packing(instance, result.best_packing)
    except EngineInvariantError as e:
        raise _error(f"Produced invalid packing: {e}")

    typer.echo(f"Instance: {instance.name} (capacity={instance.capacity}, n={instance.num_items})")
    typer.echo(f"Exact optimum (small-instance check): {exact} bins")
    typer.echo(
        f"Best found: {result.best_bins} bins (unused={result.best_unused})  "
        f"iters={result.iterations}  time(s)={result.elapsed_s:.4f}"
    )
    typer.secho("✅ Packing is valid", fg=typer.colors.GREEN)
    typer.echo("Bins (item_id:size):")
    for line in format_packing(instance, result.best_packing):
        typer.echo(f"  {line}")
    if result.best_bins != exact:
        typer.secho(
            f"⚠️  Expected optimum is {exact} bins; try more iterations or samples",
            fg=typer.colors.YELLOW,
        )


@app.command("trace-example")
def trace_example(
    iters: int = typer.Option(30, help="Maximum tabu iterations"),
    samples: int = typer.Option(25, help="Neighbourhood samples per iteration"),
    tenure: int = typer.Option(10, help="Tabu tenure"),
    seed: int = typer.Option(0, help="Random seed"),
    show_packings: bool = typer.Option(False, "--show-packings", help="Print packings after each move"),
    no_candidates: bool = typer.Option(False, "--no-candidates", help="Hide per-sample candidate lines"),
) -> None:
    """Trace every decision of a short search on the reference instance."""
    params = SearchParams(
        max_iters=iters,
        neighborhood_samples=max(samples, 1),
        tabu_tenure=tenure,
        stagnation_limit=10_000,
        time_limit_s=None,
    )
    out = io.StringIO()
    tracer = SearchTracer(out, show_candidates=not no_candidates, show_packings=show_packings)
    try:
        tabu_search(example_instance(), seed, params, tracer=tracer)
    except EngineInvariantError as e:
        typer.echo(out.getvalue(), nl=False)
        raise _error(f"Trace failed: {e}")
    typer.echo(out.getvalue(), nl=False)


@app.command("run-batch")
def run_batch(
    runs: Optional[int] = typer.Option(None, help="Repetitions per instance [default: 5]"),
    seed0: Optional[int] = typer.Option(None, help="Seed of the first repetition [default: 0]"),
    time_limit_s: Optional[float] = typer.Option(None, help="Time limit per run, <= 0 for none [default: 2.0]"),
    workers: Optional[int] = typer.Option(None, help="Worker processes for repetitions"),
    progress: Optional[bool] = typer.Option(None, "--progress/--no-progress", help="Show progress"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Experiment YAML config"),
    results_jsonl: Optional[str] = typer.Option(None, help="Export raw run results as JSONL"),
    results_csv: Optional[str] = typer.Option(None, help="Export raw run results as CSV"),
) -> None:
    """Run the bundled batch (reference instance plus synthetic instances)."""
    config = _build_config(
        config_path,
        runs=runs, seed0=seed0, time_limit_s=time_limit_s, workers=workers,
        progress=progress, results_jsonl=results_jsonl, results_csv=results_csv,
    )
    _run_and_report(default_batch_instances(), config, "Batch")


@app.command("run-file")
def run_file(
    file: str = typer.Argument(..., help="Instance file"),
    runs: Optional[int] = typer.Option(None, help="Repetitions per instance [default: 5]"),
    seed0: Optional[int] = typer.Option(None, help="Seed of the first repetition [default: 0]"),
    skip: Optional[int] = typer.Option(None, help="Instances to skip"),
    take: Optional[int] = typer.Option(None, help="Instances to run after skipping"),
    max_items: Optional[int] = typer.Option(None, help="Only keep instances with at most this many items"),
    time_limit_s: Optional[float] = typer.Option(None, help="Time limit per run, <= 0 for none [default: 2.0]"),
    workers: Optional[int] = typer.Option(None, help="Worker processes for repetitions"),
    progress: Optional[bool] = typer.Option(None, "--progress/--no-progress", help="Show progress"),
    exact: Optional[bool] = typer.Option(None, "--exact/--no-exact", help="Compute exact reference for small instances"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Experiment YAML config"),
    results_jsonl: Optional[str] = typer.Option(None, help="Export raw run results as JSONL"),
    results_csv: Optional[str] = typer.Option(None, help="Export raw run results as CSV"),
) -> None:
    """Run every instance of one instance file."""
    config = _build_config(
        config_path,
        runs=runs, seed0=seed0, skip=skip, take=take, time_limit_s=time_limit_s,
        workers=workers, progress=progress, with_exact=exact,
        results_jsonl=results_jsonl, results_csv=results_csv,
    )
    if Path(file).is_dir():
        raise _error(f"Expected a file, got a directory: {file}")
    dataset = _load(file, max_items=max_items)
    _run_and_report(dataset, config, f"File {file}")


@app.command("run-dir")
def run_dir(
    directory: str = typer.Argument(..., help="Directory of instance files"),
    runs: Optional[int] = typer.Option(None, help="Repetitions per instance [default: 5]"),
    seed0: Optional[int] = typer.Option(None, help="Seed of the first repetition [default: 0]"),
    skip: Optional[int] = typer.Option(None, help="Instances to skip"),
    take: Optional[int] = typer.Option(None, help="Instances to run after skipping"),
    max_items: Optional[int] = typer.Option(None, help="Only keep instances with at most this many items"),
    time_limit_s: Optional[float] = typer.Option(None, help="Time limit per run, <= 0 for none [default: 2.0]"),
    workers: Optional[int] = typer.Option(None, help="Worker processes for repetitions"),
    progress: Optional[bool] = typer.Option(None, "--progress/--no-progress", help="Show progress"),
    exact: Optional[bool] = typer.Option(None, "--exact/--no-exact", help="Compute exact reference for small instances"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Experiment YAML config"),
    results_jsonl: Optional[str] = typer.Option(None, help="Export raw run results as JSONL"),
    results_csv: Optional[str] = typer.Option(None, help="Export raw run results as CSV"),
) -> None:
    """Run every instance of every parseable file in a directory."""
    config = _build_config(
        config_path,
        runs=runs, seed0=seed0, skip=skip, take=take, time_limit_s=time_limit_s,
        workers=workers, progress=progress, with_exact=exact,
        results_jsonl=results_jsonl, results_csv=results_csv,
    )
    dataset = _load(directory, directory=True, max_items=max_items)
    _run_and_report(dataset, config, f"Directory {directory}")


@app.command("compare-exact")
def compare_exact(
    file: str = typer.Argument(..., help="Instance file or directory"),
    runs: Optional[int] = typer.Option(None, help="Repetitions per instance [default: 5]"),
    seed0: Optional[int] = typer.Option(None, help="Seed of the first repetition [default: 0]"),
    skip: Optional[int] = typer.Option(None, help="Instances to skip"),
    take: Optional[int] = typer.Option(None, help="Instances to run after skipping"),
    time_limit_s: Optional[float] = typer.Option(None, help="Time limit per run, <= 0 for none [default: 2.0]"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Experiment YAML config"),
    results_jsonl: Optional[str] = typer.Option(None, help="Export raw run results as JSONL"),
) -> None:
    """Show every run's bin count and gap against the exact reference."""
    config = _build_config(
        config_path,
        runs=runs, seed0=seed0, skip=skip, take=take, time_limit_s=time_limit_s,
        with_exact=True, results_jsonl=results_jsonl,
    )
    dataset = _load(file)
    report = _run_and_report(dataset, config, f"Exact comparison {file}")

    typer.secho("\n🔎 Per-run results:", fg=typer.colors.BLUE)
    for inst_report in report.instances:
        exact_bins = inst_report.exact.bins if inst_report.exact is not None else None
        source = inst_report.exact.source if inst_report.exact is not None else "none"
        typer.echo(
            f"instance={inst_report.instance.name} capacity={inst_report.instance.capacity} "
            f"n={inst_report.instance.num_items} "
            f"exact_bins={exact_bins if exact_bins is not None else 'N/A'} ({source})"
        )
        for line in format_run_lines(inst_report.results, exact_bins):
            typer.echo(line)


@app.command()
def inspect(
    path: str = typer.Argument(..., help="Instance file or directory"),
    max_items: Optional[int] = typer.Option(None, help="Only keep instances with at most this many items"),
) -> None:
    """Print a summary of the instances in a file or directory."""
    dataset = _load(path, max_items=max_items)
    typer.echo(dataset_summary(dataset))
    for instance in dataset:
        opt = instance.known_optimal_bins if instance.known_optimal_bins is not None else "-"
        typer.echo(
            f"  {instance.name}: capacity={instance.capacity} n={instance.num_items} "
            f"lower_bound={instance.lower_bound} optimum={opt}"
        )


if __name__ == "__main__":
    app()
