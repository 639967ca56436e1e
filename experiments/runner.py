"""Experiment runner: repeated tabu search runs over a dataset."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ProcessPoolExecutor
from concurrent.futures.process import BrokenProcessPool
from dataclasses import dataclass, field
from typing import Callable

from tqdm import tqdm

from bpp.datasets import BinPackingDataset, BinPackingInstance
from search_core.schemas import SearchParams
from search_core.search import tabu_search

from experiments.config import ExperimentConfig
from experiments.exact import ExactReference, exact_reference
from experiments.failure_taxonomy import FailureAnalyzer, FailureType
from experiments.metrics import RunResult, RunResultCollector
from experiments.report import SummaryRow, format_run_line, summarize_runs

logger = logging.getLogger(__name__)


def failed_run(
    instance: BinPackingInstance,
    run_index: int,
    seed: int,
    exc: BaseException,
    elapsed_s: float = 0.0,
) -> RunResult:
    failure_type = FailureAnalyzer().classify_exception(exc)
    return RunResult(
        instance_name=instance.name,
        run_index=run_index,
        seed=seed,
        objective=None,
        elapsed_s=elapsed_s,
        error=f"{type(exc).__name__}: {exc}",
        failure_type=failure_type.value,
    )


def execute_run(
    instance: BinPackingInstance,
    params: SearchParams,
    run_index: int,
    seed: int,
    clock: Callable[[], float] = time.monotonic,
) -> RunResult:
    """One engine execution; any exception becomes a failed RunResult.

    Module-level so it can be shipped to worker processes.
    """
    start = clock()
    try:
        result = tabu_search(instance, seed, params, clock=clock)
    except Exception as e:
        return failed_run(instance, run_index, seed, e, elapsed_s=clock() - start)
    return RunResult(
        instance_name=instance.name,
        run_index=run_index,
        seed=seed,
        objective=result.best_bins,
        elapsed_s=result.elapsed_s,
        iterations=result.iterations,
        stop_reason=result.stop_reason.value,
        unused=result.best_unused,
    )


@dataclass
class InstanceReport:
    instance: BinPackingInstance
    exact: ExactReference | None
    results: list[RunResult]
    summary: SummaryRow


@dataclass
class ExperimentReport:
    instances: list[InstanceReport] = field(default_factory=list)
    collector: RunResultCollector = field(default_factory=RunResultCollector)
    failures: FailureAnalyzer = field(default_factory=FailureAnalyzer)

    @property
    def rows(self) -> list[SummaryRow]:
        return [r.summary for r in self.instances]


class ExperimentRunner:
    """Runs ``config.runs`` independent repetitions per instance.

    Instances are processed in dataset order and every repetition of one
    instance finishes before the next instance starts. Repetition ``r`` uses
    seed ``config.seed0 + r``.
    """

    def __init__(
        self,
        config: ExperimentConfig,
        clock: Callable[[], float] = time.monotonic,
        verbose_runs: bool = False,
    ):
        self.config = config
        self.clock = clock
        self.verbose_runs = verbose_runs

    def seeds(self) -> list[int]:
        return [self.config.seed0 + r for r in range(self.config.runs)]

    def run_instance(self, instance: BinPackingInstance) -> list[RunResult]:
        """All repetitions of one instance, in repetition order."""
        params = self.config.search
        seeds = self.seeds()

        if self.config.workers > 1 and len(seeds) > 1:
            with ProcessPoolExecutor(max_workers=min(self.config.workers, len(seeds))) as executor:
                futures = [
                    executor.submit(execute_run, instance, params, r, seed)
                    for r, seed in enumerate(seeds)
                ]
                results: list[RunResult] = []
                for r, (seed, fut) in enumerate(zip(seeds, futures)):
                    try:
                        results.append(fut.result())
                    except BrokenProcessPool as e:
                        # The worker died outside execute_run, e.g. killed by the OS
                        results.append(failed_run(instance, r, seed, e))
        else:
            results = [
                execute_run(instance, params, r, seed, clock=self.clock)
                for r, seed in enumerate(seeds)
            ]

        for result in results:
            if not result.ok:
                logger.warning(
                    f"Run {result.run_index + 1}/{len(seeds)} on {instance.name} "
                    f"(seed={result.seed}) failed: {result.error}"
                )
        return results

    def _exact_for(self, instance: BinPackingInstance) -> ExactReference | None:
        return exact_reference(
            instance,
            self.config.max_exact_items,
            compute=self.config.with_exact,
        )

    def run(self, dataset: BinPackingDataset) -> ExperimentReport:
        """Run every selected instance of ``dataset``.

        ``skip``/``take`` from the configuration select a contiguous slice of
        the dataset before anything runs.
        """
        selected = dataset.select(self.config.skip, self.config.take)
        report = ExperimentReport()

        pbar = tqdm(
            total=len(selected) * self.config.runs,
            desc="📦 Runs",
            unit="run",
            ncols=100,
            disable=not self.config.progress,
        )
        try:
            for instance in selected:
                pbar.set_postfix({"instance": instance.name})
                exact = self._exact_for(instance)
                exact_bins = exact.bins if exact is not None else None

                results = self.run_instance(instance)
                pbar.update(len(results))

                if self.verbose_runs or self.config.progress:
                    tqdm.write(
                        f"instance={instance.name} capacity={instance.capacity} "
                        f"n={instance.num_items} exact_bins={exact_bins if exact_bins is not None else 'N/A'}"
                    )
                    for result in results:
                        tqdm.write(format_run_line(result, exact_bins))

                for result in results:
                    if result.failure_type is not None:
                        report.failures.record_failure(FailureType(result.failure_type))
                report.collector.extend(results)
                report.instances.append(
                    InstanceReport(
                        instance=instance,
                        exact=exact,
                        results=results,
                        summary=summarize_runs(instance.name, results, exact_bins),
                    )
                )
        finally:
            pbar.close()

        if report.failures.total():
            logger.warning(
                f"{report.failures.total()} run(s) failed: {report.failures.get_top_failures()}"
            )
        return report
