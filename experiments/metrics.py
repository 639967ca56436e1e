"""Per-run records and their export."""

from __future__ import annotations

import csv
import json
from dataclasses import asdict, dataclass
from pathlib import Path


@dataclass(frozen=True)
class RunResult:
    """Outcome of one engine execution on one instance.

    ``objective`` is the best bin count, or None when the run failed; ``error``
    and ``failure_type`` are set only for failed runs.
    """

    instance_name: str
    run_index: int
    seed: int
    objective: int | None
    elapsed_s: float
    iterations: int = 0
    stop_reason: str | None = None
    unused: int | None = None
    error: str | None = None
    failure_type: str | None = None

    @property
    def ok(self) -> bool:
        return self.objective is not None

    def to_dict(self) -> dict:
        return asdict(self)


FIELDNAMES = [
    "instance_name", "run_index", "seed", "objective", "elapsed_s",
    "iterations", "stop_reason", "unused", "error", "failure_type",
]


class RunResultCollector:
    def __init__(self) -> None:
        self.results: list[RunResult] = []

    def __len__(self) -> int:
        return len(self.results)

    def extend(self, results: list[RunResult]) -> None:
        self.results.extend(results)

    def failed(self) -> list[RunResult]:
        return [r for r in self.results if not r.ok]

    def export_jsonl(self, path: str | Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            for result in self.results:
                json.dump(result.to_dict(), f)
                f.write("\n")

    def export_csv(self, path: str | Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
            writer.writeheader()
            for result in self.results:
                writer.writerow(result.to_dict())

