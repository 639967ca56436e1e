"""Human-readable trace of a tabu search run."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, TextIO

from bpp.datasets import BinPackingInstance
from bpp.packing import Packing, format_packing

if TYPE_CHECKING:
    from .schemas import SearchParams
    from .search import SearchResult


def format_order(instance: BinPackingInstance, order: Sequence[int]) -> str:
    return " ".join(f"{i + 1}:{instance.items[i]}" for i in order)


class SearchTracer:
    """Writes every decision of the search to a text stream.

    Item ids are printed 1-based as ``id:size``.
    """

    def __init__(
        self,
        out: TextIO,
        show_candidates: bool = True,
        show_packings: bool = False,
    ) -> None:
        self.out = out
        self.show_candidates = show_candidates
        self.show_packings = show_packings

    def _write(self, line: str = "") -> None:
        self.out.write(line + "\n")

    def _write_packing(self, title: str, instance: BinPackingInstance, packing: Packing) -> None:
        if not self.show_packings:
            return
        self._write(f"  {title}:")
        for line in format_packing(instance, packing):
            self._write(f"    {line}")

    def start(
        self,
        instance: BinPackingInstance,
        seed: int,
        params: "SearchParams",
        target_bins: int,
    ) -> None:
        self._write("TRACE: Tabu Search")
        self._write(
            f"instance={instance.name} capacity={instance.capacity} "
            f"n={instance.num_items} seed={seed}"
        )
        self._write(
            f"params: max_iters={params.max_iters} "
            f"neighborhood_samples={params.neighborhood_samples} "
            f"tabu_tenure={params.tabu_tenure} "
            f"stagnation_limit={params.stagnation_limit} "
            f"time_limit_s={params.time_limit_s}"
        )
        self._write(f"lower_bound_bins={instance.lower_bound} target_bins={target_bins}")

    def initial(self, instance: BinPackingInstance, order: Sequence[int], packing: Packing) -> None:
        self._write()
        self._write(f"init permutation (item:size): {format_order(instance, order)}")
        self._write(f"init objective: bins={packing.num_bins} unused={packing.unused}")
        self._write_packing("init packing", instance, packing)

    def diversify(self, iteration: int) -> None:
        self._write()
        self._write(
            f"it={iteration}: stagnation reached, diversify: shuffle(best_order) + clear tabu"
        )

    def iteration(self, iteration: int, current: Packing, best: Packing, tabu_size: int) -> None:
        self._write()
        self._write(
            f"-- it={iteration} -- current bins={current.num_bins} unused={current.unused} "
            f"best bins={best.num_bins} unused={best.unused} tabu_size={tabu_size}"
        )

    def candidate(
        self,
        sample: int,
        description: str,
        packing: Packing,
        is_tabu: bool,
        aspiration: bool,
    ) -> None:
        if not self.show_candidates:
            return
        allowed = not is_tabu or aspiration
        self._write(
            f"  sample#{sample:03d}: {description:45} -> bins={packing.num_bins} "
            f"unused={packing.unused} tabu={is_tabu} aspiration={aspiration} allowed={allowed}"
        )

    def no_candidate(self) -> None:
        self._write("  no admissible candidate found")

    def chosen(self, instance: BinPackingInstance, description: str, packing: Packing) -> None:
        self._write(f"  chosen move: {description}")
        self._write(f"  new current: bins={packing.num_bins} unused={packing.unused}")
        self._write_packing("packing after move", instance, packing)

    def new_best(self, iteration: int, packing: Packing) -> None:
        self._write(f"  NEW BEST at it={iteration}: bins={packing.num_bins} unused={packing.unused}")

    def stop(self, reason: str, iteration: int) -> None:
        self._write(f"stop: {reason} at it={iteration}")

    def finish(self, instance: BinPackingInstance, result: "SearchResult") -> None:
        self._write()
        self._write(f"DONE: elapsed={result.elapsed_s:.4f}s iters={result.iterations}")
        self._write(f"best: bins={result.best_bins} unused={result.best_unused}")
        self._write(f"best permutation (item:size): {format_order(instance, result.best_order)}")
        if self.show_packings:
            self._write("best packing:")
            for line in format_packing(instance, result.best_packing):
                self._write(f"  {line}")
