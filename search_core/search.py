"""Tabu search over item orders for one-dimensional bin packing.

A solution is an item order decoded by a greedy packer followed by bin
elimination. Each iteration samples swap/insert moves on the current order,
moves to the best admissible neighbour (even if it is worse), and remembers
the applied move in a tabu list. The best order ever decoded is kept apart from
the current one, so the returned packing is never worse than anything seen.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum

from bpp.datasets import BinPackingInstance
from bpp.heuristics import get_heuristic
from bpp.packing import Packing, pack_in_order, try_reduce_bins, validate_packing

from .schemas import SearchParams
from .tabu import Move, TabuList
from .trace import SearchTracer

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class StopReason(str, Enum):
    TIME_LIMIT = "time_limit"
    MAX_ITERS = "max_iters"
    LOWER_BOUND = "lower_bound"
    KNOWN_OPTIMUM = "known_optimum"


@dataclass(frozen=True)
class Improvement:
    """A new best-ever packing found at ``iteration`` (0 = construction)."""

    iteration: int
    elapsed_s: float
    bins: int


@dataclass
class SearchResult:
    best_order: list[int]
    best_packing: Packing
    best_bins: int
    best_unused: int
    elapsed_s: float
    iterations: int
    stop_reason: StopReason
    history: list[Improvement] = field(default_factory=list)


@dataclass
class _Neighbour:
    order: list[int]
    packing: Packing
    objective: tuple[int, int]
    move: Move
    description: str


def _apply_swap(order: Sequence[int], i: int, j: int) -> list[int]:
    out = list(order)
    out[i], out[j] = out[j], out[i]
    return out


def _apply_insert(order: Sequence[int], i: int, j: int) -> list[int]:
    out = list(order)
    item = out.pop(i)
    out.insert(j, item)
    return out


class TabuSearch:
    """One engine execution; create a new object per run."""

    def __init__(
        self,
        instance: BinPackingInstance,
        params: SearchParams,
        seed: int,
        clock: Clock = time.monotonic,
        tracer: SearchTracer | None = None,
    ) -> None:
        self.instance = instance
        self.params = params
        self.seed = seed
        self.rng = random.Random(seed)
        self._clock = clock
        self._tracer = tracer
        self._score_bin = get_heuristic(params.construction)

    @property
    def target_bins(self) -> int:
        """Bin count at which the search stops early."""
        target = self.instance.lower_bound
        known = self.instance.known_optimal_bins
        if self.params.stop_at_known_optimum and known is not None:
            target = max(target, known)
        return target

    def decode(self, order: Sequence[int]) -> Packing:
        packing = pack_in_order(self.instance, order, self._score_bin)
        return try_reduce_bins(self.instance, packing)

    def initial_order(self) -> list[int]:
        """Decreasing sizes with a seeded tie-break between equal sizes."""
        items = self.instance.items
        tiebreak = [self.rng.random() for _ in items]
        return sorted(range(len(items)), key=lambda i: (-items[i], tiebreak[i]))

    def _sample_neighbour(self, order: list[int]) -> _Neighbour | None:
        n = len(order)
        is_swap = self.rng.random() < self.params.swap_probability
        i = self.rng.randrange(n)
        j = self.rng.randrange(n)
        if i == j:
            return None

        sizes = self.instance.items
        if is_swap:
            item_i, item_j = order[i], order[j]
            candidate = _apply_swap(order, i, j)
            move = Move.swap(item_i, item_j)
            description = (
                f"swap pos {i}<->{j}  items {item_i + 1}:{sizes[item_i]} "
                f"<-> {item_j + 1}:{sizes[item_j]}"
            )
        else:
            item = order[i]
            candidate = _apply_insert(order, i, j)
            move = Move.insert(item, j)
            description = f"insert from pos {i} to {j}  item {item + 1}:{sizes[item]}"

        packing = self.decode(candidate)
        return _Neighbour(candidate, packing, packing.objective(), move, description)

    def run(self) -> SearchResult:
        params = self.params
        tracer = self._tracer
        start = self._clock()
        target = self.target_bins

        if tracer is not None:
            tracer.start(self.instance, self.seed, params, target)

        current = self.initial_order()
        current_pack = self.decode(current)
        validate_packing(self.instance, current_pack)
        current_obj = current_pack.objective()
        if tracer is not None:
            tracer.initial(self.instance, current, current_pack)

        best_order = list(current)
        best_pack = current_pack
        best_obj = current_obj
        best_iter = 0
        last_restart = 0
        history = [Improvement(0, self._clock() - start, best_pack.num_bins)]

        tabu = TabuList(params.tabu_tenure)
        stop_reason = StopReason.MAX_ITERS
        iterations = 0

        if best_pack.num_bins <= target:
            stop_reason = self._reached_reason(best_pack.num_bins)
        else:
            for it in range(1, params.max_iters + 1):
                if params.time_limit_s is not None and self._clock() - start >= params.time_limit_s:
                    stop_reason = StopReason.TIME_LIMIT
                    if tracer is not None:
                        tracer.stop(stop_reason.value, it)
                    break
                iterations = it

                if it - max(best_iter, last_restart) >= params.stagnation_limit:
                    if tracer is not None:
                        tracer.diversify(it)
                    current = list(best_order)
                    self.rng.shuffle(current)
                    current_pack = self.decode(current)
                    current_obj = current_pack.objective()
                    tabu.clear()
                    last_restart = it

                if tracer is not None:
                    tracer.iteration(it, current_pack, best_pack, len(tabu))

                chosen: _Neighbour | None = None
                for sample in range(params.neighborhood_samples):
                    neighbour = self._sample_neighbour(current)
                    if neighbour is None:
                        continue
                    is_tabu = neighbour.move in tabu
                    aspiration = neighbour.objective < best_obj
                    if tracer is not None:
                        tracer.candidate(sample + 1, neighbour.description, neighbour.packing, is_tabu, aspiration)
                    if is_tabu and not aspiration:
                        continue
                    if chosen is None or neighbour.objective < chosen.objective:
                        chosen = neighbour

                if chosen is None:
                    if tracer is not None:
                        tracer.no_candidate()
                    continue

                current = chosen.order
                current_pack = chosen.packing
                current_obj = chosen.objective
                validate_packing(self.instance, current_pack)
                tabu.push(chosen.move)
                if tracer is not None:
                    tracer.chosen(self.instance, chosen.description, current_pack)

                if current_obj < best_obj:
                    best_obj = current_obj
                    best_order = list(current)
                    best_pack = current_pack
                    best_iter = it
                    history.append(Improvement(it, self._clock() - start, best_pack.num_bins))
                    if tracer is not None:
                        tracer.new_best(it, best_pack)
                    if best_pack.num_bins <= target:
                        stop_reason = self._reached_reason(best_pack.num_bins)
                        if tracer is not None:
                            tracer.stop(stop_reason.value, it)
                        break

        validate_packing(self.instance, best_pack)
        result = SearchResult(
            best_order=best_order,
            best_packing=best_pack,
            best_bins=best_pack.num_bins,
            best_unused=best_pack.unused,
            elapsed_s=self._clock() - start,
            iterations=iterations,
            stop_reason=stop_reason,
            history=history,
        )
        logger.debug(
            f"{self.instance.name} seed={self.seed}: bins={result.best_bins} "
            f"iters={result.iterations} stop={result.stop_reason.value} "
            f"time={result.elapsed_s:.4f}s"
        )
        if tracer is not None:
            tracer.finish(self.instance, result)
        return result

    def _reached_reason(self, bins: int) -> StopReason:
        if bins <= self.instance.lower_bound:
            return StopReason.LOWER_BOUND
        return StopReason.KNOWN_OPTIMUM


def tabu_search(
    instance: BinPackingInstance,
    seed: int,
    params: SearchParams | None = None,
    *,
    clock: Clock = time.monotonic,
    tracer: SearchTracer | None = None,
) -> SearchResult:
    """Run the tabu search once and return the best packing found.

    Args:
        instance: Instance to pack.
        seed: Seed of the run's private random generator.
        params: Search parameters; defaults to ``SearchParams()``.
        clock: Monotonic clock in seconds; tests may inject a fake one.
        tracer: Optional tracer receiving every search decision.

    Raises:
        EngineInvariantError: A produced packing broke the coverage or
            capacity invariant.
    """
    search = TabuSearch(instance, params or SearchParams(), seed, clock=clock, tracer=tracer)
    return search.run()
