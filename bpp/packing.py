"""Packing representation, greedy construction and exact reference solver."""

from __future__ import annotations

import math
import numbers
from collections.abc import Sequence
from dataclasses import dataclass

from .datasets import BinPackingInstance
from .errors import EngineInvariantError, InfeasibleItemError
from .heuristics import ScoreBinFunc, best_fit_score_bin, first_fit_score_bin


@dataclass
class Packing:
    """Assignment of item indices to bins.

    ``loads[i]`` is the total size of ``bins[i]``. Items are referenced by
    their index into ``BinPackingInstance.items``.
    """

    capacity: int
    bins: list[list[int]]
    loads: list[int]

    @property
    def num_bins(self) -> int:
        return len(self.bins)

    @property
    def unused(self) -> int:
        """Total free space over all open bins."""
        return sum(self.capacity - load for load in self.loads)

    @property
    def fill_score(self) -> int:
        """Sum of squared loads; grows as items concentrate in fewer bins."""
        return sum(load * load for load in self.loads)

    def objective(self) -> tuple[int, int]:
        """Lexicographic objective, lower is better: bins first, then fill."""
        return (self.num_bins, -self.fill_score)


def _validated_score(score: object) -> float:
    if isinstance(score, bool) or not isinstance(score, numbers.Real):
        raise ValueError("score_bin must return a numeric score")
    score_value = float(score)
    if not math.isfinite(score_value):
        raise ValueError("score_bin must return a finite score")
    return score_value


def pack_in_order(
    instance: BinPackingInstance,
    order: Sequence[int],
    score_bin: ScoreBinFunc = best_fit_score_bin,
) -> Packing:
    """Pack items greedily in ``order`` using a bin scoring rule."""

    capacity = instance.capacity
    bins: list[list[int]] = []
    loads: list[int] = []
    for step, item in enumerate(order):
        size = instance.items[item]
        best_bin: int | None = None
        best_score = -math.inf
        for i, load in enumerate(loads):
            remaining = capacity - load
            if remaining >= size:
                score = _validated_score(score_bin(size, remaining, i, step))
                if score > best_score:
                    best_score = score
                    best_bin = i

        if best_bin is not None:
            bins[best_bin].append(item)
            loads[best_bin] += size
        else:
            if size > capacity:
                raise InfeasibleItemError(f"item {item} of size {size} exceeds capacity {capacity}")
            bins.append([item])
            loads.append(size)

    return Packing(capacity=capacity, bins=bins, loads=loads)


def decreasing_order(instance: BinPackingInstance) -> list[int]:
    """Item indices by decreasing size, ties by index."""
    return sorted(range(instance.num_items), key=lambda i: (-instance.items[i], i))


def first_fit_decreasing(instance: BinPackingInstance) -> Packing:
    """First-fit decreasing baseline packing."""

    return pack_in_order(instance, decreasing_order(instance), first_fit_score_bin)


def _plan_relocation(
    instance: BinPackingInstance,
    bins: list[list[int]],
    loads: list[int],
    source: int,
) -> list[tuple[int, int]] | None:
    """Best-fit targets for every item of ``source``, or None if one cannot move."""
    capacity = instance.capacity
    trial = list(loads)
    moves: list[tuple[int, int]] = []
    for item in sorted(bins[source], key=lambda i: -instance.items[i]):
        size = instance.items[item]
        target: int | None = None
        best_after: int | None = None
        for idx, load in enumerate(trial):
            if idx == source:
                continue
            after = capacity - load - size
            if after >= 0 and (best_after is None or after < best_after):
                best_after = after
                target = idx
        if target is None:
            return None
        trial[target] += size
        moves.append((item, target))
    return moves


def try_reduce_bins(instance: BinPackingInstance, packing: Packing) -> Packing:
    """Empty whole bins by relocating their items into the other bins.

    The lightest bins are tried first; a bin is removed only when all of its
    items fit elsewhere. Repeats until no bin can be emptied.
    """
    bins = [list(b) for b in packing.bins]
    loads = list(packing.loads)

    changed = True
    while changed:
        changed = False
        for source in sorted(range(len(bins)), key=lambda i: loads[i]):
            moves = _plan_relocation(instance, bins, loads, source)
            if moves is None:
                continue
            for item, target in moves:
                bins[target].append(item)
                loads[target] += instance.items[item]
            del bins[source]
            del loads[source]
            changed = True
            break

    return Packing(capacity=packing.capacity, bins=bins, loads=loads)


def validate_packing(instance: BinPackingInstance, packing: Packing) -> None:
    """Check coverage and capacity invariants.

    Raises:
        EngineInvariantError: Describes the first violated invariant.
    """
    n = instance.num_items
    seen = [False] * n

    if packing.capacity != instance.capacity:
        raise EngineInvariantError(
            f"capacity mismatch: packing {packing.capacity} != instance {instance.capacity}"
        )
    if len(packing.bins) != len(packing.loads):
        raise EngineInvariantError("bins/loads length mismatch")

    for b_idx, (bin_items, load) in enumerate(zip(packing.bins, packing.loads)):
        if not bin_items:
            raise EngineInvariantError(f"bin {b_idx} is empty")
        for i in bin_items:
            if not 0 <= i < n:
                raise EngineInvariantError(f"invalid item id: {i}")
            if seen[i]:
                raise EngineInvariantError(f"item appears more than once: {i}")
            seen[i] = True
        computed = sum(instance.items[i] for i in bin_items)
        if computed != load:
            raise EngineInvariantError(
                f"bin {b_idx} load mismatch: expected {computed}, got {load}"
            )
        if load > instance.capacity:
            raise EngineInvariantError(
                f"infeasible bin {b_idx}: load {load} > capacity {instance.capacity}"
            )

    missing = [i for i, ok in enumerate(seen) if not ok]
    if missing:
        raise EngineInvariantError(f"missing item(s) in packing: {missing[:10]}")


def exact_min_bins(instance: BinPackingInstance) -> int:
    """Minimum number of bins by branch-and-bound.

    Intended only for small instances: the first-fit decreasing packing is
    the initial incumbent, items are placed largest first, bins with equal
    loads are tried once, and branches that cannot beat the incumbent are cut.
    """
    sizes = sorted(instance.items, reverse=True)
    capacity = instance.capacity
    lower = instance.lower_bound
    best = first_fit_decreasing(instance).num_bins
    if best == lower:
        return best
    loads: list[int] = []

    def dfs(k: int) -> bool:
        nonlocal best
        if k == len(sizes):
            best = min(best, len(loads))
            return best == lower
        if len(loads) >= best:
            return False

        size = sizes[k]
        tried: set[int] = set()
        for i in range(len(loads)):
            if loads[i] in tried or loads[i] + size > capacity:
                continue
            tried.add(loads[i])
            loads[i] += size
            done = dfs(k + 1)
            loads[i] -= size
            if done:
                return True

        if len(loads) + 1 < best:
            loads.append(size)
            done = dfs(k + 1)
            loads.pop()
            if done:
                return True
        return False

    dfs(0)
    return best


def exact_bins_if_small(instance: BinPackingInstance, max_items: int) -> int | None:
    if instance.num_items > max_items:
        return None
    return exact_min_bins(instance)


def format_packing(instance: BinPackingInstance, packing: Packing) -> list[str]:
    """One line per bin: ``bin#01 load= 60 [1:22, 3:38]`` (1-based item ids)."""
    lines = []
    for b_idx, bin_items in enumerate(packing.bins):
        items = ", ".join(f"{i + 1}:{instance.items[i]}" for i in bin_items)
        lines.append(f"bin#{b_idx + 1:02d} load={packing.loads[b_idx]:3d} [{items}]")
    return lines
