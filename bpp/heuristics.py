"""Bin scoring rules for greedy construction.

A rule receives the item size, the remaining capacity of a bin that can hold
the item, the bin index and the placement step, and returns a score; the
packer places the item into the highest-scoring bin.
"""

from __future__ import annotations

from typing import Callable, TypeAlias

ScoreBinFunc: TypeAlias = Callable[[int, int, int, int], float]


def first_fit_score_bin(
    _item_size: int,
    _remaining_capacity: int,
    bin_index: int,
    _step: int,
) -> float:
    """First-fit style: prefer the earliest opened bin."""

    return float(-bin_index)


def best_fit_score_bin(
    item_size: int,
    remaining_capacity: int,
    _bin_index: int,
    _step: int,
) -> float:
    """Best-fit style: prefer smallest waste after placing."""

    remaining_after = remaining_capacity - item_size
    return float(-remaining_after)


def worst_fit_score_bin(
    _item_size: int,
    remaining_capacity: int,
    _bin_index: int,
    _step: int,
) -> float:
    """Worst-fit style: prefer largest remaining space."""

    return float(remaining_capacity)


HEURISTICS: dict[str, ScoreBinFunc] = {
    "first_fit": first_fit_score_bin,
    "best_fit": best_fit_score_bin,
    "worst_fit": worst_fit_score_bin,
}


def get_heuristic(name: str) -> ScoreBinFunc:
    try:
        return HEURISTICS[name]
    except KeyError:
        raise ValueError(
            f"Unknown construction heuristic: {name}. Available: {sorted(HEURISTICS)}"
        ) from None
