"""Reference bin counts used to compute optimality gaps."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from bpp.datasets import BinPackingInstance
from bpp.packing import exact_bins_if_small


@dataclass(frozen=True)
class ExactReference:
    bins: int
    source: Literal["dataset", "branch_and_bound"]


def exact_reference(
    instance: BinPackingInstance,
    max_items: int,
    compute: bool = True,
) -> ExactReference | None:
    """Known optimal bin count of ``instance``, if one is available.

    The optimum stored in the dataset wins. Otherwise, when ``compute`` is set,
    instances with at most ``max_items`` items are solved by branch-and-bound.
    The lower bound alone is never reported as exact.
    """
    if instance.known_optimal_bins is not None:
        return ExactReference(instance.known_optimal_bins, "dataset")
    if not compute:
        return None
    bins = exact_bins_if_small(instance, max_items)
    if bins is None:
        return None
    return ExactReference(bins, "branch_and_bound")


def gap_percent(found: float, exact: int | None) -> float | None:
    """Relative excess over the exact bin count, in percent."""
    if exact is None or exact <= 0:
        return None
    return (found - exact) / exact * 100.0
