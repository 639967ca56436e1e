from typing import Callable, cast

import pytest

from bpp.datasets import BinPackingInstance, example_instance
from bpp.errors import EngineInvariantError
from bpp.heuristics import HEURISTICS, best_fit_score_bin, get_heuristic, worst_fit_score_bin
from bpp.packing import (
    Packing,
    decreasing_order,
    exact_bins_if_small,
    exact_min_bins,
    first_fit_decreasing,
    format_packing,
    pack_in_order,
    try_reduce_bins,
    validate_packing,
)

SEVEN = BinPackingInstance("seven", 60, (49, 41, 34, 33, 29, 26, 26))


def test_best_fit_decreasing_on_example_is_optimal():
    inst = example_instance()
    packing = pack_in_order(inst, decreasing_order(inst))
    validate_packing(inst, packing)
    assert packing.num_bins == 4


def test_pack_in_order_respects_capacity():
    inst = BinPackingInstance("x", 100, (60, 40, 40, 20, 70, 10))
    for name, score_bin in HEURISTICS.items():
        packing = pack_in_order(inst, range(inst.num_items), score_bin)
        validate_packing(inst, packing)
        assert all(load <= inst.capacity for load in packing.loads), name


def test_worst_fit_never_beats_best_fit_here():
    inst = BinPackingInstance("x", 100, (40, 40, 40, 30, 30, 30, 20, 20))
    order = decreasing_order(inst)
    best = pack_in_order(inst, order, best_fit_score_bin)
    worst = pack_in_order(inst, order, worst_fit_score_bin)
    assert best.num_bins <= worst.num_bins


def test_invalid_score_rejected():
    def bad_score_bin(
        _item_size: int,
        _remaining_capacity: int,
        _bin_index: int,
        _step: int,
    ) -> float:
        value: object = object()
        return cast(float, value)

    bad_score_func: Callable[[int, int, int, int], float] = bad_score_bin
    inst = BinPackingInstance("x", 100, (40, 40))

    with pytest.raises(ValueError):
        pack_in_order(inst, [0, 1], bad_score_func)


def test_unknown_heuristic():
    with pytest.raises(ValueError, match="Unknown construction heuristic"):
        get_heuristic("next_fit")


def test_first_fit_decreasing_baseline():
    packing = first_fit_decreasing(SEVEN)
    validate_packing(SEVEN, packing)
    assert packing.num_bins == 5


def test_objective_prefers_fewer_bins_then_fuller_bins():
    a = Packing(capacity=10, bins=[[0], [1]], loads=[9, 1])
    b = Packing(capacity=10, bins=[[0], [1]], loads=[5, 5])
    c = Packing(capacity=10, bins=[[0]], loads=[10])
    assert c.objective() < a.objective() < b.objective()
    assert a.unused == b.unused == 10


class TestTryReduceBins:
    def test_empties_a_relocatable_bin(self):
        inst = BinPackingInstance("x", 10, (5, 5, 3, 3))
        packing = Packing(capacity=10, bins=[[0], [1], [2, 3]], loads=[5, 5, 6])
        reduced = try_reduce_bins(inst, packing)
        validate_packing(inst, reduced)
        assert reduced.num_bins == 2

    def test_keeps_tight_packing(self):
        inst = BinPackingInstance("x", 10, (6, 6, 6))
        packing = pack_in_order(inst, [0, 1, 2])
        assert try_reduce_bins(inst, packing).num_bins == 3

    def test_does_not_mutate_input(self):
        inst = BinPackingInstance("x", 10, (5, 5))
        packing = Packing(capacity=10, bins=[[0], [1]], loads=[5, 5])
        try_reduce_bins(inst, packing)
        assert packing.bins == [[0], [1]]


class TestValidatePacking:
    inst = BinPackingInstance("x", 10, (4, 5, 6))

    def test_valid(self):
        validate_packing(self.inst, Packing(10, [[0, 1], [2]], [9, 6]))

    def test_missing_item(self):
        with pytest.raises(EngineInvariantError, match="missing"):
            validate_packing(self.inst, Packing(10, [[0, 1]], [9]))

    def test_duplicate_item(self):
        with pytest.raises(EngineInvariantError, match="more than once"):
            validate_packing(self.inst, Packing(10, [[0, 1], [2, 0]], [9, 10]))

    def test_overfull_bin(self):
        with pytest.raises(EngineInvariantError, match="infeasible bin"):
            validate_packing(self.inst, Packing(10, [[1, 2], [0]], [11, 4]))

    def test_load_mismatch(self):
        with pytest.raises(EngineInvariantError, match="load mismatch"):
            validate_packing(self.inst, Packing(10, [[0, 1], [2]], [8, 6]))

    def test_empty_bin(self):
        with pytest.raises(EngineInvariantError, match="empty"):
            validate_packing(self.inst, Packing(10, [[0, 1], [2], []], [9, 6, 0]))


class TestExact:
    def test_example_optimum(self):
        inst = example_instance()
        assert inst.lower_bound == 3
        assert exact_min_bins(inst) == 4

    def test_seven_items(self):
        assert exact_min_bins(SEVEN) == 5

    def test_all_large_items(self):
        inst = BinPackingInstance("x", 10, (6, 7, 8, 9))
        assert exact_min_bins(inst) == 4

    def test_perfect_fit(self):
        inst = BinPackingInstance("x", 10, (5, 5, 3, 7, 2, 8))
        assert exact_min_bins(inst) == 3

    def test_improves_on_first_fit_decreasing(self):
        inst = BinPackingInstance("x", 10, (4, 4, 3, 3, 3, 3))
        assert first_fit_decreasing(inst).num_bins == 3
        assert exact_min_bins(inst) == 2

    def test_size_gate(self):
        assert exact_bins_if_small(SEVEN, max_items=6) is None
        assert exact_bins_if_small(SEVEN, max_items=7) == 5


def test_format_packing_uses_one_based_ids():
    inst = BinPackingInstance("x", 60, (22, 38))
    lines = format_packing(inst, Packing(60, [[0, 1]], [60]))
    assert lines == ["bin#01 load= 60 [1:22, 2:38]"]
