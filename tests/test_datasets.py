import logging

import pytest

from bpp.datasets import (
    BinPackingDataset,
    BinPackingInstance,
    dataset_summary,
    default_batch_instances,
    detect_scale,
    example_instance,
    load_dataset,
    load_dataset_from_dir,
    load_instances_from_file,
    parse_instances,
    synthetic_instance,
)
from bpp.errors import (
    DatasetIOError,
    EmptyInputError,
    InfeasibleItemError,
    MalformedInputError,
)

BINPACK_DECIMAL = """\
1
 u_dec_00
 100.0 3 2
 36.6
 50
 13.4
"""

BINPACK_TWO = """\
2
 u120_00
 150 4 2
 100
 50
 75 75
 u120_01
 150 3
 20 30 40
"""


class TestSimpleLayout:
    def test_n_then_capacity(self):
        [inst] = parse_instances("4 10\n3 3 4 5\n", source="simple")
        assert inst.name == "simple"
        assert inst.capacity == 10
        assert inst.items == (3, 3, 4, 5)
        assert inst.known_optimal_bins is None

    def test_capacity_then_n(self):
        [inst] = parse_instances("100 3\n20\n30\n40\n")
        assert inst.capacity == 100
        assert inst.items == (20, 30, 40)

    def test_sizes_split_arbitrarily(self):
        [inst] = parse_instances("5 60\n10 20\n30\n\n40 50\n")
        assert inst.items == (10, 20, 30, 40, 50)

    def test_comments_and_blank_lines_skipped(self):
        content = "# header comment\n\n3 50\n  # indented comment\n10 20\n30\n"
        [inst] = parse_instances(content)
        assert inst.capacity == 50
        assert inst.items == (10, 20, 30)

    def test_count_mismatch_is_malformed(self):
        with pytest.raises(MalformedInputError) as exc_info:
            parse_instances("5 100\n10 20 30 40\n")
        assert exc_info.value.line == 1

    def test_equal_header_values_agree(self):
        [inst] = parse_instances("3 3\n1 2 3\n")
        assert inst.capacity == 3
        assert inst.items == (1, 2, 3)

    def test_non_numeric_token(self):
        with pytest.raises(MalformedInputError) as exc_info:
            parse_instances("3 100\n10 abc 30\n")
        assert exc_info.value.line == 2

    def test_item_larger_than_capacity(self):
        with pytest.raises(InfeasibleItemError) as exc_info:
            parse_instances("3 50\n10 60 20\n")
        assert exc_info.value.line == 2

    def test_zero_size_is_malformed(self):
        with pytest.raises(MalformedInputError):
            parse_instances("2 50\n0 20\n")

    def test_header_on_two_lines(self):
        [inst] = parse_instances("5\n100\n10\n20\n30\n40\n50\n", source="bpplib")
        assert inst.name == "bpplib"
        assert inst.capacity == 100
        assert inst.items == (10, 20, 30, 40, 50)

    def test_single_count_line_then_capacity_and_sizes(self):
        [inst] = parse_instances("3\n100 20 30 40\n")
        assert inst.capacity == 100
        assert inst.items == (20, 30, 40)

    def test_all_numeric_count_mismatch_reports_header(self):
        with pytest.raises(MalformedInputError, match="item count mismatch") as exc_info:
            parse_instances("4\n100\n10 20\n")
        assert exc_info.value.line == 1


class TestBinPackLayout:
    def test_multiple_instances(self):
        instances = parse_instances(BINPACK_TWO, source="binpack1")
        assert [i.name for i in instances] == ["binpack1_u120_00", "binpack1_u120_01"]
        assert instances[0].items == (100, 50, 75, 75)
        assert instances[0].known_optimal_bins == 2
        assert instances[1].known_optimal_bins is None
        assert instances[1].items == (20, 30, 40)

    def test_decimal_scaling(self):
        [inst] = parse_instances(BINPACK_DECIMAL)
        assert inst.capacity == 1000
        assert inst.items == (366, 500, 134)
        assert detect_scale(BINPACK_DECIMAL) == 10

    def test_integer_file_has_factor_one(self):
        assert detect_scale(BINPACK_TWO) == 1
        assert detect_scale("3 100\n20 30 40\n") == 1

    def test_trailing_zero_decimals_do_not_scale(self):
        [inst] = parse_instances("2 100.00\n25.0 50\n")
        assert inst.capacity == 100
        assert inst.items == (25, 50)

    def test_scale_is_shared_across_instances(self):
        content = "2\n a\n 10 2\n 2.5 5\n b\n 10 2\n 4 4\n"
        a, b = parse_instances(content)
        assert a.capacity == 100 and a.items == (25, 50)
        assert b.capacity == 100 and b.items == (40, 40)

    def test_too_many_decimals(self):
        with pytest.raises(MalformedInputError):
            parse_instances("2 100\n0.1234567 50\n")

    def test_parsing_is_idempotent(self):
        assert parse_instances(BINPACK_DECIMAL) == parse_instances(BINPACK_DECIMAL)

    def test_size_line_overshoots_count(self):
        content = "1\n p\n 100 2\n 10 20 30\n"
        with pytest.raises(MalformedInputError) as exc_info:
            parse_instances(content)
        assert exc_info.value.line == 4

    def test_missing_sizes_before_next_name(self):
        content = "2\n p0\n 100 3\n 10 20\n p1\n 100 1\n 10\n"
        with pytest.raises(MalformedInputError, match="declares 3 items"):
            parse_instances(content)

    def test_leftover_content(self):
        content = "1\n p\n 100 1\n 10\n junk line\n"
        with pytest.raises(MalformedInputError, match="unexpected content"):
            parse_instances(content)

    def test_zero_instance_count(self):
        with pytest.raises(EmptyInputError):
            parse_instances("0\n")

    def test_fractional_item_count(self):
        with pytest.raises(MalformedInputError):
            parse_instances("1\n p\n 100 2.5\n 10 20\n")

    def test_numeric_instance_name_is_rejected(self):
        content = "2\n p0\n 100 1\n 10\n 7\n 100 1\n 20\n"
        with pytest.raises(MalformedInputError, match="expected an instance name") as exc_info:
            parse_instances(content)
        assert exc_info.value.line == 5


class TestEmptyInput:
    @pytest.mark.parametrize("content", ["", "\n\n", "# only\n# comments\n"])
    def test_empty(self, content):
        with pytest.raises(EmptyInputError):
            parse_instances(content)


class TestInstanceModel:
    def test_lower_bound(self):
        inst = BinPackingInstance("x", 60, (22, 17, 45, 12, 38, 27, 19))
        assert inst.total_size == 180
        assert inst.lower_bound == 3

    def test_rejects_oversized_item(self):
        with pytest.raises(InfeasibleItemError):
            BinPackingInstance("x", 10, (11,))

    def test_rejects_empty(self):
        with pytest.raises(MalformedInputError):
            BinPackingInstance("x", 10, ())

    def test_example_instance(self):
        inst = example_instance()
        assert inst.capacity == 60
        assert inst.known_optimal_bins == 4
        assert inst.num_items == 7

    def test_synthetic_is_deterministic(self):
        a = synthetic_instance("s", 50, 150, 10, 100, seed=7)
        b = synthetic_instance("s", 50, 150, 10, 100, seed=7)
        assert a == b
        assert all(10 <= size <= 100 for size in a.items)

    def test_default_batch(self):
        batch = default_batch_instances()
        assert [i.num_items for i in batch] == [7, 60, 120, 200]


class TestFileLoading:
    def test_file_stem_names_instance(self, tmp_path):
        path = tmp_path / "small_case.txt"
        path.write_text("3 100\n20 30 40\n")
        [inst] = load_instances_from_file(path)
        assert inst.name == "small_case"

    def test_missing_file(self, tmp_path):
        with pytest.raises(DatasetIOError) as exc_info:
            load_instances_from_file(tmp_path / "nope.txt")
        assert "nope.txt" in str(exc_info.value)

    def test_format_error_names_path(self, tmp_path):
        path = tmp_path / "bad.txt"
        path.write_text("5 100\n1 2\n")
        with pytest.raises(MalformedInputError) as exc_info:
            load_instances_from_file(path)
        assert str(path) in str(exc_info.value)

    def test_directory_skips_bad_files(self, tmp_path, caplog):
        (tmp_path / "a.txt").write_text("3 100\n20 30 40\n")
        (tmp_path / "b.txt").write_text("5 100\n1 2\n")
        (tmp_path / "c.txt").write_text(BINPACK_TWO)
        (tmp_path / ".hidden").write_text("garbage")

        with caplog.at_level(logging.WARNING):
            dataset = load_dataset_from_dir(tmp_path)

        assert [i.name for i in dataset] == ["a", "c_u120_00", "c_u120_01"]
        assert [s.path.name for s in dataset.skipped] == ["b.txt"]
        assert "b.txt" in caplog.text

    def test_directory_without_instances(self, tmp_path):
        (tmp_path / "bad.txt").write_text("oops\n")
        with pytest.raises(EmptyInputError):
            load_dataset_from_dir(tmp_path)

    def test_missing_directory(self, tmp_path):
        with pytest.raises(DatasetIOError):
            load_dataset_from_dir(tmp_path / "missing")

    def test_load_dataset_dispatches(self, tmp_path):
        path = tmp_path / "one.txt"
        path.write_text("3 100\n20 30 40\n")
        assert len(load_dataset(path)) == 1
        assert len(load_dataset(tmp_path)) == 1


class TestDataset:
    def _dataset(self):
        return BinPackingDataset(
            name="d",
            instances=[BinPackingInstance(f"i{k}", 10, (1,) * (k + 1)) for k in range(5)],
        )

    def test_select(self):
        selected = self._dataset().select(skip=1, take=2)
        assert [i.name for i in selected] == ["i1", "i2"]

    def test_select_take_beyond_end(self):
        assert len(self._dataset().select(skip=3, take=10)) == 2

    def test_filter_by_size(self):
        filtered = self._dataset().filter_by_size(min_items=2, max_items=3)
        assert [i.num_items for i in filtered] == [2, 3]

    def test_filter_by_size_keeps_skipped_files(self, tmp_path):
        (tmp_path / "a.txt").write_text("3 100\n20 30 40\n")
        (tmp_path / "b.txt").write_text("5 100\n1 2\n")
        filtered = load_dataset_from_dir(tmp_path).filter_by_size(max_items=2)
        assert len(filtered) == 0
        assert [s.path.name for s in filtered.skipped] == ["b.txt"]

    def test_summary(self):
        summary = dataset_summary(self._dataset())
        assert "Instances: 5" in summary
