"""Bin packing instance model and instance file parser.

Three text layouts are recognised by their structure, not by file extension.

Simple form (one instance per file):
- Header: ``n capacity`` or ``capacity n``, on one line or on two
- Then n item sizes, split across lines and whitespace arbitrarily

BinPack form (OR-Library / Falkenauer, several instances per file):
- Line 1: Number of test problems (K)
- For each problem:
    - Problem identifier (never a plain number)
    - Bin capacity, Number of items (n), optional best known solution
    - For each item: size of the item (may be a decimal such as ``36.6``)

A file whose tokens are all numbers is read as simple form; otherwise a
single token on the first line selects BinPack form.

Full-line ``#`` comments and blank lines are ignored. Decimal values are turned
into integers with a single power of ten per file, so capacity and sizes keep
their exact ratios.

References:
- OR-Library: http://people.brunel.ac.uk/~mastjjb/jeb/orlib/binpackinfo.html
- Falkenauer (1994): "A Hybrid Grouping Genetic Algorithm for Bin Packing"
"""

from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from .errors import (
    BinPackingError,
    DatasetIOError,
    EmptyInputError,
    InfeasibleItemError,
    InstanceFormatError,
    MalformedInputError,
)

logger = logging.getLogger(__name__)

# More fractional digits than this is treated as a broken file
MAX_DECIMALS = 6

_NUMBER_RE = re.compile(r"(\d+)(?:\.(\d+))?", re.ASCII)
_COUNT_RE = re.compile(r"\d+", re.ASCII)


@dataclass(frozen=True)
class BinPackingInstance:
    """A single bin packing problem instance (sizes already scaled to integers)."""

    name: str
    capacity: int
    items: tuple[int, ...]
    known_optimal_bins: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))
        if self.capacity <= 0:
            raise MalformedInputError(f"capacity must be > 0 in instance '{self.name}'")
        if not self.items:
            raise MalformedInputError(f"instance '{self.name}' has no items")
        for index, size in enumerate(self.items):
            if size <= 0:
                raise MalformedInputError(
                    f"item {index} of instance '{self.name}' has non-positive size {size}"
                )
            if size > self.capacity:
                raise InfeasibleItemError(
                    f"item {index} of instance '{self.name}' has size {size} "
                    f"> capacity {self.capacity}"
                )
        if self.known_optimal_bins is not None and self.known_optimal_bins <= 0:
            raise MalformedInputError(
                f"known optimum of instance '{self.name}' must be > 0"
            )

    @property
    def num_items(self) -> int:
        return len(self.items)

    @property
    def total_size(self) -> int:
        return sum(self.items)

    @property
    def lower_bound(self) -> int:
        """L1 lower bound: ceil(sum of items / capacity)."""
        return (self.total_size + self.capacity - 1) // self.capacity

    def __repr__(self) -> str:
        return (
            f"BinPackingInstance(name='{self.name}', "
            f"capacity={self.capacity}, items={self.num_items}, "
            f"known_optimal_bins={self.known_optimal_bins})"
        )


@dataclass(frozen=True)
class SkippedFile:
    """A file of a directory batch that could not be parsed."""

    path: Path
    error: BinPackingError


@dataclass
class BinPackingDataset:
    """A collection of bin packing instances."""

    name: str
    instances: list[BinPackingInstance]
    skipped: list[SkippedFile] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.instances)

    def __iter__(self) -> Iterator[BinPackingInstance]:
        return iter(self.instances)

    def __getitem__(self, index: int) -> BinPackingInstance:
        return self.instances[index]

    def select(self, skip: int = 0, take: int | None = None) -> "BinPackingDataset":
        """Drop the first ``skip`` instances and keep at most ``take`` of the rest."""
        if skip < 0:
            raise ValueError("skip must be >= 0")
        if take is not None and take < 0:
            raise ValueError("take must be >= 0")
        end = None if take is None else skip + take
        return BinPackingDataset(
            name=self.name,
            instances=self.instances[skip:end],
            skipped=list(self.skipped),
        )

    def filter_by_size(
        self,
        min_items: int = 0,
        max_items: int | None = None,
    ) -> "BinPackingDataset":
        """Filter instances by number of items."""
        filtered = [
            inst for inst in self.instances
            if inst.num_items >= min_items
            and (max_items is None or inst.num_items <= max_items)
        ]
        return BinPackingDataset(
            name=f"{self.name}_filtered",
            instances=filtered,
            skipped=list(self.skipped),
        )


@dataclass(frozen=True)
class _Token:
    text: str
    line: int


@dataclass
class _RawInstance:
    name: str
    capacity: _Token
    sizes: list[_Token]
    known_optimal_bins: int | None = None


def _significant_lines(content: str) -> list[tuple[int, str]]:
    lines: list[tuple[int, str]] = []
    for lineno, raw in enumerate(content.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        lines.append((lineno, line))
    return lines


def _is_number(token: _Token) -> bool:
    return _NUMBER_RE.fullmatch(token.text) is not None


def _decimal_places(token: _Token) -> int:
    """Fractional digits a token needs to become an integer ("100.0" needs none)."""
    match = _NUMBER_RE.fullmatch(token.text)
    if match is None:
        raise MalformedInputError(f"expected a number, got '{token.text}'", token.line)
    return len((match.group(2) or "").rstrip("0"))


def _count(token: _Token, what: str) -> int:
    if _COUNT_RE.fullmatch(token.text) is None:
        raise MalformedInputError(
            f"expected an integer {what}, got '{token.text}'", token.line
        )
    return int(token.text)


def _file_scale(tokens: list[_Token]) -> int:
    """Smallest exponent d such that every value token times 10**d is integral."""
    scale = 0
    for token in tokens:
        places = _decimal_places(token)
        if places > MAX_DECIMALS:
            raise MalformedInputError(
                f"too many decimals in '{token.text}' (at most {MAX_DECIMALS} supported)",
                token.line,
            )
        scale = max(scale, places)
    return scale


def _scaled_value(token: _Token, scale: int) -> int:
    match = _NUMBER_RE.fullmatch(token.text)
    if match is None:
        raise MalformedInputError(f"expected a number, got '{token.text}'", token.line)
    whole, fraction = match.group(1), (match.group(2) or "").rstrip("0")
    return int(whole) * 10**scale + int(fraction.ljust(scale, "0") or "0")


def _build_instance(raw: _RawInstance, scale: int) -> BinPackingInstance:
    capacity = _scaled_value(raw.capacity, scale)
    if capacity <= 0:
        raise MalformedInputError(
            f"capacity must be > 0 in instance '{raw.name}'", raw.capacity.line
        )

    sizes: list[int] = []
    for token in raw.sizes:
        size = _scaled_value(token, scale)
        if size <= 0:
            raise MalformedInputError(
                f"item sizes must be > 0 in instance '{raw.name}', got '{token.text}'",
                token.line,
            )
        if size > capacity:
            raise InfeasibleItemError(
                f"item larger than capacity in instance '{raw.name}': "
                f"size={size} > capacity={capacity}",
                token.line,
            )
        sizes.append(size)

    return BinPackingInstance(
        name=raw.name,
        capacity=capacity,
        items=tuple(sizes),
        known_optimal_bins=raw.known_optimal_bins,
    )


def _read_simple(lines: list[tuple[int, str]], source: str) -> list[_RawInstance]:
    """Return every consistent reading of a simple-form file (one or two)."""
    tokens = [_Token(text, lineno) for lineno, line in lines for text in line.split()]
    for token in tokens:
        _decimal_places(token)
    first, second, body = tokens[0], tokens[1], tokens[2:]

    readings: list[_RawInstance] = []
    for count_token, capacity_token in ((first, second), (second, first)):
        if _COUNT_RE.fullmatch(count_token.text) is None:
            continue
        if int(count_token.text) == len(body):
            readings.append(_RawInstance(name=source, capacity=capacity_token, sizes=body))

    if not readings:
        raise MalformedInputError(
            f"item count mismatch: header '{first.text} {second.text}' declares "
            f"neither {first.text} nor {second.text} items, found {len(body)} size tokens",
            first.line,
        )
    return readings


def _read_binpack(lines: list[tuple[int, str]], source: str) -> list[_RawInstance]:
    count_lineno, count_text = lines[0]
    num_problems = _count(_Token(count_text, count_lineno), "instance count")
    if num_problems == 0:
        raise EmptyInputError("instance count is zero", count_lineno)

    pos = 1

    def next_line(what: str) -> tuple[int, str]:
        nonlocal pos
        if pos >= len(lines):
            raise MalformedInputError(
                f"unexpected end of input while reading {what}", lines[-1][0]
            )
        line = lines[pos]
        pos += 1
        return line

    raw_instances: list[_RawInstance] = []
    for _ in range(num_problems):
        name_lineno, name_text = next_line("instance name")
        if _NUMBER_RE.fullmatch(name_text) is not None:
            raise MalformedInputError(
                f"expected an instance name, got the number '{name_text}'", name_lineno
            )
        name = "_".join(name_text.split())

        header_lineno, header_text = next_line(f"header of instance '{name}'")
        header = [_Token(text, header_lineno) for text in header_text.split()]
        if len(header) not in (2, 3):
            raise MalformedInputError(
                f"expected 'capacity n [opt]' header for instance '{name}', got '{header_text}'",
                header_lineno,
            )
        num_items = _count(header[1], "item count")
        if num_items == 0:
            raise MalformedInputError(f"instance '{name}' declares zero items", header_lineno)
        known_optimal = _count(header[2], "known optimum") if len(header) == 3 else None
        if known_optimal == 0:
            raise MalformedInputError(f"known optimum of instance '{name}' must be > 0", header_lineno)

        sizes: list[_Token] = []
        while len(sizes) < num_items:
            lineno, text = next_line(f"item sizes of instance '{name}'")
            line_tokens = [_Token(part, lineno) for part in text.split()]
            for token in line_tokens:
                if not _is_number(token):
                    raise MalformedInputError(
                        f"instance '{name}' declares {num_items} items but only "
                        f"{len(sizes)} size tokens precede '{token.text}'",
                        lineno,
                    )
            if len(sizes) + len(line_tokens) > num_items:
                raise MalformedInputError(
                    f"instance '{name}' declares {num_items} items but more size tokens follow",
                    lineno,
                )
            sizes.extend(line_tokens)

        raw_instances.append(_RawInstance(
            name=f"{source}_{name}",
            capacity=header[0],
            sizes=sizes,
            known_optimal_bins=known_optimal,
        ))

    if pos < len(lines):
        raise MalformedInputError(
            f"unexpected content after {num_problems} instances: '{lines[pos][1]}'",
            lines[pos][0],
        )

    return raw_instances


def _read_raw(content: str, source: str) -> tuple[list[_RawInstance], bool]:
    lines = _significant_lines(content)
    if not lines:
        raise EmptyInputError("no instance data (input is empty or only comments)")

    # An all-numeric stream can only be simple form: BinPack names are never numbers
    tokens = [_Token(text, lineno) for lineno, line in lines for text in line.split()]
    if len(tokens) >= 3 and all(_is_number(token) for token in tokens):
        return _read_simple(lines, source), True
    if len(lines[0][1].split()) == 1:
        return _read_binpack(lines, source), False
    return _read_simple(lines, source), True


def _value_tokens(raw_instances: list[_RawInstance]) -> list[_Token]:
    tokens: list[_Token] = []
    for raw in raw_instances:
        tokens.append(raw.capacity)
        tokens.extend(raw.sizes)
    return tokens


def detect_scale(content: str) -> int:
    """Return the power-of-ten factor ``parse_instances`` applies to ``content``."""
    raw_instances, _ = _read_raw(content, "dataset")
    return 10 ** _file_scale(_value_tokens(raw_instances))


def parse_instances(content: str, source: str = "dataset") -> list[BinPackingInstance]:
    """Parse instance text in any supported layout.

    Args:
        content: Raw file content.
        source: Name used for single-instance files and as prefix for the
            problem identifiers of BinPack files.

    Returns:
        All instances of the input, in file order.

    Raises:
        EmptyInputError: No non-comment content.
        MalformedInputError: Count mismatch, non-numeric or ambiguous tokens.
        InfeasibleItemError: An item exceeds the capacity after scaling.
    """
    raw_instances, single = _read_raw(content, source)
    scale = _file_scale(_value_tokens(raw_instances))
    instances = [_build_instance(raw, scale) for raw in raw_instances]

    if not single:
        return instances
    # Both header readings matched the token count; accept only if they agree
    if len(instances) == 2 and instances[0] != instances[1]:
        raise MalformedInputError(
            "ambiguous header: both 'n capacity' and 'capacity n' match "
            f"the {instances[0].num_items} size tokens",
            raw_instances[0].capacity.line,
        )
    return instances[:1]


def load_instances_from_file(path: str | Path) -> list[BinPackingInstance]:
    """Read and parse one instance file; the file stem names its instances."""
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DatasetIOError(path, f"failed to read file: {e}") from e

    try:
        return parse_instances(content, source=path.stem)
    except InstanceFormatError as e:
        e.path = str(path)
        raise


def load_dataset_from_dir(directory: str | Path) -> BinPackingDataset:
    """Load every parseable instance file of a directory.

    Hidden files are ignored and files are visited in sorted order. Files that
    fail to parse are logged and recorded in ``skipped``; they never abort the
    rest of the directory.

    Raises:
        DatasetIOError: The directory itself cannot be listed.
        EmptyInputError: No file of the directory holds a parseable instance.
    """
    directory = Path(directory)
    try:
        paths = sorted(
            p for p in directory.iterdir()
            if p.is_file() and not p.name.startswith(".")
        )
    except OSError as e:
        raise DatasetIOError(directory, f"failed to read directory: {e}") from e

    instances: list[BinPackingInstance] = []
    skipped: list[SkippedFile] = []
    for path in paths:
        try:
            loaded = load_instances_from_file(path)
        except (InstanceFormatError, DatasetIOError) as e:
            logger.warning(f"Skipping {path.name}: {e}")
            skipped.append(SkippedFile(path=path, error=e))
            continue
        logger.info(f"Loaded {len(loaded)} instance(s) from {path.name}")
        instances.extend(loaded)

    if not instances:
        raise EmptyInputError("no parseable instance files", path=directory)

    return BinPackingDataset(name=directory.name, instances=instances, skipped=skipped)


def load_dataset(path: str | Path) -> BinPackingDataset:
    """Load a dataset from a single instance file or from a directory of them."""
    path = Path(path)
    if path.is_dir():
        return load_dataset_from_dir(path)
    return BinPackingDataset(name=path.stem, instances=load_instances_from_file(path))


# ============== Bundled Instances ==============

def example_instance() -> BinPackingInstance:
    """Small reference instance whose optimum (4 bins) is known."""
    return BinPackingInstance(
        name="TP2-example",
        capacity=60,
        items=(22, 17, 45, 12, 38, 27, 19),
        known_optimal_bins=4,
    )


def synthetic_instance(
    name: str,
    n_items: int,
    capacity: int,
    min_size: int,
    max_size: int,
    seed: int,
) -> BinPackingInstance:
    """Generate an instance with uniformly distributed item sizes.

    Args:
        name: Instance name.
        n_items: Number of items to generate.
        capacity: Bin capacity.
        min_size: Smallest item size (inclusive).
        max_size: Largest item size (inclusive, clamped to capacity).
        seed: Random seed for reproducibility.
    """
    if not 1 <= min_size <= max_size:
        raise ValueError("sizes must satisfy 1 <= min_size <= max_size")
    rng = random.Random(seed)
    upper = min(max_size, capacity)
    items = tuple(rng.randint(min_size, upper) for _ in range(n_items))
    return BinPackingInstance(name=name, capacity=capacity, items=items)


def default_batch_instances() -> BinPackingDataset:
    """Fixed instance set used by the batch command."""
    return BinPackingDataset(
        name="batch",
        instances=[
            example_instance(),
            synthetic_instance("synthetic-60", 60, 150, 10, 100, seed=1),
            synthetic_instance("synthetic-120", 120, 150, 10, 100, seed=2),
            synthetic_instance("synthetic-200", 200, 150, 10, 100, seed=3),
        ],
    )


# ============== Utility Functions ==============

def dataset_summary(dataset: BinPackingDataset) -> str:
    """Generate a summary of a dataset."""
    if not dataset.instances:
        return f"Dataset '{dataset.name}': empty"

    total_items = sum(inst.num_items for inst in dataset)
    avg_items = total_items / len(dataset)
    min_items = min(inst.num_items for inst in dataset)
    max_items = max(inst.num_items for inst in dataset)

    capacities = set(inst.capacity for inst in dataset)
    with_optimum = sum(1 for inst in dataset if inst.known_optimal_bins is not None)

    lines = [
        f"Dataset: {dataset.name}",
        f"  Instances: {len(dataset)}",
        f"  Items per instance: min={min_items}, max={max_items}, avg={avg_items:.1f}",
        f"  Capacities: {sorted(capacities)}",
        f"  With known optimum: {with_optimum}",
    ]
    if dataset.skipped:
        lines.append(f"  Skipped files: {len(dataset.skipped)}")
        for skipped in dataset.skipped:
            lines.append(f"    {skipped.path.name}: {skipped.error}")
    return "\n".join(lines)
