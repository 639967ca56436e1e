"""
Bin Packing Module

Instance model, instance file parsing and packing primitives.

This module provides:
- Canonical integer instance model and datasets
- Parser for simple (n/capacity) and BinPack multi-instance files
- Per-file decimal scaling of capacities and item sizes
- Greedy construction, bin elimination and packing validation
- Exact branch-and-bound reference for small instances
"""

__version__ = "0.1.0"

from .datasets import (
    BinPackingInstance,
    BinPackingDataset,
    SkippedFile,
    parse_instances,
    detect_scale,
    load_instances_from_file,
    load_dataset_from_dir,
    load_dataset,
    example_instance,
    synthetic_instance,
    default_batch_instances,
    dataset_summary,
)
from .errors import (
    BinPackingError,
    DatasetIOError,
    InstanceFormatError,
    EmptyInputError,
    MalformedInputError,
    InfeasibleItemError,
    EngineInvariantError,
)

__all__ = [
    "BinPackingInstance",
    "BinPackingDataset",
    "SkippedFile",
    "parse_instances",
    "detect_scale",
    "load_instances_from_file",
    "load_dataset_from_dir",
    "load_dataset",
    "example_instance",
    "synthetic_instance",
    "default_batch_instances",
    "dataset_summary",
    "BinPackingError",
    "DatasetIOError",
    "InstanceFormatError",
    "EmptyInputError",
    "MalformedInputError",
    "InfeasibleItemError",
    "EngineInvariantError",
]
