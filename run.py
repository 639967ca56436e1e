#!/usr/bin/env python3
"""
Quick-start script for the tabu search benchmark.

Usage:
  python run.py                          # bundled batch, default settings
  python run.py --path data/             # every instance file of a directory
  python run.py --path data/bpp.txt      # one instance file
  python run.py --runs 10 --time-limit 5 # more repetitions, longer runs
  python run.py --save-config run.yaml   # also write the effective config
  python run.py --help                   # show help

The full command set lives in the CLI: ``tabu-binpack --help``.
"""

import argparse
import logging
import sys
from pathlib import Path


def print_banner():
    print()
    print("╔══════════════════════════════════════════════════════════════════╗")
    print("║            📦 Tabu Search - 1D Bin Packing Benchmark 📦           ║")
    print("╚══════════════════════════════════════════════════════════════════╝")
    print()


def print_config(args, config):
    limit = config.search.time_limit_s
    print("📋 Experiment settings:")
    print(f"   Instances:   {args.path or 'bundled batch'}")
    print(f"   Runs:        {config.runs}")
    print(f"   Seed0:       {config.seed0}")
    print(f"   Time limit:  {limit if limit is not None else 'none'}")
    print(f"   Workers:     {config.workers}")
    print(f"   Max iters:   {config.search.max_iters}")
    print(f"   Samples:     {config.search.neighborhood_samples}")
    print(f"   Tenure:      {config.search.tabu_tenure}")
    print()


def main():
    parser = argparse.ArgumentParser(
        description="Tabu search bin packing quick start",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--path", "-p", default=None, help="Instance file or directory (default: bundled batch)")
    parser.add_argument("--config", "-c", default=None, help="Experiment YAML config")
    parser.add_argument("--runs", "-r", type=int, default=None, help="Repetitions per instance (default: 5)")
    parser.add_argument("--seed0", type=int, default=None, help="Seed of the first repetition (default: 0)")
    parser.add_argument("--time-limit", type=float, default=None, help="Seconds per run, <= 0 for none (default: 2.0)")
    parser.add_argument("--workers", "-w", type=int, default=None, help="Worker processes (default: 1)")
    parser.add_argument("--take", type=int, default=None, help="Run at most this many instances")
    parser.add_argument("--results-jsonl", default=None, help="Export raw run results as JSONL")
    parser.add_argument("--save-config", default=None, help="Write the effective config to this YAML file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    from bpp.datasets import default_batch_instances, load_dataset
    from bpp.errors import BinPackingError
    from experiments.config import ExperimentConfig, load_config, save_config
    from experiments.report import format_table
    from experiments.runner import ExperimentRunner

    print_banner()

    try:
        config = load_config(args.config) if args.config else ExperimentConfig()
        config = config.with_overrides(
            runs=args.runs,
            seed0=args.seed0,
            time_limit_s=args.time_limit,
            workers=args.workers,
            take=args.take,
            results_jsonl=args.results_jsonl,
            progress=True,
        )
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Invalid config: {e}")
        sys.exit(1)

    try:
        dataset = load_dataset(args.path) if args.path else default_batch_instances()
    except BinPackingError as e:
        print(f"❌ Failed to load instances: {e}")
        sys.exit(1)

    print_config(args, config)
    if args.save_config:
        save_config(config, args.save_config)
        print(f"💾 Config saved to {Path(args.save_config)}")
        print()

    print("🚀 Starting runs...")
    print()
    report = ExperimentRunner(config).run(dataset)

    print()
    print(format_table(report.rows), end="")
    if config.results_jsonl:
        report.collector.export_jsonl(config.results_jsonl)
        print(f"\n✅ Raw results saved to {config.results_jsonl}")


if __name__ == "__main__":
    main()
