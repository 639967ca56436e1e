"""
Experiments Module

Experiment configuration, runner, reporting and CLI.

This module provides:
- YAML-based configuration loading
- Repeated seeded runs per instance with failure isolation
- Exact reference bin counts and optimality gaps
- Summary tables and raw result export
- CLI for running experiments
"""

__version__ = "0.1.0"
