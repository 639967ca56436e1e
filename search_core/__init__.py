"""
Search Core Module

Tabu search metaheuristic for one-dimensional bin packing.

This module implements the packing engine:
- Item-order solutions decoded by a greedy packer plus bin elimination
- Sampled swap/insert neighbourhood with a fixed-tenure tabu list
- Aspiration, stagnation restarts and a wall-clock budget
- Optional step-by-step tracing of the search
"""

__version__ = "0.1.0"

from .schemas import BaseSchema, RunConfig, SearchParams
from .search import Improvement, SearchResult, StopReason, TabuSearch, tabu_search
from .tabu import Move, TabuList
from .trace import SearchTracer

__all__ = [
    "BaseSchema",
    "RunConfig",
    "SearchParams",
    "Improvement",
    "SearchResult",
    "StopReason",
    "TabuSearch",
    "tabu_search",
    "Move",
    "TabuList",
    "SearchTracer",
]
