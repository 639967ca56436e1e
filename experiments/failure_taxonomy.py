"""Failure classification and analysis for engine runs."""

from __future__ import annotations

from enum import Enum

from bpp.errors import BinPackingError, EngineInvariantError, InfeasibleItemError


class FailureType(str, Enum):
    INVARIANT_VIOLATION = "invariant_violation"
    INFEASIBLE_INSTANCE = "infeasible_instance"
    INVALID_CONFIG = "invalid_config"
    RUNTIME_ERROR = "runtime_error"
    OTHER = "other"


class FailureAnalyzer:
    def __init__(self) -> None:
        self.failures: dict[FailureType, int] = {ft: 0 for ft in FailureType}

    def classify_exception(self, exc: BaseException) -> FailureType:
        if isinstance(exc, EngineInvariantError):
            return FailureType.INVARIANT_VIOLATION
        if isinstance(exc, InfeasibleItemError):
            return FailureType.INFEASIBLE_INSTANCE
        if isinstance(exc, ValueError):
            return FailureType.INVALID_CONFIG
        if isinstance(exc, (BinPackingError, RuntimeError, ArithmeticError, LookupError)):
            return FailureType.RUNTIME_ERROR
        return FailureType.OTHER

    def record_failure(self, failure_type: FailureType) -> None:
        self.failures[failure_type] += 1

    def get_failure_stats(self) -> dict[FailureType, int]:
        return dict(self.failures)

    def total(self) -> int:
        return sum(self.failures.values())

    def get_top_failures(self, n: int = 5) -> list[tuple[str, int]]:
        sorted_failures = sorted(
            self.failures.items(),
            key=lambda x: x[1],
            reverse=True,
        )
        return [(ft.value, count) for ft, count in sorted_failures[:n] if count > 0]
