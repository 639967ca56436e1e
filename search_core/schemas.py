from __future__ import annotations

from collections.abc import Mapping
from typing import Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator


TBaseSchema = TypeVar("TBaseSchema", bound="BaseSchema")


class BaseSchema(BaseModel):
    def to_json(self) -> str:
        return self.model_dump_json()

    def to_dict(self) -> dict[str, object]:
        return self.model_dump()

    @classmethod
    def from_json(cls: type[TBaseSchema], data: str) -> TBaseSchema:
        return cls.model_validate_json(data)

    @classmethod
    def from_dict(cls: type[TBaseSchema], data: Mapping[str, object]) -> TBaseSchema:
        return cls.model_validate(data)


class SearchParams(BaseSchema):
    """Tabu search parameters for one engine execution."""

    model_config = ConfigDict(extra="forbid")

    max_iters: int = Field(default=5_000, ge=0)
    neighborhood_samples: int = Field(default=200, ge=1)
    tabu_tenure: int = Field(default=25, ge=0)
    stagnation_limit: int = Field(default=600, ge=1)
    time_limit_s: float | None = 2.0
    swap_probability: float = Field(default=0.6, ge=0.0, le=1.0)
    construction: Literal["best_fit", "first_fit", "worst_fit"] = "best_fit"
    stop_at_known_optimum: bool = True

    @field_validator("time_limit_s")
    @classmethod
    def non_positive_means_unlimited(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            return None
        return value


class RunConfig(BaseSchema):
    """Repetition and selection settings of an experiment."""

    runs: int = Field(default=5, ge=1)
    seed0: int = Field(default=0, ge=0)
    skip: int = Field(default=0, ge=0)
    take: int | None = Field(default=None, ge=0)
    workers: int = Field(default=1, ge=1)
    progress: bool = False
    with_exact: bool = True
    max_exact_items: int = Field(default=30, ge=0)
