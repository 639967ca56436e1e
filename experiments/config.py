"""Experiment configuration with YAML support."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ConfigDict, Field

from search_core.schemas import RunConfig, SearchParams


class ExperimentConfig(RunConfig):
    """Run settings plus the search parameters applied to every repetition."""

    model_config = ConfigDict(extra="forbid")

    search: SearchParams = Field(default_factory=SearchParams)

    # Optional raw-result exports
    results_jsonl: str | None = None
    results_csv: str | None = None

    def with_overrides(self, **overrides: Any) -> "ExperimentConfig":
        """Copy with non-None values replaced; ``time_limit_s`` goes to ``search``."""
        run_fields: dict[str, Any] = {}
        search_fields: dict[str, Any] = {}
        for key, value in overrides.items():
            if value is None:
                continue
            if key in SearchParams.model_fields:
                search_fields[key] = value
            else:
                run_fields[key] = value

        data = self.to_dict()
        data.update(run_fields)
        data["search"] = {**data["search"], **search_fields}
        return ExperimentConfig.from_dict(data)


def load_config(yaml_path: str | Path) -> ExperimentConfig:
    """Load experiment configuration from YAML file.

    Args:
        yaml_path: Path to YAML configuration file

    Returns:
        ExperimentConfig instance

    Raises:
        FileNotFoundError: If YAML file doesn't exist
        ValueError: If YAML is invalid or holds unknown values
    """
    yaml_path = Path(yaml_path)

    if not yaml_path.exists():
        raise FileNotFoundError(f"Config file not found: {yaml_path}")

    with open(yaml_path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {yaml_path}: {e}") from e

    if not data:
        raise ValueError(f"Empty or invalid YAML file: {yaml_path}")
    if not isinstance(data, dict):
        raise ValueError(f"Top-level YAML value must be a mapping: {yaml_path}")

    try:
        return ExperimentConfig.from_dict(data)
    except Exception as e:
        raise ValueError(f"Invalid configuration in {yaml_path}: {e}") from e


def save_config(config: ExperimentConfig, yaml_path: str | Path) -> None:
    """Save experiment configuration to YAML file for reproducibility."""
    yaml_path = Path(yaml_path)
    yaml_path.parent.mkdir(parents=True, exist_ok=True)

    data = config.to_dict()

    with open(yaml_path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False, indent=2)
