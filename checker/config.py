"""Checker configuration with YAML support."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import Field

from evaluator.schemas import BaseSchema
from sandbox.loader import EXECUTION_TIMEOUT_MS, PARSING_TIMEOUT_MS

EXERCISES_DIR_NAME = "Exercises"


class CheckerConfig(BaseSchema):
    """Settings for one checker run."""

    # None means: resolve from the working directory
    exercises_dir: str | None = None

    parse_timeout_ms: int = Field(default=PARSING_TIMEOUT_MS, gt=0)
    execution_timeout_ms: int = Field(default=EXECUTION_TIMEOUT_MS, gt=0)

    # Stop the whole batch on a parse error or timeout
    fail_fast: bool = True

    implementation_suffix: str = ".py"
    spec_suffix: str = ".test"

    def resolve_exercises_dir(self, cwd: str | Path | None = None) -> Path:
        """Configured directory, else ``cwd`` if it is an Exercises folder, else ``cwd/Exercises``."""
        if self.exercises_dir:
            return Path(self.exercises_dir)
        base = Path(cwd) if cwd is not None else Path.cwd()
        if EXERCISES_DIR_NAME in base.parts:
            return base
        return base / EXERCISES_DIR_NAME


def load_config(yaml_path: str | Path) -> CheckerConfig:
    """Load checker configuration from YAML file.

    Args:
        yaml_path: Path to YAML configuration file

    Returns:
        CheckerConfig instance

    Raises:
        FileNotFoundError: If YAML file doesn't exist
        ValueError: If YAML is invalid or has invalid fields
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

    try:
        return CheckerConfig.from_dict(data)
    except Exception as e:
        raise ValueError(f"Invalid configuration in {yaml_path}: {e}") from e

